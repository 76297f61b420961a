"""create administrators and applicants

Revision ID: 3f9a1c7d2e4b
Revises:
Create Date: 2026-10-19 09:00:00.000000

This migration:
1. Creates the administrators table (login accounts for the admin dashboard)
2. Creates the applicants table with its lifecycle status enum
3. Adds the indexes used by the admin list and statistics queries
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9a1c7d2e4b"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


admin_role = sa.Enum("admin", name="admin_role")
applicant_locale = sa.Enum("fr", "en", "ar", name="applicant_locale")
enrollment_status = sa.Enum("created", "documented", "notified", name="enrollment_status")


def upgrade() -> None:
    """Create administrators and applicants tables."""
    op.create_table(
        "administrators",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", admin_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_administrators_email", "administrators", ["email"], unique=True)

    op.create_table(
        "applicants",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("application_id", sa.String(length=32), nullable=False),
        # Applicant information
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("region", sa.String(length=100), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=False),
        sa.Column("course", sa.String(length=200), nullable=False),
        sa.Column("locale", applicant_locale, nullable=False, server_default="fr"),
        # Status tracking
        sa.Column("status", enrollment_status, nullable=False, server_default="created"),
        sa.Column("document_url", sa.String(length=255), nullable=True),
        sa.Column("email_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        # Audit timestamps
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("application_id", name="uq_applicants_application_id"),
    )
    op.create_index("ix_applicants_created_at", "applicants", ["created_at"])
    op.create_index("ix_applicants_region", "applicants", ["region"])
    op.create_index("ix_applicants_course", "applicants", ["course"])


def downgrade() -> None:
    """Drop applicants and administrators tables and their enum types."""
    op.drop_index("ix_applicants_course", table_name="applicants")
    op.drop_index("ix_applicants_region", table_name="applicants")
    op.drop_index("ix_applicants_created_at", table_name="applicants")
    op.drop_table("applicants")

    op.drop_index("ix_administrators_email", table_name="administrators")
    op.drop_table("administrators")

    bind = op.get_bind()
    enrollment_status.drop(bind, checkfirst=True)
    applicant_locale.drop(bind, checkfirst=True)
    admin_role.drop(bind, checkfirst=True)
