"""
Create Administrator

Provisions an administrator account for the admin dashboard. Accounts are
never self-registered; run this once per operator.

Usage:
    python scripts/create_admin.py admin@innovision.dz
    python scripts/create_admin.py admin@innovision.dz --password-stdin < password.txt
"""

import argparse
import asyncio
import getpass
import sys

from innovision.core.database import async_session_maker, engine
from innovision.core.security import hash_password
from innovision.modules.admins.repository import AdminRepository

MIN_PASSWORD_LENGTH = 8


def _read_password(from_stdin: bool) -> str:
    if from_stdin:
        return sys.stdin.readline().rstrip("\n")

    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Confirm password: "):
        raise SystemExit("Passwords do not match.")
    return password


async def create_admin(email: str, password: str) -> int:
    """Create the administrator unless the email is taken. Returns an exit code."""
    async with async_session_maker() as db:
        if await AdminRepository.email_exists(db, email):
            print(f"Administrator already exists: {email.strip().lower()}")
            return 1

        admin = await AdminRepository.create(
            db,
            email=email,
            password_hash=hash_password(password),
        )
        await db.commit()

        print("Administrator created successfully!")
        print(f"  Email: {admin.email}")
        print(f"  ID: {admin.id}")
        print(f"  Role: {admin.role.value}")

    await engine.dispose()
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Create an administrator account.")
    parser.add_argument("email", help="Login email of the administrator")
    parser.add_argument(
        "--password-stdin",
        action="store_true",
        help="Read the password from the first line of standard input",
    )
    args = parser.parse_args()

    password = _read_password(args.password_stdin)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise SystemExit(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

    sys.exit(asyncio.run(create_admin(args.email, password)))


if __name__ == "__main__":
    main()
