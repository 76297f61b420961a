"""
Confirmation Document Generator

Renders the one-page PDF registration form (with a QR code of the
application id) that is emailed to applicants and served on demand.

Rendering is pure: the same applicant record always yields the same bytes
(ReportLab ``invariant`` mode strips the creation date and random file id).
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC
from io import BytesIO

import qrcode
from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from innovision.core.config import settings
from innovision.core.exceptions import DocumentError

from .helpers import school_timezone
from .models import Applicant, Locale

logger = logging.getLogger(__name__)

PRIMARY_COLOR = HexColor("#0F4C81")
ACCENT_COLOR = HexColor("#FFC93C")
TEXT_COLOR = HexColor("#333333")
MUTED_COLOR = HexColor("#666666")

MARGIN = 50
VALUE_COLUMN = 200
ROW_HEIGHT = 25
QR_SIZE = 100

CUSTOM_FONT_NAME = "InnoVisionDocumentFont"


@dataclass(frozen=True)
class DocumentLabels:
    title: str
    application_id: str
    full_name: str
    email: str
    birth_date: str
    age: str
    years: str
    region: str
    phone: str
    course: str
    registration_date: str
    language: str
    qr_caption: str
    confirmation: str
    keep_copy: str
    follow_us: str
    phone_prefix: str


LABELS: dict[Locale, DocumentLabels] = {
    Locale.FR: DocumentLabels(
        title="Fiche d'Inscription",
        application_id="ID de candidature",
        full_name="Nom & Prénom:",
        email="Email:",
        birth_date="Date de naissance:",
        age="Âge:",
        years="ans",
        region="Wilaya:",
        phone="Téléphone:",
        course="Formation choisie:",
        registration_date="Date d'inscription:",
        language="Langue:",
        qr_caption="QR Code ID",
        confirmation="Ce document confirme votre inscription à {school}.",
        keep_copy="Conservez cette fiche pour vos dossiers.",
        follow_us="Suivez-nous:",
        phone_prefix="Tél",
    ),
    Locale.EN: DocumentLabels(
        title="Registration Form",
        application_id="Application ID",
        full_name="Full name:",
        email="Email:",
        birth_date="Date of birth:",
        age="Age:",
        years="years",
        region="Wilaya:",
        phone="Phone:",
        course="Selected course:",
        registration_date="Registration date:",
        language="Language:",
        qr_caption="QR Code ID",
        confirmation="This document confirms your enrollment at {school}.",
        keep_copy="Keep this form for your records.",
        follow_us="Follow us:",
        phone_prefix="Phone",
    ),
}


def _font_name() -> str:
    """Registered name of the body font, registering the configured TTF once."""
    if not settings.document_font_path:
        return "Helvetica"
    if CUSTOM_FONT_NAME not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(TTFont(CUSTOM_FONT_NAME, settings.document_font_path))
    return CUSTOM_FONT_NAME


def _labels_for(locale: Locale) -> DocumentLabels:
    # No Arabic label set: right-to-left shaping is not supported
    return LABELS.get(locale, LABELS[Locale.FR])


def _qr_image(data: str) -> ImageReader:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)

    buffer = BytesIO()
    qr.make_image(fill_color="black", back_color="white").save(buffer)
    buffer.seek(0)
    return ImageReader(buffer)


def render_confirmation(applicant: Applicant) -> bytes:
    """
    Render the confirmation PDF for an applicant.

    Args:
        applicant: A persisted applicant record

    Returns:
        The PDF bytes
    """
    labels = _labels_for(applicant.locale)
    font = _font_name()
    tz = school_timezone()
    width, height = A4

    created_at = applicant.created_at
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    registered_on = created_at.astimezone(tz).strftime("%d/%m/%Y")

    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4, invariant=1)
    pdf.setTitle(f"{labels.title} {applicant.application_id}")
    pdf.setAuthor(settings.school_name)

    def top(offset: float) -> float:
        return height - offset

    # Header
    pdf.setFillColor(PRIMARY_COLOR)
    pdf.setFont("Helvetica-Bold", 24)
    pdf.drawString(MARGIN, top(70), settings.school_name)

    pdf.setFillColor(MUTED_COLOR)
    pdf.setFont(font, 12)
    pdf.drawString(MARGIN, top(90), settings.school_tagline)
    pdf.drawString(MARGIN, top(105), settings.school_address)
    pdf.drawString(
        MARGIN,
        top(120),
        f"{labels.phone_prefix}: {settings.school_phone} | Email: {settings.school_email}",
    )

    # Title and application id
    pdf.setFillColor(PRIMARY_COLOR)
    pdf.setFont("Helvetica-Bold", 20)
    pdf.drawCentredString(width / 2, top(165), labels.title)

    pdf.setFillColor(ACCENT_COLOR)
    pdf.setFont("Helvetica-Bold", 14)
    pdf.drawCentredString(
        width / 2, top(195), f"{labels.application_id}: {applicant.application_id}"
    )

    # Applicant information
    fields = [
        (labels.full_name, applicant.full_name),
        (labels.email, applicant.email),
        (labels.birth_date, applicant.birth_date.strftime("%d/%m/%Y")),
        (labels.age, f"{applicant.age} {labels.years}"),
        (labels.region, applicant.region),
        (labels.phone, applicant.phone),
        (labels.course, applicant.course),
        (labels.registration_date, registered_on),
        (labels.language, applicant.locale.value.upper()),
    ]

    y = top(240)
    for label, value in fields:
        pdf.setFont(font, 12)
        pdf.setFillColor(TEXT_COLOR)
        pdf.drawString(MARGIN, y, label)
        pdf.setFillColor(MUTED_COLOR)
        pdf.drawString(VALUE_COLUMN, y, value)
        y -= ROW_HEIGHT

    # QR code of the application id
    qr_x = width - MARGIN - QR_SIZE
    qr_y = top(240) - QR_SIZE + 12
    pdf.drawImage(_qr_image(applicant.application_id), qr_x, qr_y, QR_SIZE, QR_SIZE)
    pdf.setFont(font, 10)
    pdf.setFillColor(MUTED_COLOR)
    pdf.drawCentredString(qr_x + QR_SIZE / 2, qr_y - 12, labels.qr_caption)

    # Footer
    pdf.drawCentredString(width / 2, 120, labels.confirmation.format(school=settings.school_name))
    pdf.drawCentredString(width / 2, 105, labels.keep_copy)
    pdf.drawString(MARGIN, 80, labels.follow_us)
    pdf.drawString(MARGIN, 65, settings.school_socials)

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


async def generate_document(applicant: Applicant) -> bytes:
    """
    Render the confirmation document off the event loop.

    Raises:
        DocumentError: If rendering fails or exceeds DOCUMENT_TIMEOUT_SECONDS
    """
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(render_confirmation, applicant),
            timeout=settings.document_timeout_seconds,
        )
    except TimeoutError as e:
        logger.error(f"Document rendering timed out for {applicant.application_id}")
        raise DocumentError("Timed out generating the confirmation document.") from e
    except Exception as e:
        logger.error(f"Document rendering failed for {applicant.application_id}: {e}")
        raise DocumentError() from e
