"""
Email Service using Resend

Sends the enrollment confirmation (with the PDF attached) to applicants.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from html import escape
from typing import Protocol
from zoneinfo import ZoneInfo

import resend

from innovision.core.config import settings
from innovision.core.exceptions import NotificationError

logger = logging.getLogger(__name__)


class ConfirmationRecipient(Protocol):
    """The applicant attributes the confirmation email needs."""

    application_id: str
    full_name: str
    email: str
    course: str
    locale: object
    created_at: datetime


@dataclass(frozen=True)
class EmailCopy:
    subject: str
    banner: str
    greeting: str
    intro: str
    application_id_label: str
    course_label: str
    date_label: str
    attachment_note: str
    next_steps_title: str
    next_steps: tuple[str, ...]
    whatsapp_button: str
    social_note: str
    phone_label: str


# Keyed by locale value
EMAIL_COPY: dict[str, EmailCopy] = {
    "fr": EmailCopy(
        subject="Confirmation d'inscription - {school}",
        banner="Confirmation d'inscription",
        greeting="Félicitations {name} !",
        intro="Votre inscription à {school} a été confirmée avec succès.",
        application_id_label="ID de candidature",
        course_label="Formation",
        date_label="Date d'inscription",
        attachment_note="Vous trouverez en pièce jointe votre fiche d'inscription officielle au format PDF.",
        next_steps_title="Prochaines étapes :",
        next_steps=(
            "Conservez votre ID de candidature : <strong>{application_id}</strong>",
            "Nous vous contacterons dans les prochains jours pour finaliser votre inscription",
            "Préparez les documents requis pour la formation",
        ),
        whatsapp_button="Contactez-nous sur WhatsApp",
        social_note="Suivez-nous sur nos réseaux sociaux pour rester informé !",
        phone_label="Tél",
    ),
    "en": EmailCopy(
        subject="Enrollment confirmation - {school}",
        banner="Enrollment confirmation",
        greeting="Congratulations {name}!",
        intro="Your enrollment at {school} has been confirmed.",
        application_id_label="Application ID",
        course_label="Course",
        date_label="Registration date",
        attachment_note="Your official registration form is attached as a PDF.",
        next_steps_title="Next steps:",
        next_steps=(
            "Keep your application ID: <strong>{application_id}</strong>",
            "We will contact you in the coming days to finalize your enrollment",
            "Prepare the documents required for the course",
        ),
        whatsapp_button="Contact us on WhatsApp",
        social_note="Follow us on social media to stay informed!",
        phone_label="Phone",
    ),
    "ar": EmailCopy(
        subject="تأكيد التسجيل - {school}",
        banner="تأكيد التسجيل",
        greeting="تهانينا {name}!",
        intro="تم تأكيد تسجيلك في {school} بنجاح.",
        application_id_label="رقم الطلب",
        course_label="التكوين",
        date_label="تاريخ التسجيل",
        attachment_note="ستجد مرفقا استمارة التسجيل الرسمية بصيغة PDF.",
        next_steps_title="الخطوات التالية:",
        next_steps=(
            "احتفظ برقم طلبك: <strong>{application_id}</strong>",
            "سنتصل بك في الأيام القادمة لإتمام تسجيلك",
            "حضّر الوثائق المطلوبة للتكوين",
        ),
        whatsapp_button="تواصل معنا عبر واتساب",
        social_note="تابعونا على شبكات التواصل الاجتماعي!",
        phone_label="الهاتف",
    ),
}


def _local_date(value: datetime) -> str:
    """Calendar date of ``value`` in the school's timezone, as dd/mm/yyyy."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(ZoneInfo(settings.timezone)).strftime("%d/%m/%Y")


def _locale_code(locale: object) -> str:
    code = getattr(locale, "value", locale)
    return code if code in EMAIL_COPY else "fr"


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
    bcc: list[str] | None = None,
    attachments: list[tuple[str, bytes]] | None = None,
) -> str | None:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email
        bcc: Blind-copy recipients
        attachments: (filename, content) pairs

    Returns:
        The Resend message id, or None when the email was only logged

    Raises:
        NotificationError: If the API call fails or times out
    """
    if not settings.resend_api_key:
        if settings.is_production:
            raise NotificationError("Email delivery is not configured.")
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return None

    resend.api_key = settings.resend_api_key

    params: resend.Emails.SendParams = {
        "from": settings.email_from,
        "to": [to_email],
        "subject": subject,
        "html": html_content,
    }
    if bcc:
        params["bcc"] = bcc
    if attachments:
        params["attachments"] = [
            {"filename": filename, "content": list(content)} for filename, content in attachments
        ]

    try:
        # Run sync Resend call in thread pool to avoid blocking event loop
        email = await asyncio.wait_for(
            asyncio.to_thread(resend.Emails.send, params),
            timeout=settings.email_timeout_seconds,
        )
    except TimeoutError as e:
        logger.error(f"Timed out sending email to {to_email}")
        raise NotificationError("Timed out sending the confirmation email.") from e
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        raise NotificationError() from e

    logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
    return email["id"]


def render_enrollment_confirmation(applicant: ConfirmationRecipient) -> tuple[str, str]:
    """Build the (subject, html) pair for an applicant in their own locale."""
    locale = _locale_code(applicant.locale)
    copy = EMAIL_COPY[locale]
    direction = "rtl" if locale == "ar" else "ltr"

    # Escape user inputs to prevent XSS
    safe_name = escape(applicant.full_name)
    safe_course = escape(applicant.course)
    safe_application_id = escape(applicant.application_id)
    school = escape(settings.school_name)

    steps = "\n".join(
        f"<li>{step.format(application_id=safe_application_id)}</li>" for step in copy.next_steps
    )

    html_content = f"""
    <!DOCTYPE html>
    <html dir="{direction}" lang="{locale}">
    <head>
        <meta charset="UTF-8">
        <style>
            body {{ font-family: Arial, sans-serif; margin: 0; padding: 20px; background-color: #f5f5f5; }}
            .container {{ max-width: 600px; margin: 0 auto; background: white; border-radius: 16px; overflow: hidden; }}
            .header {{ background: #0F4C81; color: white; padding: 30px; text-align: center; }}
            .content {{ padding: 30px; }}
            .button {{ display: inline-block; background: #FFC93C; color: #0F4C81; padding: 12px 24px; border-radius: 8px; text-decoration: none; font-weight: bold; margin: 20px 0; }}
            .info-box {{ background: #f8f9fa; padding: 20px; border-radius: 8px; margin: 20px 0; }}
            .footer {{ background: #f8f9fa; padding: 20px; text-align: center; color: #666; font-size: 14px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <h1>{school}</h1>
                <p>{copy.banner}</p>
            </div>

            <div class="content">
                <h2>{copy.greeting.format(name=safe_name)}</h2>
                <p>{copy.intro.format(school=school)}</p>

                <div class="info-box">
                    <p><strong>{copy.application_id_label}:</strong> {safe_application_id}</p>
                    <p><strong>{copy.course_label}:</strong> {safe_course}</p>
                    <p><strong>{copy.date_label}:</strong> {_local_date(applicant.created_at)}</p>
                </div>

                <p>{copy.attachment_note}</p>

                <p><strong>{copy.next_steps_title}</strong></p>
                <ul>
                    {steps}
                </ul>

                <a href="{escape(settings.school_whatsapp_url)}" class="button">{copy.whatsapp_button}</a>
            </div>

            <div class="footer">
                <p><strong>{school}</strong><br>
                {escape(settings.school_address)}<br>
                {copy.phone_label}: {escape(settings.school_phone)} | Email: {escape(settings.school_email)}</p>

                <p>{copy.social_note}</p>
            </div>
        </div>
    </body>
    </html>
    """
    return copy.subject.format(school=settings.school_name), html_content


async def send_enrollment_confirmation(
    applicant: ConfirmationRecipient,
    document: bytes,
) -> str | None:
    """
    Email the confirmation document to the applicant, blind-copying the school.

    Raises:
        NotificationError: If delivery fails
    """
    subject, html_content = render_enrollment_confirmation(applicant)
    return await send_email(
        to_email=applicant.email,
        subject=subject,
        html_content=html_content,
        bcc=[settings.admin_email] if settings.admin_email else None,
        attachments=[(f"inscription-{applicant.application_id}.pdf", document)],
    )


__all__ = [
    "EMAIL_COPY",
    "render_enrollment_confirmation",
    "send_email",
    "send_enrollment_confirmation",
]
