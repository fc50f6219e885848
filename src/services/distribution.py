"""Bearer link distribution.

Turns a minted link into transport payloads: two emails (link and access
code sent apart, both needed to read the report) and messaging deep links.
Delivery is best-effort and decoupled from minting: a failed or
unconfigured transport is reported to the caller, never raised.
"""

import asyncio
import re
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from urllib.parse import quote, urlencode

from src.config import settings
from src.core.errors import ValidationError
from src.logging_config import get_logger
from src.schemas.bearer_link import SharedReport
from src.services.bearer_links import MintedLink, mint_link

logger = get_logger(__name__)

WHATSAPP_BASE_URL = "https://wa.me"
TELEGRAM_SHARE_URL = "https://t.me/share/url"

_PHONE_DIGITS = re.compile(r"^\d{6,15}$")


@dataclass(frozen=True)
class DeliveryResult:
    success: bool
    detail: str


def _format_report_date(report: SharedReport) -> str:
    return report.created_at.strftime("%Y-%m-%d")


def _format_expiry(link: MintedLink) -> str:
    return link.expires_at.strftime("%Y-%m-%d %H:%M UTC")


def build_emails(
    link: MintedLink,
    recipient_email: str,
    sender_name: str,
    report: SharedReport,
) -> list[EmailMessage]:
    """Build the link email and the access-code email.

    The code never travels in the same message as the link.
    """
    link_mail = EmailMessage()
    link_mail["Subject"] = f"{sender_name} shared a medical report with you"
    link_mail["From"] = settings.email_from
    link_mail["To"] = recipient_email
    link_mail.set_content(
        f"{sender_name} shared a medical report with you:\n\n"
        f"{report.title}\n"
        f"Date: {_format_report_date(report)}\n\n"
        f"Open the report here: {link.url}\n\n"
        "You will also receive an access code in a separate message. "
        "Both are required to view the report.\n"
        f"This link expires on {_format_expiry(link)}."
    )

    code_mail = EmailMessage()
    code_mail["Subject"] = f"Access code for the report shared by {sender_name}"
    code_mail["From"] = settings.email_from
    code_mail["To"] = recipient_email
    code_mail.set_content(
        f"Your access code is: {link.access_code}\n\n"
        "Enter it on the page opened from the link you received separately."
    )
    return [link_mail, code_mail]


def _message_text(
    link: MintedLink,
    sender_name: str,
    report: SharedReport,
    include_code: bool,
) -> str:
    lines = [
        f"{sender_name} shared a medical report with you:",
        "",
        f"*{report.title}*",
        f"Date: {_format_report_date(report)}",
        "",
        f"Open the report here: {link.url}",
    ]
    if include_code:
        lines += ["", f"Access code: *{link.access_code}*"]
    lines += ["", f"This link expires on {_format_expiry(link)}."]
    return "\n".join(lines)


def normalize_phone_number(phone_number: str) -> str:
    """Strip spaces, dashes, dots, parentheses and a leading '+'.

    Raises:
        ValidationError: If the result is not 6 to 15 digits.
    """
    digits = re.sub(r"[\s\-().]", "", phone_number)
    if digits.startswith("+"):
        digits = digits[1:]
    if not _PHONE_DIGITS.match(digits):
        raise ValidationError("Phone number must contain 6 to 15 digits")
    return digits


def build_whatsapp_link(
    link: MintedLink,
    phone_number: str,
    sender_name: str,
    report: SharedReport,
) -> str:
    """Deep link opening WhatsApp with the message pre-filled."""
    number = normalize_phone_number(phone_number)
    text = _message_text(link, sender_name, report, include_code=True)
    return f"{WHATSAPP_BASE_URL}/{number}?text={quote(text, safe='')}"


def build_telegram_share_link(
    link: MintedLink,
    sender_name: str,
    report: SharedReport,
) -> str:
    """Telegram share deep link; the access code is left out of the message."""
    text = f"{sender_name} shared a medical report with you: {report.title}"
    return f"{TELEGRAM_SHARE_URL}?{urlencode({'url': link.url, 'text': text})}"


def smtp_configured() -> bool:
    return bool(settings.smtp_host)


def _send_via_smtp(messages: list[EmailMessage]) -> None:
    with smtplib.SMTP(
        settings.smtp_host,
        settings.smtp_port,
        timeout=settings.smtp_timeout_seconds,
    ) as server:
        if settings.smtp_use_tls:
            server.starttls()
        if settings.smtp_user:
            server.login(settings.smtp_user, settings.smtp_password)
        for message in messages:
            server.send_message(message)


async def send_emails(messages: list[EmailMessage]) -> DeliveryResult:
    """Hand messages to the SMTP relay without blocking the event loop."""
    if not smtp_configured():
        logger.warning("Email not sent: SMTP is not configured")
        return DeliveryResult(success=False, detail="Email delivery is not configured")

    try:
        await asyncio.to_thread(_send_via_smtp, messages)
    except (smtplib.SMTPException, OSError) as exc:
        logger.error(
            "Email delivery failed",
            error_type=type(exc).__name__,
        )
        return DeliveryResult(success=False, detail="Email delivery failed")

    logger.info("Shared report emails sent", message_count=len(messages))
    return DeliveryResult(success=True, detail="Email sent")


async def share_by_email(
    report: SharedReport,
    recipient_email: str,
    sender_name: str,
    access_code: str | None = None,
    ttl_hours: int | None = None,
) -> tuple[MintedLink, DeliveryResult]:
    """Mint a link and mail it; the link is returned whatever the delivery outcome."""
    link = mint_link(report, access_code=access_code, ttl_hours=ttl_hours)
    messages = build_emails(link, recipient_email, sender_name, report)
    result = await send_emails(messages)
    return link, result


def share_by_messaging(
    report: SharedReport,
    phone_number: str,
    sender_name: str,
    access_code: str | None = None,
    ttl_hours: int | None = None,
) -> tuple[MintedLink, str, str]:
    """Mint a link and build WhatsApp and Telegram deep links for it.

    The phone number is validated before minting so a bad number never
    produces an orphan link.

    Returns:
        Tuple of (MintedLink, whatsapp_link, telegram_link).
    """
    normalize_phone_number(phone_number)
    link = mint_link(report, access_code=access_code, ttl_hours=ttl_hours)
    whatsapp = build_whatsapp_link(link, phone_number, sender_name, report)
    telegram = build_telegram_share_link(link, sender_name, report)
    return link, whatsapp, telegram
