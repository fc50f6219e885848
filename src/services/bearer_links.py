"""Bearer link codec.

Mints and opens self-contained shared-report links. Nothing is stored:
the link's ciphertext carries the report snapshot and its expiry, and the
expiry is checked when the link is opened.
"""

import io
import json
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs, urlsplit

import segno

from src.config import settings
from src.core.encryption import decrypt_payload, encrypt_payload
from src.core.errors import DecryptError, ExpiredError, ValidationError
from src.core.security import (
    ACCESS_CODE_ALPHABET,
    ACCESS_CODE_LENGTH,
    generate_access_code,
)
from src.logging_config import get_logger
from src.models.base import ensure_aware
from src.schemas.bearer_link import SharedReport

logger = get_logger(__name__)

SHARED_REPORT_PATH = "/shared-report"
DATA_PARAM = "data"


@dataclass(frozen=True)
class MintedLink:
    url: str
    access_code: str
    expires_at: datetime
    data: str


@dataclass(frozen=True)
class BearerReport:
    report: SharedReport
    expires_at: datetime


def normalize_access_code(code: str) -> str:
    """Upper-case and trim an access code typed by a person."""
    return code.strip().upper()


def _validate_access_code(code: str) -> str:
    normalized = normalize_access_code(code)
    if len(normalized) != ACCESS_CODE_LENGTH or any(
        ch not in ACCESS_CODE_ALPHABET for ch in normalized
    ):
        raise ValidationError(
            f"Access code must be {ACCESS_CODE_LENGTH} letters or digits"
        )
    return normalized


def _isoformat(value: datetime) -> str:
    return ensure_aware(value).astimezone(UTC).isoformat().replace("+00:00", "Z")


def serialize_payload(report: SharedReport, expires_at: datetime) -> bytes:
    """Canonical JSON: sorted keys, compact separators, UTC timestamps."""
    payload = {
        "id": report.id,
        "title": report.title,
        "content": report.content,
        "createdAt": _isoformat(report.created_at),
        "expiresAt": _isoformat(expires_at),
    }
    return json.dumps(
        payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


def deserialize_payload(raw: bytes) -> BearerReport:
    """Parse a decrypted payload.

    Raises:
        DecryptError: If the plaintext is not a well-formed payload.
    """
    try:
        payload = json.loads(raw.decode("utf-8"))
        report = SharedReport(
            id=payload["id"],
            title=payload["title"],
            content=payload["content"],
            created_at=datetime.fromisoformat(payload["createdAt"]),
        )
        expires_at = datetime.fromisoformat(payload["expiresAt"])
    except (ValueError, KeyError, TypeError) as e:
        raise DecryptError("Decrypted payload is malformed") from e
    return BearerReport(report=report, expires_at=ensure_aware(expires_at))


def build_link_url(data: str, base_url: str | None = None) -> str:
    base = (base_url or settings.frontend_base_url).rstrip("/")
    return f"{base}{SHARED_REPORT_PATH}?{DATA_PARAM}={data}"


def extract_link_data(url_or_data: str) -> str:
    """Return the ciphertext from a full bearer URL or a bare ``data`` value."""
    value = url_or_data.strip()
    if "?" not in value:
        return value
    values = parse_qs(urlsplit(value).query).get(DATA_PARAM)
    if not values:
        raise DecryptError("Link has no data parameter")
    return values[0]


def mint_link(
    report: SharedReport,
    access_code: str | None = None,
    ttl_hours: int | None = None,
    base_url: str | None = None,
    now: datetime | None = None,
) -> MintedLink:
    """Encrypt a report snapshot into a bearer URL.

    Args:
        report: Report snapshot to embed.
        access_code: Code chosen by the sharer; generated when omitted.
        ttl_hours: Lifetime of the link (default 72 hours).
        base_url: Frontend base URL (default from settings).
        now: Current time override.

    Raises:
        ValidationError: If the access code or lifetime is invalid.
    """
    if ttl_hours is None:
        ttl_hours = settings.bearer_link_default_ttl_hours
    if ttl_hours <= 0:
        raise ValidationError("Link lifetime must be at least one hour")
    if ttl_hours > settings.bearer_link_max_ttl_hours:
        raise ValidationError(
            f"Link lifetime cannot exceed {settings.bearer_link_max_ttl_hours} hours"
        )

    code = (
        _validate_access_code(access_code)
        if access_code is not None
        else generate_access_code()
    )
    now = now if now is not None else datetime.now(UTC)
    expires_at = now + timedelta(hours=ttl_hours)

    data = encrypt_payload(serialize_payload(report, expires_at), code, now)
    url = build_link_url(data, base_url)

    logger.info(
        "Minted bearer link",
        report_id=report.id,
        ttl_hours=ttl_hours,
    )
    return MintedLink(url=url, access_code=code, expires_at=expires_at, data=data)


def open_link(
    url_or_data: str,
    access_code: str,
    now: datetime | None = None,
) -> BearerReport:
    """Decrypt a bearer link with its access code.

    Raises:
        DecryptError: Wrong code or corrupted/tampered link.
        ExpiredError: Correct code but the embedded expiry has passed.
    """
    data = extract_link_data(url_or_data)
    raw = decrypt_payload(data, normalize_access_code(access_code))
    opened = deserialize_payload(raw)

    now = now if now is not None else datetime.now(UTC)
    if opened.expires_at <= ensure_aware(now):
        raise ExpiredError(f"Bearer link for report {opened.report.id} expired")
    return opened


def build_qr_symbol(url: str) -> segno.QRCode:
    """QR symbol holding the URL's exact bytes at error correction level L."""
    return segno.make_qr(url, error="l", mode="byte", boost_error=False)


def render_qr_code(url: str, scale: int = 5) -> bytes:
    """Render a URL as a PNG QR code.

    Byte mode keeps the URL byte-identical when the image is decoded.
    """
    buffer = io.BytesIO()
    build_qr_symbol(url).save(buffer, kind="png", scale=scale, border=4)
    return buffer.getvalue()
