"""Bearer link encryption.

Symmetric, authenticated encryption of shared-report payloads using Fernet
(AES-128-CBC with HMAC-SHA256) from the cryptography library.

The key is derived with PBKDF2-HMAC-SHA256 from the server link secret
joined to the recipient's access code, so the ciphertext alone is useless
without the code and the code alone is useless without the server secret.
Ciphertext is URL-safe base64 with the ``=`` padding stripped.
"""

import base64
import binascii
import hashlib
from datetime import datetime

from cryptography.fernet import Fernet, InvalidToken

from src.config import settings
from src.core.errors import DecryptError

# Static salt; changing it invalidates every outstanding link.
# The key material already carries the server secret, so the salt only
# separates this derivation from other uses of the same secret.
_PBKDF2_SALT = b"carelink-bearer-link-v1"


def _get_raw_key() -> str:
    """Return the server secret used for bearer links.

    Uses LINK_SECRET if set, otherwise falls back to secret_key.
    """
    return settings.link_secret if settings.link_secret else settings.secret_key


def derive_link_key(access_code: str) -> bytes:
    """Derive a Fernet key from the server secret and a normalized access code.

    Returns:
        A 32-byte URL-safe base64-encoded key suitable for Fernet.
    """
    key_bytes = hashlib.pbkdf2_hmac(
        "sha256",
        f"{_get_raw_key()}-{access_code}".encode("utf-8"),
        _PBKDF2_SALT,
        settings.bearer_link_kdf_iterations,
    )
    return base64.urlsafe_b64encode(key_bytes)


def _strip_padding(token: bytes) -> str:
    return token.decode("ascii").rstrip("=")


def _restore_padding(data: str) -> bytes:
    raw = data.encode("ascii")
    return raw + b"=" * (-len(raw) % 4)


def encrypt_payload(plaintext: bytes, access_code: str, now: datetime) -> str:
    """Encrypt a serialized payload for embedding in a URL.

    Args:
        plaintext: Canonical payload bytes
        access_code: Normalized access code
        now: Creation time recorded in the Fernet token

    Returns:
        Unpadded URL-safe base64 ciphertext
    """
    fernet = Fernet(derive_link_key(access_code))
    token = fernet.encrypt_at_time(plaintext, int(now.timestamp()))
    return _strip_padding(token)


def decrypt_payload(data: str, access_code: str) -> bytes:
    """Decrypt URL-embedded ciphertext with an access code.

    Raises:
        DecryptError: On a wrong code, tampered ciphertext, or malformed
            encoding. The three causes are not distinguished.
    """
    try:
        token = _restore_padding(data)
    except UnicodeEncodeError as e:
        raise DecryptError("Link data is not ASCII") from e

    fernet = Fernet(derive_link_key(access_code))
    try:
        return fernet.decrypt(token)
    except (InvalidToken, binascii.Error, ValueError) as e:
        raise DecryptError("Failed to decrypt link data") from e
