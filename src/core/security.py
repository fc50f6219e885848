"""Security primitives.

Secure random strings for share-token secrets and access codes,
secret hashing with constant-time comparison, and JWT session decoding.
"""

import hashlib
import hmac
import secrets
import string
import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from src.config import settings

# Share-token secrets: 43 symbols from a 64-symbol alphabet (~256 bits)
SECRET_ALPHABET = string.ascii_letters + string.digits + "-_"
SECRET_LENGTH = 43

# Access codes are typed by people, so only digits and upper-case letters
ACCESS_CODE_ALPHABET = string.digits + string.ascii_uppercase
ACCESS_CODE_LENGTH = 6


def secure_random_string(length: int, alphabet: str = SECRET_ALPHABET) -> str:
    """Return ``length`` symbols drawn from ``alphabet`` with the OS CSPRNG.

    This is the single source of randomness for every bearer credential
    the service issues.
    """
    if length <= 0:
        raise ValueError("length must be positive")
    if not alphabet:
        raise ValueError("alphabet must not be empty")
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_token_secret() -> str:
    """Generate a fresh share-token secret."""
    return secure_random_string(SECRET_LENGTH, SECRET_ALPHABET)


def generate_access_code() -> str:
    """Generate a 6-symbol bearer-link access code from ``[0-9A-Z]``."""
    return secure_random_string(ACCESS_CODE_LENGTH, ACCESS_CODE_ALPHABET)


def hash_secret(secret: str) -> str:
    """SHA-256 hex digest of a share-token secret."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def secrets_match(secret: str, stored_hash: str) -> bool:
    """Compare a presented secret against a stored digest in constant time.

    Both sides are fixed-length digests, so the comparison time does not
    depend on how many leading characters of the secret are correct.
    """
    return hmac.compare_digest(hash_secret(secret), stored_hash)


# ============================================================================
# JWT session tokens (issued by the upstream identity service)
# ============================================================================


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token.

    The identity service owns login; this helper exists for service-to-service
    calls and tests that need a signed session.

    Args:
        user_id: User's unique identifier
        email: User's email address
        role: User's role (patient, doctor, admin)
        expires_delta: Optional custom expiration time (default 1 hour)

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(hours=1)

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "exp": now + expires_delta,
        "iat": now,
        "type": "access",
    }

    return jwt.encode(
        payload,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT access token.

    Returns:
        Token payload dict if valid, None if invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    if payload.get("type") != "access":
        return None

    return payload


class TokenData:
    """Parsed token data for type safety."""

    def __init__(self, payload: dict):
        self.user_id: uuid.UUID = uuid.UUID(payload["sub"])
        self.email: str = payload["email"]
        self.role: str = payload["role"]
        self.exp: datetime = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
