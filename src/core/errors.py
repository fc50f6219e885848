"""Sharing error taxonomy.

Every failure of a token, grant, or bearer-link operation is one of the
kinds below. Errors are terminal for the current operation; callers show
``user_message`` and never the internal detail passed at raise time.
"""

from enum import Enum

from fastapi import HTTPException, status


class ErrorKind(str, Enum):
    """Stable identifiers for each failure kind."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    DECRYPT = "decrypt"


class SharingError(Exception):
    """Base class for all sharing failures."""

    kind: ErrorKind
    user_message: str = "The request could not be completed"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.user_message)
        self.detail = detail or self.user_message


class ValidationError(SharingError):
    """Bad input shape or values; user-correctable."""

    kind = ErrorKind.VALIDATION
    user_message = "Invalid request"

    def __init__(self, detail: str | None = None):
        super().__init__(detail)
        # Validation details describe the caller's own input, so they are safe to show
        if detail:
            self.user_message = detail


class NotFoundError(SharingError):
    kind = ErrorKind.NOT_FOUND
    user_message = "Share token not found"


class ExpiredError(SharingError):
    """Token or bearer payload is past its expiry (or the token was deactivated)."""

    kind = ErrorKind.EXPIRED
    user_message = "This shared report has expired"


class ForbiddenError(SharingError):
    kind = ErrorKind.FORBIDDEN
    user_message = "You don't have permission to access this resource"


class ConflictError(SharingError):
    kind = ErrorKind.CONFLICT
    user_message = "This share token has already been accepted"


class DecryptError(SharingError):
    """Wrong access code, tampered or malformed payload.

    The causes are deliberately indistinguishable to the caller.
    """

    kind = ErrorKind.DECRYPT
    user_message = "Invalid access code"


_HTTP_STATUS = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.EXPIRED: status.HTTP_410_GONE,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.DECRYPT: status.HTTP_400_BAD_REQUEST,
}


def to_http_exception(
    exc: SharingError,
    status_override: dict[ErrorKind, int] | None = None,
) -> HTTPException:
    """Map a sharing error to an HTTPException carrying only the user message."""
    status_code = (status_override or {}).get(exc.kind, _HTTP_STATUS[exc.kind])
    return HTTPException(status_code=status_code, detail=exc.user_message)
