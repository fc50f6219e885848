"""Tests for the sharing error taxonomy and its HTTP mapping."""

import pytest

from src.core.errors import (
    ConflictError,
    DecryptError,
    ErrorKind,
    ExpiredError,
    ForbiddenError,
    NotFoundError,
    SharingError,
    ValidationError,
    to_http_exception,
)


@pytest.mark.parametrize(
    "error_cls,kind,status_code",
    [
        (ValidationError, ErrorKind.VALIDATION, 400),
        (NotFoundError, ErrorKind.NOT_FOUND, 404),
        (ExpiredError, ErrorKind.EXPIRED, 410),
        (ForbiddenError, ErrorKind.FORBIDDEN, 403),
        (ConflictError, ErrorKind.CONFLICT, 409),
        (DecryptError, ErrorKind.DECRYPT, 400),
    ],
)
def test_status_mapping(error_cls, kind, status_code):
    exc = error_cls()

    assert isinstance(exc, SharingError)
    assert exc.kind is kind
    assert to_http_exception(exc).status_code == status_code


def test_internal_detail_not_exposed():
    exc = NotFoundError("token 7f3c not in share_tokens")

    http_exc = to_http_exception(exc)

    assert exc.detail == "token 7f3c not in share_tokens"
    assert http_exc.detail == "Share token not found"


def test_decrypt_message_is_fixed():
    exc = DecryptError("HMAC mismatch")
    assert to_http_exception(exc).detail == "Invalid access code"


def test_validation_detail_is_shown():
    exc = ValidationError("A share label is required")
    assert to_http_exception(exc).detail == "A share label is required"


def test_validation_without_detail():
    assert to_http_exception(ValidationError()).detail == "Invalid request"


def test_status_override():
    http_exc = to_http_exception(
        ExpiredError(), status_override={ErrorKind.EXPIRED: 404}
    )

    assert http_exc.status_code == 404
    assert http_exc.detail == "This shared report has expired"
