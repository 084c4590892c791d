"""Tests for the error taxonomy."""

import pytest

from mediagate.errors import (
    AccessDeniedError,
    AppError,
    AuthenticationError,
    ConflictError,
    ErrorKind,
    ManifestCorruptError,
    NotFoundError,
    RequestTimeoutError,
    StoreUnavailableError,
    UnsupportedFormatError,
    ValidationError,
)
from mediagate.logging import redact_sensitive


@pytest.mark.parametrize(
    ("error", "kind", "status"),
    [
        (ValidationError, ErrorKind.VALIDATION, 400),
        (AuthenticationError, ErrorKind.UNAUTHENTICATED, 401),
        (AccessDeniedError, ErrorKind.FORBIDDEN, 403),
        (NotFoundError, ErrorKind.NOT_FOUND, 404),
        (RequestTimeoutError, ErrorKind.TIMEOUT, 408),
        (ConflictError, ErrorKind.CONFLICT, 409),
        (UnsupportedFormatError, ErrorKind.UNSUPPORTED_FORMAT, 415),
        (ManifestCorruptError, ErrorKind.INTERNAL, 500),
        (StoreUnavailableError, ErrorKind.UNAVAILABLE, 503),
        (AppError, ErrorKind.INTERNAL, 500),
    ],
)
def test_kind_and_status(error: type[AppError], kind: ErrorKind, status: int):
    exc = error()
    assert exc.kind == kind
    assert exc.http_status == status
    assert exc.message


def test_custom_message():
    assert NotFoundError("Video not found").message == "Video not found"


def test_manifest_corrupt_message_is_fixed():
    assert ManifestCorruptError().message == "Manifest could not be processed"


def test_log_redaction():
    event = redact_sensitive(None, "info", {"event": "x", "token": "v1.a.b", "video_id": "abc"})
    assert event == {"event": "x", "token": "***", "video_id": "abc"}
