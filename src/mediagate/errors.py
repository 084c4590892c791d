from enum import StrEnum


class ErrorKind(StrEnum):
    """Closed set of error kinds that may shape a client-visible response."""

    VALIDATION = "validation"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    CONFLICT = "conflict"
    UNSUPPORTED_FORMAT = "unsupported_format"
    INTERNAL = "internal"
    UNAVAILABLE = "unavailable"

    @property
    def http_status(self) -> int:
        match self:
            case ErrorKind.VALIDATION:
                return 400
            case ErrorKind.UNAUTHENTICATED:
                return 401
            case ErrorKind.FORBIDDEN:
                return 403
            case ErrorKind.NOT_FOUND:
                return 404
            case ErrorKind.TIMEOUT:
                return 408
            case ErrorKind.CONFLICT:
                return 409
            case ErrorKind.UNSUPPORTED_FORMAT:
                return 415
            case ErrorKind.UNAVAILABLE:
                return 503
            case _:
                return 500


class AppError(Exception):
    """Base class for errors whose message is displayed to the client.

    The message must not contain sensitive information such as file paths or
    secrets. Subclasses only pin the kind; handlers dispatch on ``kind``.
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)

    @property
    def http_status(self) -> int:
        return self.kind.http_status


class ValidationError(AppError):
    """Raised when user input fails validation."""

    kind = ErrorKind.VALIDATION
    default_message = "Invalid request"


class AuthenticationError(AppError):
    """Raised when authentication fails."""

    kind = ErrorKind.UNAUTHENTICATED
    default_message = "Authentication required"


class AccessDeniedError(AppError):
    """Raised when a valid credential is scoped to a different resource."""

    kind = ErrorKind.FORBIDDEN
    default_message = "Access denied"


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    kind = ErrorKind.NOT_FOUND
    default_message = "Not found"


class RequestTimeoutError(AppError):
    kind = ErrorKind.TIMEOUT
    default_message = "Operation timed out"


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT
    default_message = "Conflict"


class UnsupportedFormatError(AppError):
    kind = ErrorKind.UNSUPPORTED_FORMAT
    default_message = "Unsupported format"


class ManifestCorruptError(AppError):
    """Raised when a stored playlist or manifest cannot be parsed."""

    kind = ErrorKind.INTERNAL
    default_message = "Manifest could not be processed"


class StoreUnavailableError(AppError):
    """Raised when the session store cannot be read or written."""

    kind = ErrorKind.UNAVAILABLE
    default_message = "Session store unavailable"
