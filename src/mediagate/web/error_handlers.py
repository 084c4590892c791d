import logging
from http import HTTPStatus

import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from mediagate.errors import AppError, ErrorKind
from mediagate.web.headers import MEDIA_CORS_HEADERS

logger = logging.getLogger(__name__)
app_logger = structlog.get_logger(__name__)


def create_json_error_response(status_code: int, message: str, error_type: str) -> JSONResponse:
    """Create JSON error response with a type for machine parsing."""
    return JSONResponse(status_code=status_code, content={"success": False, "error": message, "type": error_type})


def create_error_response(
    request: Request, status_code: int, message: str, error_type: str, headers: dict[str, str] | None = None
) -> Response:
    """Plain status text for media endpoints, JSON everywhere else."""
    if getattr(request.state, "plain_errors", False):
        return PlainTextResponse(
            HTTPStatus(status_code).phrase, status_code=status_code, headers={**(headers or {}), **MEDIA_CORS_HEADERS}
        )
    response = create_json_error_response(status_code, message, error_type)
    if headers:
        response.headers.update(headers)
    return response


def error_type_for_status(status_code: int) -> str:
    return next((kind.value for kind in ErrorKind if kind.http_status == status_code), "http_error")


async def app_error_handler(request: Request, exc: Exception) -> Response:
    """Handle all AppError subclasses, dispatching on the error kind."""
    if not isinstance(exc, AppError):
        return await general_exception_handler(request, exc)

    match exc.kind:
        case ErrorKind.INTERNAL:
            app_logger.error("request_failed", path=request.url.path, kind=exc.kind, error=exc.message)
        case ErrorKind.UNAVAILABLE | ErrorKind.TIMEOUT:
            app_logger.warning("request_failed", path=request.url.path, kind=exc.kind, error=exc.message)
        case _:
            app_logger.debug("request_rejected", path=request.url.path, kind=exc.kind, error=exc.message)

    return create_error_response(request, exc.http_status, exc.message, exc.kind.value)


async def general_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_error_response(request, 500, "An unexpected error occurred.", ErrorKind.INTERNAL.value)


async def validation_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle request validation errors as the validation kind (400)."""
    if not isinstance(exc, RequestValidationError):
        return await general_exception_handler(request, exc)

    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {field}: {first.get('msg', 'invalid value')}" if field else "Invalid request"
    else:
        message = "Invalid request"
    app_logger.debug("request_invalid", path=request.url.path, errors=len(errors))
    return create_error_response(request, ErrorKind.VALIDATION.http_status, message, ErrorKind.VALIDATION.value)


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle routing and framework HTTP errors (unknown route, wrong method)."""
    if not isinstance(exc, StarletteHTTPException):
        return await general_exception_handler(request, exc)

    return create_error_response(
        request, exc.status_code, str(exc.detail), error_type_for_status(exc.status_code), headers=exc.headers
    )
