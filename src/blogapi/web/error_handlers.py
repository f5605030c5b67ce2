import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from blogapi.errors import AppError, ErrorKind, UserError

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.STORAGE: 500,
}


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"error": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


async def app_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all AppError subclasses with the status code of their kind."""
    if not isinstance(exc, AppError):
        return await general_exception_handler(_, exc)

    status_code = STATUS_BY_KIND[exc.kind]
    if isinstance(exc, UserError):
        message = str(exc)
    else:
        # Storage failures are not described to the user
        logger.error("Storage error: %s", exc, exc_info=exc)
        message = "An unexpected error occurred."

    response = create_json_error_response(status_code=status_code, message=message, error_type=exc.kind)
    if status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


async def request_validation_error_handler(_: Request, exc: Exception) -> Response:
    """Report malformed request bodies and parameters as 400 validation errors."""
    details = []
    for error in exc.errors() if isinstance(exc, RequestValidationError) else []:
        location = ".".join(str(part) for part in error["loc"] if part != "body")
        details.append(f"{location}: {error['msg']}" if location else error["msg"])
    message = "Validation failed: " + "; ".join(details) if details else "Invalid request data"
    return create_json_error_response(status_code=400, message=message, error_type=ErrorKind.VALIDATION)


async def http_exception_handler(_: Request, exc: Exception) -> Response:
    """Wrap framework HTTP errors (unknown route, wrong method) in the error envelope."""
    if not isinstance(exc, StarletteHTTPException):
        return await general_exception_handler(_, exc)
    return create_json_error_response(status_code=exc.status_code, message=str(exc.detail), error_type="http_error")


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.error("Unexpected error: %s", exc, exc_info=exc)
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
