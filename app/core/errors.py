# Application error taxonomy and the single handler that maps it to HTTP responses.
# Services raise these; routers never translate them by hand.

import logging
from typing import Dict, Optional, Type

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("app")

GENERIC_ERROR_MESSAGE = "Something went wrong on our end."
PAGINATION_FIELDS = {"page", "pageSize", "page_size"}


class AppError(Exception):
    """Base class for errors the API knows how to report"""

    def __init__(self, message: str, data: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.data = data


class ValidationError(AppError):
    """Bad input shape, size or format"""


class AuthenticationError(AppError):
    """Missing or wrong credentials"""


class AuthorizationError(AppError):
    """A state precondition is not met, e.g. unverified email"""


class NotFoundError(AppError):
    """Referenced entity is absent"""


class ConflictError(AppError):
    """Version mismatch or duplicate unique key"""


class ProcessingError(AppError):
    """Transcoding or hashing failed"""


class UploadError(AppError):
    """Remote storage rejected the request"""


class PersistenceError(AppError):
    """A write could not be read back"""


ERROR_STATUS_CODES: Dict[Type[AppError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    ProcessingError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    UploadError: status.HTTP_502_BAD_GATEWAY,
    PersistenceError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_code_for(error: AppError) -> int:
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(message: str, data=None) -> dict:
    return {"success": False, "message": message, "data": jsonable_encoder(data)}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=status_code, content=error_body(GENERIC_ERROR_MESSAGE))

    logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=status_code, content=error_body(exc.message, exc.data))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    fields = {tuple(error.get("loc", ()))[-1] for error in errors if error.get("loc")}
    if fields & PAGINATION_FIELDS:
        message = "Invalid pagination parameters"
    else:
        message = "Invalid request"
    logger.info(f"Request validation failed on {request.url.path}: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(message, [{"loc": e.get("loc"), "msg": e.get("msg")} for e in errors]),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


EXCEPTION_HANDLERS = {
    StarletteHTTPException: http_error_handler,
    AppError: app_error_handler,
    RequestValidationError: request_validation_handler,
}
