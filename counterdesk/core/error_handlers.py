"""
Map core failures to HTTP responses.

The core raises CounterdeskError subclasses; routers stay thin and these
handlers turn them into JSON bodies built from `to_dict()`.
"""
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from counterdesk.core.errors import (
    CompositeWriteError,
    ConflictError,
    CounterdeskError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from counterdesk.core.logger import logger


def status_for(exc: CounterdeskError) -> int:
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ConflictError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, StoreError) and exc.retryable:
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def counterdesk_exception_handler(request: Request, exc: CounterdeskError) -> JSONResponse:
    code = status_for(exc)
    if isinstance(exc, CompositeWriteError) and not exc.compensated:
        logger.error("[ErrorHandler] %s %s partial sale id=%s", request.method, request.url.path, exc.sale_id)
    elif code >= 500:
        logger.error("[ErrorHandler] %s %s -> %s: %s", request.method, request.url.path, code, exc.message)
    else:
        logger.debug("[ErrorHandler] %s %s -> %s: %s", request.method, request.url.path, code, exc.message)
    return JSONResponse(status_code=code, content=jsonable_encoder(exc.to_dict()))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CounterdeskError, counterdesk_exception_handler)
