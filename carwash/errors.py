"""
Domain exceptions and their HTTP mapping.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class CarWashError(Exception):
    """Base class for business-rule violations."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CarWashError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(CarWashError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(CarWashError):
    status_code = status.HTTP_409_CONFLICT


class PermissionDeniedError(CarWashError):
    status_code = status.HTTP_403_FORBIDDEN


async def carwash_error_handler(request: Request, exc: CarWashError) -> JSONResponse:
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CarWashError, carwash_error_handler)
