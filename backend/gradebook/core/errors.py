"""
Domain errors raised by the grade computation services.

Each error carries the HTTP status it maps to; `add_error_handlers` renders
them as JSON so routers can let service errors propagate untouched.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class GradeBookError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(GradeBookError):
    status_code = 404

    def __init__(self, resource: str, resource_id: object | None = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message += f" with id: {resource_id}"
        super().__init__(message)


class AlreadyExistsError(GradeBookError):
    status_code = 409


class ConfigurationError(GradeBookError):
    status_code = 500


class MissingConfigurationError(ConfigurationError):
    pass


class GradeValidationError(GradeBookError):
    status_code = 422


async def gradebook_exception_handler(request: Request, exc: GradeBookError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__}: {exc.message} - Path: {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.__class__.__name__},
    )


def add_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GradeBookError, gradebook_exception_handler)
