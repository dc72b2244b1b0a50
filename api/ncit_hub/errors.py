"""Service-layer errors and the handler that renders them as JSON."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PortalError(Exception):
    """Base error carrying a user-facing message."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDeniedError(PortalError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(PortalError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(PortalError):
    status_code = status.HTTP_409_CONFLICT


class FeatureDisabledError(PortalError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class OperationFailedError(PortalError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class CounterUpdateError(OperationFailedError):
    """A counter function failed after the row it counts was written."""


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PortalError)
    async def portal_error_handler(request: Request, exc: PortalError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
