"""
Mapping of domain errors to HTTP responses.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from estatehub.core.exceptions import AccountLockedError, AppError, UnauthorizedError

logger = logging.getLogger(__name__)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an ``AppError`` as ``{"error": message}`` with its status code."""
    body = {"error": exc.message}
    if exc.details is not None:
        body["details"] = exc.details

    headers = {}
    if isinstance(exc, AccountLockedError):
        headers["Retry-After"] = str(exc.retry_after)
    elif isinstance(exc, UnauthorizedError):
        headers["WWW-Authenticate"] = "Bearer"

    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
