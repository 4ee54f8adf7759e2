"""JSON response envelope and exception handlers shared by both webhooks.

Every response body is a ``{"status": ..., "message": ...}`` envelope.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_ERROR = "error"

METHOD_NOT_ALLOWED_MESSAGE = "Only POST method is allowed"


class ApiResponse(BaseModel):
    """Standard response body for both services."""

    status: str = Field(..., description="Either 'ok' or 'error'")
    message: str = Field(..., description="Human readable outcome")


def respond_with_json(status_code: int, payload: ApiResponse) -> JSONResponse:
    """Serialize an envelope with the given HTTP status."""
    return JSONResponse(status_code=status_code, content=payload.model_dump())


def respond_ok(status_code: int, message: str) -> JSONResponse:
    return respond_with_json(status_code, ApiResponse(status=STATUS_OK, message=message))


def respond_with_error(status_code: int, message: str) -> JSONResponse:
    return respond_with_json(status_code, ApiResponse(status=STATUS_ERROR, message=message))


def allows_post(exc: StarletteHTTPException) -> bool:
    """Whether a 405 came from a POST-only webhook route, per its Allow header."""
    allow = (exc.headers or {}).get("Allow", "")
    return "POST" in (method.strip().upper() for method in allow.split(","))


def setup_exception_handlers(app: FastAPI) -> None:
    """Setup exception handlers so framework errors use the envelope too.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle routing errors (405, 404) raised by the framework."""
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED and allows_post(exc):
            logger.warning(f"Rejected {request.method} {request.url.path}")
            response = respond_with_error(exc.status_code, METHOD_NOT_ALLOWED_MESSAGE)
        else:
            response = respond_with_error(exc.status_code, str(exc.detail))

        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return respond_with_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"
        )
