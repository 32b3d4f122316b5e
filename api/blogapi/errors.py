"""Error taxonomy and the handlers that turn it into the JSON envelope."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import settings

logger = logging.getLogger(__name__)


class BlogAPIError(Exception):
    """Base class for failures that map onto a single HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Something went wrong!"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_body(self) -> dict[str, Any]:
        return {"success": False, "message": self.message}


class ValidationFailed(BlogAPIError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed"

    def __init__(self, errors: list[dict[str, str]], message: str | None = None) -> None:
        super().__init__(message)
        self.errors = errors

    def to_body(self) -> dict[str, Any]:
        body = super().to_body()
        body["errors"] = self.errors
        return body


class Unauthenticated(BlogAPIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Authentication required"


class NotFoundOrForbidden(BlogAPIError):
    """The resource does not exist or does not belong to the caller.

    The two causes share one response so that other users' drafts and
    private posts cannot be probed for existence.
    """

    status_code = status.HTTP_404_NOT_FOUND
    message = "Post not found or access denied"


class NoOp(BlogAPIError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "No valid fields to update"


class StorageFailure(BlogAPIError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Database error"


def _envelope(status_code: int, body: dict[str, Any], headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _server_error_body(message: str, exc: Exception) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "message": message}
    if settings.is_development():
        body["error"] = str(exc)
    return body


async def handle_blog_api_error(request: Request, exc: BlogAPIError) -> JSONResponse:
    headers = None
    if isinstance(exc, Unauthenticated):
        headers = {"WWW-Authenticate": "Bearer"}
    if isinstance(exc, StorageFailure):
        logger.error(f"{request.method} {request.url.path}: {exc.message}", exc_info=exc.__cause__ or exc)
        return _envelope(exc.status_code, _server_error_body(exc.message, exc.__cause__ or exc))
    return _envelope(exc.status_code, exc.to_body(), headers)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = "Route not found"
    else:
        message = str(exc.detail)
    return _envelope(exc.status_code, {"success": False, "message": message}, getattr(exc, "headers", None))


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc) or "request", "message": error.get("msg", "Invalid value")})
    return _envelope(
        status.HTTP_400_BAD_REQUEST,
        {"success": False, "message": "Validation failed", "errors": errors},
    )


async def handle_storage_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path}: database error: {exc}", exc_info=True)
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, _server_error_body("Database error", exc))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path}: unhandled error: {exc}", exc_info=True)
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, _server_error_body("Something went wrong!", exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BlogAPIError, handle_blog_api_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(SQLAlchemyError, handle_storage_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
