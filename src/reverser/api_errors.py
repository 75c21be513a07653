"""Error primitives for HTTP handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .exceptions import (
    EmptyUploadError,
    MissingUploadError,
    PayloadTooLargeError,
    ReverserError,
    TranscodeError,
    UnsupportedMediaError,
    UploadReadError,
)

logger = logging.getLogger(__name__)

ERROR_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>{title}</title></head>
<body>
<h1>{title}</h1>
<p>{message}</p>
<p><a href="/">Back to the video reverser</a></p>
</body>
</html>
"""


def _format_limit(limit_bytes: int) -> str:
    mib = 1024 * 1024
    if limit_bytes % mib == 0:
        return f"{limit_bytes // mib}MB"
    return f"{limit_bytes} bytes"


@dataclass(slots=True)
class ApiError(Exception):
    """Structured application-level error for HTTP handlers."""

    status_code: int
    message: str
    headers: Mapping[str, str] | None = None

    def to_response(self) -> JSONResponse:
        """Materialise the error into the ``success: false`` payload."""

        return JSONResponse(
            status_code=self.status_code,
            content={"success": False, "message": self.message},
            headers=dict(self.headers or {}),
        )


def from_domain_error(exc: ReverserError) -> ApiError:
    """Map a domain exception onto the HTTP status the client sees."""

    if isinstance(exc, PayloadTooLargeError):
        return ApiError(
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            f"File too large. Maximum size is {_format_limit(exc.limit_bytes)}.",
        )
    if isinstance(exc, UnsupportedMediaError):
        return ApiError(status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, "Uploaded file is not a video.")
    if isinstance(exc, (MissingUploadError, EmptyUploadError)):
        return ApiError(status.HTTP_400_BAD_REQUEST, "No video file uploaded.")
    if isinstance(exc, UploadReadError):
        return ApiError(status.HTTP_400_BAD_REQUEST, f"Upload error: {exc}")
    if isinstance(exc, TranscodeError):
        return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Error processing video: {exc.reason}")
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error.")


async def api_error_handler(_: Request, exc: ApiError) -> JSONResponse:
    return exc.to_response()


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "malformed request"
    first = errors[0]
    field_path = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return f"{field_path}: {message}" if field_path else message


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed form fields in the same shape as other client errors."""

    detail = _describe_validation_error(exc)
    logger.warning("http.invalid_request", extra={"path": request.url.path, "error": detail})
    return ApiError(status.HTTP_400_BAD_REQUEST, f"Upload error: {detail}").to_response()


def error_page(status_code: int, title: str, message: str) -> HTMLResponse:
    return HTMLResponse(ERROR_PAGE.format(title=title, message=message), status_code=status_code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> HTMLResponse | JSONResponse:
    """Serve the HTML error page for unmatched paths, JSON otherwise."""

    if exc.status_code == status.HTTP_404_NOT_FOUND:
        logger.info("http.not_found", extra={"path": request.url.path})
        return error_page(status.HTTP_404_NOT_FOUND, "Page not found", "The requested resource does not exist.")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> HTMLResponse:
    logger.error("http.unhandled_error", extra={"path": request.url.path}, exc_info=exc)
    return error_page(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Something went wrong",
        "The server could not complete the request.",
    )


__all__ = [
    "ApiError",
    "api_error_handler",
    "error_page",
    "from_domain_error",
    "http_exception_handler",
    "unhandled_exception_handler",
    "validation_error_handler",
]
