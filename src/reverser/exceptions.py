"""Domain level exceptions shared by the service layers."""

from __future__ import annotations

__all__ = [
    "ReverserError",
    "UploadValidationError",
    "MissingUploadError",
    "EmptyUploadError",
    "UnsupportedMediaError",
    "PayloadTooLargeError",
    "UploadReadError",
    "TranscodeError",
    "StorageError",
    "TransportError",
]


class ReverserError(Exception):
    """Base class for application specific errors."""


class UploadValidationError(ReverserError):
    """Raised when a submission is rejected before any job starts."""


class MissingUploadError(UploadValidationError):
    """Raised when the request carries no video file."""


class EmptyUploadError(UploadValidationError):
    """Raised when the uploaded file has no content."""


class UnsupportedMediaError(UploadValidationError):
    """Raised when the uploaded file is not a video."""


class PayloadTooLargeError(UploadValidationError):
    """Raised when the upload exceeds the configured maximum size."""

    def __init__(self, size_bytes: int, limit_bytes: int) -> None:
        super().__init__(f"upload of {size_bytes} bytes exceeds limit of {limit_bytes} bytes")
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes


class UploadReadError(UploadValidationError):
    """Raised when streaming the upload to disk fails."""


class TranscodeError(ReverserError):
    """Raised when the external transcoding engine fails."""

    def __init__(self, reason: str, *, return_code: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.return_code = return_code


class StorageError(ReverserError):
    """Raised when an artifact cannot be inspected or deleted."""


class TransportError(ReverserError):
    """Raised when a request payload cannot be decoded."""
