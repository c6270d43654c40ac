"""
Error types for SitePhoto.

All failures are local and recoverable: a modal can be closed and the
operation retried.
"""

from typing import Optional


class SitePhotoError(Exception):
    """Base class for application errors."""


class LoadError(SitePhotoError):
    """An image could not be fetched or decoded."""


class ValidationError(SitePhotoError):
    """Invalid user input or options."""


class ExportError(SitePhotoError):
    """Flattening a canvas or generating a ledger document failed."""


class BackendError(SitePhotoError):
    """The REST backend rejected a request or could not be reached."""

    def __init__(self, code: str, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status:
            return f"{self.message} ({self.code}, HTTP {self.status})"
        return f"{self.message} ({self.code})"
