"""Error taxonomy shared by the reading services and their handlers."""

from __future__ import annotations

from typing import Optional


class ReadingServiceError(Exception):
    """Base class; ``status_code`` is the HTTP-equivalent status."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ReadingServiceError):
    """A required field is missing or malformed."""

    status_code = 400


class RangeError(ValidationError):
    """A field is well-formed but outside its allowed domain."""


class DuplicateError(ReadingServiceError):
    """A conditional write collided with an existing reading."""

    status_code = 409


class StorageError(ReadingServiceError):
    """The underlying store failed or returned something unusable."""

    status_code = 500

    def __init__(self, details: str) -> None:
        super().__init__("Internal server error", details=details)
