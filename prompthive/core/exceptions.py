"""Exception hierarchy raised by the service layer.

Services raise these with the message shown to the user; the HTTP layer
turns them into ``{"detail": message}`` responses with the matching status.
"""

from typing import Optional


class PromptHiveError(Exception):
    """Base class for all application errors."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class NotFoundError(PromptHiveError):
    status_code = 404


class PermissionDeniedError(PromptHiveError):
    status_code = 403


class InvalidParameterError(PromptHiveError):
    status_code = 400


class ConflictError(PromptHiveError):
    status_code = 409


class ScraperError(PromptHiveError):
    """Raised for any failure while scraping a remote page."""

    status_code = 502
