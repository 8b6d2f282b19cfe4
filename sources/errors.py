from __future__ import annotations

from typing import Optional


class SourceError(Exception):
    """A candidate source could not produce results (network, quota, parse...)."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class QuotaExceeded(SourceError):
    pass


class RateLimited(SourceError):
    pass


class Unauthorized(SourceError):
    pass


class ApiError(SourceError):
    def __init__(self, status: int, detail: str = "", source: Optional[str] = None):
        super().__init__(f"API error {status}: {detail[:200]}", source=source)
        self.status = status


class ResponseParsingFailed(SourceError):
    pass


class MissingApiKey(ValueError):
    """Raised at client construction when no key is configured."""
