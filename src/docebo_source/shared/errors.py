"""
Errors Module - Exception types raised across the source.
=========================================================

- FetchError: a request failed after its retry budget was spent
- EmptyCatalogError: no active catalog entries, the run is aborted
- ConfigurationError: invalid options or an unreachable instance
"""

from typing import Optional


class DoceboSourceError(Exception):
    """Base class for all source errors."""


class FetchError(DoceboSourceError):
    """A GET request failed on every attempt."""

    def __init__(self, url: str, attempts: int, cause: Optional[BaseException] = None):
        self.url = url
        self.attempts = attempts
        self.cause = cause
        super().__init__(f"GET {url} failed after {attempts} attempt(s): {cause}")


class EmptyCatalogError(DoceboSourceError):
    """No active catalog entries were found, so there is nothing to build."""


class ConfigurationError(DoceboSourceError):
    """Source options are invalid or the instance cannot be reached."""
