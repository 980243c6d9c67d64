"""Error taxonomy for the cache-aside layer.

A missing record is not an error: lookups return ``None``. These exceptions
cover the failures of the two collaborators and of cached payload decoding.
"""

from __future__ import annotations


class CachesideError(Exception):
    """Base class for Cacheside domain errors."""


class CacheUnavailableError(CachesideError):
    """The cache store could not be reached or timed out."""

    def __init__(self, operation: str, key: str | None = None, cause: BaseException | None = None):
        self.operation = operation
        self.key = key
        detail = f"Cache unavailable during {operation}"
        if key is not None:
            detail += f" of '{key}'"
        if cause is not None:
            detail += f": {cause}"
        super().__init__(detail)


class StoreUnavailableError(CachesideError):
    """The record store could not be reached."""

    def __init__(self, operation: str, cause: BaseException | None = None):
        self.operation = operation
        detail = f"Record store unavailable during {operation}"
        if cause is not None:
            detail += f": {cause}"
        super().__init__(detail)


class DecodeError(CachesideError):
    """A cached payload could not be decoded into the expected shape."""
