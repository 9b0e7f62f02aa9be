"""Custom exception hierarchy for pylds."""

from __future__ import annotations


class LdsError(Exception):
    """Base exception for all pylds errors."""


class LdsConfigError(LdsError):
    """Invalid or missing configuration."""


class LdsTransportError(LdsError):
    """HTTP-level failure (network, non-200, invalid JSON).

    Never surfaces to data-source consumers: transports normalize it
    into an empty error envelope before invoking their callback.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class LdsStorageError(LdsError):
    """Storage capability failure (read or write)."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class LdsStorageQuotaError(LdsStorageError):
    """A write would exceed the storage quota."""


class LdsStorageUnavailableError(LdsStorageError):
    """Storage is disabled or cannot be reached (read-only directory, etc.)."""


class LdsCacheError(LdsError):
    """Persisted cache payload could not be parsed."""
