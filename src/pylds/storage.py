"""Storage capabilities backing the cache store.

A storage is a tiny string key/value interface. Implementations raise
:class:`~pylds.exceptions.LdsStorageError` subclasses on failure; the
cache store is responsible for catching them.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from pylds.exceptions import LdsConfigError, LdsStorageQuotaError, LdsStorageUnavailableError

_logger = logging.getLogger(__name__)

_DEFAULT_STORAGE_DIR = Path.home() / ".pylds"


class Storage(Protocol):
    """Structural storage interface (``getItem``/``setItem``/``removeItem``)."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


def _check_quota(key: str, value: str, quota_bytes: int | None) -> None:
    if quota_bytes is None:
        return
    size = len(value.encode("utf-8"))
    if size > quota_bytes:
        raise LdsStorageQuotaError(f"value for {key!r} is {size} bytes, quota is {quota_bytes}", key=key)


class MemoryStorage:
    """In-memory storage that lives as long as the process (``"session"``)."""

    def __init__(self, *, quota_bytes: int | None = None) -> None:
        self._items: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        _check_quota(key, value, self.quota_bytes)
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage:
    """Directory-backed storage that survives restarts (``"local"``).

    Each key is stored as ``<directory>/<key>.json`` and replaced
    atomically on write.
    """

    def __init__(self, directory: str | os.PathLike[str] | None = None, *, quota_bytes: int | None = None) -> None:
        self.directory = Path(directory) if directory is not None else _DEFAULT_STORAGE_DIR
        self.quota_bytes = quota_bytes

    def _path(self, key: str) -> Path:
        safe = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in key)
        return self.directory / f"{safe}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise LdsStorageUnavailableError(f"cannot read {path}: {exc}", key=key) from exc

    def set_item(self, key: str, value: str) -> None:
        _check_quota(key, value, self.quota_bytes)
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{path.stem}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise LdsStorageUnavailableError(f"cannot write {path}: {exc}", key=key) from exc
        _logger.debug("Wrote %d bytes to %s", len(value), path)

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise LdsStorageUnavailableError(f"cannot remove {path}: {exc}", key=key) from exc


#: Shared by every ``"session"`` data source provider in the process.
SESSION_STORAGE = MemoryStorage()


def create_storage(kind: str, directory: str | os.PathLike[str] | None = None) -> Storage:
    """Return the storage for a configured kind (``"local"`` or ``"session"``)."""
    if kind == "local":
        return FileStorage(directory)
    if kind == "session":
        return SESSION_STORAGE
    raise LdsConfigError(f"unknown storage kind {kind!r}")
