"""Persisted cache of data-source view states.

Entries are keyed by ``(data source id, path)`` and stored as a single
JSON array under :data:`~pylds._constants.STORAGE_KEY`. The store is
bounded in size and age:

* at most ``MAX_CACHE_SIZE`` entries; inserting into a full store first
  evicts down to the newest ``CACHE_RETAIN_COUNT``,
* entries older than ``CACHE_EXPIRATION_HOURS`` are dropped on load.

Storage failures never propagate: they are logged and the read or write
is skipped. Entries whose filters cannot be encoded as JSON are left out
of the persisted array.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from pylds._constants import CACHE_EXPIRATION_HOURS, CACHE_RETAIN_COUNT, MAX_CACHE_SIZE, STORAGE_KEY
from pylds.exceptions import LdsCacheError, LdsStorageError, LdsStorageQuotaError
from pylds.models.cache import CacheEntry, cache_key
from pylds.storage import Storage

_logger = logging.getLogger(__name__)

_REQUIRED_KEYS = ("id", "pathName", "state")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _parse_entries(raw: str) -> list[Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise LdsCacheError(f"cache payload is not JSON: {exc}") from exc
    if not isinstance(parsed, list):
        raise LdsCacheError(f"cache payload must be a list, got {type(parsed).__name__}")
    return parsed


class CacheStore:
    """Bounded, persisted ``(id, path) -> CacheEntry`` map."""

    def __init__(
        self,
        storage: Storage,
        *,
        clock: Callable[[], datetime] = _utcnow,
        max_size: int = MAX_CACHE_SIZE,
        retain_count: int = CACHE_RETAIN_COUNT,
        expiration_hours: float = CACHE_EXPIRATION_HOURS,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self._max_size = max_size
        self._retain_count = retain_count
        self._expiration_hours = expiration_hours
        self._entries: list[CacheEntry] = []
        self._index: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[CacheEntry]:
        return list(self._entries)

    # ------------------------------------------------------------------
    # Storage boundary
    # ------------------------------------------------------------------

    def _safe_get(self) -> str | None:
        try:
            return self._storage.get_item(STORAGE_KEY)
        except LdsStorageError as exc:
            _logger.warning("Storage read failed: %s", exc)
        except Exception:
            _logger.warning("Storage read failed", exc_info=True)
        return None

    def _safe_set(self, value: str) -> bool:
        try:
            self._storage.set_item(STORAGE_KEY, value)
        except LdsStorageQuotaError as exc:
            _logger.warning("Storage quota exceeded: %s", exc)
            return False
        except LdsStorageError as exc:
            _logger.warning("Storage write failed: %s", exc)
            return False
        except Exception:
            _logger.warning("Storage write failed", exc_info=True)
            return False
        return True

    def _safe_remove(self) -> None:
        try:
            self._storage.remove_item(STORAGE_KEY)
        except LdsStorageError as exc:
            _logger.warning("Storage remove failed: %s", exc)
        except Exception:
            _logger.warning("Storage remove failed", exc_info=True)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Read persisted entries, dropping malformed and expired ones."""
        raw = self._safe_get()
        if not raw:
            return
        try:
            records = _parse_entries(raw)
        except LdsCacheError as exc:
            _logger.error("Failed to load data source caches, resetting: %s", exc)
            self.clear()
            return

        now = self._clock()
        entries: list[CacheEntry] = []
        for record in records:
            entry = self._validate(record)
            if entry is None:
                continue
            if entry.age_hours(now) >= self._expiration_hours:
                _logger.debug("Dropping expired cache entry %s", entry.key)
                continue
            entries.append(entry)

        self._entries = entries
        self._rebuild_index()
        _logger.debug("Loaded %d cache entries (%d dropped)", len(entries), len(records) - len(entries))

    @staticmethod
    def _validate(record: Any) -> CacheEntry | None:
        if not isinstance(record, dict) or not all(record.get(key) for key in _REQUIRED_KEYS):
            return None
        try:
            return CacheEntry.model_validate(record)
        except ValidationError as exc:
            _logger.debug("Dropping malformed cache entry: %s", exc)
            return None

    def get_by_id(self, ds_id: str, path_name: str) -> CacheEntry | None:
        return self._index.get(cache_key(ds_id, path_name))

    def save(self, entry: CacheEntry) -> None:
        """Insert or update *entry* and persist the whole store."""
        existing = self._index.get(entry.key)
        if existing is not None:
            existing.date = entry.date
            existing.type = entry.type
            existing.state = entry.state
            existing.filters = entry.filters
            existing.field_list = entry.field_list
        else:
            if len(self._entries) >= self._max_size:
                self._evict()
            self._entries.append(entry)
            self._index[entry.key] = entry

        if not self._safe_set(self._serialize()):
            self._evict()
            self._safe_set(self._serialize())

    def clear(self) -> None:
        """Wipe the persisted value and the in-memory index."""
        self._safe_remove()
        self._entries = []
        self._index.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _serialize(self) -> str:
        """JSON array of every entry; entries that cannot be encoded are skipped."""
        encoded: list[str] = []
        for entry in self._entries:
            try:
                encoded.append(json.dumps(entry.to_record(), separators=(",", ":")))
            except (PydanticSerializationError, TypeError, ValueError) as exc:
                _logger.warning("Not persisting cache entry %s: %s", entry.key, exc)
        return "[" + ",".join(encoded) + "]"

    def _rebuild_index(self) -> None:
        self._index = {entry.key: entry for entry in self._entries}

    def _evict(self) -> None:
        """Keep only the newest ``retain_count`` entries."""
        self._entries.sort(key=lambda entry: entry.date, reverse=True)
        removed = self._entries[self._retain_count :]
        del self._entries[self._retain_count :]
        for entry in removed:
            self._index.pop(entry.key, None)
        if removed:
            _logger.debug("Evicted %d cache entries", len(removed))
