"""Data-source configuration for pylds."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from pylds.exceptions import LdsConfigError

STORAGE_KINDS: frozenset[str] = frozenset({"local", "session"})
HTTP_METHODS: frozenset[str] = frozenset({"GET", "POST"})
SORT_DIRECTIONS: frozenset[str] = frozenset({"asc", "desc"})


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_int(env_key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise LdsConfigError(f"{env_key} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class PaginationConfig:
    """Initial pagination settings for new data sources."""

    enabled: bool = True
    page_size: int = 10
    button_count: int = 5


@dataclasses.dataclass(frozen=True)
class SortConfig:
    """Sort applied when a data source has no sort of its own."""

    default_name: str | None = None
    default_dir: str = "asc"

    def __post_init__(self) -> None:
        if self.default_dir not in SORT_DIRECTIONS:
            raise LdsConfigError(f"sort.default_dir must be one of {sorted(SORT_DIRECTIONS)}, got {self.default_dir!r}")


@dataclasses.dataclass(frozen=True)
class HttpConfig:
    method: str = "GET"

    def __post_init__(self) -> None:
        method = self.method.upper()
        if method not in HTTP_METHODS:
            raise LdsConfigError(f"http.method must be one of {sorted(HTTP_METHODS)}, got {self.method!r}")
        object.__setattr__(self, "method", method)


_SECTIONS: dict[str, type] = {
    "pagination": PaginationConfig,
    "sort": SortConfig,
    "http": HttpConfig,
}


def _merge_section(current: Any, override: Any) -> Any:
    if override is None:
        return current
    if isinstance(override, Mapping):
        changes = {key: value for key, value in override.items() if value is not None}
        try:
            return dataclasses.replace(current, **changes)
        except TypeError as exc:
            raise LdsConfigError(f"unknown {type(current).__name__} option: {exc}") from exc
    if isinstance(override, type(current)):
        return override
    raise LdsConfigError(f"expected a mapping or {type(current).__name__}, got {type(override).__name__}")


@dataclasses.dataclass(frozen=True)
class LdsConfig:
    """Data-source configuration.

    Parameters
    ----------
    use_routing : bool
        Route searches and sort changes through the navigator instead of
        reloading directly.
    save_state : bool
        Persist each data source's view state in the cache store.
    storage : str
        ``"local"`` (file backed, survives restarts) or ``"session"``
        (in-memory, lives as long as the process).
    storage_dir : str or None
        Directory used by ``"local"`` storage. Defaults to ``~/.pylds``.
    debug_mode : int
        Debug logging verbosity, 0-3.
    pagination : PaginationConfig
        Initial pagination for new data sources.
    sort : SortConfig
        Default sort.
    http : HttpConfig
        Transport method for remote data sources.
    """

    use_routing: bool = False
    save_state: bool = True
    storage: str = "session"
    storage_dir: str | None = None
    debug_mode: int = 0
    pagination: PaginationConfig = dataclasses.field(default_factory=PaginationConfig)
    sort: SortConfig = dataclasses.field(default_factory=SortConfig)
    http: HttpConfig = dataclasses.field(default_factory=HttpConfig)

    def __post_init__(self) -> None:
        if self.storage not in STORAGE_KINDS:
            raise LdsConfigError(f"storage must be one of {sorted(STORAGE_KINDS)}, got {self.storage!r}")
        if not 0 <= self.debug_mode <= 3:
            raise LdsConfigError(f"debug_mode must be between 0 and 3, got {self.debug_mode}")

    def merged(self, **overrides: Any) -> LdsConfig:
        """Return a copy with *overrides* applied.

        Nested sections (``pagination``, ``sort``, ``http``) accept mappings
        that are merged field by field; ``None`` values are ignored so a
        partial override never blanks out a provider-wide setting.
        """
        changes: dict[str, Any] = {}
        for key, value in overrides.items():
            if value is None:
                continue
            if key in _SECTIONS:
                changes[key] = _merge_section(getattr(self, key), value)
            else:
                changes[key] = value
        try:
            return dataclasses.replace(self, **changes)
        except TypeError as exc:
            raise LdsConfigError(f"unknown config option: {exc}") from exc

    @classmethod
    def from_env(cls, **overrides: Any) -> LdsConfig:
        """Create configuration from ``LDS_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        if "use_routing" not in overrides:
            config_kwargs["use_routing"] = _env_bool(env.get("LDS_USE_ROUTING"), False)
        if "save_state" not in overrides:
            config_kwargs["save_state"] = _env_bool(env.get("LDS_SAVE_STATE"), True)

        storage = env.get("LDS_STORAGE")
        if storage is not None:
            config_kwargs["storage"] = storage.strip().lower()
        storage_dir = env.get("LDS_STORAGE_DIR")
        if storage_dir:
            config_kwargs["storage_dir"] = storage_dir

        debug_env = env.get("LDS_DEBUG_MODE")
        if debug_env is not None and "debug_mode" not in overrides:
            config_kwargs["debug_mode"] = _env_int("LDS_DEBUG_MODE", debug_env)

        method_env = env.get("LDS_HTTP_METHOD")
        if method_env is not None:
            config_kwargs["http"] = HttpConfig(method=method_env)

        page_size_env = env.get("LDS_PAGE_SIZE")
        if page_size_env is not None:
            config_kwargs["pagination"] = PaginationConfig(page_size=_env_int("LDS_PAGE_SIZE", page_size_env))

        config = cls(**config_kwargs)
        return config.merged(**overrides)
