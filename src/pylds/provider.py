"""Data-source provider: factory and event wiring.

The provider creates :class:`~pylds.datasource.ListDataSource` instances,
seeds them from the cache store and subscribes to their events:

* remote sources fetch through the injected :class:`Transport`,
* local sources sort and window their in-memory list,
* both persist a snapshot on ``state_changed`` (when ``save_state``) and
  forward ``navigate_requested`` to the injected :class:`Navigator`.

Nothing raised below this layer reaches the data-source consumer: a failed
or misbehaving transport ends in an empty result set.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar

from pylds._constants import STATE_DATA_LOADED, STATE_SORT_CHANGED
from pylds._transport import Transport
from pylds.cache import CacheStore
from pylds.config import LdsConfig
from pylds.datasource import ListDataSource
from pylds.engine import page_window, sort_items
from pylds.models._base import DataSourceType
from pylds.models.cache import CacheEntry
from pylds.models.result import LoadResult
from pylds.navigation import Navigator
from pylds.query import encode_query_string
from pylds.storage import Storage, create_storage

_logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _root_path() -> str:
    return "/"


class DataSourceProvider:
    """Creates and drives data sources.

    Parameters
    ----------
    transport : Transport or None
        Fetches remote pages. Remote sources resolve to an empty result
        when no transport is configured.
    navigator : Navigator or None
        Receives the filter map when a source routes instead of reloading.
    config : LdsConfig or None
        Provider-wide defaults; each factory call may override them.
    storage : Storage or None
        Cache storage. Defaults to the storage selected by ``config.storage``.
    location : callable
        Returns the current path; used in cache keys and as the default
        data-source id.
    clock : callable
        Returns the current aware datetime (cache timestamps and expiry).
    """

    def __init__(
        self,
        *,
        transport: Transport | None = None,
        navigator: Navigator | None = None,
        config: LdsConfig | None = None,
        storage: Storage | None = None,
        location: Callable[[], str] = _root_path,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config if config is not None else LdsConfig()
        self._transport = transport
        self._navigator = navigator
        self._location = location
        self._clock = clock
        if storage is None:
            storage = create_storage(self.config.storage, self.config.storage_dir)
        self.cache = CacheStore(storage, clock=clock)
        self.cache.load()

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    def get_local_data_source(
        self,
        items: Iterable[T] | None = None,
        ds_id: str | None = None,
        config: LdsConfig | Mapping[str, Any] | None = None,
    ) -> ListDataSource[T]:
        """Local source seeded from the cache entry matching *ds_id* and the current path."""
        ds_id = ds_id or self._location()
        cache = self.cache.get_by_id(ds_id, self._location())
        ds: ListDataSource[T] = self._create(DataSourceType.LOCAL, ds_id, config, cache)
        self._configure_local(ds)
        if items:
            ds.set_source_items(items)
        return ds

    def get_remote_data_source(
        self,
        url: str,
        ds_id: str | None = None,
        config: LdsConfig | Mapping[str, Any] | None = None,
    ) -> ListDataSource[Any]:
        """Remote source seeded from the cache entry matching *ds_id* and the current path."""
        ds_id = ds_id or self._location()
        cache = self.cache.get_by_id(ds_id, self._location())
        ds: ListDataSource[Any] = self._create(DataSourceType.REMOTE, ds_id, config, cache)
        ds.state.source_url = url
        self._configure_remote(ds)
        return ds

    def new_local_data_source(
        self,
        items: Iterable[T],
        ds_id: str | None = None,
        config: LdsConfig | Mapping[str, Any] | None = None,
    ) -> ListDataSource[T]:
        """Local source that ignores any cached state."""
        ds: ListDataSource[T] = self._create(DataSourceType.LOCAL, ds_id, config)
        self._configure_local(ds)
        ds.set_source_items(items)
        return ds

    def new_remote_data_source(
        self,
        url: str,
        ds_id: str | None = None,
        config: LdsConfig | Mapping[str, Any] | None = None,
    ) -> ListDataSource[Any]:
        """Remote source that ignores any cached state."""
        ds: ListDataSource[Any] = self._create(DataSourceType.REMOTE, ds_id, config)
        ds.state.source_url = url
        self._configure_remote(ds)
        return ds

    def _create(
        self,
        ds_type: DataSourceType,
        ds_id: str | None,
        config: LdsConfig | Mapping[str, Any] | None,
        cache: CacheEntry | None = None,
    ) -> ListDataSource[Any]:
        if not ds_id:
            ds_id = self._location()
        if isinstance(config, LdsConfig):
            ds_config = config
        elif config:
            ds_config = self.config.merged(**config)
        else:
            ds_config = self.config
        if cache is not None and cache.type is not ds_type:
            _logger.debug("Ignoring %s cache entry for %s data source %s", cache.type, ds_type, ds_id)
            cache = None
        return ListDataSource(ds_id, ds_type, ds_config, cache)

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def _trace(self, level: int, message: str, *args: Any) -> None:
        if self.config.debug_mode >= level:
            _logger.debug(message, *args)

    def _configure_common(self, ds: ListDataSource[Any]) -> None:
        def on_state_changed(reason: str) -> None:
            self._trace(1, "state_changed: %s (%s)", reason, ds.id)
            if self.config.debug_mode >= 2:
                _logger.debug("state of %s: %s", ds.id, ds.state.to_record())
            if ds.config.save_state:
                self.cache.save(self._to_cache_entry(ds))

        def on_navigate_requested(reason: str) -> None:
            self._trace(1, "navigate_requested: %s (%s)", reason, ds.id)
            self._navigate(ds)

        ds.events.state_changed.subscribe(on_state_changed)
        ds.events.navigate_requested.subscribe(on_navigate_requested)

    def _configure_remote(self, ds: ListDataSource[Any]) -> None:
        if ds.is_configured:
            return
        self._configure_common(ds)

        def on_sort_changed(field_name: str) -> None:
            self._trace(1, "sort_changed: %s (%s)", field_name, ds.id)
            if ds.config.use_routing:
                self._navigate(ds)
            else:
                self.fetch_remote(ds, "sortChanged")

        def on_data_requested(reason: str) -> None:
            self._trace(1, "data_requested: %s (%s)", reason, ds.id)
            self.fetch_remote(ds, reason)

        ds.events.sort_changed.subscribe(on_sort_changed)
        ds.events.data_requested.subscribe(on_data_requested)
        ds.is_configured = True

    def _configure_local(self, ds: ListDataSource[Any]) -> None:
        if ds.is_configured:
            return
        self._configure_common(ds)

        def on_data_requested(reason: str) -> None:
            self._trace(1, "data_requested: %s (%s)", reason, ds.id)
            self.load_locally(ds)

        def on_sort_changed(field_name: str) -> None:
            self._trace(1, "sort_changed: %s (%s)", field_name, ds.id)
            if self.sort_items_locally(ds, field_name) and ds.pages:
                ds.set_items(page_window(ds.source_items, ds.state.pagination))
                ds.events.state_changed.emit(STATE_SORT_CHANGED)

        ds.events.data_requested.subscribe(on_data_requested)
        ds.events.sort_changed.subscribe(on_sort_changed)
        ds.is_configured = True

    def _navigate(self, ds: ListDataSource[Any]) -> None:
        if self._navigator is None:
            _logger.warning("Data source %s requested navigation but no navigator is configured", ds.id)
            return
        self._navigator.navigate(ds.get_filters())

    # ------------------------------------------------------------------
    # Remote flow
    # ------------------------------------------------------------------

    def fetch_remote(self, ds: ListDataSource[Any], reason: str = "reload") -> None:
        """Fetch the current page of *ds* through the transport."""
        if ds.is_disposed:
            return
        filters = ds.get_filters()
        ds.events.data_loading.emit(filters)
        ds.state.query_string = encode_query_string(filters)
        self._trace(3, "fetching %s?%s (%s)", ds.state.source_url, ds.state.query_string, reason)
        ds.is_loading = True

        delivered = False

        def on_result(payload: LoadResult | Mapping[str, Any]) -> None:
            nonlocal delivered
            delivered = True
            self._apply_remote_result(ds, payload)

        if self._transport is None:
            _logger.warning("Data source %s has no transport configured", ds.id)
            on_result(LoadResult.empty(error="no transport configured"))
            return

        url = ds.state.source_url or ""
        try:
            if ds.config.http.method == "POST":
                self._transport.post(url, ds.state.query_string, filters, on_result)
            else:
                self._transport.get(url, ds.state.query_string, filters, on_result)
        except Exception as exc:
            if delivered:
                # Raised by a handler of the delivered result, not by the transport.
                raise
            _logger.warning("Transport call for %s failed: %s", ds.id, exc, exc_info=True)
            on_result(LoadResult.empty(error=str(exc) or type(exc).__name__))

    def _apply_remote_result(self, ds: ListDataSource[Any], payload: LoadResult | Mapping[str, Any]) -> None:
        if ds.is_disposed:
            _logger.debug("Dropping late result for disposed data source %s", ds.id)
            return
        result = LoadResult.from_payload(payload)
        self._trace(3, "result for %s: %d item(s), total %d", ds.id, len(result.items), result.total)
        ds.events.data_loaded.emit(result)
        ds.set_data(result)
        ds.events.state_changed.emit(STATE_DATA_LOADED)
        ds.is_loading = False
        if result.failed:
            ds.clear_state()

    # ------------------------------------------------------------------
    # Local flow
    # ------------------------------------------------------------------

    def load_locally(self, ds: ListDataSource[Any]) -> None:
        """Sort (when a sort is set) and window the in-memory source of *ds*."""
        if ds.is_disposed:
            return
        if ds.state.sort1_name:
            self.sort_items_locally(ds, ds.state.sort1_name)
        pagination = ds.state.pagination
        pagination.update_totals(len(ds.source_items))
        pagination.align_start()
        ds.set_items(page_window(ds.source_items, pagination))
        ds.events.state_changed.emit(STATE_DATA_LOADED)

    def sort_items_locally(self, ds: ListDataSource[Any], field_name: str | None) -> bool:
        """Sort the source of *ds* by *field_name*; ``False`` when already sorted that way."""
        if not field_name or ds.is_disposed:
            return False
        direction = ds.state.sort1_dir or ds.default_sort_dir
        applying = f"{field_name} {direction.value}"
        if ds.applied_sort_name == applying:
            return False
        field_def = ds.fields.get(field_name)
        data_type = field_def.data_type if field_def is not None else None
        ds.source_items[:] = sort_items(ds.source_items, field_name, direction, data_type)
        ds.applied_sort_name = applying
        return True

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def _to_cache_entry(self, ds: ListDataSource[Any]) -> CacheEntry:
        return CacheEntry(
            id=ds.id,
            path_name=self._location(),
            date=self._clock(),
            type=ds.type,
            state=ds.state.model_copy(deep=True),
            filters=copy.deepcopy(ds.filters),
            field_list=ds.fields.snapshot(),
        )

    def clear_storage(self) -> None:
        """Remove every persisted data-source state."""
        self.cache.clear()
