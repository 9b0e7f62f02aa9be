"""The data source: one stateful, paginated, sortable collection.

A :class:`ListDataSource` owns its field registry, view state and event
hub. It never fetches or sorts anything itself: mutators update the view
state and emit events, and the provider that created the instance reacts
to those events (remote fetch, local sort/windowing, cache persistence).

None of the public operations raise on bad input, and all of them turn
into logged no-ops once the instance has been disposed.
"""

from __future__ import annotations

import copy
import functools
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pylds._constants import (
    PAGE_INDEX_KEY,
    PAGE_SIZE_KEY,
    PAGINATION_KEYS,
    SORT1_DIR_KEY,
    SORT1_NAME_KEY,
    SORT2_DIR_KEY,
    SORT2_NAME_KEY,
    STATE_FIELDS_CHANGED,
)
from pylds.config import LdsConfig
from pylds.events import EventHub
from pylds.fields import FieldRegistry
from pylds.models._base import DataSourceType, SortDirection, parse_sort_direction
from pylds.models.cache import CacheEntry
from pylds.models.field import DataField, FieldVisibility
from pylds.models.result import LoadResult
from pylds.models.state import Pagination, ViewState
from pylds.query import coerce_number, coerce_value, is_blank

_logger = logging.getLogger(__name__)

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])


def _unless_disposed(method: F) -> F:
    @functools.wraps(method)
    def wrapper(self: ListDataSource[Any], *args: Any, **kwargs: Any) -> Any:
        if self.is_disposed:
            _logger.debug("Ignoring %s() on disposed data source %s", method.__name__, self.id)
            return None
        return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


def _as_int(value: Any) -> int | None:
    number = coerce_number(value)
    return None if number is None else int(number)


@dataclass(slots=True)
class DataPage(Generic[T]):
    """Items loaded for one page index."""

    page_index: int
    items: list[T] = field(default_factory=list)


class ListDataSource(Generic[T]):
    """Paginated, sortable, filterable collection of records.

    Usage::

        ds = provider.get_remote_data_source("/api/orders", "orders")
        ds.set_fields([{"name": "number", "dataType": "number"}])
        ds.events.state_changed.subscribe(render)
        ds.reload()
    """

    def __init__(
        self,
        ds_id: str,
        ds_type: DataSourceType | str,
        config: LdsConfig | None = None,
        cache: CacheEntry | None = None,
    ) -> None:
        self.id = ds_id
        self.type = DataSourceType(ds_type)
        self.config = config if config is not None else LdsConfig()
        self.events = EventHub()
        self.fields = FieldRegistry(self.events.field_changed.emit)
        self.filters: dict[str, Any] = {}
        self.source_items: list[T] = []
        self.items: list[T] = []
        self.pages: list[DataPage[T]] = []
        self.is_loading = False
        self.is_disposed = False
        self.is_configured = False
        self.applied_sort_name: str | None = None
        self._append_next_page = False
        self._cached_field_list: list[FieldVisibility] = []

        if cache is not None:
            self.state = cache.state.model_copy(deep=True)
            self.filters = copy.deepcopy(cache.filters)
            self._cached_field_list = list(cache.field_list)
        else:
            self.state = self._initial_state()

    def __repr__(self) -> str:
        return f"ListDataSource(id={self.id!r}, type={self.type.value!r}, total={self.total_count})"

    def _initial_state(self) -> ViewState:
        pagination = self.config.pagination
        sort = self.config.sort
        return ViewState(
            sort1_name=sort.default_name,
            sort1_dir=SortDirection(sort.default_dir) if sort.default_name else None,
            pagination=Pagination(
                enabled=pagination.enabled,
                page_size=pagination.page_size,
                button_count=pagination.button_count,
            ),
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def pagination(self) -> Pagination:
        return self.state.pagination

    @property
    def page_index(self) -> int:
        return self.state.pagination.page_index

    @property
    def page_size(self) -> int:
        return self.state.pagination.page_size

    @property
    def total_count(self) -> int:
        return self.state.pagination.total_item_count

    @property
    def total_page_count(self) -> int:
        return self.state.pagination.total_page_count

    @property
    def has_next_page(self) -> bool:
        return not self.state.pagination.is_last_page

    @property
    def default_sort_dir(self) -> SortDirection:
        return SortDirection(self.config.sort.default_dir)

    @property
    def field_list(self) -> list[DataField]:
        return list(self.fields)

    @property
    def all_items(self) -> list[T]:
        """Items of every loaded page, in page order."""
        return [item for page in sorted(self.pages, key=lambda p: p.page_index) for item in page.items]

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    @_unless_disposed
    def set_fields(self, fields: Iterable[DataField | Mapping[str, Any]], emit_state: bool = False) -> None:
        self.fields.set_fields(fields)
        if self._cached_field_list:
            # Cached visibility only seeds the first field definition.
            self.fields.apply_visibility(self._cached_field_list)
            self._cached_field_list = []
        if emit_state:
            self.events.state_changed.emit(STATE_FIELDS_CHANGED)

    def field(self, name: str, condition: bool | None = None) -> DataField | None:
        """Look up a field; a given *condition* replaces its visibility condition."""
        return self.fields.field(name, condition)

    # ------------------------------------------------------------------
    # Data installation (no events)
    # ------------------------------------------------------------------

    def _install_page(self, items: list[T]) -> None:
        self.items = items
        page = DataPage(self.state.pagination.page_index, items)
        if self._append_next_page:
            self.pages = [p for p in self.pages if p.page_index != page.page_index]
            self.pages.append(page)
        else:
            self.pages = [page]
        self._append_next_page = False

    @_unless_disposed
    def set_data(self, result: LoadResult | Mapping[str, Any]) -> None:
        """Install a transport result as the current page."""
        result = LoadResult.from_payload(result)
        pagination = self.state.pagination
        pagination.align_start()
        pagination.update_totals(result.total)
        items = list(result.items)
        pagination.end_item_index = pagination.start_item_index + len(items)
        self._install_page(items)

    @_unless_disposed
    def set_items(self, items: Iterable[T]) -> None:
        """Install an already windowed page of items."""
        total = len(self.source_items) if self.type is DataSourceType.LOCAL else self.state.pagination.total_item_count
        self.state.pagination.update_totals(total)
        self._install_page(list(items))

    @_unless_disposed
    def set_source_items(self, items: Iterable[T]) -> None:
        """Replace the full in-memory source of a local data source."""
        if self.type is not DataSourceType.LOCAL:
            _logger.warning("set_source_items() called on remote data source %s", self.id)
            return
        self.source_items = list(items)
        self.applied_sort_name = None
        self.state.pagination.update_totals(len(self.source_items))

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    @_unless_disposed
    def reload(self, event_name: str = "reload") -> None:
        """Request a (re)load; the provider decides how to fetch."""
        self.events.data_requested.emit(event_name)

    @_unless_disposed
    def load_page(self, page_index: int) -> None:
        index = _as_int(page_index)
        if index is None:
            _logger.debug("Ignoring invalid page index %r", page_index)
            return
        pagination = self.state.pagination
        pagination.page_index = index
        pagination.align_start()
        self.events.pagination_changed.emit(self.state)
        self.reload("loadPage")

    @_unless_disposed
    def load_next_page(self) -> bool:
        """Load the following page and append it to :attr:`pages`.

        Returns ``False`` (and does nothing) on the last page.
        """
        pagination = self.state.pagination
        if pagination.page_index >= pagination.total_page_count - 1:
            return False
        pagination.page_index += 1
        pagination.align_start()
        self._append_next_page = True
        self.events.pagination_changed.emit(self.state)
        self.reload("loadNextPage")
        return True

    @_unless_disposed
    def set_page_size(self, page_size: int) -> None:
        size = _as_int(page_size)
        if size is None:
            _logger.debug("Ignoring invalid page size %r", page_size)
            return
        pagination = self.state.pagination
        pagination.page_size = size
        pagination.page_index = 0
        pagination.align_start()
        pagination.update_totals(pagination.total_item_count)
        self.events.pagination_changed.emit(self.state)

    @_unless_disposed
    def change_page_size(self, page_size: int) -> None:
        self.set_page_size(page_size)
        self.state.pagination.enabled = True
        self.reload("changePageSize")

    # ------------------------------------------------------------------
    # Sorting
    # ------------------------------------------------------------------

    @_unless_disposed
    def change_sort(self, field_name: str, direction: SortDirection | str | None = None) -> None:
        """Sort by *field_name*.

        Without an explicit *direction*, repeating the current sort column
        toggles its direction; a new column starts with the field's own
        ``sort1_dir`` or the configured default.
        """
        field_def = self.fields.get(field_name)
        if field_def is not None and not field_def.sortable:
            _logger.debug("Field %s is not sortable", field_name)
            return

        state = self.state
        new_dir = parse_sort_direction(direction)
        if new_dir is None:
            if field_name == state.sort1_name:
                new_dir = (state.sort1_dir or self.default_sort_dir).toggled
            elif field_def is not None and field_def.sort1_dir is not None:
                new_dir = field_def.sort1_dir
            else:
                new_dir = self.default_sort_dir

        state.sort1_name = field_name
        state.sort1_dir = new_dir
        if field_def is not None and field_def.sort2_name:
            state.sort2_name = field_def.sort2_name
            state.sort2_dir = field_def.sort2_dir or new_dir
        else:
            state.sort2_name = None
            state.sort2_dir = None
        self.events.sort_changed.emit(field_name)

    def _wire_sort_name(self, name: str) -> str:
        field_def = self.fields.get(name)
        if field_def is not None and field_def.sort1_name:
            return field_def.sort1_name
        return name

    def _field_for_sort_key(self, key: str) -> str:
        if key in self.fields:
            return key
        for field_def in self.fields:
            if field_def.sort1_name == key:
                return field_def.name
        return key

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def _search_or_navigate(self, event_name: str) -> None:
        pagination = self.state.pagination
        pagination.page_index = 0
        pagination.align_start()
        if self.config.use_routing:
            self.events.navigate_requested.emit(event_name)
        else:
            self.reload(event_name)

    @_unless_disposed
    def search(self) -> None:
        """Apply the current filters starting from the first page."""
        self._search_or_navigate("search")

    @_unless_disposed
    def reset_filters(self) -> None:
        self.filters.clear()
        self._search_or_navigate("resetFilters")

    @_unless_disposed
    def clear_filters(self) -> None:
        self.filters.clear()

    def get_query_params(self, include_pagination: bool = True) -> dict[str, Any]:
        """Flat map of filters, sort and (optionally) pagination."""
        state = self.state
        params: dict[str, Any] = dict(self.filters)
        if state.sort1_name:
            params[SORT1_NAME_KEY] = self._wire_sort_name(state.sort1_name)
            params[SORT1_DIR_KEY] = (state.sort1_dir or self.default_sort_dir).value
        if state.sort2_name:
            params[SORT2_NAME_KEY] = state.sort2_name
            params[SORT2_DIR_KEY] = (state.sort2_dir or self.default_sort_dir).value
        if include_pagination:
            params[PAGE_INDEX_KEY] = state.pagination.page_index
            params[PAGE_SIZE_KEY] = state.pagination.page_size
        return params

    def get_filters(self) -> dict[str, Any]:
        """Query params sent to the transport and the navigator."""
        return self.get_query_params(include_pagination=self.state.pagination.enabled)

    @_unless_disposed
    def apply_query_params(
        self,
        params: Mapping[str, Any],
        custom_field_types: Mapping[str, str] | None = None,
    ) -> None:
        """Load state from a decoded query string.

        String values are coerced with the field data types (overridden by
        *custom_field_types*). Sort keys update the sort, ``pageIndex`` and
        ``pageSize`` update (and enable) pagination, everything else lands
        in :attr:`filters`.
        """
        data_types: dict[str, str | None] = dict(self.fields.data_types())
        if custom_field_types:
            data_types.update(custom_field_types)

        state = self.state
        pagination = state.pagination
        pagination_changed = False
        for key, raw in params.items():
            if key in PAGINATION_KEYS:
                value = _as_int(raw)
                if value is None:
                    continue
                if key == PAGE_INDEX_KEY:
                    pagination.page_index = value
                else:
                    pagination.page_size = value
                pagination.enabled = True
                pagination_changed = True
            elif key == SORT1_NAME_KEY:
                state.sort1_name = None if is_blank(raw) else self._field_for_sort_key(str(raw))
            elif key == SORT1_DIR_KEY:
                state.sort1_dir = parse_sort_direction(raw)
            elif key == SORT2_NAME_KEY:
                state.sort2_name = None if is_blank(raw) else str(raw)
            elif key == SORT2_DIR_KEY:
                state.sort2_dir = parse_sort_direction(raw)
            elif is_blank(raw):
                self.filters.pop(key, None)
            else:
                self.filters[key] = coerce_value(raw, data_types.get(key))

        if pagination_changed:
            pagination.align_start()
            pagination.update_totals(pagination.total_item_count)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @_unless_disposed
    def clear_state(self) -> None:
        """Forget sort and pagination counters (used after a failed load)."""
        self.state.clear_sort()
        self.state.pagination.reset()
        self.applied_sort_name = None

    def dispose(self) -> None:
        """Terminal teardown: close every channel and drop item references."""
        if self.is_disposed:
            return
        self.is_disposed = True
        self.events.dispose()
        self.fields.clear()
        self.source_items = []
        self.items = []
        self.pages = []
        self._cached_field_list = []
