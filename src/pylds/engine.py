"""Local engine: in-memory sorting and pagination windowing.

Both functions are pure apart from the documented mutations: windowing
corrects the pagination counters in place and stamps row numbers on the
returned items.
"""

from __future__ import annotations

import contextlib
import locale
import logging
import math
from collections.abc import Callable, Mapping, MutableMapping, Sequence
from datetime import date, datetime
from typing import Any, TypeVar

from pylds._constants import ROW_NUMBER_KEY
from pylds.models._base import DataType, SortDirection
from pylds.models.state import Pagination

_logger = logging.getLogger(__name__)

T = TypeVar("T")


def item_value(item: Any, key: str) -> Any:
    """Read *key* from a mapping item or an attribute of an object item."""
    if isinstance(item, Mapping):
        return item.get(key)
    return getattr(item, key, None)


def infer_data_type(values: Sequence[Any]) -> str:
    for value in values:
        if isinstance(value, str):
            return DataType.STRING
        if isinstance(value, bool):
            return DataType.BOOLEAN
        if isinstance(value, (int, float)):
            return DataType.NUMBER
        if isinstance(value, (datetime, date)):
            return DataType.DATETIME
    return DataType.NUMBER


def _number_key(value: Any) -> Any:
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise TypeError(f"not a number: {value!r}") from exc


def _string_key(value: Any) -> str:
    return locale.strxfrm(str(value))


def _sort_key(data_type: str) -> Callable[[Any], Any]:
    if data_type == DataType.STRING:
        return _string_key
    if data_type == DataType.NUMBER:
        return _number_key
    return lambda value: value


def sort_items(
    items: Sequence[T],
    key: str,
    direction: SortDirection | str = SortDirection.ASC,
    data_type: str | None = None,
) -> list[T]:
    """Return *items* ordered by *key*.

    Items whose value is ``None`` (or missing) always come last, whatever
    the direction. Equal values keep their input order.
    """
    present: list[tuple[Any, T]] = []
    missing: list[T] = []
    for item in items:
        value = item_value(item, key)
        if value is None:
            missing.append(item)
        else:
            present.append((value, item))

    if data_type is None:
        data_type = infer_data_type([value for value, _ in present])
    descending = direction == SortDirection.DESC
    value_key = _sort_key(data_type)

    try:
        present.sort(key=lambda pair: value_key(pair[0]), reverse=descending)
    except (TypeError, ValueError):
        _logger.warning("Values of %s are not comparable as %s, sorting as text", key, data_type)
        present.sort(key=lambda pair: str(pair[0]), reverse=descending)

    return [item for _, item in present] + missing


def _set_row_number(item: Any, number: int) -> None:
    if isinstance(item, MutableMapping):
        item[ROW_NUMBER_KEY] = number
        return
    # Immutable items simply go without a row number.
    with contextlib.suppress(AttributeError, TypeError, ValueError):
        setattr(item, ROW_NUMBER_KEY, number)


def page_window(items: Sequence[T], pagination: Pagination) -> list[T]:
    """Return the current page of *items* and correct *pagination* in place.

    A window that would start at or past the end of the source is pulled
    back by its overflow (and the page index by the matching number of
    pages), so an out-of-range page never renders empty.
    """
    total = pagination.total_item_count
    size = pagination.page_size
    if size <= 0 or size >= total:
        pagination.page_index = 0
        pagination.start_item_index = 0
        pagination.end_item_index = len(items)
        return list(items)

    start = pagination.start_item_index
    overflow = (start + size) - total
    if start >= total and overflow > 0:
        start -= overflow
        if pagination.page_index > 0:
            pagination.page_index -= math.ceil(overflow / size)
    if start < 0:
        start = 0
        pagination.page_index = 0
    if pagination.page_index < 0:
        pagination.page_index = 0

    pagination.start_item_index = start
    pagination.end_item_index = start + size

    window = list(items[start : min(pagination.end_item_index, len(items))])
    for number, item in enumerate(window, start=start + 1):
        _set_row_number(item, number)
    return window
