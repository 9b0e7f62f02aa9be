from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest

from pylds._constants import ROW_NUMBER_KEY
from pylds.config import LdsConfig
from pylds.datasource import ListDataSource
from pylds.provider import DataSourceProvider
from pylds.storage import MemoryStorage

_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


def _provider(storage: MemoryStorage | None = None, config: LdsConfig | None = None) -> DataSourceProvider:
    return DataSourceProvider(
        storage=storage if storage is not None else MemoryStorage(),
        config=config,
        location=lambda: "/numbers",
        clock=lambda: _NOW,
    )


def _numbers(count: int) -> list[dict[str, Any]]:
    return [{"n": index, "label": f"item {index:03d}"} for index in range(count)]


def _states(ds: ListDataSource[Any]) -> list[str]:
    seen: list[str] = []
    ds.events.state_changed.subscribe(seen.append)
    return seen


# ----------------------------------------------------------------
# Windowing
# ----------------------------------------------------------------


def test_last_partial_page_of_101_items() -> None:
    ds = _provider().get_local_data_source(_numbers(101), "numbers")
    states = _states(ds)

    ds.load_page(10)

    assert len(ds.items) == 1
    assert ds.items[0]["n"] == 100
    assert ds.items[0][ROW_NUMBER_KEY] == 101
    assert ds.total_count == 101
    assert ds.total_page_count == 11
    assert ds.page_index == 10
    assert states == ["DataLoaded"]


def test_out_of_range_page_is_pulled_back() -> None:
    ds = _provider().get_local_data_source(_numbers(101), "numbers")

    ds.load_page(12)

    assert ds.page_index == 9
    assert ds.pagination.start_item_index == 91
    assert [item[ROW_NUMBER_KEY] for item in ds.items] == list(range(92, 102))


def test_source_smaller_than_page_shows_everything() -> None:
    ds = _provider().get_local_data_source(_numbers(4), "numbers")

    ds.load_page(3)

    assert ds.page_index == 0
    assert len(ds.items) == 4


def test_load_next_page_accumulates_pages() -> None:
    ds = _provider().get_local_data_source(_numbers(25), "numbers")
    ds.reload()

    while ds.load_next_page():
        pass

    assert [item["n"] for item in ds.all_items] == list(range(25))
    assert [page.page_index for page in ds.pages] == [0, 1, 2]


def test_change_page_size_rewindows() -> None:
    ds = _provider().get_local_data_source(_numbers(25), "numbers")
    ds.reload()

    ds.change_page_size(20)

    assert len(ds.items) == 20
    assert ds.total_page_count == 2


# ----------------------------------------------------------------
# Sorting
# ----------------------------------------------------------------


def test_sort_before_load_sorts_source_only() -> None:
    ds = _provider().get_local_data_source(_numbers(5), "numbers")
    states = _states(ds)

    ds.change_sort("n", "desc")

    assert [item["n"] for item in ds.source_items] == [4, 3, 2, 1, 0]
    assert ds.items == []
    assert states == []


def test_sort_after_load_rewindows_and_emits() -> None:
    ds = _provider().get_local_data_source(_numbers(30), "numbers")
    ds.reload()
    states = _states(ds)

    ds.change_sort("n", "desc")

    assert [item["n"] for item in ds.items] == list(range(29, 19, -1))
    assert ds.items[0][ROW_NUMBER_KEY] == 1
    assert states == ["SortChanged"]


def test_same_sort_is_applied_once(monkeypatch: pytest.MonkeyPatch) -> None:
    import pylds.provider as provider_module

    calls: list[str] = []
    original = provider_module.sort_items

    def counting_sort(items: Any, key: str, *args: Any) -> Any:
        calls.append(key)
        return original(items, key, *args)

    monkeypatch.setattr(provider_module, "sort_items", counting_sort)
    provider = _provider()
    ds = provider.get_local_data_source(_numbers(12), "numbers")

    ds.change_sort("n", "desc")
    ds.reload()
    ds.load_page(1)

    assert calls == ["n"]
    assert provider.sort_items_locally(ds, "n") is False

    ds.change_sort("n")
    assert calls == ["n", "n"]
    assert [item["n"] for item in ds.items] == [10, 11]


def test_nulls_sort_last_both_ways() -> None:
    items = [{"v": 2}, {"v": None}, {"v": 1}, {}, {"v": 3}]
    ds = _provider().get_local_data_source(items, "values")
    ds.reload()

    ds.change_sort("v", "asc")
    assert [item.get("v") for item in ds.items] == [1, 2, 3, None, None]

    ds.change_sort("v", "desc")
    assert [item.get("v") for item in ds.items] == [3, 2, 1, None, None]


def test_replacing_source_items_forgets_applied_sort() -> None:
    ds = _provider().get_local_data_source(_numbers(3), "numbers")
    ds.change_sort("n", "desc")

    ds.set_source_items(_numbers(3))
    ds.reload()

    assert [item["n"] for item in ds.items] == [2, 1, 0]


# ----------------------------------------------------------------
# Cache
# ----------------------------------------------------------------


def test_state_and_field_visibility_survive_a_new_provider() -> None:
    storage = MemoryStorage()
    ds = _provider(storage).get_local_data_source(_numbers(50), "numbers")
    ds.set_fields([{"name": "n", "dataType": "number"}, {"name": "label"}])
    label = ds.field("label")
    assert label is not None
    label.toggle_visible()
    ds.filters["q"] = "item"
    ds.change_sort("n", "desc")
    ds.load_page(2)

    restored = _provider(storage).get_local_data_source(_numbers(50), "numbers")
    restored.set_fields([{"name": "n", "dataType": "number"}, {"name": "label"}])

    assert restored.page_index == 2
    assert restored.state.sort1_name == "n"
    assert restored.filters == {"q": "item"}
    restored_label = restored.field("label")
    assert restored_label is not None
    assert restored_label.visible is False

    restored.reload()
    assert restored.items[0]["n"] == 29


def test_new_data_source_ignores_cache() -> None:
    storage = MemoryStorage()
    _provider(storage).get_local_data_source(_numbers(50), "numbers").load_page(3)

    fresh = _provider(storage).new_local_data_source(_numbers(50), "numbers")

    assert fresh.page_index == 0


def test_default_id_is_the_current_path() -> None:
    storage = MemoryStorage()
    provider = _provider(storage)
    provider.get_local_data_source(_numbers(50)).load_page(1)

    cached = provider.cache.get_by_id("/numbers", "/numbers")
    assert cached is not None
    assert cached.state.pagination.page_index == 1


def test_save_state_disabled_writes_nothing() -> None:
    storage = MemoryStorage()
    ds = _provider(storage).get_local_data_source(_numbers(5), "numbers", {"save_state": False})

    ds.reload()

    assert storage.get_item("datasources") is None


def test_remote_cache_entry_is_not_used_for_local_source() -> None:
    storage = MemoryStorage()
    provider = _provider(storage)
    remote = provider.get_remote_data_source("/api/numbers", "numbers")
    remote.set_data({"items": [], "total": 100})
    remote.state.pagination.page_index = 4
    remote.events.state_changed.emit("DataLoaded")

    local = _provider(storage).get_local_data_source(_numbers(5), "numbers")

    assert local.page_index == 0


def test_clear_storage() -> None:
    storage = MemoryStorage()
    provider = _provider(storage)
    provider.get_local_data_source(_numbers(5), "numbers").reload()

    provider.clear_storage()

    assert len(provider.cache) == 0
    assert storage.get_item("datasources") is None


def test_disposed_source_ignores_local_loads() -> None:
    provider = _provider()
    ds = provider.get_local_data_source(_numbers(5), "numbers")
    ds.dispose()

    provider.load_locally(ds)

    assert ds.items == []


def test_unencodable_filter_does_not_break_loading() -> None:
    storage = MemoryStorage()
    ds = _provider(storage).get_local_data_source(_numbers(5), "numbers")
    ds.filters["owner"] = object()

    ds.reload()

    assert len(ds.items) == 5
    assert storage.get_item("datasources") == "[]"
