"""Tests for local sorting and pagination windowing."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from pylds._constants import ROW_NUMBER_KEY
from pylds.engine import page_window, sort_items
from pylds.models.state import Pagination

# ------------------------------------------------------------------
# sort_items
# ------------------------------------------------------------------


class TestSortItems:
    @pytest.mark.parametrize("direction", ["asc", "desc"])
    def test_null_strings_sort_last(self, direction: str) -> None:
        items = [{"name": "b"}, {"name": None}, {"name": "a"}]

        ordered = [item["name"] for item in sort_items(items, "name", direction, "string")]

        expected = ["a", "b", None] if direction == "asc" else ["b", "a", None]
        assert ordered == expected

    @pytest.mark.parametrize("direction", ["asc", "desc"])
    def test_null_numbers_sort_last(self, direction: str) -> None:
        items = [{"n": 2}, {"n": None}, {"n": 1}]

        ordered = [item["n"] for item in sort_items(items, "n", direction, "number")]

        expected = [1, 2, None] if direction == "asc" else [2, 1, None]
        assert ordered == expected

    def test_missing_key_counts_as_null(self) -> None:
        items = [{"n": 3}, {}, {"n": 1}]

        ordered = sort_items(items, "n")

        assert ordered == [{"n": 1}, {"n": 3}, {}]

    def test_sort_is_stable_in_both_directions(self) -> None:
        items = [{"k": 1, "tag": "x"}, {"k": 0, "tag": "y"}, {"k": 1, "tag": "z"}]

        asc = [item["tag"] for item in sort_items(items, "k", "asc")]
        desc = [item["tag"] for item in sort_items(items, "k", "desc")]

        assert asc == ["y", "x", "z"]
        assert desc == ["x", "z", "y"]

    def test_type_is_inferred_when_not_given(self) -> None:
        items = [{"v": "beta"}, {"v": "alpha"}]

        assert [item["v"] for item in sort_items(items, "v")] == ["alpha", "beta"]

    def test_numeric_strings_compare_as_numbers(self) -> None:
        items = [{"v": "10"}, {"v": "9"}]

        assert [item["v"] for item in sort_items(items, "v", "asc", "number")] == ["9", "10"]

    def test_incomparable_values_fall_back_to_text(self) -> None:
        items = [{"v": "b"}, {"v": 1}, {"v": "a"}]

        ordered = [item["v"] for item in sort_items(items, "v", "asc", "number")]

        assert ordered == [1, "a", "b"]

    def test_objects_are_read_by_attribute(self) -> None:
        @dataclass
        class Row:
            score: int | None

        rows = [Row(5), Row(None), Row(2)]

        assert [row.score for row in sort_items(rows, "score", "desc")] == [5, 2, None]

    def test_input_is_not_mutated(self) -> None:
        items = [{"n": 2}, {"n": 1}]
        sort_items(items, "n")
        assert items == [{"n": 2}, {"n": 1}]


# ------------------------------------------------------------------
# page_window
# ------------------------------------------------------------------


def _items(count: int) -> list[dict[str, int]]:
    return [{"i": i} for i in range(count)]


def _pagination(page_index: int, page_size: int, total: int) -> Pagination:
    pagination = Pagination(page_index=page_index, page_size=page_size)
    pagination.update_totals(total)
    pagination.align_start()
    return pagination


class TestPageWindow:
    def test_last_partial_page(self) -> None:
        items = _items(101)
        pagination = _pagination(10, 10, 101)

        window = page_window(items, pagination)

        assert window == [items[100]]
        assert window[0][ROW_NUMBER_KEY] == 101
        assert pagination.page_index == 10
        assert pagination.start_item_index == 100

    def test_middle_page_row_numbers(self) -> None:
        items = _items(35)
        pagination = _pagination(1, 10, 35)

        window = page_window(items, pagination)

        assert [item["i"] for item in window] == list(range(10, 20))
        assert [item[ROW_NUMBER_KEY] for item in window] == list(range(11, 21))
        assert pagination.end_item_index == 20

    def test_page_past_the_end_is_pulled_back(self) -> None:
        items = _items(101)
        pagination = _pagination(12, 10, 101)

        window = page_window(items, pagination)

        # start 120 overflows by 29: start -> 91, page -> 12 - ceil(29 / 10)
        assert pagination.start_item_index == 91
        assert pagination.page_index == 9
        assert len(window) == 10
        assert window[-1]["i"] == 100

    def test_page_size_not_smaller_than_total_returns_everything(self) -> None:
        items = _items(5)
        pagination = _pagination(3, 10, 5)

        window = page_window(items, pagination)

        assert window == items
        assert pagination.page_index == 0
        assert pagination.start_item_index == 0

    def test_non_positive_page_size_returns_everything(self) -> None:
        items = _items(5)
        pagination = Pagination(page_size=0)
        pagination.update_totals(5)

        assert page_window(items, pagination) == items

    def test_negative_start_is_clamped(self) -> None:
        items = _items(30)
        pagination = Pagination(page_index=-2, page_size=10, start_item_index=-20)
        pagination.update_totals(30)

        window = page_window(items, pagination)

        assert pagination.start_item_index == 0
        assert pagination.page_index == 0
        assert [item["i"] for item in window] == list(range(10))

    @pytest.mark.parametrize("total", [0, 1, 9, 10, 11, 55, 101])
    @pytest.mark.parametrize("page_size", [1, 3, 10])
    @pytest.mark.parametrize("page_index", [0, 1, 5, 40])
    def test_window_bounds(self, total: int, page_size: int, page_index: int) -> None:
        items = _items(total)
        pagination = _pagination(page_index, page_size, total)

        window = page_window(items, pagination)

        assert pagination.start_item_index >= 0
        assert pagination.end_item_index - pagination.start_item_index <= max(page_size, total)
        if page_size < total:
            assert pagination.end_item_index - pagination.start_item_index <= page_size
            assert 0 < len(window) <= page_size

    def test_immutable_items_are_returned_without_row_numbers(self) -> None:
        items = [(1,), (2,), (3,)]
        pagination = _pagination(1, 2, 3)

        assert page_window(items, pagination) == [(3,)]
