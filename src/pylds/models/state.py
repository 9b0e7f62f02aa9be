"""View-state models: pagination and sort snapshot of one data source."""

from __future__ import annotations

import math

from pydantic import Field, field_validator

from pylds.models._base import LdsBaseModel, SortDirection, parse_sort_direction


class Pagination(LdsBaseModel):
    """Pagination counters.

    ``start_item_index``/``end_item_index`` describe the current window
    (0-based, end exclusive). ``total_page_count`` is derived from the
    total and the page size by :meth:`update_totals`.
    """

    enabled: bool = True
    page_index: int = 0
    page_size: int = 10
    total_item_count: int = 0
    total_page_count: int = 0
    start_item_index: int = 0
    end_item_index: int = 0
    button_count: int = 5

    @property
    def is_last_page(self) -> bool:
        return self.page_index >= self.total_page_count - 1

    def align_start(self) -> None:
        """Derive ``start_item_index`` from the page index and size."""
        if self.page_index < 0:
            self.page_index = 0
        self.start_item_index = self.page_index * self.page_size if self.page_size > 0 else 0

    def update_totals(self, total: int) -> None:
        """Record *total* and recompute ``total_page_count``."""
        self.total_item_count = max(int(total), 0)
        if self.page_size > 0:
            self.total_page_count = math.ceil(self.total_item_count / self.page_size)
        else:
            self.total_page_count = 1 if self.total_item_count else 0

    def reset(self) -> None:
        self.page_index = 0
        self.total_item_count = 0
        self.total_page_count = 0
        self.start_item_index = 0
        self.end_item_index = 0


class ViewState(LdsBaseModel):
    """Serializable sort/pagination snapshot of a data source."""

    sort1_name: str | None = None
    sort1_dir: SortDirection | None = None
    sort2_name: str | None = None
    sort2_dir: SortDirection | None = None
    pagination: Pagination = Field(default_factory=Pagination)
    query_string: str = ""
    source_url: str | None = None

    @field_validator("sort1_dir", "sort2_dir", mode="before")
    @classmethod
    def _parse_direction(cls, value: object) -> SortDirection | None:
        return parse_sort_direction(value)

    def clear_sort(self) -> None:
        self.sort1_name = None
        self.sort1_dir = None
        self.sort2_name = None
        self.sort2_dir = None
