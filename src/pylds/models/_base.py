"""Base model and enums shared by the pylds models.

Every persisted model inherits from :class:`LdsBaseModel` which provides:

* ``alias_generator=to_camel`` so the snake_case attributes serialize
  to the camelCase keys used on the wire and in the cache record
  (``sort1Name``, ``pageIndex``, ``pathName``...).
* ``populate_by_name=True`` so both spellings validate.
* ``extra="ignore"`` so cache records written by other versions still load.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"

    @property
    def toggled(self) -> SortDirection:
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


class DataSourceType(StrEnum):
    REMOTE = "remote"
    LOCAL = "local"


class DataType(StrEnum):
    """Well-known field data types. Any other string is accepted as-is."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATETIME = "datetime"


def parse_sort_direction(value: Any) -> SortDirection | None:
    """Return the matching :class:`SortDirection` or ``None`` for anything else."""
    if value is None:
        return None
    try:
        return SortDirection(str(value).strip().lower())
    except ValueError:
        return None


class LdsBaseModel(BaseModel):
    """Base for mutable pylds state models."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_record(self) -> dict[str, Any]:
        """JSON-compatible dict using the camelCase wire names."""
        return self.model_dump(mode="json", by_alias=True)
