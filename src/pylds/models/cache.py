"""Persisted cache entry model."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import Field, field_validator

from pylds.models._base import DataSourceType, LdsBaseModel
from pylds.models.field import FieldVisibility
from pylds.models.state import ViewState


def cache_key(ds_id: str, path_name: str) -> str:
    return f"{ds_id}|{path_name}"


class CacheEntry(LdsBaseModel):
    """Snapshot of one data source's state, keyed by id and path."""

    id: str = Field(..., min_length=1)
    path_name: str = Field(..., min_length=1)
    date: datetime = Field(default_factory=lambda: datetime.now(UTC))
    type: DataSourceType = DataSourceType.REMOTE
    state: ViewState
    filters: dict[str, Any] = Field(default_factory=dict)
    field_list: list[FieldVisibility] = Field(default_factory=list)

    @field_validator("date")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @field_validator("filters", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def key(self) -> str:
        return cache_key(self.id, self.path_name)

    def age_hours(self, now: datetime) -> float:
        return (now - self.date).total_seconds() / 3600.0
