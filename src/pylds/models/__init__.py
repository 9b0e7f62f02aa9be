"""Pydantic models for pylds state, cache records and transport results."""

from pylds.models._base import DataSourceType, DataType, LdsBaseModel, SortDirection
from pylds.models.cache import CacheEntry, cache_key
from pylds.models.field import DataField, FieldVisibility
from pylds.models.result import LoadResult
from pylds.models.state import Pagination, ViewState

__all__ = [
    "CacheEntry",
    "DataField",
    "DataSourceType",
    "DataType",
    "FieldVisibility",
    "LdsBaseModel",
    "LoadResult",
    "Pagination",
    "SortDirection",
    "ViewState",
    "cache_key",
]
