"""pylds - paginated, sortable, filterable data sources with persisted view state."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pylds")
except PackageNotFoundError:
    __version__ = "0+local"
from pylds._transport import HttpTransport, Transport
from pylds.cache import CacheStore
from pylds.config import HttpConfig, LdsConfig, PaginationConfig, SortConfig
from pylds.datasource import DataPage, ListDataSource
from pylds.engine import page_window, sort_items
from pylds.events import EventChannel, EventHub
from pylds.exceptions import (
    LdsCacheError,
    LdsConfigError,
    LdsError,
    LdsStorageError,
    LdsStorageQuotaError,
    LdsStorageUnavailableError,
    LdsTransportError,
)
from pylds.fields import FieldRegistry
from pylds.models import (
    CacheEntry,
    DataField,
    DataSourceType,
    DataType,
    FieldVisibility,
    LoadResult,
    Pagination,
    SortDirection,
    ViewState,
)
from pylds.navigation import Navigator, UrlNavigator
from pylds.provider import DataSourceProvider
from pylds.query import coerce_params, coerce_value, decode_query_string, encode_query_string
from pylds.storage import FileStorage, MemoryStorage, Storage

__all__ = [
    "__version__",
    "CacheEntry",
    "CacheStore",
    "DataField",
    "DataPage",
    "DataSourceProvider",
    "DataSourceType",
    "DataType",
    "EventChannel",
    "EventHub",
    "FieldRegistry",
    "FieldVisibility",
    "FileStorage",
    "HttpConfig",
    "HttpTransport",
    "LdsCacheError",
    "LdsConfig",
    "LdsConfigError",
    "LdsError",
    "LdsStorageError",
    "LdsStorageQuotaError",
    "LdsStorageUnavailableError",
    "LdsTransportError",
    "ListDataSource",
    "LoadResult",
    "MemoryStorage",
    "Navigator",
    "Pagination",
    "PaginationConfig",
    "SortConfig",
    "SortDirection",
    "Storage",
    "Transport",
    "UrlNavigator",
    "ViewState",
    "coerce_params",
    "coerce_value",
    "decode_query_string",
    "encode_query_string",
    "page_window",
    "sort_items",
]
