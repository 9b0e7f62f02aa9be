"""Internal constants shared across the library."""

#: Storage key holding the serialized cache entries.
STORAGE_KEY = "datasources"

# ------------------------------------------------------------------
# Cache bounds
# ------------------------------------------------------------------

MAX_CACHE_SIZE = 50
CACHE_RETAIN_COUNT = 40
CACHE_EXPIRATION_HOURS = 168

#: Key (or attribute) under which windowed items get their 1-based row number.
ROW_NUMBER_KEY = "rowNumberLds"

# ------------------------------------------------------------------
# Query string keys
# ------------------------------------------------------------------

PAGE_INDEX_KEY = "pageIndex"
PAGE_SIZE_KEY = "pageSize"
SORT1_NAME_KEY = "sort1Name"
SORT1_DIR_KEY = "sort1Dir"
SORT2_NAME_KEY = "sort2Name"
SORT2_DIR_KEY = "sort2Dir"

PAGINATION_KEYS: frozenset[str] = frozenset({PAGE_INDEX_KEY, PAGE_SIZE_KEY})
SORT_KEYS: frozenset[str] = frozenset({SORT1_NAME_KEY, SORT1_DIR_KEY, SORT2_NAME_KEY, SORT2_DIR_KEY})
RESERVED_QUERY_KEYS: frozenset[str] = PAGINATION_KEYS | SORT_KEYS

#: State-changed reasons emitted by the provider.
STATE_DATA_LOADED = "DataLoaded"
STATE_SORT_CHANGED = "SortChanged"
STATE_FIELDS_CHANGED = "FieldsChanged"
