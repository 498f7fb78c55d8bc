"""In-memory query engine for record listings."""

from credstore.query.engine import (
    DEFAULT_PAGE_SIZE,
    REQUEST_PAGE_SIZE,
    count_by,
    filter_records,
    is_date_field,
    is_status_field,
    list_records,
    matches_filter,
    paginate,
    search_records,
    sort_records,
)

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "REQUEST_PAGE_SIZE",
    "count_by",
    "filter_records",
    "is_date_field",
    "is_status_field",
    "list_records",
    "matches_filter",
    "paginate",
    "search_records",
    "sort_records",
]
