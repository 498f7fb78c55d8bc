"""In-memory filter, search, sort and pagination over decoded records.

The engine never touches storage. Callers hand it a snapshot of records and a
``ListOptions``; it returns one page plus the filtered total.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import UTC, datetime
from functools import cmp_to_key
from typing import Any

from credstore.core.types import ListOptions, ListResult, Record

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 15
REQUEST_PAGE_SIZE = 25

_DATE_SUFFIXES = ("At", "Date", "On")


def is_date_field(field: str, date_fields: Iterable[str] = ()) -> bool:
    """Date-like fields sort as timestamps ("createdAt", "expirationDate", ...)."""
    return field in set(date_fields) or field.endswith(_DATE_SUFFIXES) or field == "date"


def is_status_field(field: str) -> bool:
    """Status-like fields accept a comma-separated set of values in filters."""
    return field == "status" or field.endswith("Status")


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 value; None for empty or unparseable values."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _expected_values(expected: Any, split_commas: bool) -> set[str] | None:
    """Set of accepted values, or None when the filter is an exact match."""
    if isinstance(expected, list | tuple | set | frozenset):
        return {_as_text(item).strip() for item in expected}
    if split_commas and isinstance(expected, str) and "," in expected:
        return {part.strip() for part in expected.split(",") if part.strip()}
    return None


def matches_filter(value: Any, expected: Any, split_commas: bool = False) -> bool:
    """Exact match, or membership when ``expected`` is a list.

    With ``split_commas`` a string such as "New,Closed" is also a set of values.
    """
    accepted = _expected_values(expected, split_commas)
    if accepted is not None:
        return _as_text(value) in accepted
    if value == expected and isinstance(value, bool) == isinstance(expected, bool):
        return True
    return _as_text(value) == _as_text(expected)


def _is_unset(expected: Any) -> bool:
    if expected is None:
        return True
    if isinstance(expected, str):
        return not expected.strip()
    if isinstance(expected, list | tuple | set | frozenset):
        return len(expected) == 0
    return False


def filter_records(records: list[Record], filters: dict[str, Any]) -> list[Record]:
    """Keep records matching every filter; empty filter values are ignored.

    Only status-like fields read a comma-separated string as a set of values.
    """
    active = {field: expected for field, expected in filters.items() if not _is_unset(expected)}
    if not active:
        return list(records)
    return [
        record
        for record in records
        if all(
            matches_filter(record.get(field), expected, split_commas=is_status_field(field))
            for field, expected in active.items()
        )
    ]


def search_records(records: list[Record], term: str | None, fields: list[str]) -> list[Record]:
    """Case-insensitive substring search over the given fields.

    With no fields declared, every field of a record is searched.
    """
    if not term or not term.strip():
        return list(records)
    needle = term.strip().casefold()
    return [
        record
        for record in records
        if any(needle in _as_text(record.get(field)).casefold() for field in fields or record)
    ]


def sort_records(
    records: list[Record],
    sort_by: str | None,
    sort_order: str = "asc",
    date_fields: Iterable[str] = (),
) -> list[Record]:
    """Stable sort; "desc" flips the comparison, ties keep their input order.

    Date-like fields compare as timestamps (missing dates first in ascending
    order); everything else compares as case-insensitive text.
    """
    if not sort_by:
        return list(records)

    sign = -1 if sort_order == "desc" else 1

    if is_date_field(sort_by, date_fields):

        def key(record: Record) -> tuple[int, datetime | None]:
            parsed = parse_timestamp(record.get(sort_by))
            return (0, None) if parsed is None else (1, parsed)

        def compare(a: Record, b: Record) -> int:
            ka, kb = key(a), key(b)
            if ka[0] != kb[0]:
                return sign * (ka[0] - kb[0])
            if ka[1] is None or kb[1] is None or ka[1] == kb[1]:
                return 0
            return sign * (1 if ka[1] > kb[1] else -1)

    else:

        def compare(a: Record, b: Record) -> int:
            ta = _as_text(a.get(sort_by)).casefold()
            tb = _as_text(b.get(sort_by)).casefold()
            if ta == tb:
                return 0
            return sign * (1 if ta > tb else -1)

    return sorted(records, key=cmp_to_key(compare))


def paginate(
    records: list[Record],
    page: int | None,
    page_size: int | None,
    default_page_size: int = DEFAULT_PAGE_SIZE,
) -> tuple[list[Record], int, int]:
    """Slice one page; returns (page records, page, page size).

    No upper bound is enforced on ``page_size``.
    """
    page = page if page and page > 0 else DEFAULT_PAGE
    page_size = page_size if page_size and page_size > 0 else default_page_size
    start = (page - 1) * page_size
    return records[start : start + page_size], page, page_size


def list_records(
    records: list[Record],
    options: ListOptions | None = None,
    default_page_size: int = DEFAULT_PAGE_SIZE,
) -> ListResult:
    """Filter, search, sort and paginate ``records``.

    ``total_records`` counts the filtered records, not the page.
    """
    options = options or ListOptions()
    selected = filter_records(records, options.filters)
    selected = search_records(selected, options.search_term, options.search_fields)
    selected = sort_records(selected, options.sort_by, options.sort_order, options.date_fields)
    page_records, page, page_size = paginate(
        selected, options.page, options.page_size, default_page_size
    )
    return ListResult(
        data=page_records,
        total_records=len(selected),
        page=page,
        page_size=page_size,
    )


def count_by(records: Iterable[Record], field: str) -> dict[str, int]:
    """Histogram of a field's values (empty values counted under "")."""
    return dict(Counter(_as_text(record.get(field)) for record in records))
