"""Field codec: column names <-> field ids, raw rows <-> records.

Columns are declared in "Header Case" ("Provider ID"); records use lower camel
case field ids ("providerId"). A trailing bracketed marker is not part of the
field id; the "(JSON)" marker additionally means the cell holds serialized
JSON that is parsed on read and serialized on write.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from datetime import date, datetime
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from credstore.exceptions import DecodeError

if TYPE_CHECKING:
    from credstore.schema.models import EntitySchema

_MARKER = re.compile(r"\s*\(([^()]*)\)\s*$")
JSON_MARKER = "JSON"


def _split_marker(column: str) -> tuple[str, str | None]:
    match = _MARKER.search(column)
    if match is None:
        return column, None
    return column[: match.start()], match.group(1).strip()


def is_json_column(column: str) -> bool:
    """True if the column carries the "(JSON)" marker."""
    _, marker = _split_marker(column)
    return marker is not None and marker.upper() == JSON_MARKER


@lru_cache(maxsize=1024)
def column_to_field(column: str) -> str:
    """Convert a column name to its field id.

    Examples:
        "Provider ID" -> "providerId"
        "Expiration Date" -> "expirationDate"
        "Payload (JSON)" -> "payload"
    """
    base, _ = _split_marker(column)
    pascal = "".join(token[:1].upper() + token[1:].lower() for token in base.split())
    return pascal[:1].lower() + pascal[1:]


def field_to_column(schema: EntitySchema, field: str) -> str | None:
    """Find the declared column of ``schema`` whose field id is ``field``."""
    for column in schema.columns:
        if column_to_field(column) == field:
            return column
    return None


def decode_cell(value: Any, column: str, row_number: int | None = None) -> Any:
    """Decode one stored cell of ``column``."""
    if not is_json_column(column):
        return value
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if not isinstance(value, str):
        # Already structured (backends that keep native JSON)
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise DecodeError(column, row_number, e.msg) from e


def encode_cell(value: Any, column: str) -> Any:
    """Encode one record value for storage in ``column``."""
    if value is None:
        return ""
    if is_json_column(column):
        return json.dumps(value, default=str)
    if isinstance(value, datetime | date):
        return value.isoformat()
    return value


def decode_row(
    raw_row: Sequence[Any],
    columns: Sequence[str],
    row_number: int | None = None,
) -> dict[str, Any]:
    """Turn a raw storage row into a record.

    Cells missing from a short row decode as "".

    Raises:
        DecodeError: If a JSON column holds malformed JSON
    """
    record: dict[str, Any] = {}
    for index, column in enumerate(columns):
        value = raw_row[index] if index < len(raw_row) else ""
        record[column_to_field(column)] = decode_cell(value, column, row_number)
    return record


def encode_record(
    record: dict[str, Any],
    columns: Sequence[str],
    defaults: dict[str, Any] | None = None,
) -> list[Any]:
    """Turn a record into a raw row in column order.

    Missing fields take the caller's default for that field, else "".
    """
    defaults = defaults or {}
    row = []
    for column in columns:
        field = column_to_field(column)
        if field in record:
            value = record[field]
        else:
            value = defaults.get(field, "")
        row.append(encode_cell(value, column))
    return row


def values_equal(current: Any, new: Any) -> bool:
    """Compare a decoded stored value with an incoming value.

    Scalars that only differ in representation ("5" vs 5) are equal;
    booleans are never equal to non-booleans.
    """
    if current == new:
        return isinstance(current, bool) == isinstance(new, bool)
    if isinstance(current, bool) or isinstance(new, bool):
        return False
    if current is None or new is None:
        return (current in (None, "")) and (new in (None, ""))
    if isinstance(current, dict | list) or isinstance(new, dict | list):
        return False
    if isinstance(new, datetime | date):
        new = new.isoformat()
    return str(current) == str(new)
