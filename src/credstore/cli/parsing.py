"""Input parsing utilities for CLI commands."""

import json
from pathlib import Path
from typing import Any


def parse_json_object(text: str) -> dict[str, Any]:
    """Parse a JSON object given on the command line.

    Raises:
        ValueError: If the text is not valid JSON or not an object
    """
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e.msg}") from e
    if not isinstance(value, dict):
        raise ValueError("Expected a JSON object, e.g. '{\"name\": \"Acme\"}'")
    return value


def read_json_file(path: str) -> dict[str, Any]:
    """Read a single JSON object from a file.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the file does not hold a JSON object
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return parse_json_object(file_path.read_text())


def parse_filters(specs: list[str] | None) -> dict[str, str]:
    """Parse repeated ``field=value`` filter options.

    A status field may list alternatives separated by commas ("status=New,Closed").

    Examples:
        ["status=Active", "state=NY"] -> {"status": "Active", "state": "NY"}
    """
    filters: dict[str, str] = {}
    for item in specs or []:
        field, sep, value = item.partition("=")
        if not sep or not field.strip():
            raise ValueError(f"Invalid filter: '{item}'. Expected format: field=value")
        filters[field.strip()] = value.strip()
    return filters
