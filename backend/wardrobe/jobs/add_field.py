"""Bulk-set one field on every catalog item."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from wardrobe.core.config import settings
from wardrobe.core.logging import log
from wardrobe.core.storage import load_document, save_document

_ASSIGNMENT = re.compile(r"^([^=]+)=(.+)$", re.DOTALL)
_NUMBER = re.compile(r"^-?\d+(\.\d+)?$")


def coerce_value(raw: str) -> Any:
    """Turns a command line literal into a JSON value.

    true/false -> bool, null -> None, 12 / -3.5 -> number, "quoted" or
    'quoted' -> the text inside, anything else -> the string as typed.
    """
    if raw == "true":
        return True
    if raw == "false":
        return False
    if raw == "null":
        return None
    if _NUMBER.match(raw):
        return float(raw) if "." in raw else int(raw)
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ("'", '"'):
        return raw[1:-1]
    return raw


def parse_assignment(arg: str) -> tuple[str, Any]:
    """Parses "fieldName=value".

    Raises:
        ValueError: If the argument is not of the form name=value
    """
    match = _ASSIGNMENT.match(arg)
    if not match:
        raise ValueError(f"Invalid argument {arg!r}; expected fieldName=value")
    return match.group(1), coerce_value(match.group(2))


def add_field(assignment: str, data_file: str | os.PathLike[str] | None = None) -> dict[str, Any]:
    """Sets field=value on every item, overwriting existing values.

    Args:
        assignment: "fieldName=value" (see coerce_value for typing rules)
        data_file: wardrobe.json path (defaults to settings.data_file)

    Returns:
        Result dict: field, value, total, overwritten

    Raises:
        ValueError: On a malformed assignment
    """
    field, value = parse_assignment(assignment)
    data_file = Path(data_file or settings.data_file)
    data = load_document(data_file)

    overwritten = sum(1 for item in data["items"] if field in item)
    if overwritten:
        log.warning(f"ADD_FIELD overwriting field={field} on {overwritten} items")

    for item in data["items"]:
        item[field] = value

    save_document(data_file, data)
    log.info(f"ADD_FIELD field={field} value={value!r} total={len(data['items'])}")
    return {
        "ok": True,
        "field": field,
        "value": value,
        "total": len(data["items"]),
        "overwritten": overwritten,
    }
