"""Repair duplicate item ids (sync can mint two ids in the same millisecond)."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from wardrobe.core.config import settings
from wardrobe.core.ids import new_item_id
from wardrobe.core.logging import log
from wardrobe.core.storage import load_document, save_document


def find_duplicate_ids(items: list[dict[str, Any]]) -> list[int]:
    """Indexes of items whose id was already used by an earlier item."""
    seen: set[Any] = set()
    duplicates: list[int] = []
    for index, item in enumerate(items):
        item_id = item.get("id")
        if item_id in seen:
            duplicates.append(index)
        else:
            seen.add(item_id)
    return duplicates


def fix_duplicate_ids(data_file: str | os.PathLike[str] | None = None) -> dict[str, Any]:
    """Gives every repeated id (after its first occurrence) a fresh unique id.

    The file is only written when something changed.

    Args:
        data_file: wardrobe.json path (defaults to settings.data_file)

    Returns:
        Result dict: total, fixed (list of {index, old_id, new_id, image})
    """
    data_file = Path(data_file or settings.data_file)
    data = load_document(data_file)
    items = data["items"]

    duplicates = find_duplicate_ids(items)
    if not duplicates:
        log.info(f"FIX_IDS no duplicates total={len(items)}")
        return {"ok": True, "total": len(items), "fixed": []}

    existing_ids = {str(item.get("id")) for item in items}
    fixed: list[dict[str, Any]] = []
    for index in duplicates:
        old_id = items[index].get("id")
        new_id = new_item_id(existing_ids)
        items[index]["id"] = new_id
        existing_ids.add(new_id)

        images = items[index].get("images") or []
        fixed.append(
            {"index": index, "old_id": old_id, "new_id": new_id, "image": images[0] if images else None}
        )
        log.info(f"FIX_IDS index={index} old={old_id} new={new_id}")

    save_document(data_file, data)
    return {"ok": True, "total": len(items), "fixed": fixed}
