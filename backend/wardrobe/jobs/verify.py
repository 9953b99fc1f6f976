"""Verify job: read-only report of drift between wardrobe.json and the images folder."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from wardrobe.core.config import load_options, settings
from wardrobe.core.logging import log
from wardrobe.core.models import ClothingItem
from wardrobe.core.paths import is_local_ref, ref_to_path
from wardrobe.core.storage import load_document
from wardrobe.jobs.clean import referenced_filenames
from wardrobe.jobs.fix_ids import find_duplicate_ids

# item field -> option list in config.json
_OPTION_FIELDS = {
    "brand": "brands",
    "size": "size",
    "category": "categories",
    "style": "styles",
    "material": "materials",
    "scene": "scenes",
}


def _unknown_options(item: dict[str, Any], options: dict[str, list[str]]) -> list[str]:
    unknown: list[str] = []
    for field, key in _OPTION_FIELDS.items():
        allowed = options.get(key)
        if not allowed:
            continue
        value = item.get(field)
        values = value if isinstance(value, list) else [value]
        unknown.extend(f"{field}={v}" for v in values if v and v not in allowed)
    return unknown


def verify_catalog(
    data_file: str | os.PathLike[str] | None = None,
    images_dir: str | os.PathLike[str] | None = None,
    options_file: str | os.PathLike[str] | None = None,
) -> dict[str, Any]:
    """Checks that catalog references and image files agree.

    Nothing is modified. Unknown option values are informational only; they
    do not make the result fail.

    Returns:
        Result dict: ok, items, missing_files (list of {id, ref}), orphan_files,
        duplicate_ids, bad_primary (ids), invalid (list of {id, error}),
        unknown_options (list of {id, values})
    """
    data_file = Path(data_file or settings.data_file)
    images_dir = Path(images_dir or settings.images_dir)
    data = load_document(data_file)
    items = data["items"]
    options = load_options(options_file)

    missing: list[dict[str, str]] = []
    bad_primary: list[str] = []
    invalid: list[dict[str, str]] = []
    unknown: list[dict[str, Any]] = []

    for item in items:
        item_id = str(item.get("id"))
        for ref in item.get("images") or []:
            if is_local_ref(ref, settings.image_url_prefix) and not ref_to_path(ref, images_dir).exists():
                missing.append({"id": item_id, "ref": ref})

        primary = item.get("primaryImageIndex")
        if primary is not None and not 0 <= primary < len(item.get("images") or []):
            bad_primary.append(item_id)

        try:
            ClothingItem.model_validate(item)
        except ValidationError as e:
            invalid.append({"id": item_id, "error": str(e).splitlines()[0]})

        values = _unknown_options(item, options)
        if values:
            unknown.append({"id": item_id, "values": values})

    used = referenced_filenames(items)
    orphans: list[str] = []
    if images_dir.is_dir():
        orphans = sorted(
            entry.name
            for entry in images_dir.iterdir()
            if entry.is_file() and not entry.name.startswith(".") and entry.name not in used
        )

    duplicate_ids = sorted({str(items[i].get("id")) for i in find_duplicate_ids(items)})

    ok = not (missing or orphans or duplicate_ids or bad_primary or invalid)
    log.info(
        f"VERIFY ok={ok} items={len(items)} missing={len(missing)} orphans={len(orphans)} "
        f"duplicates={len(duplicate_ids)} bad_primary={len(bad_primary)} invalid={len(invalid)}"
    )
    return {
        "ok": ok,
        "items": len(items),
        "missing_files": missing,
        "orphan_files": orphans,
        "duplicate_ids": duplicate_ids,
        "bad_primary": bad_primary,
        "invalid": invalid,
        "unknown_options": unknown,
    }
