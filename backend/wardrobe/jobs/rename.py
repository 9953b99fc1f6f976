"""Rename job: give every image a descriptive name derived from its item.

<brand>_<pattern>_<yyyyMMdd>_<n><ext>, n being the 1-based position of the
image inside the item. References in wardrobe.json follow the files.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from wardrobe.core.config import settings
from wardrobe.core.logging import log
from wardrobe.core.paths import is_local_ref, ref_to_path, to_image_ref
from wardrobe.core.storage import load_document, save_document

_ILLEGAL_CHARS = re.compile(r'[/\\:*?"<>|]')
_WHITESPACE = re.compile(r"\s+")


def sanitize_filename(text: str) -> str:
    """Drops characters that are illegal in file names, and all whitespace."""
    return _WHITESPACE.sub("", _ILLEGAL_CHARS.sub("", text)).strip()


def base_name(item: dict[str, Any]) -> str:
    """"<brand>_<pattern>_<yyyyMMdd>" for an item, with Unknown/NoPattern/00000000 fallbacks."""
    brands = item.get("brand") or []
    brand = sanitize_filename(brands[0] if brands else "Unknown")
    pattern = sanitize_filename(item.get("pattern") or "NoPattern")
    stamp = (item.get("time") or "00000000").replace("-", "")
    return f"{brand}_{pattern}_{stamp}"


def _pick_target(images_dir: Path, current: Path, stem: str, ext: str) -> Path:
    """First free name among stem, stem_1, stem_2, ...

    The file's own current name counts as free, so a re-run keeps names that
    needed a suffix the first time.
    """
    candidate = images_dir / f"{stem}{ext}"
    suffix = 1
    while candidate != current and candidate.exists():
        candidate = images_dir / f"{stem}_{suffix}{ext}"
        suffix += 1
    return candidate


def rename_images(
    data_file: str | os.PathLike[str] | None = None,
    images_dir: str | os.PathLike[str] | None = None,
) -> dict[str, Any]:
    """Renames image files after their item metadata and rewrites references.

    Soft-deleted items and items without images are left alone. A reference
    whose file is missing keeps its old value and counts as an error.

    Args:
        data_file: wardrobe.json path (defaults to settings.data_file)
        images_dir: Images folder (defaults to settings.images_dir)

    Returns:
        Result dict: items, renamed (list of (old, new)), skipped, errors (list of str)
    """
    data_file = Path(data_file or settings.data_file)
    images_dir = Path(images_dir or settings.images_dir)

    data = load_document(data_file)
    renamed: list[tuple[str, str]] = []
    skipped = 0
    errors: list[str] = []

    for item in data["items"]:
        if item.get("isDelete") == 1 or not item.get("images"):
            continue

        stem_base = base_name(item)
        new_refs: list[str] = []
        for position, ref in enumerate(item["images"], start=1):
            if not is_local_ref(ref, settings.image_url_prefix):
                new_refs.append(ref)
                continue

            old_path = ref_to_path(ref, images_dir)
            if not old_path.exists():
                log.warning(f"RENAME_MISSING item={item.get('id')} ref={ref}")
                errors.append(f"File not found: {ref}")
                new_refs.append(ref)
                continue

            target = _pick_target(images_dir, old_path, f"{stem_base}_{position}", old_path.suffix)
            if target == old_path:
                skipped += 1
                new_refs.append(to_image_ref(target.name, settings.image_url_prefix))
                continue

            try:
                old_path.rename(target)
            except OSError as e:
                log.error(f"RENAME_FAILED {old_path.name} -> {target.name} error={e}")
                errors.append(f"Error renaming {ref}: {e}")
                new_refs.append(ref)
                continue

            renamed.append((old_path.name, target.name))
            new_refs.append(to_image_ref(target.name, settings.image_url_prefix))
            log.info(f"RENAME {old_path.name} -> {target.name}")

        item["images"] = new_refs

    save_document(data_file, data)

    return {
        "ok": not errors,
        "items": len(data["items"]),
        "renamed": renamed,
        "skipped": skipped,
        "errors": errors,
    }
