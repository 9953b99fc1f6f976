"""Sync job: mirror the images folder into wardrobe.json.

Soft-deleted items are purged first; every image file not yet referenced by
any item then becomes a new item with blank metadata to fill in later.
"""

from __future__ import annotations

import os
import re
from datetime import datetime
from pathlib import Path
from typing import Any

from tqdm import tqdm

from wardrobe.core.config import settings
from wardrobe.core.ids import new_item_id
from wardrobe.core.images import file_date
from wardrobe.core.logging import log
from wardrobe.core.models import ClothingItem
from wardrobe.core.paths import to_image_ref
from wardrobe.core.storage import load_document, save_document
from wardrobe.jobs.clean import purge_deleted_items

# name_id_yyyyMMdd.webp, as written by convert-webp
_FILENAME_DATE = re.compile(r"_(\d{8})\.[^.]+$")


def date_from_filename(filename: str) -> str | None:
    """Extracts "YYYY-MM-DD" from a trailing _yyyyMMdd stamp, None if absent or invalid.

    Example:
        >>> date_from_filename("coat_ab12cd_20231115.webp")
        '2023-11-15'
    """
    match = _FILENAME_DATE.search(filename)
    if not match:
        return None
    try:
        return datetime.strptime(match.group(1), "%Y%m%d").date().isoformat()
    except ValueError:
        return None


def new_item_for_image(
    filename: str,
    images_dir: str | os.PathLike[str],
    existing_ids: set[str],
) -> dict[str, Any]:
    """Builds a blank catalog record for an untracked image file."""
    item_date = date_from_filename(filename)
    if item_date is None:
        log.warning(f"SYNC_DATE_FALLBACK file={filename} using filesystem time")
        item_date = file_date(Path(images_dir) / filename).date().isoformat()

    item = ClothingItem(
        id=new_item_id(existing_ids),
        images=[to_image_ref(filename, settings.image_url_prefix)],
        time=item_date,
        color="",
        tags=[],
        satisfaction=settings.default_satisfaction,
        scene=settings.default_scene,
        notes=f"Auto-added from image folder: {filename}",
    )
    return item.to_record()


def sync_images(
    data_file: str | os.PathLike[str] | None = None,
    images_dir: str | os.PathLike[str] | None = None,
    extensions: list[str] | None = None,
    show_progress: bool = False,
) -> dict[str, Any]:
    """Reconciles the images folder with the catalog.

    Running it twice without touching the folder changes nothing the second
    time: files already referenced by some item are skipped.

    Args:
        data_file: wardrobe.json path (defaults to settings.data_file)
        images_dir: Images folder, created if missing (defaults to settings.images_dir)
        extensions: File extensions to pick up (defaults to settings.sync_extensions)
        show_progress: Draw tqdm progress bars

    Returns:
        Result dict: deleted_items, deleted_images, found, tracked, added (list of ids)
    """
    data_file = Path(data_file or settings.data_file)
    images_dir = Path(images_dir or settings.images_dir)
    extensions = [ext.lower() for ext in (extensions or settings.sync_extensions)]

    if not images_dir.exists():
        images_dir.mkdir(parents=True, exist_ok=True)
        log.info(f"SYNC_CREATED_DIR {images_dir}")

    data = load_document(data_file)

    purged = purge_deleted_items(data, images_dir, show_progress=show_progress)
    if purged["deleted_items"]:
        save_document(data_file, data)

    tracked = {ref for item in data["items"] for ref in item.get("images", [])}
    image_files = sorted(
        entry.name
        for entry in images_dir.iterdir()
        if entry.is_file() and entry.suffix.lower() in extensions
    )
    new_files = [
        name for name in image_files if to_image_ref(name, settings.image_url_prefix) not in tracked
    ]
    log.info(f"SYNC_SCAN found={len(image_files)} tracked={len(tracked)} new={len(new_files)}")

    existing_ids = {str(item.get("id")) for item in data["items"]}
    added: list[str] = []
    for filename in tqdm(new_files, desc="Adding", unit="img", disable=not show_progress):
        record = new_item_for_image(filename, images_dir, existing_ids)
        data["items"].append(record)
        existing_ids.add(record["id"])
        added.append(record["id"])
        log.info(f"SYNC_ADD id={record['id']} file={filename} time={record['time']}")

    if added:
        save_document(data_file, data)

    return {
        "ok": purged["failed_images"] == 0,
        **purged,
        "found": len(image_files),
        "tracked": len(tracked),
        "added": added,
    }
