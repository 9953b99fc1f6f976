"""Clean job: purge soft-deleted items and drop image files nothing references."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from tqdm import tqdm

from wardrobe.core.config import settings
from wardrobe.core.logging import log
from wardrobe.core.paths import is_local_ref, ref_to_path
from wardrobe.core.storage import load_document, save_document


def purge_deleted_items(
    data: dict[str, Any],
    images_dir: str | os.PathLike[str],
    prefix: str | None = None,
    show_progress: bool = False,
) -> dict[str, int]:
    """Removes items flagged isDelete=1 together with their local image files.

    Mutates data["items"] in place. Remote references are never touched and a
    file that fails to delete is logged and skipped.

    Returns:
        Counters: deleted_items, deleted_images, failed_images
    """
    prefix = prefix or settings.image_url_prefix
    doomed = [item for item in data["items"] if item.get("isDelete") == 1]
    counts = {"deleted_items": len(doomed), "deleted_images": 0, "failed_images": 0}
    if not doomed:
        return counts

    for item in tqdm(doomed, desc="Deleting", unit="item", disable=not show_progress):
        for ref in item.get("images", []):
            if not is_local_ref(ref, prefix):
                continue
            path = ref_to_path(ref, images_dir)
            if not path.exists():
                continue
            try:
                path.unlink()
                counts["deleted_images"] += 1
                log.info(f"PURGE_IMAGE item={item.get('id')} file={path.name}")
            except OSError as e:
                counts["failed_images"] += 1
                log.error(f"PURGE_IMAGE_FAILED item={item.get('id')} file={path.name} error={e}")

    data["items"] = [item for item in data["items"] if item.get("isDelete") != 1]
    log.info(f"PURGE_DONE items={counts['deleted_items']} images={counts['deleted_images']}")
    return counts


def referenced_filenames(items: list[dict[str, Any]], prefix: str | None = None) -> set[str]:
    """Basenames of every local image referenced by the given items."""
    prefix = prefix or settings.image_url_prefix
    return {
        os.path.basename(ref)
        for item in items
        for ref in item.get("images", [])
        if is_local_ref(ref, prefix)
    }


def clean_images(
    data_file: str | os.PathLike[str] | None = None,
    images_dir: str | os.PathLike[str] | None = None,
    show_progress: bool = False,
) -> dict[str, Any]:
    """Purges soft-deleted items, then deletes unreferenced files from the images folder.

    Hidden files (".DS_Store" and friends) are left alone.

    Args:
        data_file: wardrobe.json path (defaults to settings.data_file)
        images_dir: Images folder (defaults to settings.images_dir)
        show_progress: Draw tqdm progress bars

    Returns:
        Result dict with purge counters, unused image counters and final item count

    Raises:
        FileNotFoundError: If the data file does not exist
    """
    data_file = Path(data_file or settings.data_file)
    images_dir = Path(images_dir or settings.images_dir)

    if not data_file.exists():
        raise FileNotFoundError(f"Catalog not found: {data_file}")

    data = load_document(data_file)
    result: dict[str, Any] = purge_deleted_items(data, images_dir, show_progress=show_progress)

    used = referenced_filenames(data["items"])
    removed: list[str] = []
    failed: list[str] = []

    if images_dir.is_dir():
        unused = sorted(
            entry.name
            for entry in images_dir.iterdir()
            if entry.is_file() and not entry.name.startswith(".") and entry.name not in used
        )
        for name in tqdm(unused, desc="Removing unused", unit="file", disable=not show_progress):
            try:
                (images_dir / name).unlink()
                removed.append(name)
                log.info(f"CLEAN_UNUSED file={name}")
            except OSError as e:
                failed.append(name)
                log.error(f"CLEAN_UNUSED_FAILED file={name} error={e}")

    save_document(data_file, data)

    result.update(
        {
            "ok": not failed and result["failed_images"] == 0,
            "in_use": len(used),
            "unused_removed": removed,
            "unused_failed": failed,
            "final_count": len(data["items"]),
        }
    )
    log.info(
        f"CLEAN_DONE purged={result['deleted_items']} unused_removed={len(removed)} "
        f"final_count={result['final_count']}"
    )
    return result
