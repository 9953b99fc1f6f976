"""Minsize job: shrink oversized photos in place."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from tqdm import tqdm

from wardrobe.core.config import settings
from wardrobe.core.images import COMPRESSIBLE_FORMATS, compress_in_place
from wardrobe.core.logging import log


def minsize(
    images_dir: str | os.PathLike[str] | None = None,
    max_bytes: int | None = None,
    show_progress: bool = False,
) -> dict[str, Any]:
    """Re-encodes every JPEG/PNG/WebP larger than max_bytes.

    File names are unchanged, so catalog references stay valid.

    Args:
        images_dir: Images folder (defaults to settings.images_dir)
        max_bytes: Size cap (defaults to settings.minsize_max_bytes)
        show_progress: Draw a tqdm progress bar

    Returns:
        Result dict: found, compressed, skipped, failed (list of {file, error}), saved_bytes

    Raises:
        FileNotFoundError: If the images folder does not exist
    """
    images_dir = Path(images_dir or settings.images_dir)
    if not images_dir.is_dir():
        raise FileNotFoundError(f"Images directory does not exist: {images_dir}")

    max_bytes = max_bytes or settings.minsize_max_bytes
    image_files = sorted(
        entry.name
        for entry in images_dir.iterdir()
        if entry.is_file() and entry.suffix.lower() in COMPRESSIBLE_FORMATS
    )

    compressed = 0
    skipped = 0
    saved_bytes = 0
    failed: list[dict[str, str]] = []

    for name in tqdm(image_files, desc="Compressing", unit="img", disable=not show_progress):
        path = images_dir / name
        original_size = path.stat().st_size
        if original_size <= max_bytes:
            skipped += 1
            continue

        try:
            new_size = compress_in_place(path, max_bytes)
        except RuntimeError as e:
            failed.append({"file": name, "error": str(e)})
            continue

        compressed += 1
        saved_bytes += original_size - new_size
        log.info(f"MINSIZE {name} {original_size} -> {new_size}")

    return {
        "ok": not failed,
        "found": len(image_files),
        "max_bytes": max_bytes,
        "compressed": compressed,
        "skipped": skipped,
        "failed": failed,
        "saved_bytes": saved_bytes,
    }
