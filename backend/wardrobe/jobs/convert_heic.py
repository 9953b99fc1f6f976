"""HEIC -> JPEG conversion using macOS sips, keeping the original file dates."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from tqdm import tqdm

from wardrobe.clients.macos import MacImageTools
from wardrobe.core.config import settings
from wardrobe.core.logging import log

HEIC_EXTENSIONS = {".heic", ".heif"}


def convert_heic(
    images_dir: str | os.PathLike[str] | None = None,
    tools: MacImageTools | None = None,
    show_progress: bool = False,
) -> dict[str, Any]:
    """Converts every HEIC/HEIF file in the folder to <stem>.jpg.

    The original is deleted only after the JPEG exists and its timestamps are
    set. An existing <stem>.jpg is never overwritten; that HEIC is skipped.
    Without sips nothing is touched and every file counts as failed.

    Args:
        images_dir: Images folder (defaults to settings.images_dir)
        tools: macOS tool client (created on demand)
        show_progress: Draw a tqdm progress bar

    Returns:
        Result dict: found, converted, failed (list of {file, error}),
        skipped (HEIC files whose .jpg already exists, left in place), has_sips

    Raises:
        FileNotFoundError: If the images folder does not exist
    """
    images_dir = Path(images_dir or settings.images_dir)
    if not images_dir.is_dir():
        raise FileNotFoundError(f"Images directory does not exist: {images_dir}")

    tools = tools or MacImageTools()
    heic_files = sorted(
        entry.name
        for entry in images_dir.iterdir()
        if entry.is_file() and entry.suffix.lower() in HEIC_EXTENSIONS
    )

    converted: list[str] = []
    failed: list[dict[str, str]] = []
    skipped: list[str] = []

    for name in tqdm(heic_files, desc="HEIC -> JPEG", unit="img", disable=not show_progress):
        if not tools.has_sips:
            failed.append({"file": name, "error": "sips not available"})
            continue

        heic_path = images_dir / name
        jpeg_path = images_dir / f"{heic_path.stem}.jpg"
        if jpeg_path.exists():
            skipped.append(name)
            log.warning(f"HEIC_SKIPPED {name} target={jpeg_path.name} exists")
            continue
        try:
            original_stat = heic_path.stat()
            tools.to_jpeg(heic_path, jpeg_path, quality=90)
            tools.copy_timestamps(original_stat, jpeg_path)
            heic_path.unlink()
            converted.append(jpeg_path.name)
            log.info(f"HEIC_CONVERTED {name} -> {jpeg_path.name}")
        except (OSError, RuntimeError) as e:
            failed.append({"file": name, "error": str(e)})
            log.error(f"HEIC_FAILED {name} error={e}")

    return {
        "ok": not failed,
        "found": len(heic_files),
        "converted": converted,
        "failed": failed,
        "skipped": skipped,
        "has_sips": tools.has_sips,
    }
