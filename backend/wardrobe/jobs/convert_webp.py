"""Convert photos to size-capped WebP named <stem>_<id>_<yyyyMMdd>.webp.

The date stamp is the capture date, which sync later reads back as the
item's time.
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Any

from PIL import UnidentifiedImageError
from tqdm import tqdm

from wardrobe.clients.macos import MacImageTools
from wardrobe.core.config import settings
from wardrobe.core.ids import short_id
from wardrobe.core.images import content_date, encode_webp_under
from wardrobe.core.logging import log

CONVERTIBLE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".heic", ".heif"}


def webp_filename(stem: str, taken: datetime, token: str | None = None) -> str:
    """Example: webp_filename("IMG_0001", datetime(2024, 3, 9), "ab12cd") -> "IMG_0001_ab12cd_20240309.webp"."""
    return f"{stem}_{token or short_id()}_{taken.strftime('%Y%m%d')}.webp"


def capture_date(path: Path, tools: MacImageTools) -> datetime:
    """Spotlight date on macOS when available, else EXIF, else file time."""
    return tools.content_creation_date(path) or content_date(path)


def encode_with_fallback(path: Path, max_bytes: int, tools: MacImageTools) -> tuple[bytes, bool]:
    """Encode to WebP; files Pillow cannot decode go through a sips JPEG first.

    Returns:
        (webp bytes, whether the sips fallback was used)
    """
    try:
        return encode_webp_under(path, max_bytes), False
    except (UnidentifiedImageError, OSError):
        if not tools.has_sips:
            raise

    temp_jpeg = path.with_name(f"{path.stem}_temp.jpg")
    log.info(f"WEBP_FALLBACK_SIPS {path.name}")
    try:
        tools.to_jpeg(path, temp_jpeg, quality=90)
        return encode_webp_under(temp_jpeg, max_bytes), True
    finally:
        if temp_jpeg.exists():
            temp_jpeg.unlink()


def convert_to_webp(
    images_dir: str | os.PathLike[str] | None = None,
    max_bytes: int | None = None,
    tools: MacImageTools | None = None,
    show_progress: bool = False,
) -> dict[str, Any]:
    """Converts every JPEG/PNG/GIF/HEIC file in the folder to WebP.

    The original is deleted only after the WebP file exists; a file that
    fails stays in place so the job can be re-run after fixing it.

    Args:
        images_dir: Images folder (defaults to settings.images_dir)
        max_bytes: Output size budget (defaults to settings.webp_max_bytes)
        tools: macOS tool client (created on demand)
        show_progress: Draw a tqdm progress bar

    Returns:
        Result dict: found, converted (list of {source, output, size, fallback}),
        failed (list of {file, error})

    Raises:
        FileNotFoundError: If the images folder does not exist
    """
    images_dir = Path(images_dir or settings.images_dir)
    if not images_dir.is_dir():
        raise FileNotFoundError(f"Images directory does not exist: {images_dir}")

    max_bytes = max_bytes or settings.webp_max_bytes
    tools = tools or MacImageTools()

    candidates = sorted(
        entry.name
        for entry in images_dir.iterdir()
        if entry.is_file() and entry.suffix.lower() in CONVERTIBLE_EXTENSIONS
    )

    converted: list[dict[str, Any]] = []
    failed: list[dict[str, str]] = []

    for name in tqdm(candidates, desc="-> WebP", unit="img", disable=not show_progress):
        source = images_dir / name
        output = images_dir / webp_filename(source.stem, capture_date(source, tools))
        try:
            data, used_fallback = encode_with_fallback(source, max_bytes, tools)
            output.write_bytes(data)
            if not output.exists():
                raise RuntimeError("output file was not created")
            source.unlink()
        except (OSError, RuntimeError, ValueError) as e:
            failed.append({"file": name, "error": str(e)})
            log.error(f"WEBP_FAILED {name} error={e}")
            continue

        converted.append(
            {"source": name, "output": output.name, "size": len(data), "fallback": used_fallback}
        )
        log.info(f"WEBP_CONVERTED {name} -> {output.name} size={len(data)} fallback={used_fallback}")

    return {
        "ok": not failed,
        "found": len(candidates),
        "converted": converted,
        "failed": failed,
    }
