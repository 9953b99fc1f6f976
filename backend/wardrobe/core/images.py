"""Image processing utilities for the wardrobe photo folder.

Re-encoding under a byte budget (WebP conversion, in-place compression)
and capture-date lookup for file naming.
"""

from __future__ import annotations

import io
import math
import os
from datetime import datetime
from pathlib import Path

from PIL import Image, ImageOps

from wardrobe.core.logging import log

# EXIF tags
_EXIF_IFD = 0x8769
_TAG_DATETIME = 306
_TAG_DATETIME_ORIGINAL = 36867

COMPRESSIBLE_FORMATS = {".jpg": "JPEG", ".jpeg": "JPEG", ".png": "PNG", ".webp": "WEBP"}


def load_oriented(path: str | os.PathLike[str]) -> Image.Image:
    """Open an image and apply its EXIF orientation.

    Raises:
        FileNotFoundError: If path doesn't exist
        PIL.UnidentifiedImageError: If Pillow cannot decode the file (e.g. HEIC)
    """
    with Image.open(path) as img:
        img.load()
        oriented = ImageOps.exif_transpose(img)
        return oriented if oriented is not None else img.copy()


def _webp_ready(img: Image.Image) -> Image.Image:
    """WebP accepts RGB/RGBA only."""
    if img.mode in ("RGB", "RGBA"):
        return img
    if img.mode in ("LA", "PA") or (img.mode == "P" and "transparency" in img.info):
        return img.convert("RGBA")
    return img.convert("RGB")


def _encode_webp(img: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format="WEBP", quality=quality, method=6)
    return buffer.getvalue()


def encode_webp_under(path: str | os.PathLike[str], max_bytes: int) -> bytes:
    """Encode an image as WebP, trying to stay under max_bytes.

    Quality starts at 90 and drops by 10 while the result is too large and
    quality stays above 10. If even that is too large, both dimensions are
    scaled by sqrt(max_bytes / size) and the image is encoded at quality 80.

    Args:
        path: Source image (anything Pillow can decode)
        max_bytes: Size budget for the output

    Returns:
        Encoded WebP bytes (may still exceed max_bytes for extreme inputs)
    """
    img = _webp_ready(load_oriented(path))

    quality = 90
    data = _encode_webp(img, quality)
    while len(data) > max_bytes and quality > 10:
        quality -= 10
        data = _encode_webp(img, quality)

    if len(data) > max_bytes:
        scale = math.sqrt(max_bytes / len(data))
        new_size = (max(1, math.floor(img.width * scale)), max(1, math.floor(img.height * scale)))
        log.info(
            f"images: {Path(path).name} over budget at q={quality}, "
            f"scaling {img.width}x{img.height} -> {new_size[0]}x{new_size[1]}"
        )
        data = _encode_webp(img.resize(new_size, Image.Resampling.LANCZOS), 80)

    return data


def _save_compressed(img: Image.Image, target: str, fmt: str, quality: int) -> None:
    if fmt == "PNG":
        # Palette quantization; fewer colors as quality drops
        colors = max(2, round(256 * quality / 100))
        source = img if img.mode in ("RGB", "RGBA") else img.convert("RGBA")
        method = Image.Quantize.FASTOCTREE if source.mode == "RGBA" else Image.Quantize.MEDIANCUT
        source.quantize(colors=colors, method=method).save(
            target, format="PNG", optimize=True, compress_level=9
        )
    elif fmt == "WEBP":
        _webp_ready(img).save(target, format="WEBP", quality=quality)
    else:
        img.convert("RGB").save(target, format="JPEG", quality=quality, optimize=True, progressive=True)


def compress_in_place(path: str | os.PathLike[str], max_bytes: int) -> int:
    """Re-encode a JPEG/PNG/WebP file until it fits max_bytes.

    Quality goes 90, 85, ... 60. Each attempt is written to "<file>.tmp";
    the temp file replaces the original as soon as it fits, or at quality 60
    whatever its size.

    Args:
        path: Image file to shrink
        max_bytes: Size budget

    Returns:
        New file size in bytes

    Raises:
        ValueError: If the extension is not compressible
        RuntimeError: If encoding fails (original left untouched)
    """
    fmt = COMPRESSIBLE_FORMATS.get(Path(path).suffix.lower())
    if fmt is None:
        raise ValueError(f"Unsupported image type for compression: {path}")

    tmp_path = f"{path}.tmp"
    try:
        img = load_oriented(path)
        quality = 90
        while True:
            _save_compressed(img, tmp_path, fmt, quality)
            new_size = os.path.getsize(tmp_path)
            if new_size <= max_bytes or quality <= 60:
                os.replace(tmp_path, path)
                log.info(f"images: compressed {Path(path).name} q={quality} size={new_size}")
                return new_size
            os.remove(tmp_path)
            quality -= 5
    except Exception as e:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        log.error(f"images: compression failed for {path}: {e}")
        raise RuntimeError(f"Failed to compress image {path}: {e}") from e


def _parse_exif_date(value: object) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip().rstrip("\x00"), "%Y:%m:%d %H:%M:%S")
    except ValueError:
        return None


def exif_date(path: str | os.PathLike[str]) -> datetime | None:
    """Capture date from EXIF (DateTimeOriginal, then DateTime), or None."""
    try:
        with Image.open(path) as img:
            exif = img.getexif()
    except OSError:
        return None

    taken = _parse_exif_date(exif.get_ifd(_EXIF_IFD).get(_TAG_DATETIME_ORIGINAL))
    return taken or _parse_exif_date(exif.get(_TAG_DATETIME))


def file_date(path: str | os.PathLike[str]) -> datetime:
    """Filesystem creation time where the platform records it, else mtime."""
    stats = os.stat(path)
    created = getattr(stats, "st_birthtime", None) or stats.st_mtime
    return datetime.fromtimestamp(created)


def content_date(path: str | os.PathLike[str]) -> datetime:
    """When the photo was taken: EXIF date first, filesystem time as fallback."""
    return exif_date(path) or file_date(path)


def format_size(num_bytes: int) -> str:
    """Human readable size, e.g. 1572864 -> "1.50 MB"."""
    if num_bytes == 0:
        return "0 B"
    size = float(num_bytes)
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:.2f} {unit}"
        size /= 1024
    return f"{size:.2f} GB"
