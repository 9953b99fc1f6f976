from __future__ import annotations

import os
from pathlib import Path

# backend/wardrobe/core/paths.py -> project root
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

# Data directory at project root (wardrobe.json, config.json, images/, logs.txt)
DATA_DIR = PROJECT_ROOT / "data"

# Prefix of local image references stored in wardrobe.json
IMAGE_URL_PREFIX = "/images/"


def to_image_ref(filename: str, prefix: str = IMAGE_URL_PREFIX) -> str:
    """Build the catalog reference for a file in the images folder."""
    return f"{prefix}{filename}"


def is_local_ref(ref: str, prefix: str = IMAGE_URL_PREFIX) -> bool:
    """True when the reference points into the images folder (not a remote URL)."""
    return ref.startswith(prefix)


def ref_to_path(ref: str, images_dir: str | os.PathLike[str]) -> Path:
    """Resolve a catalog reference to a file path inside images_dir.

    Only the basename is used, so a reference can never point outside
    the images folder.

    Args:
        ref: Image reference such as "/images/coat_ab12cd_20240101.webp"
        images_dir: Folder holding the image files

    Returns:
        Absolute or relative Path (matching images_dir) of the file
    """
    return Path(images_dir) / os.path.basename(ref)
