from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any

LOCK = threading.Lock()


def _load(path: str | os.PathLike[str]) -> dict[str, Any]:
    """Loads the catalog document; missing or blank file is an empty catalog."""
    if not os.path.exists(path):
        return {"items": []}
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()
    if not content.strip():
        return {"items": []}

    data = json.loads(content)
    if not isinstance(data, dict) or not isinstance(data.get("items"), list):
        raise ValueError(f"Malformed catalog {path}: missing 'items' array")
    return data


def atomic_write(path: str | os.PathLike[str], content: str) -> None:
    """Writes text via "<path>.tmp" + rename, creating the parent directory.

    A crash mid-write leaves the previous file intact.
    """
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    tmp = f"{path}.tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        f.write(content)
    os.replace(tmp, path)


def load_document(path: str | os.PathLike[str]) -> dict[str, Any]:
    """Thread-safe read of the catalog document ({"items": [...]}).

    Args:
        path: Path to wardrobe.json

    Returns:
        Document dict; unknown top-level keys are preserved

    Raises:
        ValueError: If the file holds JSON without an "items" list
    """
    with LOCK:
        return _load(path)


def save_document(path: str | os.PathLike[str], data: dict[str, Any]) -> None:
    """Thread-safe atomic write of the catalog document.

    UTF-8 with 2-space indent; non-ASCII text is written as is.

    Args:
        path: Path to wardrobe.json
        data: Document dict with an "items" list
    """
    if not isinstance(data.get("items"), list):
        raise ValueError("Catalog document must contain an 'items' list")
    content = json.dumps(data, ensure_ascii=False, indent=2)
    with LOCK:
        atomic_write(path, content)
