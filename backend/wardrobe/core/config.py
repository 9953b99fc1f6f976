"""Wardrobe configuration (data paths, image limits, external tools)."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from wardrobe.core.paths import DATA_DIR, PROJECT_ROOT

# Load .env file into environment variables
env_path = PROJECT_ROOT / ".env"
load_dotenv(env_path)

# Option lists offered by the editor (config.json)
OPTION_KEYS = ("brands", "size", "categories", "styles", "materials", "scenes")


class Settings(BaseSettings):
    """Wardrobe configuration; every field can be set with a WARDROBE_* variable."""

    model_config = SettingsConfigDict(
        env_prefix="WARDROBE_",
        env_file=str(env_path),
        extra="ignore",
    )

    # Catalog and image folder (resolved relative to project root)
    images_dir: str = Field(default=str(DATA_DIR / "images"))
    data_file: str = Field(default=str(DATA_DIR / "wardrobe.json"))
    options_file: str = Field(default=str(DATA_DIR / "config.json"))
    log_file: str = Field(default=str(DATA_DIR / "logs.txt"))
    log_level: str = Field(default="INFO")

    # Reference prefix written into items[].images
    image_url_prefix: str = Field(default="/images/")

    # sync only picks up files that went through convert-webp
    sync_extensions: list[str] = Field(default_factory=lambda: [".webp"])

    # Size caps
    webp_max_bytes: int = Field(default=1 * 1024 * 1024)
    minsize_max_bytes: int = Field(default=2 * 1024 * 1024)

    # Defaults for items created by sync
    default_scene: str = Field(default="fitting")
    default_satisfaction: int = Field(default=3, ge=1, le=5)

    # macOS command line tools (optional)
    sips_path: str = Field(default="sips")
    setfile_path: str = Field(default="SetFile")
    mdls_path: str = Field(default="mdls")
    tool_timeout_s: int = Field(default=120)


def load_options(path: str | os.PathLike[str] | None = None) -> dict[str, list[str]]:
    """Load the editor option lists (brands, size, categories, ...).

    Missing file or missing keys give empty lists; values are never
    enforced on catalog items.
    """
    options_path = Path(path or settings.options_file)
    data: dict[str, Any] = {}
    if options_path.exists():
        with open(options_path, "r", encoding="utf-8") as f:
            content = f.read()
        if content.strip():
            data = json.loads(content)

    return {key: [str(v) for v in data.get(key, [])] for key in OPTION_KEYS}


settings = Settings()
