from __future__ import annotations

import os
import re
import shutil
import subprocess
from datetime import datetime
from pathlib import Path

from wardrobe.core.config import settings
from wardrobe.core.logging import log

_MDLS_DATE = re.compile(r"kMDItemContentCreationDate\s*=\s*(.+)")


class MacImageTools:
    """Client for the macOS image command line tools.

    sips decodes HEIC and other formats Pillow cannot read; mdls and SetFile
    read and write Finder dates. Every tool is optional: availability is
    probed once and callers check the has_* flags.
    """

    def __init__(
        self,
        sips_path: str | None = None,
        setfile_path: str | None = None,
        mdls_path: str | None = None,
        timeout_s: int | None = None,
    ):
        self.sips_path = shutil.which(sips_path or settings.sips_path)
        self.setfile_path = shutil.which(setfile_path or settings.setfile_path)
        self.mdls_path = shutil.which(mdls_path or settings.mdls_path)
        self.timeout_s = timeout_s or settings.tool_timeout_s

        log.info(
            f"MacImageTools initialized sips={bool(self.sips_path)} "
            f"setfile={bool(self.setfile_path)} mdls={bool(self.mdls_path)}"
        )

    @property
    def has_sips(self) -> bool:
        return self.sips_path is not None

    @property
    def has_setfile(self) -> bool:
        return self.setfile_path is not None

    @property
    def has_mdls(self) -> bool:
        return self.mdls_path is not None

    def _run(self, cmd: list[str]) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout_s,
            )
        except subprocess.TimeoutExpired as e:
            raise RuntimeError(f"{Path(cmd[0]).name} timeout after {self.timeout_s}s") from e
        except subprocess.CalledProcessError as e:
            stderr = e.stderr if e.stderr else ""
            raise RuntimeError(
                f"{Path(cmd[0]).name} failed with exit code {e.returncode}: {stderr[:500]}"
            ) from e

    def to_jpeg(self, src: str | os.PathLike[str], dst: str | os.PathLike[str], quality: int = 90) -> str:
        """Convert any sips-readable image (HEIC included) to JPEG.

        Args:
            src: Input image
            dst: Output .jpg path
            quality: JPEG quality (sips formatOptions)

        Returns:
            Output path

        Raises:
            RuntimeError: If sips is missing, fails, or produces no file
        """
        if not self.has_sips:
            raise RuntimeError("sips not found (macOS only); cannot convert without it")
        if not os.path.exists(src):
            raise FileNotFoundError(f"Input image not found: {src}")

        self._run([
            self.sips_path,
            "-s", "format", "jpeg",
            str(src),
            "--out", str(dst),
            "-s", "formatOptions", str(quality),
        ])

        if not os.path.exists(dst):
            raise RuntimeError(f"sips did not create output file: {dst}")

        log.info(f"SIPS_JPEG {Path(src).name} -> {Path(dst).name}")
        return str(dst)

    def content_creation_date(self, path: str | os.PathLike[str]) -> datetime | None:
        """Spotlight content creation date (local time), or None if unavailable."""
        if not self.has_mdls:
            return None
        try:
            result = self._run([self.mdls_path, "-name", "kMDItemContentCreationDate", str(path)])
        except RuntimeError:
            return None

        match = _MDLS_DATE.search(result.stdout)
        if not match or match.group(1).strip() == "(null)":
            return None
        try:
            stamp = datetime.strptime(match.group(1).strip(), "%Y-%m-%d %H:%M:%S %z")
        except ValueError:
            return None
        return stamp.astimezone().replace(tzinfo=None)

    def copy_timestamps(self, src_stat: os.stat_result, dst: str | os.PathLike[str]) -> None:
        """Carry the original access/modification time (and birth time) to dst."""
        os.utime(dst, (src_stat.st_atime, src_stat.st_mtime))

        birthtime = getattr(src_stat, "st_birthtime", None)
        if self.has_setfile and birthtime:
            stamp = datetime.fromtimestamp(birthtime).strftime("%m/%d/%Y %H:%M:%S")
            self._run([self.setfile_path, "-d", stamp, str(dst)])
