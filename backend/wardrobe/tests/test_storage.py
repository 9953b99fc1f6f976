from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

import pytest

from wardrobe.core import ids, storage
from wardrobe.core.logging import truncate_log_file
from wardrobe.core.paths import is_local_ref, ref_to_path, to_image_ref


class TestImageRefs:
    """Tests for catalog reference <-> file path conversion."""

    def test_ref_to_path_uses_basename_only(self):
        """A reference can never escape the images folder."""
        path = ref_to_path("/images/../../etc/passwd", "/srv/images")
        assert str(path) == os.path.join("/srv/images", "passwd")

    def test_local_refs(self):
        assert to_image_ref("a.webp") == "/images/a.webp"
        assert is_local_ref("/images/a.webp")
        assert not is_local_ref("https://cdn.example.com/a.webp")


class TestCatalogDocument:
    """Tests for loading and saving wardrobe.json."""

    def test_missing_file_is_empty_catalog(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            assert storage.load_document(os.path.join(tmpdir, "wardrobe.json")) == {"items": []}

    def test_blank_file_is_empty_catalog(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "wardrobe.json")
            with open(path, "w", encoding="utf-8") as f:
                f.write("  \n")
            assert storage.load_document(path) == {"items": []}

    def test_malformed_document_rejected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "wardrobe.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump([{"id": "a"}], f)
            with pytest.raises(ValueError, match="missing 'items' array"):
                storage.load_document(path)

    def test_save_keeps_unknown_keys_and_unicode(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "nested", "wardrobe.json")
            doc = {"version": 2, "items": [{"id": "a", "brand": ["优衣库"]}]}
            storage.save_document(path, doc)

            with open(path, "r", encoding="utf-8") as f:
                raw = f.read()
            assert "优衣库" in raw
            assert storage.load_document(path) == doc
            assert not os.path.exists(f"{path}.tmp")

    def test_save_requires_items_list(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(ValueError, match="'items' list"):
                storage.save_document(os.path.join(tmpdir, "w.json"), {"items": {}})

    def test_atomic_write_leaves_no_temp_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "out", "backup.json")
            storage.atomic_write(path, "{}")

            assert os.listdir(os.path.dirname(path)) == ["backup.json"]


class TestLogRotation:
    """Tests for job log truncation."""

    def test_keeps_tail_past_threshold(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            log_path = Path(tmpdir) / "logs.txt"
            log_path.write_text("".join(f"line {i}\n" for i in range(30)), encoding="utf-8")

            dropped = truncate_log_file(log_path, keep=10, threshold=20)

            lines = log_path.read_text(encoding="utf-8").splitlines()
            assert dropped == 20
            assert lines == [f"line {i}" for i in range(20, 30)]

    def test_small_or_missing_file_untouched(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            log_path = Path(tmpdir) / "logs.txt"
            assert truncate_log_file(log_path) == 0

            log_path.write_text("one\n", encoding="utf-8")
            assert truncate_log_file(log_path, keep=1, threshold=5) == 0
            assert log_path.read_text(encoding="utf-8") == "one\n"


class TestIds:
    """Tests for item id generation."""

    def test_item_id_format(self):
        item_id = ids.new_item_id()
        millis, token = item_id.split("-")
        assert millis.isdigit()
        assert len(token) == 7

    def test_item_id_avoids_existing(self):
        with pytest.MonkeyPatch.context() as mp:
            tokens = iter(["aaaaaaa", "bbbbbbb"])
            mp.setattr(ids, "short_id", lambda length=6: next(tokens))
            mp.setattr(ids.time, "time", lambda: 1.0)

            assert ids.new_item_id(existing={"1000-aaaaaaa"}) == "1000-bbbbbbb"

    def test_short_id_alphabet(self):
        token = ids.short_id(50)
        assert len(token) == 50
        assert set(token) <= set("0123456789abcdefghijklmnopqrstuvwxyz")
