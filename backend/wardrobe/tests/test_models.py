from __future__ import annotations

import json
import tempfile
from pathlib import Path

import pytest
from pydantic import ValidationError

from wardrobe.core.config import OPTION_KEYS, load_options
from wardrobe.core.models import ClothingItem, FilterOptions


class TestClothingItem:
    """Tests for catalog record validation."""

    def test_camel_case_round_trip(self):
        record = {
            "id": "1700000000000-abc1234",
            "images": ["/images/a.webp", "/images/b.webp"],
            "primaryImageIndex": 1,
            "time": "2024-03-09",
            "brand": ["Uniqlo"],
            "isDelete": 1,
            "customField": "kept",
        }
        item = ClothingItem.model_validate(record)

        assert item.is_deleted
        out = item.to_record()
        assert out["primaryImageIndex"] == 1
        assert out["isDelete"] == 1
        assert out["customField"] == "kept"
        assert "primary_image_index" not in out

    def test_unset_optionals_are_omitted(self):
        out = ClothingItem(id="x").to_record()
        assert "price" not in out
        assert "isDelete" not in out
        assert out["satisfaction"] == 3

    @pytest.mark.parametrize("satisfaction", [0, 6])
    def test_satisfaction_bounds(self, satisfaction):
        with pytest.raises(ValidationError):
            ClothingItem(id="x", satisfaction=satisfaction)

    def test_time_must_be_a_date(self):
        with pytest.raises(ValidationError):
            ClothingItem(id="x", time="2024-02-30")
        assert ClothingItem(id="x", time="").time == ""

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            ClothingItem(id="")


class TestFilterOptions:
    """Tests for gallery filter state."""

    def test_defaults_inactive(self):
        assert not FilterOptions().is_active

    def test_any_restriction_is_active(self):
        assert FilterOptions(brands=["Zara"]).is_active
        assert FilterOptions(satisfaction_min=4).is_active
        assert FilterOptions(date_end="2024-01-01").is_active

    def test_bad_date_rejected(self):
        with pytest.raises(ValidationError):
            FilterOptions(date_start="yesterday")


class TestOptions:
    """Tests for the editor option lists (config.json)."""

    def test_missing_file_gives_empty_lists(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            options = load_options(Path(tmpdir) / "config.json")
        assert options == {key: [] for key in OPTION_KEYS}

    def test_loads_known_keys(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            path.write_text(json.dumps({"brands": ["Uniqlo", "Zara"], "other": [1]}), encoding="utf-8")
            options = load_options(path)
        assert options["brands"] == ["Uniqlo", "Zara"]
        assert options["scenes"] == []
        assert "other" not in options
