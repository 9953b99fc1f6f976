"""Tests for in-memory catalog editing, filtering, grouping and statistics."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from wardrobe.core import analytics, catalog
from wardrobe.core.models import FilterOptions


def sample_items() -> list[dict]:
    return [
        {
            "id": "a",
            "images": ["/images/a1.webp", "/images/a2.webp"],
            "time": "2024-01-15",
            "location": "Tokyo",
            "brand": ["Uniqlo"],
            "size": "M",
            "category": ["Top", "Basics"],
            "style": ["Casual"],
            "material": "Cotton",
            "price": 199,
            "satisfaction": 5,
            "scene": "fitting",
        },
        {
            "id": "b",
            "images": ["/images/b1.webp"],
            "time": "2024-02-01",
            "brand": ["Zara", "Uniqlo"],
            "size": "L",
            "category": ["Coat"],
            "style": ["Formal"],
            "material": "Wool",
            "price": 2500,
            "satisfaction": 2,
            "scene": "street",
        },
        {
            "id": "c",
            "images": ["/images/c1.webp"],
            "time": "2024-01-15",
            "brand": [],
            "size": "",
            "category": [],
            "style": [],
            "material": "",
            "price": None,
            "satisfaction": 4,
            "scene": "fitting",
        },
        {"id": "gone", "images": [], "time": "2024-03-01", "satisfaction": 1, "isDelete": 1},
    ]


class TestFiltering:
    """Tests for gallery filters."""

    def test_no_filters_hides_deleted(self):
        assert [item["id"] for item in catalog.filter_items(sample_items())] == ["a", "b", "c"]

    def test_brand_matches_any_selected(self):
        items = catalog.filter_items(sample_items(), FilterOptions(brands=["Uniqlo"]))
        assert [item["id"] for item in items] == ["a", "b"]

    def test_filters_combine(self):
        filters = FilterOptions(brands=["Uniqlo"], size=["L"], scenes=["street"])
        assert [item["id"] for item in catalog.filter_items(sample_items(), filters)] == ["b"]

    def test_satisfaction_range(self):
        filters = FilterOptions(satisfaction_min=3, satisfaction_max=4)
        assert [item["id"] for item in catalog.filter_items(sample_items(), filters)] == ["c"]

    def test_date_range_is_inclusive(self):
        filters = FilterOptions(date_start="2024-01-15", date_end="2024-01-15")
        assert [item["id"] for item in catalog.filter_items(sample_items(), filters)] == ["a", "c"]

    def test_undated_items_fail_date_filters(self):
        items = [{"id": "x", "time": "", "satisfaction": 3}]
        assert catalog.filter_items(items, FilterOptions(date_start="2000-01-01")) == []

    def test_unrated_items_stay_visible(self):
        items = [{"id": "x", "images": [], "time": "2024-01-01"}, {"id": "y", "satisfaction": "3"}]
        assert [item["id"] for item in catalog.filter_items(items)] == ["x", "y"]

        filters = FilterOptions(satisfaction_min=4)
        assert [item["id"] for item in catalog.filter_items(items, filters)] == ["x", "y"]

    def test_null_time_fails_date_filters(self):
        items = [{"id": "x", "time": None}, {"id": "y", "time": "2024-01-01"}]
        filters = FilterOptions(date_start="2000-01-01")
        assert [item["id"] for item in catalog.filter_items(items, filters)] == ["y"]

    def test_option_values(self):
        options = catalog.option_values(sample_items())
        assert options["brands"] == ["Uniqlo", "Zara"]
        assert options["categories"] == ["Basics", "Coat", "Top"]


class TestEditing:
    """Tests for item edits."""

    def test_set_fields_validates(self):
        items = sample_items()
        record = catalog.set_fields(items, "a", {"price": 149.5, "notes": "hemmed"})
        assert record["price"] == 149.5
        assert items[0]["notes"] == "hemmed"

        with pytest.raises(ValidationError):
            catalog.set_fields(items, "a", {"satisfaction": 9})
        assert items[0]["satisfaction"] == 5

    def test_set_fields_writes_back_record_as_given(self):
        items = [{"id": "x", "images": [], "price": 199, "discontinued": None}]

        record = catalog.set_fields(items, "x", {"pattern": "P1"})

        assert record == {"id": "x", "images": [], "price": 199, "discontinued": None, "pattern": "P1"}
        assert isinstance(items[0]["price"], int)
        assert "satisfaction" not in items[0] and "scene" not in items[0]

    def test_unknown_id(self):
        with pytest.raises(KeyError):
            catalog.set_fields(sample_items(), "zzz", {"price": 1})

    def test_create_item_gets_unique_id(self):
        items = sample_items()
        record = catalog.create_item(items, {"id": "a", "images": ["/images/new.webp"]})
        assert record["id"] != "a"
        assert items[-1] is record
        assert catalog.create_item(items, {})["id"]

    def test_soft_delete(self):
        items = sample_items()
        catalog.soft_delete(items, "b")
        assert items[1]["isDelete"] == 1
        assert "b" not in [item["id"] for item in catalog.filter_items(items)]

    def test_set_primary_image(self):
        items = sample_items()
        catalog.set_primary_image(items, "a", 1)
        assert items[0]["primaryImageIndex"] == 1
        with pytest.raises(IndexError):
            catalog.set_primary_image(items, "a", 2)


class TestMerge:
    """Tests for merging two items into one."""

    def test_merge_moves_images_and_drops_source(self):
        items = sample_items()
        items[1]["images"].append("/images/a2.webp")

        merged = catalog.merge_items(items, "a", "b")

        assert [item["id"] for item in merged] == ["b", "c", "gone"]
        assert merged[0]["images"] == ["/images/b1.webp", "/images/a2.webp", "/images/a1.webp"]
        assert merged[0]["brand"] == ["Zara", "Uniqlo"]
        assert len(items) == 4

    @pytest.mark.parametrize("source, target", [("a", "a"), ("a", "zzz"), ("zzz", "a")])
    def test_merge_no_op(self, source, target):
        items = sample_items()
        assert catalog.merge_items(items, source, target) is items


class TestGrouping:
    """Tests for gallery views."""

    def test_grid(self):
        items = catalog.filter_items(sample_items())
        assert catalog.group_items(items, "grid") == [("All", items)]

    def test_timeline_newest_first(self):
        groups = catalog.group_items(catalog.filter_items(sample_items()), "timeline")
        assert [(label, [i["id"] for i in group]) for label, group in groups] == [
            ("2024-02-01", ["b"]),
            ("2024-01-15", ["a", "c"]),
        ]

    def test_brand_view_is_multi_valued(self):
        groups = dict(catalog.group_items(catalog.filter_items(sample_items()), "brand"))
        assert [i["id"] for i in groups["Uniqlo"]] == ["a", "b"]
        assert [i["id"] for i in groups["Zara"]] == ["b"]
        assert [i["id"] for i in groups["Unknown brand"]] == ["c"]

    def test_category_fallback(self):
        groups = dict(catalog.group_items(catalog.filter_items(sample_items()), "category"))
        assert set(groups) == {"Basics", "Coat", "Top", "Uncategorized"}

    def test_single_valued_fallbacks(self):
        items = catalog.filter_items(sample_items())
        assert "Unknown location" in dict(catalog.group_items(items, "location"))
        assert "Unknown material" in dict(catalog.group_items(items, "material"))
        assert "Other" in dict(catalog.group_items(items, "size"))

    def test_price_bands_in_fixed_order(self):
        groups = catalog.group_items(catalog.filter_items(sample_items()), "price")
        assert [label for label, _ in groups] == ["2000+", "1000-2000", "500-1000", "<500"]
        assert [[i["id"] for i in group] for _, group in groups] == [["b"], [], [], ["a", "c"]]

    def test_unknown_view(self):
        with pytest.raises(ValueError, match="Unknown view"):
            catalog.group_items([], "colour")

    def test_star_rating_rounds_half_up(self):
        assert catalog.star_rating([]) == 0
        assert catalog.star_rating([{"satisfaction": 3}, {"satisfaction": 4}]) == 4
        assert catalog.star_rating([{"satisfaction": 2}, {"satisfaction": 2}, {"satisfaction": 3}]) == 2
        assert catalog.star_rating([{"satisfaction": 4}, {"id": "unrated"}]) == 4


class TestAnalytics:
    """Tests for catalog statistics."""

    def test_summarize(self):
        summary = analytics.summarize(catalog.filter_items(sample_items()))

        assert summary["total"] == 3
        assert summary["avg_satisfaction"] == 3.7
        assert summary["total_price"] == 2699
        assert summary["brands"] == [("Uniqlo", 2), ("Zara", 1)]
        assert summary["categories"] == [("Top", 1), ("Basics", 1), ("Coat", 1)]
        assert summary["satisfaction"] == {1: 0, 2: 1, 3: 0, 4: 1, 5: 1}
        assert summary["monthly"] == [("2024-01", 2), ("2024-02", 1)]

    def test_unrated_items_left_out_of_satisfaction(self):
        summary = analytics.summarize(
            [{"id": "x"}, {"id": "y", "satisfaction": None}, {"id": "z", "satisfaction": 4, "time": None}]
        )

        assert summary["total"] == 3
        assert summary["avg_satisfaction"] == 4.0
        assert summary["satisfaction"] == {1: 0, 2: 0, 3: 0, 4: 1, 5: 0}
        assert summary["monthly"] == []

    def test_empty_catalog(self):
        summary = analytics.summarize([])
        assert summary["total"] == 0
        assert summary["avg_satisfaction"] == 0.0
        assert summary["monthly"] == []
