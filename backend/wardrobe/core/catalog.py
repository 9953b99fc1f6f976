"""Catalog editing and browsing on plain item dicts.

Everything here works in memory on the "items" list of wardrobe.json;
callers load and save the document through core.storage.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Any, Callable, Iterable

from wardrobe.core.ids import new_item_id
from wardrobe.core.logging import log
from wardrobe.core.models import ClothingItem, FilterOptions

Item = dict[str, Any]

VIEWS = ("grid", "timeline", "category", "brand", "location", "style", "material", "size", "price")

# Fixed price bands, most expensive first: (label, lower bound inclusive)
PRICE_BANDS: tuple[tuple[str, float], ...] = (
    ("2000+", 2000),
    ("1000-2000", 1000),
    ("500-1000", 500),
    ("<500", float("-inf")),
)


def is_live(item: Item) -> bool:
    return item.get("isDelete") != 1


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _any_selected(values: Iterable[Any] | None, selected: list[str]) -> bool:
    return any(v in selected for v in (values or []))


def matches(item: Item, filters: FilterOptions) -> bool:
    """True when a live item passes every active filter."""
    if not is_live(item):
        return False
    if filters.brands and not _any_selected(item.get("brand"), filters.brands):
        return False
    if filters.size and item.get("size") not in filters.size:
        return False
    if filters.categories and not _any_selected(item.get("category"), filters.categories):
        return False
    if filters.styles and not _any_selected(item.get("style"), filters.styles):
        return False
    if filters.materials and item.get("material") not in filters.materials:
        return False
    if filters.scenes and item.get("scene") not in filters.scenes:
        return False

    # Unrated items pass the satisfaction range
    satisfaction = item.get("satisfaction")
    if _is_number(satisfaction) and not (
        filters.satisfaction_min <= satisfaction <= filters.satisfaction_max
    ):
        return False

    if filters.date_start or filters.date_end:
        try:
            item_date = date.fromisoformat(item.get("time"))
        except (TypeError, ValueError):
            return False
        if filters.date_start and item_date < date.fromisoformat(filters.date_start):
            return False
        if filters.date_end and item_date > date.fromisoformat(filters.date_end):
            return False
    return True


def filter_items(items: list[Item], filters: FilterOptions | None = None) -> list[Item]:
    """Live items passing the filters, in catalog order."""
    filters = filters or FilterOptions()
    return [item for item in items if matches(item, filters)]


def option_values(items: list[Item]) -> dict[str, list[str]]:
    """Distinct sorted values per filterable field, as offered in the filter panel."""
    return {
        "brands": sorted({b for item in items for b in item.get("brand") or []}),
        "size": sorted({item.get("size") or "" for item in items}),
        "categories": sorted({c for item in items for c in item.get("category") or []}),
        "styles": sorted({s for item in items for s in item.get("style") or []}),
        "materials": sorted({item.get("material") or "" for item in items}),
        "scenes": sorted({item.get("scene") or "" for item in items}),
    }


def _index_of(items: list[Item], item_id: str) -> int | None:
    for index, item in enumerate(items):
        if item.get("id") == item_id:
            return index
    return None


def get_item(items: list[Item], item_id: str) -> Item:
    """Raises KeyError for an unknown id."""
    index = _index_of(items, item_id)
    if index is None:
        raise KeyError(f"No item with id '{item_id}'")
    return items[index]


def update_item(items: list[Item], updated: Item) -> Item:
    """Replaces the item carrying updated["id"]; the record is validated first.

    The record is stored as given, so unknown keys, null values and integer
    prices survive; validation only rejects bad records.

    Raises:
        KeyError: If no item has that id
        pydantic.ValidationError: If the record is invalid
    """
    ClothingItem.model_validate(updated)
    record = dict(updated)
    index = _index_of(items, record["id"])
    if index is None:
        raise KeyError(f"No item with id '{record['id']}'")
    items[index] = record
    log.info(f"CATALOG_UPDATE id={record['id']}")
    return record


def set_fields(items: list[Item], item_id: str, updates: dict[str, Any]) -> Item:
    """Merges updates into one item and re-validates it."""
    return update_item(items, {**get_item(items, item_id), **updates})


def create_item(items: list[Item], fields: dict[str, Any]) -> Item:
    """Appends a new validated item; a missing or taken id is replaced by a fresh one."""
    existing = {str(item.get("id")) for item in items}
    fields = dict(fields)
    if not fields.get("id") or fields["id"] in existing:
        fields["id"] = new_item_id(existing)
    record = ClothingItem.model_validate(fields).to_record()
    items.append(record)
    log.info(f"CATALOG_CREATE id={record['id']}")
    return record


def soft_delete(items: list[Item], item_id: str) -> Item:
    """Flags an item isDelete=1; files go away on the next sync/clean."""
    item = get_item(items, item_id)
    item["isDelete"] = 1
    log.info(f"CATALOG_SOFT_DELETE id={item_id}")
    return item


def set_primary_image(items: list[Item], item_id: str, index: int) -> Item:
    """Chooses which image is the thumbnail.

    Raises:
        KeyError: If no item has that id
        IndexError: If index is outside the item's images
    """
    item = get_item(items, item_id)
    images = item.get("images") or []
    if not 0 <= index < len(images):
        raise IndexError(f"Image index {index} out of range for item '{item_id}' ({len(images)} images)")
    item["primaryImageIndex"] = index
    return item


def merge_items(items: list[Item], source_id: str, target_id: str) -> list[Item]:
    """Moves the source item's photos onto the target and drops the source.

    Target images come first, then source images not already present.
    Unknown ids or source == target return the list unchanged.

    Returns:
        New items list
    """
    if source_id == target_id:
        return items
    source_index = _index_of(items, source_id)
    target_index = _index_of(items, target_id)
    if source_index is None or target_index is None:
        log.warning(f"CATALOG_MERGE skipped source={source_id} target={target_id}")
        return items

    target = items[target_index]
    merged_images = list(dict.fromkeys([*target.get("images", []), *items[source_index].get("images", [])]))
    merged_target = {**target, "images": merged_images}

    log.info(f"CATALOG_MERGE source={source_id} target={target_id} images={len(merged_images)}")
    return [
        merged_target if item.get("id") == target_id else item
        for item in items
        if item.get("id") != source_id
    ]


def star_rating(items: list[Item]) -> int:
    """Mean satisfaction of rated items, rounded half up (0 when none are rated)."""
    levels = [item["satisfaction"] for item in items if _is_number(item.get("satisfaction"))]
    if not levels:
        return 0
    mean = sum(levels) / len(levels)
    return int(mean + 0.5)


def _group_multi(items: list[Item], key: str, fallback: str) -> dict[str, list[Item]]:
    groups: dict[str, list[Item]] = defaultdict(list)
    for item in items:
        values = [v for v in item.get(key) or [] if v]
        for value in values or [fallback]:
            groups[value].append(item)
    return groups


def _group_single(items: list[Item], key: str, fallback: str) -> dict[str, list[Item]]:
    groups: dict[str, list[Item]] = defaultdict(list)
    for item in items:
        groups[item.get(key) or fallback].append(item)
    return groups


def _price_band(item: Item) -> str:
    price = item.get("price") or 0
    for label, lower in PRICE_BANDS:
        if price >= lower:
            return label
    return PRICE_BANDS[-1][0]


_GROUPERS: dict[str, Callable[[list[Item]], dict[str, list[Item]]]] = {
    "category": lambda items: _group_multi(items, "category", "Uncategorized"),
    "brand": lambda items: _group_multi(items, "brand", "Unknown brand"),
    "style": lambda items: _group_multi(items, "style", "Uncategorized"),
    "location": lambda items: _group_single(items, "location", "Unknown location"),
    "material": lambda items: _group_single(items, "material", "Unknown material"),
    "size": lambda items: _group_single(items, "size", "Other"),
}


def group_items(items: list[Item], view: str) -> list[tuple[str, list[Item]]]:
    """Groups items the way each gallery view shows them.

    grid: a single "All" group. timeline: by date, newest first. price: fixed
    bands, most expensive first, empty bands included. Other views: by label,
    sorted; multi-valued fields put an item in every matching group.

    Raises:
        ValueError: For an unknown view
    """
    if view == "grid":
        return [("All", list(items))]
    if view == "timeline":
        groups = _group_single(items, "time", "")
        return sorted(groups.items(), key=lambda pair: pair[0], reverse=True)
    if view == "price":
        bands: dict[str, list[Item]] = {label: [] for label, _ in PRICE_BANDS}
        for item in items:
            bands[_price_band(item)].append(item)
        return list(bands.items())
    if view not in _GROUPERS:
        raise ValueError(f"Unknown view '{view}'. Must be one of {VIEWS}")
    return sorted(_GROUPERS[view](items).items(), key=lambda pair: pair[0])
