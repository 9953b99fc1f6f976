"""Command line entry point: `wardrobe <command>`.

Maintenance:
    wardrobe convert-heic          # HEIC -> JPEG (macOS sips)
    wardrobe convert-webp          # photos -> capped WebP named <stem>_<id>_<date>.webp
    wardrobe minsize               # shrink oversized photos in place
    wardrobe sync                  # purge soft-deleted items, add new photos as items
    wardrobe clean                 # purge soft-deleted items, delete unreferenced files
    wardrobe rename                # <brand>_<pattern>_<date>_<n> file names
    wardrobe fix-ids               # repair duplicate ids
    wardrobe add-field NAME=VALUE  # set a field on every item
    wardrobe verify                # report catalog / folder drift

Catalog:
    wardrobe list --brand Uniqlo --view brand
    wardrobe options
    wardrobe stats
    wardrobe add images=/images/coat.webp time=2024-05-01 brand=Uniqlo,Zara
    wardrobe set ID price=199
    wardrobe merge SOURCE_ID TARGET_ID
    wardrobe delete ID
    wardrobe set-primary ID INDEX
    wardrobe export --out backup.json
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Callable

from pydantic import ValidationError

from wardrobe.core import analytics, catalog
from wardrobe.core.config import OPTION_KEYS, load_options, settings
from wardrobe.core.images import format_size
from wardrobe.core.logging import attach_console, log
from wardrobe.core.models import FilterOptions
from wardrobe.core.storage import atomic_write, load_document, save_document
from wardrobe.jobs.add_field import add_field, parse_assignment
from wardrobe.jobs.clean import clean_images
from wardrobe.jobs.convert_heic import convert_heic
from wardrobe.jobs.convert_webp import convert_to_webp
from wardrobe.jobs.fix_ids import fix_duplicate_ids
from wardrobe.jobs.minsize import minsize
from wardrobe.jobs.rename import rename_images
from wardrobe.jobs.sync import sync_images
from wardrobe.jobs.verify import verify_catalog

RULE = "=" * 60


def _banner(title: str) -> None:
    print(RULE)
    print(title)
    print(RULE)


def _report_failures(failed: list[dict[str, str]]) -> None:
    if not failed:
        return
    print(f"\nFailed: {len(failed)}")
    for entry in failed:
        print(f"  - {entry['file']}: {entry['error']}")


def cmd_sync(args: argparse.Namespace) -> bool:
    _banner("SYNC IMAGES")
    result = sync_images(args.data_file, args.images_dir, show_progress=True)
    if result["deleted_items"]:
        print(f"Deleted {result['deleted_images']} image files and {result['deleted_items']} items")
    print(f"Images found:   {result['found']}")
    print(f"Already tracked: {result['tracked']}")
    print(f"New items:      {len(result['added'])}")
    if result["added"]:
        print("Fill in the details of the new items in the catalog.")
    return result["ok"]


def cmd_clean(args: argparse.Namespace) -> bool:
    _banner("CLEAN IMAGES")
    result = clean_images(args.data_file, args.images_dir, show_progress=True)
    print(f"Purged items:   {result['deleted_items']} ({result['deleted_images']} images)")
    print(f"Images in use:  {result['in_use']}")
    print(f"Unused removed: {len(result['unused_removed'])}")
    for name in result["unused_failed"]:
        print(f"  failed to delete {name}")
    print(f"Final count:    {result['final_count']} items")
    return result["ok"]


def cmd_convert_heic(args: argparse.Namespace) -> bool:
    _banner("CONVERT HEIC -> JPEG")
    result = convert_heic(args.images_dir, show_progress=True)
    if not result["found"]:
        print("No HEIC files found")
        return True
    if not result["has_sips"]:
        print("sips not found: HEIC conversion needs macOS")
    print(f"Converted: {len(result['converted'])}/{result['found']}")
    for name in result["skipped"]:
        print(f"  skipped {name}: JPEG with the same name already exists")
    _report_failures(result["failed"])
    return result["ok"]


def cmd_convert_webp(args: argparse.Namespace) -> bool:
    _banner("CONVERT -> WEBP")
    result = convert_to_webp(args.images_dir, max_bytes=args.max_bytes, show_progress=True)
    if not result["found"]:
        print("Nothing to convert")
        return True
    print(f"Converted: {len(result['converted'])}/{result['found']}")
    fallbacks = sum(1 for entry in result["converted"] if entry["fallback"])
    if fallbacks:
        print(f"  via sips fallback: {fallbacks}")
    _report_failures(result["failed"])
    if result["failed"]:
        print("Failed files were left in place; fix or re-export them and run again.")
    return result["ok"]


def cmd_minsize(args: argparse.Namespace) -> bool:
    _banner("MINSIZE")
    result = minsize(args.images_dir, max_bytes=args.max_bytes, show_progress=True)
    print(f"Target size: {format_size(result['max_bytes'])} or less")
    print(f"Compressed: {result['compressed']}")
    print(f"Skipped (already small): {result['skipped']}")
    _report_failures(result["failed"])
    if result["saved_bytes"]:
        print(f"Total space saved: {format_size(result['saved_bytes'])}")
    return result["ok"]


def cmd_rename(args: argparse.Namespace) -> bool:
    _banner("RENAME IMAGES")
    result = rename_images(args.data_file, args.images_dir)
    for old, new in result["renamed"]:
        print(f"  {old} -> {new}")
    print(f"Renamed: {len(result['renamed'])}")
    print(f"Skipped (already correct): {result['skipped']}")
    for error in result["errors"]:
        print(f"  ! {error}")
    return result["ok"]


def cmd_fix_ids(args: argparse.Namespace) -> bool:
    _banner("FIX DUPLICATE IDS")
    result = fix_duplicate_ids(args.data_file)
    print(f"Items: {result['total']}")
    if not result["fixed"]:
        print("No duplicate ids found")
    for entry in result["fixed"]:
        print(f"  #{entry['index']}: {entry['old_id']} -> {entry['new_id']} ({entry['image']})")
    return result["ok"]


def cmd_add_field(args: argparse.Namespace) -> bool:
    _banner("ADD FIELD")
    result = add_field(args.assignment, args.data_file)
    value = result["value"]
    print(f"Field: {result['field']} = {json.dumps(value, ensure_ascii=False)} ({type(value).__name__})")
    if result["overwritten"]:
        print(f"Warning: {result['overwritten']} items already had this field and were overwritten")
    print(f"Updated {result['total']} items")
    return result["ok"]


def cmd_verify(args: argparse.Namespace) -> bool:
    _banner("VERIFY CATALOG")
    result = verify_catalog(args.data_file, args.images_dir)
    print(f"Items: {result['items']}")
    for entry in result["missing_files"]:
        print(f"  missing file  {entry['ref']} (item {entry['id']})")
    for name in result["orphan_files"]:
        print(f"  orphan file   {name}")
    for item_id in result["duplicate_ids"]:
        print(f"  duplicate id  {item_id}")
    for item_id in result["bad_primary"]:
        print(f"  bad primaryImageIndex on {item_id}")
    for entry in result["invalid"]:
        print(f"  invalid item  {entry['id']}: {entry['error']}")
    for entry in result["unknown_options"]:
        print(f"  note: {entry['id']} uses values outside config.json: {', '.join(entry['values'])}")
    print(f"RESULT: {'PASS' if result['ok'] else 'FAIL'}")
    return result["ok"]


def _filters_from(args: argparse.Namespace) -> FilterOptions:
    return FilterOptions(
        brands=args.brand or [],
        size=args.size or [],
        categories=args.category or [],
        styles=args.style or [],
        materials=args.material or [],
        scenes=args.scene or [],
        satisfaction_min=args.min_satisfaction,
        satisfaction_max=args.max_satisfaction,
        date_start=args.since,
        date_end=args.until,
    )


def _describe(item: dict[str, Any]) -> str:
    brand = ", ".join(item.get("brand") or []) or "-"
    category = ", ".join(item.get("category") or []) or "-"
    stars = "*" * int(item.get("satisfaction") or 0)
    price = f" {item['price']}" if item.get("price") is not None else ""
    return f"{item.get('id')}  {item.get('time', '')}  {brand} / {category}  {stars}{price}"


def cmd_list(args: argparse.Namespace) -> bool:
    filters = _filters_from(args)
    all_items = load_document(args.data_file)["items"]
    items = catalog.filter_items(all_items, filters)
    if filters.is_active:
        print(f"{len(items)} of {len(catalog.filter_items(all_items))} items match the filters")
    if not items:
        print("No items match the filters")
        return True
    for label, group in catalog.group_items(items, args.view):
        if not group and args.view == "price":
            continue
        print(f"\n{label or '(no date)'} ({len(group)}) {'*' * catalog.star_rating(group)}")
        for item in group:
            print(f"  {_describe(item)}")
    return True


def cmd_options(args: argparse.Namespace) -> bool:
    """Values in use per filterable field, next to the editor lists in config.json."""
    in_use = catalog.option_values(load_document(args.data_file)["items"])
    configured = load_options()
    for key in OPTION_KEYS:
        values = [v for v in in_use[key] if v]
        print(f"{key}: {', '.join(values) or '-'}")
        extra = [v for v in values if configured[key] and v not in configured[key]]
        if extra:
            print(f"  not in config.json: {', '.join(extra)}")
    return True


def cmd_stats(args: argparse.Namespace) -> bool:
    items = catalog.filter_items(load_document(args.data_file)["items"], _filters_from(args))
    summary = analytics.summarize(items)
    _banner("WARDROBE STATS")
    print(f"Total items:      {summary['total']}")
    print(f"Avg satisfaction: {summary['avg_satisfaction']} / 5")
    print(f"Total spent:      {summary['total_price']:,}")
    for title, key in (("Brands", "brands"), ("Categories", "categories"), ("Styles", "styles")):
        print(f"\n{title}:")
        for name, count in summary[key]:
            print(f"  {name}: {count}")
    print("\nSatisfaction:")
    for level, count in summary["satisfaction"].items():
        print(f"  {level} stars: {count}")
    print("\nPer month:")
    for month, count in summary["monthly"]:
        print(f"  {month}: {count}")
    return True


# Item fields holding lists; NAME=a,b on the command line sets ["a", "b"]
_LIST_FIELDS = ("images", "brand", "category", "style", "tags")


def _parse_updates(assignments: list[str]) -> dict[str, Any]:
    updates = dict(parse_assignment(a) for a in assignments)
    for field in _LIST_FIELDS:
        if isinstance(updates.get(field), str):
            updates[field] = [v.strip() for v in updates[field].split(",") if v.strip()]
    return updates


def _edit(args: argparse.Namespace, change: Callable[[list[dict[str, Any]]], list[dict[str, Any]] | None]) -> bool:
    """Load, apply one in-memory catalog change, save."""
    data = load_document(args.data_file)
    result = change(data["items"])
    if result is not None:
        data["items"] = result
    save_document(args.data_file, data)
    return True


def cmd_set(args: argparse.Namespace) -> bool:
    updates = _parse_updates(args.assignments)

    def change(items: list[dict[str, Any]]) -> None:
        record = catalog.set_fields(items, args.id, updates)
        print(f"Updated {record['id']}: {', '.join(updates)}")

    return _edit(args, change)


def cmd_add(args: argparse.Namespace) -> bool:
    fields = _parse_updates(args.assignments)

    def change(items: list[dict[str, Any]]) -> None:
        record = catalog.create_item(items, fields)
        print(f"Created {record['id']}")

    return _edit(args, change)


def cmd_merge(args: argparse.Namespace) -> bool:
    def change(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        merged = catalog.merge_items(items, args.source, args.target)
        if merged is items:
            print("Nothing merged (unknown id or same item)")
        else:
            print(f"Merged {args.source} into {args.target}")
        return merged

    return _edit(args, change)


def cmd_delete(args: argparse.Namespace) -> bool:
    def change(items: list[dict[str, Any]]) -> None:
        catalog.soft_delete(items, args.id)
        print(f"Marked {args.id} for deletion (run sync or clean to remove its files)")

    return _edit(args, change)


def cmd_set_primary(args: argparse.Namespace) -> bool:
    def change(items: list[dict[str, Any]]) -> None:
        catalog.set_primary_image(items, args.id, args.index)
        print(f"Primary image of {args.id} is now #{args.index}")

    return _edit(args, change)


def cmd_export(args: argparse.Namespace) -> bool:
    content = json.dumps(load_document(args.data_file), ensure_ascii=False, indent=2)
    if args.out:
        atomic_write(args.out, content)
        print(f"Exported to {args.out}")
    else:
        print(content)
    return True


def _add_filter_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--brand", action="append", help="repeatable")
    parser.add_argument("--size", action="append")
    parser.add_argument("--category", action="append")
    parser.add_argument("--style", action="append")
    parser.add_argument("--material", action="append")
    parser.add_argument("--scene", action="append")
    parser.add_argument("--min-satisfaction", type=int, default=1)
    parser.add_argument("--max-satisfaction", type=int, default=5)
    parser.add_argument("--since", help="YYYY-MM-DD, inclusive")
    parser.add_argument("--until", help="YYYY-MM-DD, inclusive")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wardrobe",
        description="Wardrobe catalog and image folder maintenance",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--data-file", default=settings.data_file, help="wardrobe.json path")
    parser.add_argument("--images-dir", default=settings.images_dir, help="image folder")
    parser.add_argument("-v", "--verbose", action="store_true", help="echo the job log to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("sync", help="purge soft-deleted items, add new images").set_defaults(func=cmd_sync)
    sub.add_parser("clean", help="purge soft-deleted items, delete unused images").set_defaults(func=cmd_clean)
    sub.add_parser("convert-heic", help="HEIC -> JPEG via sips").set_defaults(func=cmd_convert_heic)

    p = sub.add_parser("convert-webp", help="convert photos to capped WebP")
    p.add_argument("--max-bytes", type=int, default=settings.webp_max_bytes)
    p.set_defaults(func=cmd_convert_webp)

    p = sub.add_parser("minsize", help="shrink oversized photos in place")
    p.add_argument("--max-bytes", type=int, default=settings.minsize_max_bytes)
    p.set_defaults(func=cmd_minsize)

    sub.add_parser("rename", help="rename images after item metadata").set_defaults(func=cmd_rename)
    sub.add_parser("fix-ids", help="repair duplicate item ids").set_defaults(func=cmd_fix_ids)

    p = sub.add_parser("add-field", help="set NAME=VALUE on every item")
    p.add_argument("assignment", metavar="NAME=VALUE")
    p.set_defaults(func=cmd_add_field)

    sub.add_parser("verify", help="report catalog / folder drift").set_defaults(func=cmd_verify)

    p = sub.add_parser("list", help="list items, grouped by view")
    _add_filter_args(p)
    p.add_argument("--view", choices=catalog.VIEWS, default="timeline")
    p.set_defaults(func=cmd_list)

    sub.add_parser("options", help="values in use per filter field").set_defaults(func=cmd_options)

    p = sub.add_parser("stats", help="catalog statistics")
    _add_filter_args(p)
    p.set_defaults(func=cmd_stats)

    p = sub.add_parser("set", help="set fields on one item")
    p.add_argument("id")
    p.add_argument("assignments", nargs="+", metavar="NAME=VALUE")
    p.set_defaults(func=cmd_set)

    p = sub.add_parser("add", help="create an item from NAME=VALUE pairs")
    p.add_argument("assignments", nargs="*", metavar="NAME=VALUE")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("merge", help="move SOURCE's images onto TARGET and drop SOURCE")
    p.add_argument("source")
    p.add_argument("target")
    p.set_defaults(func=cmd_merge)

    p = sub.add_parser("delete", help="mark an item for deletion")
    p.add_argument("id")
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser("set-primary", help="choose the thumbnail image")
    p.add_argument("id")
    p.add_argument("index", type=int)
    p.set_defaults(func=cmd_set_primary)

    p = sub.add_parser("export", help="write the catalog to a file or stdout")
    p.add_argument("--out")
    p.set_defaults(func=cmd_export)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        attach_console()
    try:
        ok = args.func(args)
    except (OSError, ValueError, KeyError, IndexError, RuntimeError, ValidationError) as e:
        log.error(f"CLI_ERROR command={args.command} error={e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
