"""Catalog statistics (counts, averages, distributions)."""

from __future__ import annotations

from collections import Counter
from typing import Any


def _counts(items: list[dict[str, Any]], key: str) -> Counter[str]:
    counter: Counter[str] = Counter()
    for item in items:
        counter.update(item.get(key) or [])
    return counter


def summarize(items: list[dict[str, Any]]) -> dict[str, Any]:
    """Statistics over the given (usually already filtered) items.

    Returns:
        Dict with total, avg_satisfaction (1 decimal), total_price,
        brands / styles as (name, count) sorted by count desc,
        categories as (name, count) in first-seen order,
        satisfaction histogram {1..5: count}, monthly (YYYY-MM, count) ascending
    """
    total = len(items)
    # Unrated or non-numeric satisfaction stays out of the mean and the histogram
    rated = [
        item["satisfaction"]
        for item in items
        if isinstance(item.get("satisfaction"), (int, float)) and not isinstance(item["satisfaction"], bool)
    ]
    avg = round(sum(rated) / len(rated), 1) if rated else 0.0
    total_price = sum(item.get("price") or 0 for item in items)

    satisfaction = {level: 0 for level in range(1, 6)}
    for level in rated:
        if level in satisfaction:
            satisfaction[level] += 1

    monthly: Counter[str] = Counter(
        item["time"][:7] for item in items if isinstance(item.get("time"), str) and item["time"]
    )

    return {
        "total": total,
        "avg_satisfaction": avg,
        "total_price": total_price,
        "brands": _counts(items, "brand").most_common(),
        "categories": list(_counts(items, "category").items()),
        "styles": _counts(items, "style").most_common(),
        "satisfaction": satisfaction,
        "monthly": sorted(monthly.items()),
    }
