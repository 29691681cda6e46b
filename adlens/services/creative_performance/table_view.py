"""Filter, sort and paginate aggregate rows for display."""

import logging
from typing import List, Optional, Sequence

from .models import AggregateRow, SortDirection

logger = logging.getLogger(__name__)

TEXT_COLUMNS = ("ad_name", "extracted_copy", "group_key", "group_label")
NUMERIC_COLUMNS = (
    "impressions",
    "clicks",
    "spend",
    "purchases",
    "revenue",
    "ctr",
    "cpc",
    "cpm",
    "cost_per_purchase",
    "roas",
    "conversion_rate",
    "adset_count",
    "creative_count",
    "instances",
)

# Dashboard column ids
SORT_KEY_ALIASES = {
    "adName": "ad_name",
    "extractedCopy": "extracted_copy",
    "groupKey": "group_key",
    "groupLabel": "group_label",
    "costPerPurchase": "cost_per_purchase",
    "conversionRate": "conversion_rate",
    "adsetCount": "adset_count",
    "creativeCount": "creative_count",
}


def resolve_sort_key(sort_key: str) -> str:
    key = SORT_KEY_ALIASES.get(sort_key, sort_key)
    if key not in TEXT_COLUMNS and key not in NUMERIC_COLUMNS:
        raise ValueError(f"Unknown sort key: {sort_key!r}")
    return key


def matches_query(row: AggregateRow, query: Optional[str]) -> bool:
    """Case-insensitive substring match on ad name or extracted copy."""
    if not query:
        return True
    needle = query.lower()
    return needle in (row.ad_name or "").lower() or needle in (row.extracted_copy or "").lower()


def view(
    rows: Sequence[AggregateRow],
    query: Optional[str] = "",
    sort_key: str = "spend",
    sort_dir=SortDirection.DESC,
) -> List[AggregateRow]:
    """
    Filter and sort rows. Stable, and idempotent on its own output.

    Args:
        rows: Aggregate rows
        query: Substring filter (empty/None keeps everything)
        sort_key: Row attribute (snake_case or dashboard camelCase)
        sort_dir: 'asc' or 'desc'

    Returns:
        New list; the input is untouched

    Raises:
        ValueError: On an unknown sort key or direction
    """
    key = resolve_sort_key(sort_key)
    direction = SortDirection(sort_dir)

    filtered = [row for row in rows if matches_query(row, query)]
    if key in TEXT_COLUMNS:
        sort_value = lambda row: (getattr(row, key) or "").lower()  # noqa: E731
    else:
        sort_value = lambda row: getattr(row, key)  # noqa: E731

    return sorted(filtered, key=sort_value, reverse=direction == SortDirection.DESC)


def paginate(rows: Sequence[AggregateRow], page: int = 1, page_size: int = 25) -> List[AggregateRow]:
    """1-based page of rows; pages past the end are empty."""
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    if page < 1:
        return []
    start = (page - 1) * page_size
    return list(rows[start:start + page_size])
