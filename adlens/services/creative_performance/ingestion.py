"""Ingestion boundary: messy upstream rows -> strongly-typed PerformanceRecord.

All defensive coercion lives here so the rest of the engine can rely on
typed, finite values. Nothing in this module raises on bad data; only a
``None`` record list is rejected as a programmer error.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from adlens.core.config import Config

from .helpers import coerce_float, coerce_int, coerce_text
from .models import PerformanceRecord, RawPerformanceRecord

logger = logging.getLogger(__name__)

RecordInput = Union[PerformanceRecord, RawPerformanceRecord, Mapping[str, Any]]

# Checked in order; the first type present in an actions array wins
PURCHASE_ACTION_TYPES = (
    "purchase",
    "omni_purchase",
    "offsite_conversion.fb_pixel_purchase",
)


# =============================================================================
# Record Coercion
# =============================================================================

def _clean_purchase_count(value: Any, ad_name: str = "") -> int:
    """Parse a purchase count, discarding values Meta reports corrupted.

    Counts above PURCHASE_SANITY_LIMIT are treated as concatenated values.
    For comma-separated strings the leading part is kept when it looks sane.
    """
    count = coerce_int(value)
    if count <= Config.PURCHASE_SANITY_LIMIT:
        return count

    logger.warning(f"Ignoring unrealistic purchase value: {count} for {ad_name or 'unnamed ad'}")
    if isinstance(value, str) and "," in value:
        first_part = coerce_int(value.split(",")[0])
        if first_part <= Config.PURCHASE_FALLBACK_LIMIT:
            return first_part
    return 0


def _coerce_creative_spec(value: Any) -> Optional[Dict[str, Any]]:
    """Accept a dict or a JSON-encoded dict; anything else is dropped."""
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, str) and value.strip().startswith("{"):
        try:
            parsed = json.loads(value)
        except ValueError:
            return None
        return parsed if isinstance(parsed, dict) else None
    return None


def coerce_record(raw: RecordInput) -> PerformanceRecord:
    """Convert one upstream record into a PerformanceRecord.

    Args:
        raw: PerformanceRecord (returned unchanged), RawPerformanceRecord,
            or a dict with camelCase or snake_case keys.

    Returns:
        PerformanceRecord with every counter finite and defaulted to 0.

    Raises:
        TypeError: If raw is not a record or mapping.
    """
    if isinstance(raw, PerformanceRecord):
        return raw
    if isinstance(raw, Mapping):
        raw = RawPerformanceRecord.from_mapping(raw)
    if not isinstance(raw, RawPerformanceRecord):
        raise TypeError(f"Unsupported record type: {type(raw).__name__}")

    display_name = coerce_text(raw.display_name) or ""
    return PerformanceRecord(
        ad_id=coerce_text(raw.ad_id) or "",
        creative_id=coerce_text(raw.creative_id),
        adset_name=coerce_text(raw.adset_name),
        account_id=coerce_text(raw.account_id),
        display_name=display_name,
        creative_spec=_coerce_creative_spec(raw.creative_spec),
        thumbnail_url=coerce_text(raw.thumbnail_url),
        group_key=coerce_text(raw.group_key),
        impressions=coerce_int(raw.impressions),
        clicks=coerce_int(raw.clicks),
        spend=coerce_float(raw.spend),
        purchases=_clean_purchase_count(raw.purchases, display_name),
        revenue=coerce_float(raw.revenue),
    )


def coerce_records(raws: Optional[Iterable[RecordInput]]) -> List[PerformanceRecord]:
    """Coerce a full record list. Entries that are not records are skipped.

    Raises:
        TypeError: If raws is None (an empty list is valid).
    """
    if raws is None:
        raise TypeError("records must be a list, got None")

    records: List[PerformanceRecord] = []
    skipped = 0
    for raw in raws:
        try:
            records.append(coerce_record(raw))
        except TypeError:
            skipped += 1
    if skipped:
        logger.warning(f"Skipped {skipped} malformed records during ingestion")
    return records


# =============================================================================
# Meta Insights Normalization
# =============================================================================

def _sum_actions(actions: Any, action_types: Sequence[str] = PURCHASE_ACTION_TYPES) -> Optional[float]:
    """Sum the values of the first matching action type in a Meta actions array.

    Returns None when the array is missing or carries none of the types
    (distinct from a reported 0).
    """
    if not isinstance(actions, list):
        return None
    for action_type in action_types:
        matches = [
            action for action in actions
            if isinstance(action, dict) and action.get("action_type") == action_type
        ]
        if matches:
            return sum(coerce_float(action.get("value")) for action in matches)
    return None


def from_meta_insight(insight: Mapping[str, Any], ad: Optional[Mapping[str, Any]] = None) -> RawPerformanceRecord:
    """
    Normalize a Meta insights row (level=ad) to a RawPerformanceRecord.

    The 'actions' and 'action_values' fields come back as arrays, so purchase
    counts and revenue are pulled out of them. Creative details come from
    the matching ad object, when given.

    Args:
        insight: Raw insight dict from the Meta API
        ad: Ad object with 'creative{id,thumbnail_url,object_story_spec}'

    Returns:
        RawPerformanceRecord ready for coerce_record()
    """
    ad = ad or {}
    creative = ad.get("creative") if isinstance(ad.get("creative"), Mapping) else {}
    adset = ad.get("adset") if isinstance(ad.get("adset"), Mapping) else {}

    purchases = _sum_actions(insight.get("actions"))
    revenue = _sum_actions(insight.get("action_values"))

    return RawPerformanceRecord(
        ad_id=insight.get("ad_id") or ad.get("id"),
        display_name=insight.get("ad_name") or ad.get("name"),
        adset_name=insight.get("adset_name") or adset.get("name"),
        account_id=insight.get("account_id") or ad.get("account_id"),
        creative_id=creative.get("id"),
        thumbnail_url=creative.get("thumbnail_url"),
        creative_spec=creative.get("object_story_spec"),
        impressions=insight.get("impressions"),
        clicks=insight.get("clicks"),
        spend=insight.get("spend"),
        purchases=int(purchases) if purchases is not None else None,
        revenue=revenue,
    )


def from_meta_payload(
    insights: Sequence[Mapping[str, Any]],
    ads: Optional[Sequence[Mapping[str, Any]]] = None,
) -> List[RawPerformanceRecord]:
    """Join insights rows with their ads and normalize them.

    When ads are supplied, insights whose ad has no creative are dropped,
    matching the ads-data client's contract.
    """
    if ads is None:
        return [from_meta_insight(insight) for insight in insights]

    ads_by_id = {str(ad.get("id")): ad for ad in ads if isinstance(ad, Mapping)}
    records: List[RawPerformanceRecord] = []
    for insight in insights:
        ad = ads_by_id.get(str(insight.get("ad_id")))
        if ad is None or not ad.get("creative"):
            continue
        records.append(from_meta_insight(insight, ad))

    dropped = len(insights) - len(records)
    if dropped:
        logger.info(f"Dropped {dropped} insight rows without an associated creative")
    return records
