"""
AggregationService - Group performance records and derive ratio metrics.

Creative mode groups by name pattern (NamePatternService.discover); copy mode
groups by the bucket of each record's extracted copy. Each group becomes one
frozen AggregateRow with summed counters and zero-safe derived metrics.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .copy_extraction_service import CopyExtractionService
from .helpers import safe_ratio
from .ingestion import RecordInput, coerce_records
from .models import (
    AggregateRow,
    AggregationLevel,
    DiscoveryResult,
    PerformanceRecord,
    ViewMode,
)
from .name_pattern_service import NamePatternService, resolve_level

logger = logging.getLogger(__name__)

COUNTER_FIELDS = ("impressions", "clicks", "spend", "purchases", "revenue")

# Separates the exact-creative key from the ad instance id at level 5
INSTANCE_SEPARATOR = "::"


def _finite(value: float) -> float:
    try:
        return value if math.isfinite(value) else 0.0
    except OverflowError:
        return 0.0


def derive_metrics(
    impressions: float,
    clicks: float,
    spend: float,
    purchases: float,
    revenue: float,
) -> Dict[str, float]:
    """
    Compute ratio metrics from summed counters.

    Every ratio is 0 when its denominator is zero or negative. ROAS needs
    revenue > 0 and conversion rate needs purchases > 0.

    Returns:
        Dict with ctr, cpc, cpm, cost_per_purchase, roas, conversion_rate
    """
    return {
        "ctr": safe_ratio(clicks, impressions, 100),
        "cpc": safe_ratio(spend, clicks),
        "cpm": safe_ratio(spend, impressions, 1000),
        "cost_per_purchase": safe_ratio(spend, purchases),
        "roas": safe_ratio(revenue, spend) if revenue > 0 else 0.0,
        "conversion_rate": safe_ratio(purchases, clicks, 100) if purchases > 0 else 0.0,
    }


def summarize(rows: Iterable[AggregateRow]) -> Dict[str, float]:
    """Totals across rows: summed counters plus metrics derived from them."""
    totals: Dict[str, float] = {name: 0 for name in COUNTER_FIELDS}
    for row in rows:
        for name in COUNTER_FIELDS:
            totals[name] += getattr(row, name)
    totals = {name: _finite(value) for name, value in totals.items()}
    totals.update(derive_metrics(**totals))
    return totals


@dataclass
class _GroupAccumulator:
    """Mutable per-group state while a single aggregate() call runs."""

    group_key: str
    group_label: str
    ad_name: str
    extracted_copy: str
    ad_ids: List[str] = field(default_factory=list)
    adset_names: Set[str] = field(default_factory=set)
    creative_ids: Set[str] = field(default_factory=set)
    thumbnail_urls: List[str] = field(default_factory=list)
    _seen_ad_ids: Set[str] = field(default_factory=set, repr=False)
    _seen_thumbnails: Set[str] = field(default_factory=set, repr=False)
    instances: int = 0
    impressions: int = 0
    clicks: int = 0
    spend: float = 0.0
    purchases: int = 0
    revenue: float = 0.0

    def add(self, record: PerformanceRecord) -> None:
        self.instances += 1
        self.impressions += record.impressions
        self.clicks += record.clicks
        self.spend += record.spend
        self.purchases += record.purchases
        self.revenue += record.revenue

        if record.ad_id and record.ad_id not in self._seen_ad_ids:
            self._seen_ad_ids.add(record.ad_id)
            self.ad_ids.append(record.ad_id)
        if record.adset_name:
            self.adset_names.add(record.adset_name)
        if record.creative_id:
            self.creative_ids.add(record.creative_id)
        if record.thumbnail_url and record.thumbnail_url not in self._seen_thumbnails:
            self._seen_thumbnails.add(record.thumbnail_url)
            self.thumbnail_urls.append(record.thumbnail_url)

    def to_row(self) -> AggregateRow:
        spend = _finite(self.spend)
        revenue = _finite(self.revenue)
        metrics = derive_metrics(self.impressions, self.clicks, spend, self.purchases, revenue)
        return AggregateRow(
            group_key=self.group_key,
            group_label=self.group_label,
            ad_name=self.ad_name,
            ad_ids=list(self.ad_ids),
            adset_count=len(self.adset_names),
            creative_count=len(self.creative_ids) or 1,
            instances=self.instances,
            thumbnail_url=self.thumbnail_urls[0] if self.thumbnail_urls else None,
            thumbnail_urls=list(self.thumbnail_urls),
            impressions=self.impressions,
            clicks=self.clicks,
            spend=spend,
            purchases=self.purchases,
            revenue=revenue,
            extracted_copy=self.extracted_copy,
            **metrics,
        )


class AggregationService:
    """Turns performance records into aggregate rows."""

    def __init__(
        self,
        name_patterns: Optional[NamePatternService] = None,
        copy_extractor: Optional[CopyExtractionService] = None,
    ):
        self.name_patterns = name_patterns or NamePatternService()
        self.copy_extractor = copy_extractor or CopyExtractionService(self.name_patterns)

    def aggregate(
        self,
        records: Optional[Iterable[RecordInput]],
        level=AggregationLevel.PRODUCT,
        mode=ViewMode.CREATIVE,
    ) -> List[AggregateRow]:
        """
        Group records and derive per-group metrics.

        Args:
            records: Performance records (typed or raw mappings)
            level: Aggregation level 1-5 (creative mode grouping granularity)
            mode: ViewMode.CREATIVE or ViewMode.COPY (or their string values)

        Returns:
            One AggregateRow per group, in first-seen group order

        Raises:
            TypeError: If records is None
            ValueError: If level is outside 1-5 or mode is unknown
        """
        if records is None:
            raise TypeError("records must be a list, got None")
        level = resolve_level(level)
        mode = ViewMode(mode)

        typed = coerce_records(records)
        discoveries: Dict[str, DiscoveryResult] = {}
        groups: Dict[str, _GroupAccumulator] = {}

        for record in typed:
            if mode == ViewMode.COPY:
                copy_text = self.copy_extractor.extract_copy(record)
                key, label = self.copy_extractor.classify_copy(copy_text)
            else:
                copy_text = None
                key, label = self._creative_key(record, level, discoveries)

            group = groups.get(key)
            if group is None:
                if copy_text is None:
                    copy_text = self.copy_extractor.extract_copy(record)
                group = _GroupAccumulator(
                    group_key=key,
                    group_label=label,
                    ad_name=record.display_name,
                    extracted_copy=copy_text,
                )
                groups[key] = group
            group.add(record)

        rows = [group.to_row() for group in groups.values()]
        logger.info(
            f"Aggregated {len(typed)} records into {len(rows)} rows "
            f"(level={int(level)}, mode={mode.value})"
        )
        return rows

    def _creative_key(
        self,
        record: PerformanceRecord,
        level: AggregationLevel,
        discoveries: Dict[str, DiscoveryResult],
    ) -> Tuple[str, str]:
        if level == AggregationLevel.PRODUCT and record.group_key:
            return record.group_key, record.group_key

        discovery = discoveries.get(record.display_name)
        if discovery is None:
            discovery = self.name_patterns.discover(record.display_name, level)
            discoveries[record.display_name] = discovery

        key = discovery.group_key
        if discovery.is_exact and record.ad_id:
            return f"{key}{INSTANCE_SEPARATOR}{record.ad_id}", key
        return key, key
