"""Pydantic models for the creative performance engine.

Enums, ingestion/internal record shapes, aggregate rows and benchmark
thresholds. No I/O in this file -- pure type definitions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .helpers import _safe_numeric

logger = logging.getLogger(__name__)


# =============================================================================
# Enums
# =============================================================================

class AggregationLevel(int, Enum):
    """Grouping granularity, from broadest (1) to one group per creative (5)."""

    PRODUCT = 1
    THEME = 2
    VARIANT = 3
    DETAILED = 4
    EXACT = 5

    @property
    def label(self) -> str:
        return {
            1: "Product / Campaign",
            2: "Theme",
            3: "Variant",
            4: "Detailed",
            5: "Exact Creative",
        }[self.value]


class ViewMode(str, Enum):
    CREATIVE = "creative"
    COPY = "copy"


class PerformanceTier(str, Enum):
    GOOD = "good"
    WARNING = "warning"
    POOR = "poor"
    NEUTRAL = "neutral"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


# =============================================================================
# Ingestion
# =============================================================================

# Upstream key variants, checked in order
RAW_FIELD_ALIASES: Dict[str, tuple] = {
    "ad_id": ("ad_id", "adId", "id"),
    "creative_id": ("creative_id", "creativeId"),
    "adset_name": ("adset_name", "adsetName"),
    "account_id": ("account_id", "accountId"),
    "display_name": ("display_name", "displayName", "ad_name", "adName", "name"),
    "creative_spec": ("creative_spec", "creativeSpec", "object_story_spec", "objectStorySpec"),
    "thumbnail_url": ("thumbnail_url", "thumbnailUrl"),
    "group_key": ("group_key", "groupKey"),
    "impressions": ("impressions",),
    "clicks": ("clicks",),
    "spend": ("spend",),
    "purchases": ("purchases", "conversions"),
    "revenue": ("revenue", "purchase_value", "purchaseValue"),
}


class RawPerformanceRecord(BaseModel):
    """Loosely-typed record as delivered by the ads-data client.

    Every attribute is optional and untyped; ``ingestion.coerce_record`` turns
    it into a ``PerformanceRecord``.
    """

    ad_id: Optional[Any] = None
    creative_id: Optional[Any] = None
    adset_name: Optional[Any] = None
    account_id: Optional[Any] = None
    display_name: Optional[Any] = None
    creative_spec: Optional[Any] = None
    thumbnail_url: Optional[Any] = None
    group_key: Optional[Any] = None
    impressions: Optional[Any] = None
    clicks: Optional[Any] = None
    spend: Optional[Any] = None
    purchases: Optional[Any] = None
    revenue: Optional[Any] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RawPerformanceRecord":
        """Build from a dict using the first present camelCase/snake_case key."""
        values: Dict[str, Any] = {}
        for field_name, aliases in RAW_FIELD_ALIASES.items():
            for alias in aliases:
                if alias in data and data[alias] is not None:
                    values[field_name] = data[alias]
                    break
        return cls(**values)


class PerformanceRecord(BaseModel):
    """Strongly-typed per-ad record consumed by the engine."""

    ad_id: str = ""
    creative_id: Optional[str] = None
    adset_name: Optional[str] = None
    account_id: Optional[str] = None
    display_name: str = ""
    creative_spec: Optional[Dict[str, Any]] = None
    thumbnail_url: Optional[str] = None
    # Pre-computed level-1 grouping supplied upstream
    group_key: Optional[str] = None

    impressions: int = 0
    clicks: int = 0
    spend: float = 0.0
    purchases: int = 0
    revenue: float = 0.0


# =============================================================================
# Pattern Discovery
# =============================================================================

@dataclass(frozen=True)
class DiscoveryResult:
    """Outcome of decomposing one display name at one aggregation level."""

    group_key: str
    segments: List[str] = field(default_factory=list)
    is_exact: bool = False


# =============================================================================
# Aggregation Output
# =============================================================================

class AggregateRow(BaseModel):
    """One aggregated group. Built once per request, never mutated."""

    model_config = ConfigDict(frozen=True)

    group_key: str
    group_label: str
    ad_name: str
    ad_ids: List[str] = Field(default_factory=list)
    adset_count: int = 0
    creative_count: int = 1
    instances: int = 0
    thumbnail_url: Optional[str] = None
    thumbnail_urls: List[str] = Field(default_factory=list)

    # Summed counters
    impressions: int = 0
    clicks: int = 0
    spend: float = 0.0
    purchases: int = 0
    revenue: float = 0.0

    # Derived metrics
    ctr: float = 0.0
    cpc: float = 0.0
    cpm: float = 0.0
    cost_per_purchase: float = 0.0
    roas: float = 0.0
    conversion_rate: float = 0.0

    extracted_copy: str = ""


# =============================================================================
# Benchmarks
# =============================================================================

# camelCase ids persisted by the dashboard's benchmark store
METRIC_ID_ALIASES: Dict[str, str] = {
    "costPerPurchase": "cost_per_purchase",
    "conversionRate": "conversion_rate",
}


def normalize_metric_id(metric_id: str) -> str:
    """Map camelCase metric ids onto the internal snake_case ids."""
    return METRIC_ID_ALIASES.get(metric_id, metric_id)


class MetricThreshold(BaseModel):
    """Tier boundaries for one metric. ``high`` is stored but not used."""

    low: Optional[float] = None
    medium: Optional[float] = None
    high: Optional[float] = None


class BenchmarkThresholds(BaseModel):
    """Per-metric thresholds for one account (read-only per aggregation call)."""

    metrics: Dict[str, MetricThreshold] = Field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "BenchmarkThresholds":
        """Parse the persisted ``{metricId: {low, medium, high}}`` shape.

        Unparseable bounds become None, so the metric classifies as neutral.
        """
        metrics: Dict[str, MetricThreshold] = {}
        if not isinstance(data, Mapping):
            if data is not None:
                logger.warning(f"Ignoring benchmark thresholds of type {type(data).__name__}")
            return cls(metrics=metrics)
        for metric_id, bounds in data.items():
            if isinstance(bounds, MetricThreshold):
                metrics[normalize_metric_id(metric_id)] = bounds
            elif isinstance(bounds, Mapping):
                parsed = {name: _safe_numeric(bounds.get(name)) for name in ("low", "medium", "high")}
                bad = [name for name, value in parsed.items() if value is None and bounds.get(name) is not None]
                if bad:
                    logger.warning(f"Unparseable {metric_id} benchmark bounds {bad}, treating as missing")
                metrics[normalize_metric_id(metric_id)] = MetricThreshold(**parsed)
        return cls(metrics=metrics)

    def get(self, metric_id: str) -> Optional[MetricThreshold]:
        return self.metrics.get(normalize_metric_id(metric_id))

    def to_dict(self) -> Dict[str, Dict[str, Optional[float]]]:
        return {metric_id: bounds.model_dump() for metric_id, bounds in self.metrics.items()}


# =============================================================================
# Table Result
# =============================================================================

class CreativeTableResult(BaseModel):
    """Output of one end-to-end creative table request."""

    level: AggregationLevel
    mode: ViewMode
    rows: List[AggregateRow] = Field(default_factory=list)
    # group_key -> metric id -> tier
    tiers: Dict[str, Dict[str, PerformanceTier]] = Field(default_factory=dict)
    total_rows: int = 0
    record_count: int = 0
    totals: Dict[str, float] = Field(default_factory=dict)
