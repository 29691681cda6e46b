"""
BenchmarkService - Per-account metric thresholds and tier classification.

Thresholds are persisted per ad account (key ``act_<id>``) through a small
get/put store. Classification honors metric polarity: for CTR, ROAS and
rates higher is better; for CPC, CPM and cost per purchase lower is better.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from adlens.core.config import Config

from .helpers import normalize_account_id
from .models import (
    AggregateRow,
    BenchmarkThresholds,
    MetricThreshold,
    PerformanceTier,
    normalize_metric_id,
)

logger = logging.getLogger(__name__)

HIGHER = "higher"
LOWER = "lower"

METRIC_POLARITY: Dict[str, str] = {
    "ctr": HIGHER,
    "roas": HIGHER,
    "cpc": LOWER,
    "cpm": LOWER,
    "cost_per_purchase": LOWER,
}

# Row metrics reported as percentages while thresholds are stored as fractions
PERCENT_METRICS = ("ctr", "conversion_rate")

BENCHMARKED_METRICS = ("ctr", "cpc", "cpm", "conversion_rate", "cost_per_purchase", "roas")

DEFAULT_BENCHMARKS: Dict[str, Dict[str, Optional[float]]] = {
    "ctr": {"low": 0.01, "medium": 0.02, "high": None},
    "cpc": {"low": 1.5, "medium": 2.5, "high": None},
    "cpm": {"low": 20, "medium": 30, "high": None},
    "conversion_rate": {"low": 0.02, "medium": 0.04, "high": None},
    "cost_per_purchase": {"low": 50, "medium": 80, "high": None},
    "roas": {"low": 1, "medium": 2, "high": None},
}

# Status labels used by the CSV export
TIER_STATUS: Dict[PerformanceTier, str] = {
    PerformanceTier.GOOD: "High",
    PerformanceTier.WARNING: "Medium",
    PerformanceTier.POOR: "Low",
    PerformanceTier.NEUTRAL: "N/A",
}


def metric_polarity(metric_id: str) -> Optional[str]:
    """HIGHER, LOWER, or None when the metric has no known direction."""
    metric_id = normalize_metric_id(metric_id)
    if metric_id in METRIC_POLARITY:
        return METRIC_POLARITY[metric_id]
    if "rate" in metric_id:
        return HIGHER
    return None


def classify(
    metric_id: str,
    value: Optional[float],
    thresholds: Optional[Union[BenchmarkThresholds, Dict[str, Any]]],
) -> PerformanceTier:
    """
    Classify one metric value against its thresholds.

    Args:
        metric_id: Metric id (snake_case or camelCase)
        value: Metric value in the same scale as the thresholds
        thresholds: BenchmarkThresholds or the persisted dict shape

    Returns:
        PerformanceTier; NEUTRAL when the value, the metric entry, either
        threshold or the metric's polarity is missing
    """
    if value is None or thresholds is None:
        return PerformanceTier.NEUTRAL
    if not isinstance(thresholds, BenchmarkThresholds):
        thresholds = BenchmarkThresholds.from_dict(thresholds)

    bounds = thresholds.get(metric_id)
    polarity = metric_polarity(metric_id)
    if bounds is None or bounds.low is None or bounds.medium is None or polarity is None:
        return PerformanceTier.NEUTRAL

    if polarity == HIGHER:
        lower, upper = sorted((bounds.low, bounds.medium))
        if value >= upper:
            return PerformanceTier.GOOD
        if value >= lower:
            return PerformanceTier.WARNING
        return PerformanceTier.POOR

    good_bound, poor_bound = sorted((bounds.low, bounds.medium))
    if value <= good_bound:
        return PerformanceTier.GOOD
    if value <= poor_bound:
        return PerformanceTier.WARNING
    return PerformanceTier.POOR


# =============================================================================
# Stores
# =============================================================================

class BenchmarkStore:
    """Key/value persistence for per-account threshold dicts."""

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def put(self, key: str, value: Dict[str, Any]) -> None:
        raise NotImplementedError


class InMemoryBenchmarkStore(BenchmarkStore):
    def __init__(self, data: Optional[Dict[str, Dict[str, Any]]] = None):
        self._data: Dict[str, Dict[str, Any]] = dict(data or {})

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._data.get(key)
        return json.loads(json.dumps(value)) if value is not None else None

    def put(self, key: str, value: Dict[str, Any]) -> None:
        self._data[key] = json.loads(json.dumps(value))


class JsonFileBenchmarkStore(BenchmarkStore):
    """All accounts' thresholds in one JSON document: ``{"act_<id>": {...}}``."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path or Config.BENCHMARK_STORE_PATH)

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read benchmark store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Benchmark store {self.path} is not a JSON object, ignoring")
            return {}
        return data

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._read_all().get(key)
        return value if isinstance(value, dict) else None

    def put(self, key: str, value: Dict[str, Any]) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
        logger.info(f"Saved benchmarks for {key} to {self.path}")


# =============================================================================
# Service
# =============================================================================

class BenchmarkService:
    """Loads, updates and applies account benchmarks."""

    def __init__(self, store: Optional[BenchmarkStore] = None):
        self.store = store or InMemoryBenchmarkStore()

    @staticmethod
    def store_key(account_id: str) -> str:
        normalized = normalize_account_id(account_id)
        if not normalized:
            raise ValueError("account_id is required")
        return f"act_{normalized}"

    @staticmethod
    def defaults() -> BenchmarkThresholds:
        return BenchmarkThresholds.from_dict(DEFAULT_BENCHMARKS)

    def fetch(self, account_id: Optional[str]) -> BenchmarkThresholds:
        """Stored thresholds for an account, or the defaults."""
        if not normalize_account_id(account_id):
            return self.defaults()
        stored = self.store.get(self.store_key(account_id))
        if not stored:
            logger.debug(f"No stored benchmarks for {account_id}, using defaults")
            return self.defaults()
        if not isinstance(stored, dict):
            logger.warning(f"Malformed benchmarks stored for {account_id}, using defaults")
            return self.defaults()
        return BenchmarkThresholds.from_dict(stored)

    def save(self, account_id: str, thresholds: BenchmarkThresholds) -> None:
        self.store.put(self.store_key(account_id), thresholds.to_dict())

    @staticmethod
    def with_threshold(
        thresholds: BenchmarkThresholds,
        metric_id: str,
        low: Optional[float] = None,
        medium: Optional[float] = None,
        high: Optional[float] = None,
    ) -> BenchmarkThresholds:
        """Copy of thresholds with one metric's bounds replaced."""
        metrics = dict(thresholds.metrics)
        metrics[normalize_metric_id(metric_id)] = MetricThreshold(low=low, medium=medium, high=high)
        return BenchmarkThresholds(metrics=metrics)

    def classify_row(
        self,
        row: AggregateRow,
        thresholds: Optional[BenchmarkThresholds] = None,
    ) -> Dict[str, PerformanceTier]:
        """
        Tier every benchmarked metric of a row.

        Percentage metrics are divided by 100 first, since thresholds are
        stored as fractions (CTR 2% -> 0.02).
        """
        thresholds = thresholds if thresholds is not None else self.defaults()
        tiers: Dict[str, PerformanceTier] = {}
        for metric_id in BENCHMARKED_METRICS:
            value = getattr(row, metric_id)
            if metric_id in PERCENT_METRICS:
                value = value / 100
            tiers[metric_id] = classify(metric_id, value, thresholds)
        return tiers
