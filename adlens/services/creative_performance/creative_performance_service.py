"""CreativePerformanceService: Orchestration facade for the creative table.

Runs one request end to end: ingestion -> account filter -> aggregation ->
filter/sort -> benchmark classification. Holds no per-request state, so the
same instance can serve any number of calls.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Union

from .aggregation_service import AggregationService, summarize
from .benchmark_service import BenchmarkService, BenchmarkStore
from .copy_extraction_service import CopyExtractionService
from .helpers import normalize_account_id
from .ingestion import RecordInput, coerce_records
from .models import (
    AggregationLevel,
    BenchmarkThresholds,
    CreativeTableResult,
    ViewMode,
)
from .name_pattern_service import NamePatternService, resolve_level
from .table_view import view

logger = logging.getLogger(__name__)


class CreativePerformanceService:
    """Orchestration facade for creative performance analysis.

    Coordinates:
    1. Pattern discovery + copy extraction (grouping keys)
    2. Aggregation (summed counters, derived metrics)
    3. View (search filter, sort)
    4. Benchmarks (per-metric performance tiers)
    """

    def __init__(
        self,
        name_patterns: Optional[NamePatternService] = None,
        benchmark_store: Optional[BenchmarkStore] = None,
    ):
        """Initialize all sub-services.

        Args:
            name_patterns: Optional NamePatternService, e.g. built from a
                naming-rules YAML via NamePatternService.from_config().
            benchmark_store: Optional store for per-account thresholds.
                Defaults to an in-memory store (defaults only).
        """
        self.name_patterns = name_patterns or NamePatternService()
        self.copy_extractor = CopyExtractionService(self.name_patterns)
        self.aggregation = AggregationService(self.name_patterns, self.copy_extractor)
        self.benchmarks = BenchmarkService(benchmark_store)

        logger.info("CreativePerformanceService initialized")

    def build_table(
        self,
        records: Optional[Iterable[RecordInput]],
        level=AggregationLevel.PRODUCT,
        mode=ViewMode.CREATIVE,
        query: Optional[str] = "",
        sort_key: str = "spend",
        sort_dir: str = "desc",
        thresholds: Optional[Union[BenchmarkThresholds, Dict[str, Any]]] = None,
        account_id: Optional[str] = None,
    ) -> CreativeTableResult:
        """Build the creative performance table for one request.

        Args:
            records: Raw or typed performance records.
            level: Aggregation level 1-5.
            mode: 'creative' or 'copy'.
            query: Case-insensitive search over ad name and copy.
            sort_key: Row column to sort by.
            sort_dir: 'asc' or 'desc'.
            thresholds: Benchmarks to apply. When omitted they are fetched
                for account_id (or the defaults).
            account_id: Keep only records of this account (act_ prefix optional).

        Returns:
            CreativeTableResult with rows, tiers and totals.

        Raises:
            TypeError: If records is None.
            ValueError: On invalid level, mode, sort key or direction.
        """
        if records is None:
            raise TypeError("records must be a list, got None")
        level = resolve_level(level)
        mode = ViewMode(mode)

        typed = coerce_records(records)
        account = normalize_account_id(account_id)
        if account:
            typed = [r for r in typed if normalize_account_id(r.account_id) == account]
            logger.info(f"{len(typed)} records belong to account act_{account}")

        rows = self.aggregation.aggregate(typed, level, mode)
        visible = view(rows, query, sort_key, sort_dir)

        if thresholds is None:
            thresholds = self.benchmarks.fetch(account)
        elif not isinstance(thresholds, BenchmarkThresholds):
            thresholds = BenchmarkThresholds.from_dict(thresholds)

        tiers = {row.group_key: self.benchmarks.classify_row(row, thresholds) for row in visible}

        return CreativeTableResult(
            level=level,
            mode=mode,
            rows=visible,
            tiers=tiers,
            total_rows=len(rows),
            record_count=len(typed),
            totals=summarize(visible),
        )
