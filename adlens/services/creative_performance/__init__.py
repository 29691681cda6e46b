"""Creative Performance Service Package

Pipeline for the creative performance table:
- Ingestion (defensive coercion of ads-platform records)
- Pattern discovery (group keys from ad names, levels 1-5)
- Copy extraction (representative ad copy per record)
- Aggregation (summed counters, derived ratio metrics)
- Benchmarks (per-account thresholds, performance tiers)
- View + export (filter, sort, paginate, CSV/JSON)
"""

from .aggregation_service import AggregationService, derive_metrics, summarize
from .benchmark_service import (
    DEFAULT_BENCHMARKS,
    BenchmarkService,
    BenchmarkStore,
    InMemoryBenchmarkStore,
    JsonFileBenchmarkStore,
    classify,
)
from .copy_extraction_service import CopyExtractionService, format_copy
from .creative_performance_service import CreativePerformanceService
from .exporter import CreativeTableExporter
from .ingestion import coerce_record, coerce_records, from_meta_insight, from_meta_payload
from .models import (
    AggregateRow,
    AggregationLevel,
    BenchmarkThresholds,
    CreativeTableResult,
    DiscoveryResult,
    MetricThreshold,
    PerformanceRecord,
    PerformanceTier,
    RawPerformanceRecord,
    SortDirection,
    ViewMode,
)
from .name_pattern_service import NamePatternService
from .table_view import paginate, view

__all__ = [
    'AggregationService',
    'derive_metrics',
    'summarize',
    'DEFAULT_BENCHMARKS',
    'BenchmarkService',
    'BenchmarkStore',
    'InMemoryBenchmarkStore',
    'JsonFileBenchmarkStore',
    'classify',
    'CopyExtractionService',
    'format_copy',
    'CreativePerformanceService',
    'CreativeTableExporter',
    'coerce_record',
    'coerce_records',
    'from_meta_insight',
    'from_meta_payload',
    'AggregateRow',
    'AggregationLevel',
    'BenchmarkThresholds',
    'CreativeTableResult',
    'DiscoveryResult',
    'MetricThreshold',
    'PerformanceRecord',
    'PerformanceTier',
    'RawPerformanceRecord',
    'SortDirection',
    'ViewMode',
    'NamePatternService',
    'paginate',
    'view',
]
