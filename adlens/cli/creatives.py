"""
Creative Performance CLI Commands

Commands for aggregating ad performance exports and managing benchmarks.
"""

import json
import logging
from typing import Optional

import click

from ..core.config import Config
from ..services.creative_performance.benchmark_service import (
    TIER_STATUS,
    BenchmarkService,
    JsonFileBenchmarkStore,
)
from ..services.creative_performance.creative_performance_service import CreativePerformanceService
from ..services.creative_performance.exporter import CreativeTableExporter
from ..services.creative_performance.ingestion import from_meta_payload
from ..services.creative_performance.name_pattern_service import NamePatternService
from ..services.creative_performance.table_view import paginate


# Configure logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format="[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

logger = logging.getLogger(__name__)


def _load_records(path: str, meta: bool):
    with open(path, 'r', encoding='utf-8') as f:
        payload = json.load(f)

    if meta:
        if isinstance(payload, dict):
            return from_meta_payload(payload.get('insights', []), payload.get('ads'))
        return from_meta_payload(payload)

    if isinstance(payload, dict):
        payload = payload.get('records', payload.get('creativePerformance'))
    if not isinstance(payload, list):
        raise click.BadParameter("expected a JSON list of records", param_hint='RECORDS_FILE')
    return payload


@click.group()
def creatives():
    """Creative performance table commands"""
    pass


@creatives.command()
@click.argument('records_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--level', '-l', type=click.IntRange(1, 5), default=Config.DEFAULT_AGGREGATION_LEVEL, help='Aggregation level 1 (product) to 5 (exact creative)')
@click.option('--mode', '-m', type=click.Choice(['creative', 'copy']), default='creative', help='Group by name pattern or by ad copy')
@click.option('--query', '-q', default='', help='Filter by ad name or copy text')
@click.option('--sort', 'sort_key', default=Config.DEFAULT_SORT_KEY, help='Column to sort by')
@click.option('--direction', type=click.Choice(['asc', 'desc']), default='desc', help='Sort direction')
@click.option('--account', '-a', default=None, help='Only include this ad account (act_ prefix optional)')
@click.option('--benchmarks', 'store_path', default=None, help='Benchmark store JSON file')
@click.option('--rules', 'rules_path', default=None, help='Naming rules YAML file')
@click.option('--meta', is_flag=True, help='Input is Meta insights rows (optionally {"insights": [...], "ads": [...]})')
@click.option('--limit', type=int, default=Config.DEFAULT_PAGE_SIZE, help='Rows to print')
@click.option('--csv', 'csv_path', default=None, help='Write the table to this CSV file')
@click.option('--json', 'json_path', default=None, help='Write the table to this JSON file')
def aggregate(
    records_file: str,
    level: int,
    mode: str,
    query: str,
    sort_key: str,
    direction: str,
    account: Optional[str],
    store_path: Optional[str],
    rules_path: Optional[str],
    meta: bool,
    limit: int,
    csv_path: Optional[str],
    json_path: Optional[str],
):
    """
    Aggregate ad performance records into a creative table

    Example:
        creatives aggregate ads.json --level 3 --sort roas --csv report.csv
    """
    try:
        records = _load_records(records_file, meta)
        logger.info(f"Loaded {len(records)} records from {records_file}")

        service = CreativePerformanceService(
            name_patterns=NamePatternService.from_config(rules_path),
            benchmark_store=JsonFileBenchmarkStore(store_path),
        )
        result = service.build_table(
            records,
            level=level,
            mode=mode,
            query=query,
            sort_key=sort_key,
            sort_dir=direction,
            account_id=account or Config.META_AD_ACCOUNT_ID or None,
        )

        click.echo(f"✅ {result.record_count} records -> {len(result.rows)} rows "
                   f"(level {int(result.level)}: {result.level.label}, mode: {result.mode.value})")
        click.echo("-" * 80)
        for i, row in enumerate(paginate(result.rows, 1, max(limit, 1)), 1):
            tiers = result.tiers.get(row.group_key, {})
            roas_status = TIER_STATUS[tiers['roas']] if 'roas' in tiers else 'N/A'
            click.echo(f"{i}. {row.group_label}")
            click.echo(f"   Ads: {len(row.ad_ids)}  Ad sets: {row.adset_count}  Creatives: {row.creative_count}")
            click.echo(f"   Spend: ${row.spend:.2f}  Impressions: {row.impressions:,}  Clicks: {row.clicks:,}")
            click.echo(f"   CTR: {row.ctr:.2f}%  CPC: ${row.cpc:.2f}  CPM: ${row.cpm:.2f}")
            click.echo(f"   Purchases: {row.purchases}  ROAS: {row.roas:.2f}x ({roas_status})")
            click.echo(f"   Copy: {row.extracted_copy.splitlines()[0] if row.extracted_copy else ''}")
            click.echo()

        totals = result.totals
        click.echo(f"Totals: spend ${totals['spend']:.2f}, purchases {int(totals['purchases'])}, "
                   f"ROAS {totals['roas']:.2f}x")

        exporter = CreativeTableExporter()
        if csv_path:
            written = exporter.export_to_csv(result, csv_path)
            click.echo(f"✅ CSV written to {written}")
        if json_path:
            written = exporter.export_to_json(result, json_path)
            click.echo(f"✅ JSON written to {written}")

    except Exception as e:
        click.echo(f"❌ Error: {e}", err=True)
        raise


@creatives.group()
def benchmarks():
    """Per-account benchmark thresholds"""
    pass


@benchmarks.command(name='show')
@click.option('--account', '-a', default=None, help='Ad account id (act_ prefix optional)')
@click.option('--store', 'store_path', default=None, help='Benchmark store JSON file')
def show_benchmarks(account: Optional[str], store_path: Optional[str]):
    """Show the thresholds applied to an account"""
    try:
        service = BenchmarkService(JsonFileBenchmarkStore(store_path))
        thresholds = service.fetch(account or Config.META_AD_ACCOUNT_ID or None)

        click.echo(f"Benchmarks for {account or 'default account'}:")
        for metric_id, bounds in thresholds.metrics.items():
            click.echo(f"  {metric_id}: low={bounds.low} medium={bounds.medium}")

    except Exception as e:
        click.echo(f"❌ Error: {e}", err=True)
        raise


@benchmarks.command(name='set')
@click.option('--account', '-a', required=True, help='Ad account id (act_ prefix optional)')
@click.option('--metric', required=True, help='Metric id, e.g. roas, cpc, cost_per_purchase')
@click.option('--low', type=float, required=True, help='Low threshold')
@click.option('--medium', type=float, required=True, help='Medium threshold')
@click.option('--store', 'store_path', default=None, help='Benchmark store JSON file')
def set_benchmark(account: str, metric: str, low: float, medium: float, store_path: Optional[str]):
    """
    Update one metric threshold for an account

    Example:
        creatives benchmarks set --account act_123 --metric roas --low 1 --medium 2
    """
    try:
        service = BenchmarkService(JsonFileBenchmarkStore(store_path))
        updated = service.with_threshold(service.fetch(account), metric, low=low, medium=medium)
        service.save(account, updated)

        click.echo(f"✅ Saved {metric} benchmark for {service.store_key(account)}: low={low} medium={medium}")

    except Exception as e:
        click.echo(f"❌ Error: {e}", err=True)
        raise
