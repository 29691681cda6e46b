"""
Creative Table Exporter

Export aggregate rows in multiple formats:
- CSV (report download, benchmark status per metric)
- JSON (for programmatic use)

Usage:
    exporter = CreativeTableExporter()
    exporter.export_to_csv(result, output_path)
"""

import csv
import json
import logging
from datetime import date
from pathlib import Path
from typing import Dict, Optional

from .benchmark_service import TIER_STATUS
from .models import CreativeTableResult, PerformanceTier

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    'Creative', 'Ad Sets', 'Impressions', 'Clicks',
    'CTR', 'CTR Benchmark', 'CPC', 'CPC Benchmark',
    'CPM', 'CPM Benchmark', 'Purchases', 'Cost/Purchase',
    'Cost/Purchase Benchmark', 'Spend', 'ROAS', 'ROAS Benchmark',
]


def default_report_name(today: Optional[date] = None) -> str:
    """Creative_Performance_Report_<YYYY-MM-DD>.csv"""
    today = today or date.today()
    return f"Creative_Performance_Report_{today.isoformat()}.csv"


class CreativeTableExporter:
    """
    Export creative table results in various formats
    """

    @staticmethod
    def _status(tiers: Dict[str, PerformanceTier], metric_id: str) -> str:
        return TIER_STATUS[tiers.get(metric_id, PerformanceTier.NEUTRAL)]

    @staticmethod
    def _currency(value: float) -> str:
        return f"${value:.2f}"

    def export_to_csv(self, result: CreativeTableResult, output_path: Optional[str] = None) -> str:
        """
        Export rows to a CSV report

        Args:
            result: CreativeTableResult from CreativePerformanceService
            output_path: Output file path (defaults to the dated report name)

        Returns:
            Path written
        """
        output_file = Path(output_path or default_report_name())
        output_file.parent.mkdir(parents=True, exist_ok=True)

        with open(output_file, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(CSV_HEADERS)

            for row in result.rows:
                tiers = result.tiers.get(row.group_key, {})
                writer.writerow([
                    row.ad_name,
                    row.adset_count,
                    row.impressions,
                    row.clicks,
                    f"{row.ctr:.2f}%",
                    self._status(tiers, 'ctr'),
                    self._currency(row.cpc),
                    self._status(tiers, 'cpc'),
                    self._currency(row.cpm),
                    self._status(tiers, 'cpm'),
                    row.purchases,
                    self._currency(row.cost_per_purchase),
                    self._status(tiers, 'cost_per_purchase'),
                    self._currency(row.spend),
                    f"{row.roas:.2f}x",
                    self._status(tiers, 'roas'),
                ])

        logger.info(f"Exported {len(result.rows)} rows to CSV: {output_file}")
        return str(output_file)

    def export_to_json(self, result: CreativeTableResult, output_path: str) -> str:
        """
        Export rows, tiers and totals to a JSON file

        Args:
            result: CreativeTableResult from CreativePerformanceService
            output_path: Output file path

        Returns:
            Path written
        """
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(result.model_dump(mode='json'), f, indent=2, ensure_ascii=False)

        logger.info(f"Exported {len(result.rows)} rows to JSON: {output_path}")
        return str(output_file)
