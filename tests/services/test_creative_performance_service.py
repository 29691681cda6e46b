"""
Tests for CreativePerformanceService.build_table(): the end-to-end pipeline.
"""

import pytest

from adlens.services.creative_performance.benchmark_service import InMemoryBenchmarkStore
from adlens.services.creative_performance.creative_performance_service import CreativePerformanceService
from adlens.services.creative_performance.models import AggregationLevel, PerformanceTier, ViewMode


@pytest.fixture
def records():
    return [
        {
            "adId": "1", "accountId": "act_100", "displayName": "ProductX | Video | 1234567890123",
            "impressions": 1000, "clicks": 30, "spend": 50.0, "purchases": 2, "revenue": 150.0,
        },
        {
            "adId": "2", "accountId": "act_100", "displayName": "ProductX | Video | 1234567890999",
            "impressions": 2000, "clicks": 10, "spend": 70.0, "purchases": 1, "revenue": 20.0,
        },
        {
            "adId": "3", "accountId": "100", "displayName": "Serum_Testimonial_v1",
            "impressions": 500, "clicks": 20, "spend": 300.0, "purchases": 3, "revenue": 900.0,
        },
        {
            "adId": "4", "accountId": "act_200", "displayName": "Other_Brand_v1",
            "impressions": 100, "clicks": 1, "spend": 999.0,
        },
    ]


@pytest.fixture
def service():
    return CreativePerformanceService()


class TestBuildTable:
    def test_default_sort_spend_desc(self, service, records):
        result = service.build_table(records)
        assert result.level == AggregationLevel.PRODUCT
        assert result.mode == ViewMode.CREATIVE
        assert [row.spend for row in result.rows] == sorted((row.spend for row in result.rows), reverse=True)
        assert result.record_count == 4
        assert result.total_rows == len(result.rows) == 3

    def test_account_filter(self, service, records):
        result = service.build_table(records, account_id="100")
        assert result.record_count == 3
        assert {row.group_key for row in result.rows} == {"ProductX | Video", "Serum | Testimonial"}

    def test_account_filter_accepts_prefix(self, service, records):
        assert service.build_table(records, account_id="act_200").record_count == 1

    def test_query_filter_keeps_total_rows(self, service, records):
        result = service.build_table(records, query="serum")
        assert [row.group_key for row in result.rows] == ["Serum | Testimonial"]
        assert result.total_rows == 3

    def test_tiers_per_row(self, service, records):
        result = service.build_table(records, account_id="100")
        serum = result.tiers["Serum | Testimonial"]
        assert serum["roas"] == PerformanceTier.GOOD
        assert set(result.tiers) == {row.group_key for row in result.rows}

    def test_explicit_thresholds(self, service, records):
        result = service.build_table(records, account_id="100", thresholds={"roas": {"low": 5, "medium": 10}})
        assert result.tiers["Serum | Testimonial"]["roas"] == PerformanceTier.POOR
        assert result.tiers["Serum | Testimonial"]["cpc"] == PerformanceTier.NEUTRAL

    def test_stored_thresholds_for_account(self, records):
        store = InMemoryBenchmarkStore({"act_100": {"roas": {"low": 2, "medium": 4}}})
        result = CreativePerformanceService(benchmark_store=store).build_table(records, account_id="100")
        assert result.tiers["Serum | Testimonial"]["roas"] == PerformanceTier.WARNING

    def test_unparseable_stored_threshold_is_neutral(self, records):
        store = InMemoryBenchmarkStore({"act_100": {"roas": {"low": "n/a", "medium": 2}}})
        result = CreativePerformanceService(benchmark_store=store).build_table(records, account_id="100")
        assert result.tiers["Serum | Testimonial"]["roas"] == PerformanceTier.NEUTRAL

    def test_totals_cover_visible_rows(self, service, records):
        result = service.build_table(records, account_id="100")
        assert result.totals["spend"] == pytest.approx(420.0)
        assert result.totals["revenue"] == pytest.approx(1070.0)
        assert result.totals["roas"] == pytest.approx(1070.0 / 420.0)

    def test_exact_level(self, service, records):
        result = service.build_table(records, level=5, sort_key="ad_name", sort_dir="asc")
        assert len(result.rows) == 4
        assert result.rows[0].ad_name == "Other_Brand_v1"

    def test_copy_mode(self, service, records):
        result = service.build_table(records, mode="copy", account_id="100")
        assert "testimonial" in {row.group_key for row in result.rows}

    def test_idempotent(self, service, records):
        assert service.build_table(records, level=3) == service.build_table(records, level=3)

    def test_errors(self, service, records):
        with pytest.raises(TypeError):
            service.build_table(None)
        with pytest.raises(ValueError):
            service.build_table(records, level=7)
        with pytest.raises(ValueError):
            service.build_table(records, sort_key="nope")
