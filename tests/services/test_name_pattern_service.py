"""
Tests for NamePatternService: group keys from ad display names.

Covers separator detection, technical-token filtering per level, level 5
exact keys, level monotonicity and YAML naming-rule overrides.
"""

import pytest

from adlens.core.config import NamingRulesConfig, load_naming_rules
from adlens.services.creative_performance.name_pattern_service import (
    NamePatternService,
    build_technical_rules,
    resolve_level,
)


NAMES = [
    "ProductX | Video | 1234567890123",
    "BrandY_Copy Emotional Strength Approach_v2",
    "Summer_2403_Promo",
    "SummerSaleVideo",
    "Homepage",
    "2403_Summer-Sale_1080x1080_act_98765",
    "Glow Serum - Morning Routine - UGC - 1200x628",
    "1234567890123",
]


@pytest.fixture
def service():
    return NamePatternService()


# ---------------------------------------------------------------------------
# Splitting
# ---------------------------------------------------------------------------

class TestSplitSegments:
    def test_pipe_separator(self, service):
        assert service.split_segments("ProductX | Video | 1234567890123") == [
            "ProductX", "Video", "1234567890123",
        ]

    def test_pipe_wins_over_underscore(self, service):
        assert service.split_segments("A|B_C") == ["A", "B_C"]

    def test_underscore_separator(self, service):
        assert service.split_segments("BrandY_Copy Emotional Strength Approach_v2") == [
            "BrandY", "Copy Emotional Strength Approach", "v2",
        ]

    def test_empty_segments_dropped(self, service):
        assert service.split_segments("A__B_") == ["A", "B"]

    def test_double_space(self, service):
        assert service.split_segments("Alpha  Beta") == ["Alpha", "Beta"]

    def test_camel_case_fallback(self, service):
        assert service.split_segments("SummerSaleVideo") == ["Summer", "Sale", "Video"]

    def test_single_word(self, service):
        assert service.split_segments("Homepage") == ["Homepage"]

    def test_product_name(self, service):
        assert service.product_name("BrandY_Copy Emotional Strength Approach_v2") == "BrandY"
        assert service.product_name("") == ""


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------

class TestDiscover:
    def test_level_one_drops_trailing_id(self, service):
        result = service.discover("ProductX | Video | 1234567890123", 1)
        assert result.group_key == "ProductX | Video"
        assert result.segments == ["ProductX", "Video"]
        assert result.is_exact is False

    def test_level_one_drops_version_token(self, service):
        result = service.discover("BrandY_Copy Emotional Strength Approach_v2", 1)
        assert result.group_key == "BrandY | Copy Emotional Strength Approach"

    def test_level_four_keeps_version_token(self, service):
        result = service.discover("BrandY_Copy Emotional Strength Approach_v2", 4)
        assert result.group_key == "BrandY | Copy Emotional Strength Approach | v2"

    def test_broad_filter_drops_date_past_level(self, service):
        assert service.discover("Summer_2403_Promo", 1).group_key == "Summer | Promo"

    def test_date_within_level_positions_is_kept(self, service):
        assert service.discover("Summer_2403_Promo", 2).group_key == "Summer | 2403"
        assert service.discover("Summer_2403_Promo", 3).group_key == "Summer | 2403 | Promo"

    def test_obvious_tokens_dropped_at_every_level(self, service):
        for level in range(1, 5):
            result = service.discover("Glow Serum - Morning Routine - UGC - 1200x628", level)
            assert "1200x628" not in result.segments

    def test_camel_case_name(self, service):
        assert service.discover("SummerSaleVideo", 1).group_key == "Summer | Sale"

    def test_all_technical_falls_back_to_first_raw_segment(self, service):
        result = service.discover("1234567890123", 1)
        assert result.group_key == "1234567890123"
        assert result.segments == ["1234567890123"]

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_name_is_unknown(self, service, name):
        result = service.discover(name, 2)
        assert result.group_key == "unknown"
        assert result.segments == []
        assert result.is_exact is False

    def test_empty_name_at_level_five_is_exact(self, service):
        result = service.discover("", 5)
        assert result.group_key == "unknown"
        assert result.is_exact is True

    @pytest.mark.parametrize("level", [0, 6, -1, True, "3"])
    def test_invalid_level(self, service, level):
        with pytest.raises(ValueError):
            service.discover("ProductX | Video", level)

    def test_deterministic(self, service):
        for name in NAMES:
            for level in range(1, 6):
                assert service.discover(name, level) == service.discover(name, level)

    def test_segment_count_monotonic_in_level(self, service):
        for name in NAMES:
            counts = [len(service.discover(name, level).segments) for level in range(1, 6)]
            assert counts == sorted(counts), name


class TestExactKeys:
    def test_trailing_id(self, service):
        result = service.discover("ProductX | Video | 1234567890123", 5)
        assert result.group_key == "exact_1234567890123"
        assert result.is_exact is True

    def test_copy_suffix_shares_id(self, service):
        assert service.discover("Promo 1234567890123-COPY", 5).group_key == "exact_1234567890123"

    def test_no_id_uses_full_name(self, service):
        name = "BrandY_Copy Emotional Strength Approach_v2"
        assert service.discover(name, 5).group_key == "exact_" + name

    def test_level_five_keeps_narrow_filtered_segments(self, service):
        result = service.discover("BrandY_Copy Emotional Strength Approach_v2", 5)
        assert result.segments == ["BrandY", "Copy Emotional Strength Approach", "v2"]

    def test_distinct_names_get_distinct_keys(self, service):
        names = ["Alpha_v1", "Alpha_v2", "Alpha v1", "Beta | Video", "beta | video"]
        keys = {service.discover(name, 5).group_key for name in names}
        assert len(keys) == len(names)


# ---------------------------------------------------------------------------
# Configurable rules
# ---------------------------------------------------------------------------

class TestNamingRules:
    def test_resolve_level(self):
        assert int(resolve_level(3)) == 3

    def test_default_rules_without_config(self):
        assert build_technical_rules(None) == build_technical_rules(NamingRulesConfig())

    def test_extended_rule_from_yaml(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("extended:\n  - '^draft$'\n")

        custom = NamePatternService.from_config(str(path))
        assert custom.discover("Brand_draft_Theme", 1).group_key == "Brand | Theme"
        assert NamePatternService().discover("Brand_draft_Theme", 1).group_key == "Brand | draft"

    def test_replace_rules(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("replace: true\nobvious:\n  - '^Brand$'\n")

        custom = NamePatternService.from_config(str(path))
        assert custom.discover("Brand_X_Y", 1).group_key == "X | Y"
        # version tokens are no longer technical once the defaults are replaced
        assert custom.discover("Shoe_Red_v2", 4).group_key == "Shoe | Red | v2"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_naming_rules(str(tmp_path / "missing.yaml"))

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("- '^a$'\n- '^b$'\n")
        with pytest.raises(ValueError):
            load_naming_rules(str(path))

    def test_patterns_must_be_strings(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("obvious:\n  - 12\n")
        with pytest.raises(ValueError):
            load_naming_rules(str(path))

    def test_invalid_regex(self):
        with pytest.raises(ValueError):
            build_technical_rules(NamingRulesConfig(obvious=["(unclosed"]))
