"""
Tests for CopyExtractionService: representative copy per performance record.

Strategy priority (structured metadata > copy type > quoted text > name
segments), copy formatting limits and copy-mode bucketing.
"""

import pytest

from adlens.services.creative_performance.copy_extraction_service import (
    FALLBACK_COPY,
    CopyExtractionService,
    format_copy,
)


@pytest.fixture
def service():
    return CopyExtractionService()


def _record(name="", spec=None):
    return {"adId": "1", "displayName": name, "creativeSpec": spec}


# ---------------------------------------------------------------------------
# Strategy chain
# ---------------------------------------------------------------------------

class TestStructuredMetadata:
    def test_link_data_message(self, service):
        spec = {"link_data": {"message": "Feel better every single morning."}}
        assert service.extract_copy(_record("Brand_v1", spec)) == "Feel better every single morning."

    def test_top_level_message_wins(self, service):
        spec = {
            "message": "Top level message wins here.",
            "link_data": {"message": "Nested link message text."},
        }
        assert service.extract_copy(_record("Brand_v1", spec)) == "Top level message wins here."

    def test_video_call_to_action_caption(self, service):
        spec = {"video_data": {"call_to_action": {"value": {"link_caption": "Shop the spring collection"}}}}
        assert service.extract_copy(_record("", spec)) == "Shop the spring collection"

    def test_short_text_is_skipped(self, service):
        spec = {"message": "Buy now"}
        copy = service.extract_copy(_record("BrandY_Testimonial_v1", spec))
        assert copy == "Real customers share why they love BrandY in this testimonial-driven message."

    def test_json_string_spec(self, service):
        record = _record("Brand_v1", '{"body": "Sleep deeper starting tonight."}')
        assert service.extract_copy(record) == "Sleep deeper starting tonight."


class TestCopyTypeInference:
    def test_emotional_strength_from_name(self, service):
        copy = service.extract_copy(_record("BrandY_Copy Emotional Strength Approach_v2"))
        assert "emotional" in copy.lower()
        assert "BrandY" in copy

    def test_custom_copy_remainder(self, service):
        copy = service.extract_copy(_record("Brand | Custom Copy: Feel the glow tonight"))
        assert copy == "Feel the glow tonight"

    def test_generic_copy_label(self, service):
        copy = service.extract_copy(_record("Brand | Copy: Shop the new spring line"))
        assert copy == "Shop the new spring line"

    def test_rule_does_not_match_inside_words(self, service):
        # "resale" must not trigger the offer rule
        copy = service.extract_copy(_record("Resale_Market_v1"))
        assert "Limited-time" not in copy

    @pytest.mark.parametrize("trigger,bucket", [
        ("Emotional Strength", "emotional_strength"),
        ("Little Moments", "little_moments"),
        ("Product Focused", "product_focused"),
        ("Testimonial", "testimonial"),
        ("Problem Solution", "problem_solution"),
        ("Summer Sale", "urgency_offer"),
        ("Lifestyle", "lifestyle"),
    ])
    def test_named_copy_lands_in_its_bucket(self, service, trigger, bucket):
        copy = service.extract_copy(_record(f"Brand_{trigger}_v1"))
        assert "Brand" in copy
        assert service.classify_copy(copy)[0] == bucket


class TestNameFallbacks:
    def test_quoted_text(self, service):
        copy = service.extract_copy(_record('Brand_"Everything you need for better sleep"_v3'))
        assert copy == "Everything you need for better sleep"

    def test_short_quote_ignored(self, service):
        copy = service.extract_copy(_record('Brand_"Too short"_v3'))
        assert copy != "Too short"

    def test_segment_sentence_skips_media_and_numbers(self, service):
        copy = service.extract_copy(_record("VID_1234_Sunrise_v2"))
        assert copy.startswith("Sunrise creative")

    def test_fixed_fallback_for_empty_name(self, service):
        assert service.extract_copy(_record("")) == FALLBACK_COPY

    def test_fixed_fallback_when_no_usable_segment(self, service):
        assert service.extract_copy(_record("VID_IMG")) == FALLBACK_COPY

    def test_accepts_typed_record(self, service):
        from adlens.services.creative_performance.models import PerformanceRecord
        copy = service.extract_copy(PerformanceRecord(display_name="BrandY_Lifestyle_v1"))
        assert "lifestyle" in copy


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

class TestFormatCopy:
    def test_short_text_unchanged(self):
        assert format_copy("Glow all day.") == "Glow all day."

    def test_line_breaks_keep_three_lines(self):
        text = "Line one\n\nLine two\nLine three\nLine four"
        assert format_copy(text) == "Line one\nLine two\nLine three"

    def test_two_sentences_when_short_enough(self):
        first = "This serum hydrates deeply and restores your natural glow in days."
        second = "Try it risk free."
        third = "Thousands of customers already made the switch and never looked back."
        assert format_copy(f"{first} {second} {third}") == f"{first}\n{second}"

    def test_first_sentence_only_when_pair_too_long(self):
        first = "This serum hydrates deeply and restores your natural glow in days."
        second = (
            "Our formula combines hyaluronic acid, niacinamide and ceramides to lock in "
            "moisture all day long without feeling greasy."
        )
        assert format_copy(f"{first} {second}") == first

    def test_single_long_sentence_wraps(self):
        text = " ".join(["word"] * 60)
        lines = format_copy(text).split("\n")
        assert len(lines) == 3
        assert all(len(line) <= 50 for line in lines)
        assert lines[-1].endswith("...")

    def test_never_more_than_three_lines(self):
        texts = [
            "a\nb\nc\nd\ne",
            " ".join(["lorem"] * 100),
            "Short. " * 40,
        ]
        for text in texts:
            assert len(format_copy(text).split("\n")) <= 3


# ---------------------------------------------------------------------------
# Copy-mode buckets
# ---------------------------------------------------------------------------

class TestClassifyCopy:
    def test_named_bucket(self, service):
        key, label = service.classify_copy("Limited-time offer: get Brand now before this deal ends.")
        assert key == "urgency_offer"
        assert label == "Offer & Urgency"

    def test_custom_bucket_from_text(self, service):
        key, label = service.classify_copy("Shop the new spring line")
        assert key == "custom_shop_the_new_spring_line"
        assert label == "Shop the new spring line"

    def test_custom_bucket_truncates(self, service):
        key, _ = service.classify_copy("x" * 100)
        assert key == "custom_" + "x" * 40

    def test_empty_copy(self, service):
        assert service.classify_copy("")[0] == "custom_uncategorized"
