"""
CopyExtractionService - Representative ad copy for a performance record.

Strategy chain, first match wins:
    1. Structured creative metadata (object_story_spec text fields)
    2. Copy-type inference from the ad name (rule table)
    3. Double-quoted text embedded in the ad name
    4. Name-segment based generic sentence (or a fixed fallback)

Every result goes through format_copy(), so callers always get a non-empty,
display-ready string of at most three lines.
"""

import logging
import re
import textwrap
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Pattern, Sequence, Tuple

from adlens.core.config import Config

from .ingestion import RecordInput, coerce_record
from .models import AggregationLevel, PerformanceRecord
from .name_pattern_service import NamePatternService

logger = logging.getLogger(__name__)

# Rule kinds
NAMED = "named"
CUSTOM = "custom"

FALLBACK_COPY = "Ad copy unavailable for this creative."
GENERIC_SEGMENT_TEMPLATE = "{segment} creative with a clear benefit-led message and a direct call to action."
DEFAULT_PRODUCT = "This product"

# object_story_spec text fields, checked in order
CREATIVE_SPEC_PATHS: Tuple[Tuple[str, ...], ...] = (
    ("message",),
    ("body",),
    ("link_data", "message"),
    ("link_data", "description"),
    ("video_data", "message"),
    ("photo_data", "message"),
    ("photo_data", "caption"),
    ("text_data", "message"),
    ("template_data", "message"),
    ("link_data", "call_to_action", "value", "link_caption"),
    ("video_data", "call_to_action", "value", "link_caption"),
)

MEDIA_TOKENS = frozenset({"VID", "IMG", "GIF"})


def _word(pattern: str) -> str:
    """Wrap a pattern so it does not match inside a longer word (underscores count as breaks)."""
    return rf"(?<![a-z]){pattern}(?![a-z])"


@dataclass(frozen=True)
class CopyTypeRule:
    """A copy type recognizable from an ad name.

    NAMED rules synthesize a sentence from `template`; CUSTOM rules return the
    text captured by the pattern's ``copy`` group verbatim.
    """

    key: str
    label: str
    pattern: Pattern[str]
    template: str = ""
    kind: str = NAMED

    def render(self, match: "re.Match[str]", product: str) -> Optional[str]:
        if self.kind == CUSTOM:
            remainder = match.group("copy").strip()
            return remainder or None
        return self.template.format(product=product or DEFAULT_PRODUCT)


COPY_TYPE_RULES: Tuple[CopyTypeRule, ...] = (
    CopyTypeRule(
        key="custom",
        label="Custom Copy",
        pattern=re.compile(r"custom[\s_-]*copy[\s:_-]+(?P<copy>.+)$", re.IGNORECASE),
        kind=CUSTOM,
    ),
    CopyTypeRule(
        key="emotional_strength",
        label="Emotional Strength Approach",
        pattern=re.compile(_word(r"emotional[\s_-]*strength"), re.IGNORECASE),
        template="{product} taps into emotional strength, showing how it helps you stay strong when life gets hard.",
    ),
    CopyTypeRule(
        key="little_moments",
        label="Little Moments Focus",
        pattern=re.compile(_word(r"little[\s_-]*moments?"), re.IGNORECASE),
        template="{product} celebrates the little moments, turning everyday routines into something worth savoring.",
    ),
    CopyTypeRule(
        key="product_focused",
        label="Product-Focused",
        pattern=re.compile(_word(r"(product[\s_-]*focus(ed)?|feature[\s_-]*(led|focus(ed)?))"), re.IGNORECASE),
        template="Product-focused: {product} puts its key features front and center so shoppers see exactly why it stands out.",
    ),
    CopyTypeRule(
        key="testimonial",
        label="Testimonial-Driven",
        pattern=re.compile(_word(r"(testimonials?|reviews?|ugc)"), re.IGNORECASE),
        template="Real customers share why they love {product} in this testimonial-driven message.",
    ),
    CopyTypeRule(
        key="problem_solution",
        label="Problem-Solution",
        pattern=re.compile(_word(r"(problem[\s_-]*solution|pain[\s_-]*points?)"), re.IGNORECASE),
        template="Got a problem {product} can fix? This problem-solution message walks from the pain point to the payoff.",
    ),
    CopyTypeRule(
        key="urgency_offer",
        label="Offer & Urgency",
        pattern=re.compile(
            _word(r"(offer|sale|discount|urgency|limited[\s_-]*time)") + r"|\d+\s*%\s*off",
            re.IGNORECASE,
        ),
        template="Limited-time offer: get {product} now before this deal ends.",
    ),
    CopyTypeRule(
        key="lifestyle",
        label="Lifestyle Aspirational",
        pattern=re.compile(_word(r"(lifestyle|aspirational?)"), re.IGNORECASE),
        template="{product} fits the lifestyle you're building, with aspirational moments worth sharing.",
    ),
    CopyTypeRule(
        key="generic",
        label="Labelled Copy",
        pattern=re.compile(_word(r"copy") + r"\s*:\s*(?P<copy>.+)$", re.IGNORECASE),
        kind=CUSTOM,
    ),
)

# Copy-mode buckets: (key, label, substrings matched against lowercased copy)
COPY_BUCKETS: Tuple[Tuple[str, str, Tuple[str, ...]], ...] = (
    ("emotional_strength", "Emotional Strength Approach", ("emotional",)),
    ("little_moments", "Little Moments Focus", ("little moments",)),
    ("product_focused", "Product-Focused", ("product-focused", "product focused", "features")),
    ("testimonial", "Testimonial-Driven", ("testimonial", "customers share", "reviews")),
    ("problem_solution", "Problem-Solution", ("problem-solution", "problem solution", "pain point")),
    ("urgency_offer", "Offer & Urgency", ("limited-time", "limited time", "offer", "% off")),
    ("lifestyle", "Lifestyle Aspirational", ("lifestyle", "aspirational")),
)
CUSTOM_BUCKET_PREFIX = "custom_"
CUSTOM_BUCKET_LENGTH = 40

QUOTED_TEXT_PATTERN = re.compile(r'"([^"]{20,})"')
SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")
NON_ALNUM = re.compile(r"[^a-z0-9]+")


def format_copy(text: str) -> str:
    """
    Make copy display-ready: at most three lines.

    - Text with line breaks keeps its first three non-empty lines.
    - Text over 120 chars keeps its first sentence (plus the second when both
      fit under 150 chars), or is word-wrapped to ~50-char lines when it is a
      single sentence.
    - Shorter text is returned as-is.
    """
    text = (text or "").strip()
    if "\n" in text or "\r" in text:
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        return "\n".join(lines[:Config.COPY_MAX_LINES])

    if len(text) <= Config.COPY_LONG_TEXT_THRESHOLD:
        return text

    sentences = [s.strip() for s in SENTENCE_BOUNDARY.split(text) if s.strip()]
    if len(sentences) > 1 and len(sentences[0]) < Config.COPY_TWO_SENTENCE_LIMIT:
        first, second = sentences[0], sentences[1]
        if len(f"{first} {second}") < Config.COPY_TWO_SENTENCE_LIMIT:
            return f"{first}\n{second}"
        return first

    return _wrap(text)


def _wrap(text: str) -> str:
    width = Config.COPY_WRAP_WIDTH
    lines = textwrap.wrap(text, width=width)
    if len(lines) > Config.COPY_MAX_LINES:
        lines = lines[:Config.COPY_MAX_LINES]
        last = lines[-1]
        if len(last) + 3 > width:
            last = last[:width - 3].rstrip()
        lines[-1] = last + "..."
    return "\n".join(lines)


def _lookup(spec: Mapping[str, Any], path: Sequence[str]) -> Optional[str]:
    node: Any = spec
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node if isinstance(node, str) else None


class CopyExtractionService:
    """Extracts and classifies representative ad copy."""

    def __init__(
        self,
        name_patterns: Optional[NamePatternService] = None,
        rules: Sequence[CopyTypeRule] = COPY_TYPE_RULES,
    ):
        self.name_patterns = name_patterns or NamePatternService()
        self.rules = tuple(rules)
        self.strategies: Tuple[Callable[[PerformanceRecord], Optional[str]], ...] = (
            self._from_creative_spec,
            self._from_copy_type,
            self._from_quoted_text,
            self._from_name_segments,
        )

    def extract_copy(self, record: RecordInput) -> str:
        """
        Representative copy for one record.

        Args:
            record: PerformanceRecord or raw record mapping

        Returns:
            Non-empty formatted copy (max three lines)
        """
        record = coerce_record(record)
        for strategy in self.strategies:
            text = strategy(record)
            if text:
                formatted = format_copy(text)
                if formatted:
                    return formatted
        return FALLBACK_COPY

    # =========================================================================
    # Strategies
    # =========================================================================

    def _from_creative_spec(self, record: PerformanceRecord) -> Optional[str]:
        if not record.creative_spec:
            return None
        for path in CREATIVE_SPEC_PATHS:
            value = _lookup(record.creative_spec, path)
            if value and len(value.strip()) > Config.COPY_MIN_STRUCTURED_LENGTH:
                return value.strip()
        return None

    def _from_copy_type(self, record: PerformanceRecord) -> Optional[str]:
        name = record.display_name
        if not name:
            return None
        for rule in self.rules:
            match = rule.pattern.search(name)
            if not match:
                continue
            text = rule.render(match, self.name_patterns.product_name(name))
            if text:
                logger.debug(f"Copy type '{rule.key}' matched for '{name}'")
                return text
        return None

    def _from_quoted_text(self, record: PerformanceRecord) -> Optional[str]:
        match = QUOTED_TEXT_PATTERN.search(record.display_name or "")
        return match.group(1) if match else None

    def _from_name_segments(self, record: PerformanceRecord) -> Optional[str]:
        segments = self.name_patterns.discover(record.display_name, AggregationLevel.VARIANT).segments
        for segment in segments:
            if len(segment) <= 3 or segment.isdigit() or segment.upper() in MEDIA_TOKENS:
                continue
            return GENERIC_SEGMENT_TEMPLATE.format(segment=segment)
        return FALLBACK_COPY

    # =========================================================================
    # Copy-mode Classification
    # =========================================================================

    def classify_copy(self, copy_text: str) -> Tuple[str, str]:
        """
        Bucket extracted copy for copy-mode aggregation.

        Returns:
            (bucket_key, bucket_label). Copy matching no named bucket is keyed
            by a normalized prefix of the text itself.
        """
        lowered = (copy_text or "").lower()
        for key, label, needles in COPY_BUCKETS:
            if any(needle in lowered for needle in needles):
                return key, label

        slug = NON_ALNUM.sub("_", lowered).strip("_")[:CUSTOM_BUCKET_LENGTH].strip("_")
        first_line = (copy_text or "").splitlines()[0] if copy_text else ""
        return CUSTOM_BUCKET_PREFIX + (slug or "uncategorized"), first_line or "Uncategorized"
