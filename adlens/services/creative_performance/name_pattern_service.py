"""
NamePatternService - Derive grouping keys from ad display names.

Ad names encode product, theme, variant and technical noise, e.g.:
    "ProductX | Video | 1234567890123"
    "BrandY_Copy Emotional Strength Approach_v2"
    "2403_Summer-Sale_1080x1080_act_98765"

Pipeline (levels 1-4):
    separator detection -> technical-token filtering -> keep max(level, 2) segments

Level 5 ("exact") short-circuits to the trailing creative id embedded in the
name, or the full name when there is none.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence, Tuple

from adlens.core.config import NamingRulesConfig, load_naming_rules

from .models import AggregationLevel, DiscoveryResult

logger = logging.getLogger(__name__)

UNKNOWN_GROUP_KEY = "unknown"
EXACT_PREFIX = "exact_"
SEGMENT_JOINER = " | "

# Rule scopes
OBVIOUS = "obvious"
EXTENDED = "extended"


@dataclass(frozen=True)
class TechnicalTokenRule:
    """A named regex marking a name segment as technical noise."""

    name: str
    pattern: Pattern[str]
    scope: str = EXTENDED

    def matches(self, segment: str) -> bool:
        return bool(self.pattern.search(segment))


# Ordered rule table. OBVIOUS rules apply at every level; EXTENDED rules only
# where the broad filter is active (levels 1-3, past the first `level` slots).
DEFAULT_TECHNICAL_RULES: Tuple[TechnicalTokenRule, ...] = (
    TechnicalTokenRule("long_numeric_id", re.compile(r"^\d{10,}$"), OBVIOUS),
    TechnicalTokenRule("account_id", re.compile(r"^act_\d+$", re.IGNORECASE), OBVIOUS),
    TechnicalTokenRule("pixel_dimensions", re.compile(r"^\d{2,4}x\d{2,4}$", re.IGNORECASE), OBVIOUS),
    # 2403, 240315, 2403M
    TechnicalTokenRule("yymm_date_prefix", re.compile(r"^\d{2}(0[1-9]|1[0-2])(\d{2})?(?=\D|$)"), EXTENDED),
    # 2024-03, 2024/03/15
    TechnicalTokenRule("iso_date_prefix", re.compile(r"^(19|20)\d{2}[-/.](0?[1-9]|1[0-2])(?=\D|$)"), EXTENDED),
    # 03.15, 3/15/24
    TechnicalTokenRule("day_month_date", re.compile(r"^\d{1,2}[./]\d{1,2}([./]\d{2,4})?$"), EXTENDED),
    # 24Q1, FY24Q3
    TechnicalTokenRule("quarter_prefix", re.compile(r"^(FY)?\d{2}Q[1-4]", re.IGNORECASE), EXTENDED),
    TechnicalTokenRule("homepage", re.compile(r"^homepage$", re.IGNORECASE), EXTENDED),
    TechnicalTokenRule("labelled_prefix", re.compile(r"^(LP|Copy):", re.IGNORECASE), EXTENDED),
    TechnicalTokenRule("version_token", re.compile(r"^v\d+$", re.IGNORECASE), EXTENDED),
)


def _compile_rules(patterns: Sequence[str], scope: str) -> List[TechnicalTokenRule]:
    rules: List[TechnicalTokenRule] = []
    for index, pattern in enumerate(patterns):
        try:
            compiled = re.compile(pattern)
        except re.error as e:
            raise ValueError(f"Invalid {scope} naming rule '{pattern}': {e}") from e
        rules.append(TechnicalTokenRule(f"custom_{scope}_{index}", compiled, scope))
    return rules


def build_technical_rules(config: Optional[NamingRulesConfig] = None) -> Tuple[TechnicalTokenRule, ...]:
    """Merge configured rule patterns with (or in place of) the defaults."""
    if config is None:
        return DEFAULT_TECHNICAL_RULES

    custom = _compile_rules(config.obvious, OBVIOUS) + _compile_rules(config.extended, EXTENDED)
    if config.replace:
        return tuple(custom)
    return DEFAULT_TECHNICAL_RULES + tuple(custom)


def resolve_level(level) -> AggregationLevel:
    """Validate an aggregation level (1-5).

    Raises:
        ValueError: For anything outside the closed 1-5 range.
    """
    if isinstance(level, bool):
        raise ValueError(f"Invalid aggregation level: {level!r} (expected 1-5)")
    try:
        return AggregationLevel(level)
    except ValueError:
        raise ValueError(f"Invalid aggregation level: {level!r} (expected 1-5)") from None


class NamePatternService:
    """Decomposes ad display names into segments and group keys."""

    # Checked in priority order; the first one present wins
    SEPARATORS: Tuple[str, ...] = ("|", " | ", "_", "-", "  ", " ")

    # Trailing 10+ digit creative id, optionally followed by -COPY / -#2 style suffixes
    EXACT_ID_PATTERN = re.compile(r"(\d{10,})(?:-[A-Z#-]+)?$")

    CAMEL_BOUNDARY = re.compile(r"(?<=[a-z])(?=[A-Z])")

    def __init__(self, rules: Optional[Sequence[TechnicalTokenRule]] = None):
        self.rules: Tuple[TechnicalTokenRule, ...] = (
            tuple(rules) if rules is not None else DEFAULT_TECHNICAL_RULES
        )

    @classmethod
    def from_config(cls, path: Optional[str] = None) -> "NamePatternService":
        """Build a service using the YAML naming rules (Config.NAMING_RULES_PATH)."""
        rules = build_technical_rules(load_naming_rules(path))
        logger.info(f"NamePatternService initialized with {len(rules)} technical rules")
        return cls(rules)

    # =========================================================================
    # Splitting
    # =========================================================================

    def detect_separator(self, display_name: str) -> Optional[str]:
        for separator in self.SEPARATORS:
            if separator in display_name:
                return separator
        return None

    def split_segments(self, display_name: Optional[str]) -> List[str]:
        """Split a name on its dominant separator (camel case as a fallback)."""
        name = (display_name or "").strip()
        if not name:
            return []

        separator = self.detect_separator(name)
        if separator is not None:
            parts = name.split(separator)
        else:
            parts = self.CAMEL_BOUNDARY.split(name)

        segments = [part.strip() for part in parts if part.strip()]
        return segments or [name]

    def product_name(self, display_name: Optional[str]) -> str:
        """The text before the first separator, i.e. the first raw segment."""
        segments = self.split_segments(display_name)
        return segments[0] if segments else ""

    # =========================================================================
    # Filtering
    # =========================================================================

    def is_technical(self, segment: str, scope: str = EXTENDED) -> bool:
        """Whether a segment is noise. OBVIOUS scope checks only obvious rules."""
        for rule in self.rules:
            if scope == OBVIOUS and rule.scope != OBVIOUS:
                continue
            if rule.matches(segment):
                return True
        return False

    def filter_segments(self, segments: Sequence[str], level: int) -> List[str]:
        """Drop technical segments.

        Levels >= 4 use the narrow filter (obvious noise only). Lower levels
        drop only obvious noise within the first `level` positions and apply
        the full rule set beyond them.
        """
        if level >= AggregationLevel.DETAILED:
            return [s for s in segments if not self.is_technical(s, OBVIOUS)]

        kept: List[str] = []
        for position, segment in enumerate(segments):
            scope = OBVIOUS if position < level else EXTENDED
            if not self.is_technical(segment, scope):
                kept.append(segment)
        return kept

    # =========================================================================
    # Discovery
    # =========================================================================

    def exact_key(self, display_name: str) -> str:
        match = self.EXACT_ID_PATTERN.search(display_name.strip())
        if match:
            return EXACT_PREFIX + match.group(1)
        return EXACT_PREFIX + display_name

    def discover(self, display_name: Optional[str], level) -> DiscoveryResult:
        """
        Derive the group key for a display name at an aggregation level.

        Args:
            display_name: Ad display name (None/empty allowed)
            level: Aggregation level 1-5

        Returns:
            DiscoveryResult(group_key, segments, is_exact)

        Raises:
            ValueError: If level is outside 1-5
        """
        level = resolve_level(level)
        is_exact = level == AggregationLevel.EXACT

        if not display_name or not display_name.strip():
            return DiscoveryResult(group_key=UNKNOWN_GROUP_KEY, segments=[], is_exact=is_exact)

        raw_segments = self.split_segments(display_name)
        filtered = self.filter_segments(raw_segments, int(level))
        if not filtered:
            filtered = raw_segments[:1]

        if is_exact:
            return DiscoveryResult(
                group_key=self.exact_key(display_name),
                segments=filtered,
                is_exact=True,
            )

        retained = filtered[:max(int(level), 2)]
        return DiscoveryResult(
            group_key=SEGMENT_JOINER.join(retained),
            segments=retained,
            is_exact=False,
        )
