"""Shared helpers for the creative performance engine.

Cross-cutting utilities used by ingestion, aggregation and benchmark
classification. Includes:
- Safe numeric coercion (loosely-typed upstream values -> numbers, never raises)
- Zero-safe ratio computation
- Account id normalization
"""

from __future__ import annotations

import math
from typing import Any, Optional


# =============================================================================
# Safe Numeric Coercion
# =============================================================================

def _clean_numeric_string(text: str) -> str:
    """Strip whitespace, thousands separators, currency sign and leading zeros.

    - " 1,234 " -> "1234"
    - "$12.50" -> "12.50"
    - "007" -> "7"
    - "00.5" -> "0.5"
    - "-012" -> "-12"
    """
    cleaned = text.strip().replace(",", "").replace("$", "").replace(" ", "")
    sign = ""
    if cleaned[:1] in ("+", "-"):
        sign = "-" if cleaned[0] == "-" else ""
        cleaned = cleaned[1:]
    cleaned = cleaned.lstrip("0")
    if not cleaned or cleaned[0] == ".":
        cleaned = "0" + cleaned
    return sign + cleaned


def _safe_numeric(value: Any) -> Optional[float]:
    """Coerce str/int/float to a finite float. Returns None on failure (no exceptions).

    Handles ads API values that may be strings, ints, or floats:
    - "12" -> 12.0
    - 12 -> 12.0
    - "1,200" -> 1200.0
    - "abc", "", None, True, [], {}, nan, inf -> None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        if not value.strip():
            return None
        value = _clean_numeric_string(value)
    try:
        result = float(value)
    except (ValueError, TypeError):
        return None
    if not math.isfinite(result):
        return None
    return result + 0.0


def coerce_float(value: Any) -> float:
    """Coerce any upstream value to a float, defaulting to 0.0."""
    result = _safe_numeric(value)
    return 0.0 if result is None else result


def coerce_int(value: Any) -> int:
    """Coerce any upstream value to an int (truncating), defaulting to 0."""
    result = _safe_numeric(value)
    return 0 if result is None else int(result)


def coerce_text(value: Any) -> Optional[str]:
    """Stringify a scalar id/name field; empty values become None."""
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


# =============================================================================
# Ratios
# =============================================================================

def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """Return numerator / denominator * scale, or 0.0 when undefined.

    Zero or negative denominators yield 0.0; so does any non-finite result,
    including operands too large to convert to float.
    """
    if denominator <= 0:
        return 0.0
    try:
        result = numerator / denominator * scale
    except OverflowError:
        return 0.0
    if not math.isfinite(result):
        return 0.0
    return result


# =============================================================================
# Accounts
# =============================================================================

def normalize_account_id(account_id: Any) -> Optional[str]:
    """Strip the ``act_`` prefix Meta puts on ad account ids."""
    text = coerce_text(account_id)
    if text is None:
        return None
    if text.startswith("act_"):
        text = text[4:]
    return text or None
