from __future__ import annotations

"""
Numeric normalisation helpers shared by the resolver and the calculator.

Shopping pages mix "15,5 kr" and "15.50 EUR" freely, so literals coming
out of the pattern matchers are locale-ambiguous.  This module is the one
place that turns them into floats.

Public helpers:

* clean_number(literal) -> float
    Comma-or-dot literal to float.  Malformed input yields NaN, never an
    exception; callers must check.

* is_positive_number(value) -> bool
    The validation rule for a price/weight pair member: real, not NaN, > 0.

* collapse_whitespace(text) -> str
    Whitespace clean used for log previews and reports.
"""

import math
import re
import unicodedata

_WS_RE = re.compile(r"\s+")


def clean_number(literal: str | None) -> float:
    if literal is None:
        return math.nan
    if not isinstance(literal, str):
        literal = str(literal)

    # Only the fractional separator is rewritten; "1.234,5" stays malformed.
    candidate = literal.strip().replace(",", ".", 1)
    if not candidate:
        return math.nan
    try:
        return float(candidate)
    except ValueError:
        return math.nan


def is_positive_number(value: float | None) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return not math.isnan(number) and not math.isinf(number) and number > 0


def collapse_whitespace(text: str | None) -> str:
    """NFKC-normalise (folds NBSP) and collapse runs of whitespace."""
    if not text:
        return ""
    text = unicodedata.normalize("NFKC", text)
    return _WS_RE.sub(" ", text).strip()
