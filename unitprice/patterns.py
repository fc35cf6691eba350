from __future__ import annotations

import re
from typing import Optional

from .pipeline_types import TextMatch

# Numeric literal: "15,5", "15.50" or "99".  ASCII digits only.
NUMBER = r"([0-9]+[.,][0-9]+|[0-9]+)"

# Longest alternatives first so "euro" wins over "eur".
CURRENCY_TOKENS = ("euro", "eur", "sek", "kr", "usd", "gbp", "€", "$", "£")
WEIGHT_TOKENS = ("kg", "ml", "g", "l")

# An alphabetic token must not run on into a longer word ("5 kronor", "2 lemons").
_TOKEN_END = r"(?![^\W\d_])"

PRICE_RE = re.compile(
    NUMBER + r"\s*(" + "|".join(re.escape(t) for t in CURRENCY_TOKENS) + r")" + _TOKEN_END,
    re.IGNORECASE,
)

WEIGHT_RE = re.compile(
    NUMBER + r"\s*(" + "|".join(WEIGHT_TOKENS) + r")" + _TOKEN_END,
    re.IGNORECASE,
)


def price_pattern() -> re.Pattern:
    return PRICE_RE


def weight_pattern() -> re.Pattern:
    return WEIGHT_RE


def _first_match(pattern: re.Pattern, text: str | None) -> Optional[TextMatch]:
    if not text:
        return None
    m = pattern.search(text)
    if not m:
        return None
    return TextMatch(literal=m.group(1), token=m.group(2).lower(), text=m.group(0))


def match_price(text: str | None) -> Optional[TextMatch]:
    """
    First price mention in `text`, e.g. '99 kr', '15,50 EUR', '3$'.
    Examples:
      'Pris 24,90 kr/st' -> literal '24,90', token 'kr'
      '5 kronor'         -> None
    """
    return _first_match(PRICE_RE, text)


def match_weight(text: str | None) -> Optional[TextMatch]:
    """
    First weight/volume mention in `text`, e.g. '500 g', '1,5 l', '250ml'.
    Examples:
      'Mjölk 1,5 l'   -> literal '1,5', token 'l'
      '12 lemons'     -> None
    """
    return _first_match(WEIGHT_RE, text)
