"""Typed containers shared across pipeline modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass(frozen=True)
class TextMatch:
    """A price or weight mention found in an element's rendered text."""

    literal: str
    token: str
    text: str
    element: Any = field(default=None, compare=False, repr=False)

    def with_element(self, element: Any) -> "TextMatch":
        return TextMatch(self.literal, self.token, self.text, element)


@dataclass(frozen=True)
class ValidatedPair:
    """Price and weight matches whose numbers parsed and are both > 0."""

    price: TextMatch
    weight: TextMatch
    price_value: float
    weight_value: float


@dataclass(frozen=True)
class ProductBlock:
    """One price element, scoped by one container, yielding one unit price."""

    container: Any = field(compare=False, repr=False)
    price_element: Any = field(compare=False, repr=False)
    price: float
    weight: float
    unit: str
    pair: Optional[ValidatedPair] = field(default=None, repr=False)


@dataclass(frozen=True)
class InjectedAnnotation:
    price_text: str
    weight_text: str
    unit_price: str
    price: float
    weight: float
    unit: str


@dataclass
class PassReport:
    """Counters for one scan -> resolve -> inject pass."""

    candidates: int = 0
    already_handled: int = 0
    unmatched: int = 0
    failed: int = 0
    injected: List[InjectedAnnotation] = field(default_factory=list)

    @property
    def injected_count(self) -> int:
        return len(self.injected)
