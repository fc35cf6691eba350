from __future__ import annotations

from dataclasses import dataclass

# unit token -> (multiplier to reach the base unit, base unit label)
_BASE_UNITS = {
    "g": (1000.0, "kg"),
    "kg": (1.0, "kg"),
    "ml": (1000.0, "L"),
    "l": (1.0, "L"),
}


@dataclass(frozen=True)
class UnitPrice:
    rate: float
    label: str
    display: str


def compute_unit_price(price: float, weight: float, unit: str) -> UnitPrice:
    """
    Price per kg or per L.

    `weight` must already be validated > 0 by the resolver; this function
    has no error path for it.  Unknown unit tokens raise ValueError.
    Examples:
      (99, 500, 'g') -> '~198.00 / kg'
      (20, 2, 'l')   -> '~10.00 / L'
    """
    key = (unit or "").lower()
    if key not in _BASE_UNITS:
        raise ValueError(f"Unsupported unit: {unit!r}")
    multiplier, label = _BASE_UNITS[key]
    rate = (price / weight) * multiplier
    return UnitPrice(rate=rate, label=label, display=f"~{rate:.2f} / {label}")


def format_unit_price(price: float, weight: float, unit: str) -> str:
    return compute_unit_price(price, weight, unit).display
