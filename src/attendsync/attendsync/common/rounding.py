from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def _quantize(value: Decimal, places: int):
    out = value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    if places == 0:
        return int(out)
    return float(out)


def round_half_up(value: float, places: int = 0):
    """Round half away from zero (62.5 -> 63, 62.25 -> 62.3 at one place)."""

    return _quantize(Decimal(str(value)), places)


def percentage(part: int, whole: int, places: int = 0):
    # Decimal division keeps exact halves exact (57/200 -> 28.5 -> 29).
    if not whole:
        return 0 if places == 0 else 0.0
    return _quantize(Decimal(int(part)) * 100 / Decimal(int(whole)), places)
