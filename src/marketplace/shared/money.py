"""Fixed-point money helpers.

Amounts are integers in the currency's minor unit (cents for USD). Rates
are Decimals. Multiplying an amount by a rate is the only place rounding
happens, always ROUND_HALF_UP to the minor unit.
"""

from decimal import ROUND_HALF_UP, Decimal


def as_decimal(value) -> Decimal:
    """Coerce ints, strings and floats to Decimal without binary artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_minor(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def apply_rate(amount: int, rate) -> int:
    """``amount × rate`` rounded to the minor unit. ``rate`` is a fraction (0.08)."""
    return round_minor(Decimal(amount) * as_decimal(rate))


def apply_percent(amount: int, percent) -> int:
    """``amount × percent / 100`` rounded to the minor unit."""
    return round_minor(Decimal(amount) * as_decimal(percent) / Decimal(100))


def apportion(total: int, weights: list[int]) -> list[int]:
    """Split ``total`` across ``weights`` proportionally.

    Each share but the last is rounded to the minor unit; the last share
    absorbs the rounding remainder so the shares always sum to ``total``.
    """
    if not weights:
        return []

    weight_sum = sum(weights)
    if total == 0 or weight_sum == 0:
        return [0] * (len(weights) - 1) + [total]

    shares = [round_minor(Decimal(total) * Decimal(weight) / Decimal(weight_sum)) for weight in weights[:-1]]
    shares.append(total - sum(shares))
    return shares
