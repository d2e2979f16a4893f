"""Loyalty point redemption.

100 points are worth $1. With amounts in minor units that makes one point
worth one minor unit, so a redemption of ``n`` points discounts ``n`` cents.
Points are redeemed in increments of 100 only.
"""

from dataclasses import dataclass

from marketplace.errors import InvalidRedemptionError

REDEMPTION_INCREMENT = 100
MINOR_UNITS_PER_POINT = 1


@dataclass(frozen=True)
class LoyaltyRedemption:
    points: int
    discount: int  # minor units


def max_redeemable(balance: int, subtotal: int) -> int:
    """Largest legal redemption for ``balance`` against a post-promo ``subtotal``."""
    cap = min(max(balance, 0), max(subtotal, 0) // MINOR_UNITS_PER_POINT)
    return cap - cap % REDEMPTION_INCREMENT


def redeem_points(requested: int, balance: int, subtotal: int) -> LoyaltyRedemption:
    """Validate a customer's redemption request and convert it to a discount.

    Args:
        requested: points the customer chose to redeem.
        balance: the customer's current point balance.
        subtotal: aggregate subtotal after the promo discount, in minor units.

    Raises:
        InvalidRedemptionError: not a non-negative multiple of 100, more
            than the balance, or worth more than the remaining subtotal.
    """
    ceiling = max_redeemable(balance, subtotal)

    if requested < 0 or requested % REDEMPTION_INCREMENT != 0:
        raise InvalidRedemptionError(
            f"Points must be redeemed in multiples of {REDEMPTION_INCREMENT}",
            requested=requested,
            max_redeemable=ceiling,
        )
    if requested > balance:
        raise InvalidRedemptionError(
            f"Cannot redeem {requested} points with a balance of {balance}",
            requested=requested,
            max_redeemable=ceiling,
        )
    if requested * MINOR_UNITS_PER_POINT > subtotal:
        raise InvalidRedemptionError(
            "Cannot redeem more points than the order is worth",
            requested=requested,
            max_redeemable=ceiling,
        )

    return LoyaltyRedemption(points=requested, discount=requested * MINOR_UNITS_PER_POINT)
