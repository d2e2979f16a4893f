"""Vendor pricing — the per-vendor price breakdown of a multi-vendor cart.

For each vendor group, in cart order:

1. subtotal = sum of line subtotals
2. delivery fee (DELIVERY mode only) and platform fee from the vendor policy
3. tax = rate × (subtotal + delivery fee + platform fee), unless an exact
   tax amount is supplied for the vendor
4. the aggregate discount (promo + loyalty) is split across vendors in
   proportion to their share of the pre-discount aggregate subtotal; the
   last vendor absorbs the rounding remainder
5. total = max(0, subtotal + fees + tax - discount)

Every vendor's minimum order is checked before any of this; a single
shortfall fails the whole checkout.
"""

from dataclasses import dataclass
from enum import Enum

import structlog

from marketplace.cart.lines import CartLine, VendorGroup
from marketplace.errors import EmptyCartError, VendorMinimumNotMetError
from marketplace.shared.money import apply_rate, apportion

logger = structlog.get_logger(__name__)


class DeliveryMode(Enum):
    DELIVERY = "DELIVERY"
    PICKUP = "PICKUP"


@dataclass(frozen=True)
class VendorBreakdown:
    vendor_id: str
    vendor_name: str
    lines: tuple[CartLine, ...]
    subtotal: int
    delivery_fee: int
    platform_fee: int
    tax: int
    discount: int
    total: int


def enforce_vendor_minimums(groups, policies) -> None:
    """Fail unless every group meets its vendor's minimum order.

    Raises:
        VendorMinimumNotMetError: for the first short vendor in cart order,
            listing every shortfall.
    """
    shortfalls = [
        {"vendor_id": group.vendor_id, "required": policies[group.vendor_id].minimum_order, "actual": group.vendor_subtotal}
        for group in groups
        if group.vendor_subtotal < policies[group.vendor_id].minimum_order
    ]
    if shortfalls:
        first = shortfalls[0]
        logger.info("Vendor minimum not met", shortfalls=shortfalls)
        raise VendorMinimumNotMetError(
            first["vendor_id"],
            required=first["required"],
            actual=first["actual"],
            shortfalls=shortfalls,
        )


def price_vendor_groups(
    groups: list[VendorGroup],
    policies: dict,
    delivery_mode,
    tax_rate,
    promo_discount: int = 0,
    loyalty_discount: int = 0,
    tax_amounts: dict[str, int] | None = None,
) -> list[VendorBreakdown]:
    """Price each vendor group.

    Args:
        groups: vendor groups in cart order.
        policies: ``VendorPolicy`` per vendor id.
        delivery_mode: ``DeliveryMode`` or its value.
        tax_rate: fraction applied to the taxable base (``Decimal("0.08")``).
        promo_discount: aggregate promo discount in minor units.
        loyalty_discount: aggregate loyalty discount in minor units.
        tax_amounts: exact tax per vendor id, overriding ``tax_rate``.
    """
    if not groups:
        raise EmptyCartError()

    enforce_vendor_minimums(groups, policies)

    delivering = DeliveryMode(getattr(delivery_mode, "value", delivery_mode)) == DeliveryMode.DELIVERY
    tax_amounts = tax_amounts or {}

    subtotals = [group.vendor_subtotal for group in groups]
    discounts = apportion(promo_discount + loyalty_discount, subtotals)

    breakdowns = []
    for group, subtotal, discount in zip(groups, subtotals, discounts, strict=True):
        policy = policies[group.vendor_id]
        delivery_fee = policy.delivery_fee if delivering else 0
        platform_fee = policy.platform_fee.fee_for(subtotal)

        if group.vendor_id in tax_amounts:
            tax = int(tax_amounts[group.vendor_id])
        else:
            tax = apply_rate(subtotal + delivery_fee + platform_fee, tax_rate)

        total = max(0, subtotal + delivery_fee + platform_fee + tax - discount)
        breakdowns.append(
            VendorBreakdown(
                vendor_id=group.vendor_id,
                vendor_name=group.vendor_name,
                lines=group.lines,
                subtotal=subtotal,
                delivery_fee=delivery_fee,
                platform_fee=platform_fee,
                tax=tax,
                discount=discount,
                total=total,
            )
        )

    return breakdowns
