"""Checkout composition: cart → vendor groups → prices → session.

Everything here is pure computation over its inputs plus read-only lookups
(promo codes, vendor terms, loyalty balance). Nothing is cached between
attempts, so price or promo changes are always re-validated at the moment
of charge.
"""

from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError

from marketplace.cart.lines import partition_cart
from marketplace.checkout.pricing import DeliveryMode, enforce_vendor_minimums, price_vendor_groups
from marketplace.checkout.session import CheckoutSession, DraftOrder
from marketplace.config import get_settings
from marketplace.errors import EmptyCartError
from marketplace.loyalty.ledger import get_ledger
from marketplace.loyalty.redemption import redeem_points
from marketplace.promotions.validation import validate_promo_code
from marketplace.vendors.directory import get_directory

logger = structlog.get_logger(__name__)


def build_checkout_session(
    customer_id,
    breakdowns,
    delivery_address: dict,
    delivery_mode,
    scheduled_for=None,
    promo_code=None,
    loyalty_points_used=0,
    now=None,
) -> CheckoutSession:
    """Turn validated vendor breakdowns into an unsaved CheckoutSession.

    Raises:
        EmptyCartError: no vendor breakdowns.
        ValidationError: ``scheduled_for`` lies in the past.
    """
    if not breakdowns:
        raise EmptyCartError()

    now = now or datetime.now(UTC)
    if scheduled_for is not None:
        scheduled = scheduled_for if scheduled_for.tzinfo else scheduled_for.replace(tzinfo=UTC)
        if scheduled <= now:
            raise ValidationError({"scheduled_for": ["Scheduled time must be in the future"]})

    settings = get_settings()
    return CheckoutSession.open(
        customer_id=customer_id,
        drafts=[DraftOrder.from_breakdown(breakdown) for breakdown in breakdowns],
        delivery_address=delivery_address,
        delivery_mode=DeliveryMode(getattr(delivery_mode, "value", delivery_mode)).value,
        ttl_minutes=settings.session_ttl_minutes,
        currency=settings.currency,
        scheduled_for=scheduled_for,
        promo_code=promo_code,
        loyalty_points_used=loyalty_points_used,
        now=now,
    )


def compose_checkout(
    customer_id,
    lines,
    delivery_address: dict,
    delivery_mode,
    promo_code=None,
    loyalty_points_to_redeem=0,
    scheduled_for=None,
    tax_rate=None,
    tax_amounts=None,
    now=None,
) -> CheckoutSession:
    """Price a cart and build its checkout session (not yet persisted).

    Validation order: empty cart, vendor minimums, promo code, loyalty
    redemption. The first failure aborts the whole checkout.
    """
    settings = get_settings()
    groups = partition_cart(lines)

    directory = get_directory()
    policies = {group.vendor_id: directory.policy_for(group.vendor_id) for group in groups}
    enforce_vendor_minimums(groups, policies)

    aggregate_subtotal = sum(group.vendor_subtotal for group in groups)

    promo = None
    promo_discount = 0
    if promo_code:
        promo = validate_promo_code(promo_code, aggregate_subtotal, now=now)
        promo_discount = promo.discount_for(aggregate_subtotal)

    balance = get_ledger().balance_for(str(customer_id)) if loyalty_points_to_redeem else 0
    redemption = redeem_points(loyalty_points_to_redeem or 0, balance, aggregate_subtotal - promo_discount)

    breakdowns = price_vendor_groups(
        groups,
        policies,
        delivery_mode,
        tax_rate if tax_rate is not None else settings.tax_rate,
        promo_discount=promo_discount,
        loyalty_discount=redemption.discount,
        tax_amounts=tax_amounts,
    )

    logger.debug(
        "Cart priced",
        customer_id=str(customer_id),
        vendors=[breakdown.vendor_id for breakdown in breakdowns],
        aggregate_subtotal=aggregate_subtotal,
        promo_discount=promo_discount,
        loyalty_discount=redemption.discount,
    )

    return build_checkout_session(
        customer_id=customer_id,
        breakdowns=breakdowns,
        delivery_address=delivery_address,
        delivery_mode=delivery_mode,
        scheduled_for=scheduled_for,
        promo_code=promo.code if promo else None,
        loyalty_points_used=redemption.points,
        now=now,
    )
