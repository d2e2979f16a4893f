"""Promo code validation against the aggregate cart subtotal."""

from datetime import UTC, datetime

import structlog
from protean.utils.globals import current_domain

from marketplace.errors import InvalidPromoCodeError, PromoExpiredError, PromoMinimumNotMetError
from marketplace.promotions.promo_code import PromoCode

logger = structlog.get_logger(__name__)


def validate_promo_code(code: str, aggregate_subtotal: int, now=None) -> PromoCode:
    """Resolve ``code`` into its discount rule for a cart worth ``aggregate_subtotal``.

    ``aggregate_subtotal`` is the sum over all vendor groups, before any
    discount. An expired code is reported as expired even when the cart
    also misses the minimum.

    Raises:
        InvalidPromoCodeError: unknown or deactivated code.
        PromoExpiredError: ``expires_at`` has passed.
        PromoMinimumNotMetError: subtotal below ``minimum_order``.
    """
    promo = current_domain.repository_for(PromoCode).find_by_code(code)
    if promo is None or not promo.is_active:
        logger.info("Promo code rejected", code=code, reason="unknown")
        raise InvalidPromoCodeError(code)

    now = now or datetime.now(UTC)
    if promo.is_expired(now):
        logger.info("Promo code rejected", code=promo.code, reason="expired")
        raise PromoExpiredError(promo.code, promo.expires_at)

    if promo.minimum_order is not None and aggregate_subtotal < promo.minimum_order:
        logger.info(
            "Promo code rejected",
            code=promo.code,
            reason="minimum_not_met",
            required=promo.minimum_order,
            actual=aggregate_subtotal,
        )
        raise PromoMinimumNotMetError(promo.code, required=promo.minimum_order, actual=aggregate_subtotal)

    return promo
