"""Checkout settings read from the environment.

Fee defaults mirror the platform's published pricing: 6% platform fee,
$3.99 delivery per vendor, 8% estimated tax and a $15 vendor minimum.
Amounts are in minor currency units.
"""

import os
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class CheckoutSettings:
    currency: str = "USD"
    session_ttl_minutes: int = 30
    tax_rate: Decimal = Decimal("0.08")
    default_minimum_order: int = 1500
    default_delivery_fee: int = 399
    default_platform_fee_percent: Decimal = Decimal("6")
    estimated_delivery_minutes: int = 45
    estimated_pickup_minutes: int = 20
    materialization_max_attempts: int = 3


def get_settings() -> CheckoutSettings:
    """Build settings from environment variables, falling back to defaults."""
    defaults = CheckoutSettings()
    return CheckoutSettings(
        currency=os.getenv("CHECKOUT_CURRENCY", defaults.currency).upper(),
        session_ttl_minutes=int(os.getenv("CHECKOUT_SESSION_TTL_MINUTES", defaults.session_ttl_minutes)),
        tax_rate=Decimal(os.getenv("CHECKOUT_TAX_RATE", str(defaults.tax_rate))),
        default_minimum_order=int(os.getenv("DEFAULT_VENDOR_MINIMUM_ORDER", defaults.default_minimum_order)),
        default_delivery_fee=int(os.getenv("DEFAULT_DELIVERY_FEE", defaults.default_delivery_fee)),
        default_platform_fee_percent=Decimal(
            os.getenv("DEFAULT_PLATFORM_FEE_PERCENT", str(defaults.default_platform_fee_percent))
        ),
        estimated_delivery_minutes=int(os.getenv("ESTIMATED_DELIVERY_MINUTES", defaults.estimated_delivery_minutes)),
        estimated_pickup_minutes=int(os.getenv("ESTIMATED_PICKUP_MINUTES", defaults.estimated_pickup_minutes)),
        materialization_max_attempts=int(
            os.getenv("MATERIALIZATION_MAX_ATTEMPTS", defaults.materialization_max_attempts)
        ),
    )
