"""Marketplace bounded context — multi-vendor checkout and order composition.

Prices a cart that spans several vendors, opens one checkout session per
payment intent, and materializes one Order per vendor when the payment
processor confirms the charge.
"""

from protean.domain import Domain

from marketplace.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

marketplace = Domain(name="marketplace")
