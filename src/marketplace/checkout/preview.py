"""Start checkout — price the cart and open a checkout session.

The session returned here is what the storefront hands to the payment
processor: its id and aggregate total form the payment intent.
"""

import json
from decimal import Decimal

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.cart.lines import CartLine
from marketplace.checkout.builder import compose_checkout
from marketplace.checkout.pricing import DeliveryMode
from marketplace.checkout.session import CheckoutSession
from marketplace.domain import marketplace

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="CheckoutSession")
class StartCheckout:
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of cart line dicts
    delivery_address = Text(required=True)  # JSON: address dict
    delivery_mode = String(required=True, choices=DeliveryMode)
    scheduled_for = DateTime()
    promo_code = String(max_length=50)
    loyalty_points_to_redeem = Integer(default=0)
    tax_rate = String(max_length=20)  # Decimal as string, e.g. "0.0825"
    tax_amounts = Text()  # JSON: {vendor_id: exact tax in minor units}


@marketplace.command_handler(part_of=CheckoutSession)
class StartCheckoutHandler:
    @handle(StartCheckout)
    def start_checkout(self, command):
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        delivery_address = (
            json.loads(command.delivery_address)
            if isinstance(command.delivery_address, str)
            else command.delivery_address
        )
        tax_amounts = json.loads(command.tax_amounts) if command.tax_amounts else None

        session = compose_checkout(
            customer_id=command.customer_id,
            lines=[CartLine.from_dict(item) for item in items_data],
            delivery_address=delivery_address,
            delivery_mode=command.delivery_mode,
            promo_code=command.promo_code,
            loyalty_points_to_redeem=command.loyalty_points_to_redeem or 0,
            scheduled_for=command.scheduled_for,
            tax_rate=Decimal(command.tax_rate) if command.tax_rate else None,
            tax_amounts=tax_amounts,
        )
        current_domain.repository_for(CheckoutSession).add(session)

        logger.info(
            "Checkout session opened",
            session_id=str(session.id),
            customer_id=str(command.customer_id),
            vendor_count=len(session.drafts()),
            aggregate_total=session.aggregate_total,
        )
        return str(session.id)


def compute_checkout_preview(
    customer_id,
    cart,
    delivery_address: dict,
    delivery_mode,
    promo_code=None,
    loyalty_points_to_redeem=0,
    scheduled_for=None,
    tax_rate=None,
    tax_amounts=None,
) -> CheckoutSession:
    """Price a cart, persist its checkout session and return it.

    ``cart`` holds ``CartLine`` instances or their dict form.
    """
    items = [line.to_dict() if isinstance(line, CartLine) else line for line in cart]
    session_id = current_domain.process(
        StartCheckout(
            customer_id=customer_id,
            items=json.dumps(items),
            delivery_address=json.dumps(delivery_address),
            delivery_mode=getattr(delivery_mode, "value", delivery_mode),
            scheduled_for=scheduled_for,
            promo_code=promo_code,
            loyalty_points_to_redeem=loyalty_points_to_redeem,
            tax_rate=str(tax_rate) if tax_rate is not None else None,
            tax_amounts=json.dumps(tax_amounts) if tax_amounts else None,
        ),
        asynchronous=False,
    )
    return current_domain.repository_for(CheckoutSession).get(session_id)


def payment_intent_for(session: CheckoutSession) -> dict:
    """The charge handed to the payment processor for ``session``."""
    return session.payment_intent()
