"""Domain events for the CheckoutSession aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="CheckoutSession")
class CheckoutSessionOpened:
    """A priced checkout session is ready to be charged by the payment processor."""

    __version__ = 1

    session_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    vendor_count = Integer(required=True)
    aggregate_total = Integer(required=True)
    currency = String(required=True)
    expires_at = DateTime(required=True)


@marketplace.event(part_of="CheckoutSession")
class CheckoutSessionConsumed:
    """The session's draft orders were materialized after payment."""

    __version__ = 1

    session_id = Identifier(required=True)
    payment_reference = String(required=True)
    consumed_at = DateTime(required=True)
