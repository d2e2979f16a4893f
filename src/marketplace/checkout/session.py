"""CheckoutSession aggregate — one payment intent covering N draft orders.

A session is opened fresh for every checkout attempt, handed to the payment
processor as the amount to charge, and consumed exactly once when the
payment is confirmed. Draft orders are kept as a JSON snapshot: they are
computed prices, not persisted Orders.

Lifecycle:
    OPEN → CONSUMED
An OPEN session past ``expires_at`` can no longer be materialized.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from marketplace.cart.lines import CartLine
from marketplace.checkout.events import CheckoutSessionConsumed, CheckoutSessionOpened
from marketplace.domain import marketplace
from marketplace.errors import SessionExpiredError, SessionNotFoundError


class SessionStatus(Enum):
    OPEN = "OPEN"
    CONSUMED = "CONSUMED"


@dataclass(frozen=True)
class DraftOrder:
    """An order computed for one vendor but not yet persisted."""

    vendor_id: str
    vendor_name: str
    items: tuple[CartLine, ...]
    subtotal: int
    delivery_fee: int
    platform_fee: int
    tax: int
    discount: int
    total: int
    status: str = "PENDING"

    @classmethod
    def from_breakdown(cls, breakdown) -> "DraftOrder":
        return cls(
            vendor_id=breakdown.vendor_id,
            vendor_name=breakdown.vendor_name,
            items=tuple(breakdown.lines),
            subtotal=breakdown.subtotal,
            delivery_fee=breakdown.delivery_fee,
            platform_fee=breakdown.platform_fee,
            tax=breakdown.tax,
            discount=breakdown.discount,
            total=breakdown.total,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "DraftOrder":
        return cls(
            vendor_id=data["vendor_id"],
            vendor_name=data["vendor_name"],
            items=tuple(CartLine.from_dict(item) for item in data["items"]),
            subtotal=data["subtotal"],
            delivery_fee=data["delivery_fee"],
            platform_fee=data["platform_fee"],
            tax=data["tax"],
            discount=data["discount"],
            total=data["total"],
            status=data.get("status", "PENDING"),
        )

    def to_dict(self) -> dict:
        return {
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor_name,
            "items": [item.to_dict() for item in self.items],
            "subtotal": self.subtotal,
            "delivery_fee": self.delivery_fee,
            "platform_fee": self.platform_fee,
            "tax": self.tax,
            "discount": self.discount,
            "total": self.total,
            "status": self.status,
        }


@marketplace.aggregate
class CheckoutSession:
    customer_id = Identifier(required=True)
    status = String(choices=SessionStatus, default=SessionStatus.OPEN.value)
    draft_orders = Text(required=True)  # JSON: list of DraftOrder dicts
    aggregate_total = Integer(required=True, min_value=0)
    currency = String(max_length=3, default="USD")
    delivery_address = Text(required=True)  # JSON: address dict
    delivery_mode = String(required=True, max_length=20)
    scheduled_for = DateTime()
    promo_code = String(max_length=50)
    loyalty_points_used = Integer(default=0, min_value=0)
    payment_reference = String(max_length=255)
    created_at = DateTime()
    expires_at = DateTime()

    @invariant.post
    def aggregate_total_must_equal_sum_of_draft_totals(self):
        drafts = json.loads(self.draft_orders) if self.draft_orders else []
        if self.aggregate_total != sum(draft["total"] for draft in drafts):
            raise ValidationError({"aggregate_total": ["Aggregate total must equal the sum of draft order totals"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def open(
        cls,
        customer_id,
        drafts,
        delivery_address,
        delivery_mode,
        ttl_minutes,
        currency="USD",
        scheduled_for=None,
        promo_code=None,
        loyalty_points_used=0,
        now=None,
    ):
        now = now or datetime.now(UTC)
        session = cls(
            customer_id=customer_id,
            status=SessionStatus.OPEN.value,
            draft_orders=json.dumps([draft.to_dict() for draft in drafts]),
            aggregate_total=sum(draft.total for draft in drafts),
            currency=currency,
            delivery_address=json.dumps(delivery_address),
            delivery_mode=delivery_mode,
            scheduled_for=scheduled_for,
            promo_code=promo_code,
            loyalty_points_used=loyalty_points_used or 0,
            created_at=now,
            expires_at=now + timedelta(minutes=ttl_minutes),
        )
        session.raise_(
            CheckoutSessionOpened(
                session_id=str(session.id),
                customer_id=str(customer_id),
                vendor_count=len(drafts),
                aggregate_total=session.aggregate_total,
                currency=currency,
                expires_at=session.expires_at,
            )
        )
        return session

    # -------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------
    def drafts(self) -> list[DraftOrder]:
        return [DraftOrder.from_dict(data) for data in json.loads(self.draft_orders)]

    def address(self) -> dict:
        return json.loads(self.delivery_address)

    def is_expired(self, now=None) -> bool:
        expires_at = self.expires_at if self.expires_at.tzinfo else self.expires_at.replace(tzinfo=UTC)
        return expires_at <= (now or datetime.now(UTC))

    def payment_intent(self) -> dict:
        """What the payment processor is asked to charge."""
        return {
            "session_id": str(self.id),
            "aggregate_total": self.aggregate_total,
            "currency": self.currency,
        }

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def assert_materializable(self, now=None):
        """Raise unless the session can still be turned into orders."""
        if SessionStatus(self.status) != SessionStatus.OPEN:
            raise SessionNotFoundError(str(self.id))
        if self.is_expired(now):
            raise SessionExpiredError(str(self.id), self.expires_at)

    def consume(self, payment_reference, now=None):
        self.assert_materializable(now)
        now = now or datetime.now(UTC)
        self.status = SessionStatus.CONSUMED.value
        self.payment_reference = payment_reference

        self.raise_(
            CheckoutSessionConsumed(
                session_id=str(self.id),
                payment_reference=payment_reference,
                consumed_at=now,
            )
        )
