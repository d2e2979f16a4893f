"""Order aggregate — one vendor's share of a paid checkout.

Orders are created once by the materializer, never deleted, and change only
through status transitions. Prices are locked at checkout; amounts are in
minor currency units.

State Machine:
    PENDING → CONFIRMED → PREPARING → READY → OUT_FOR_DELIVERY → COMPLETED
    CANCELLED (from any non-terminal state)

Each step must name the exact next state; skipping states is rejected.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, HasMany, Identifier, Integer, String, ValueObject

from marketplace.domain import marketplace
from marketplace.errors import InvalidStatusTransitionError
from marketplace.order.events import OrderCancelled, OrderConfirmed, OrderPlaced, OrderStatusChanged


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    READY = "READY"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


TERMINAL_STATES = {OrderStatus.COMPLETED, OrderStatus.CANCELLED}

# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Order")
class DeliveryAddress:
    """Where the order is delivered (or the customer's address for pickup).

    Captured at checkout and immutable afterwards.
    """

    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(max_length=100, default="US")
    label = String(max_length=50)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderItem:
    """A cart line snapshot carried into the order."""

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    unit_price = Integer(required=True, min_value=0)
    quantity = Integer(required=True, min_value=1)
    line_subtotal = Integer(required=True, min_value=0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    session_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    vendor_name = String(required=True, max_length=255)
    vendor_position = Integer(default=0, min_value=0)  # index within the session
    items = HasMany(OrderItem)
    subtotal = Integer(required=True, min_value=0)
    delivery_fee = Integer(default=0, min_value=0)
    platform_fee = Integer(default=0, min_value=0)
    tax = Integer(default=0, min_value=0)
    discount = Integer(default=0, min_value=0)
    total = Integer(required=True, min_value=0)
    currency = String(max_length=3, default="USD")
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    delivery_address = ValueObject(DeliveryAddress)
    delivery_mode = String(required=True, max_length=20)
    scheduled_for = DateTime()
    promo_code = String(max_length=50)
    loyalty_points_used = Integer(default=0, min_value=0)
    payment_reference = String(max_length=255)
    estimated_delivery_time = DateTime()
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        session_id,
        customer_id,
        draft,
        delivery_address,
        delivery_mode,
        currency="USD",
        scheduled_for=None,
        promo_code=None,
        loyalty_points_used=0,
        vendor_position=0,
        now=None,
    ):
        """Create a PENDING order from a session's draft order.

        Args:
            draft: a ``DraftOrder`` from the checkout session.
            delivery_address: dict with street, city, state, postal_code,
                country and label.
        """
        now = now or datetime.now(UTC)
        order = cls(
            session_id=session_id,
            customer_id=customer_id,
            vendor_id=draft.vendor_id,
            vendor_name=draft.vendor_name,
            vendor_position=vendor_position,
            items=[
                OrderItem(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    line_subtotal=line.line_subtotal,
                )
                for line in draft.items
            ],
            subtotal=draft.subtotal,
            delivery_fee=draft.delivery_fee,
            platform_fee=draft.platform_fee,
            tax=draft.tax,
            discount=draft.discount,
            total=draft.total,
            currency=currency,
            status=OrderStatus.PENDING.value,
            delivery_address=DeliveryAddress(**delivery_address),
            delivery_mode=delivery_mode,
            scheduled_for=scheduled_for,
            promo_code=promo_code,
            loyalty_points_used=loyalty_points_used or 0,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                session_id=str(session_id),
                customer_id=str(customer_id),
                vendor_id=str(draft.vendor_id),
                total=draft.total,
                currency=currency,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def can_transition_to(self, target_status):
        current = OrderStatus(self.status)
        if current in TERMINAL_STATES:
            return False
        return target_status in _VALID_TRANSITIONS[current]

    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        if not self.can_transition_to(target_status):
            raise InvalidStatusTransitionError(str(self.id), self.status, target_status.value)

    # -------------------------------------------------------------------
    # Lifecycle transitions
    # -------------------------------------------------------------------
    def confirm(self, payment_reference, estimated_delivery_time=None, now=None):
        """Confirm the order once the payment processor has captured the charge."""
        self._assert_can_transition(OrderStatus.CONFIRMED)
        now = now or datetime.now(UTC)
        self.status = OrderStatus.CONFIRMED.value
        self.payment_reference = payment_reference
        self.estimated_delivery_time = estimated_delivery_time
        self.updated_at = now

        self.raise_(
            OrderConfirmed(
                order_id=str(self.id),
                vendor_id=str(self.vendor_id),
                payment_reference=payment_reference,
                estimated_delivery_time=estimated_delivery_time,
                confirmed_at=now,
            )
        )

    def advance_to(self, target_status, now=None):
        """Move one step along the fulfilment path (PREPARING, READY, ...)."""
        target_status = OrderStatus(getattr(target_status, "value", target_status))
        if target_status == OrderStatus.CANCELLED:
            return self.cancel()
        if target_status == OrderStatus.CONFIRMED:
            raise InvalidStatusTransitionError(str(self.id), self.status, target_status.value)

        self._assert_can_transition(target_status)
        now = now or datetime.now(UTC)
        previous = self.status
        self.status = target_status.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                vendor_id=str(self.vendor_id),
                previous_status=previous,
                new_status=target_status.value,
                changed_at=now,
            )
        )

    def cancel(self, reason=None, now=None):
        """Cancel the order from any non-terminal state."""
        self._assert_can_transition(OrderStatus.CANCELLED)
        now = now or datetime.now(UTC)
        previous = self.status
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                vendor_id=str(self.vendor_id),
                previous_status=previous,
                reason=reason,
                cancelled_at=now,
            )
        )
