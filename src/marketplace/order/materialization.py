"""Order materialization — turn a paid checkout session into vendor orders.

The payment processor confirms a session at least once, possibly several
times. Each session id is materialized at most once: the first confirmation
creates one CONFIRMED order per draft and records a SessionMaterialization
keyed by the session id; every later confirmation finds that record and
returns the same orders.

All orders, the consumed session and the materialization record are written
in the handler's unit of work, so either every vendor order for a session
exists or none does.
"""

import json
import threading
from datetime import UTC, datetime, timedelta

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain
from sqlalchemy.exc import OperationalError

from marketplace.checkout.pricing import DeliveryMode
from marketplace.checkout.session import CheckoutSession
from marketplace.config import get_settings
from marketplace.domain import marketplace
from marketplace.errors import SessionNotFoundError, TransientStoreError
from marketplace.order.order import Order
from marketplace.shared.money import apportion

logger = structlog.get_logger(__name__)

RETRYABLE_ERRORS = (TransientStoreError, OperationalError)

# Confirmations for the same session serialize on one stripe
_LOCK_STRIPES = [threading.Lock() for _ in range(64)]


def _lock_for(session_id) -> threading.Lock:
    return _LOCK_STRIPES[hash(str(session_id)) % len(_LOCK_STRIPES)]


@marketplace.aggregate
class SessionMaterialization:
    """Idempotency record: which orders a checkout session produced."""

    session_id = Identifier(identifier=True)
    payment_reference = String(required=True, max_length=255)
    order_ids = Text(required=True)  # JSON: list of order ids in vendor order
    materialized_at = DateTime()

    def orders(self) -> list[str]:
        return json.loads(self.order_ids)


@marketplace.command(part_of="SessionMaterialization")
class ConfirmPayment:
    session_id = Identifier(required=True)
    payment_reference = String(required=True, max_length=255)


def estimated_delivery_time(delivery_mode, scheduled_for=None, now=None):
    """When the customer can expect the order.

    Scheduled orders are due at their scheduled time; otherwise the
    configured preparation window for the delivery mode applies.
    """
    if scheduled_for is not None:
        return scheduled_for

    settings = get_settings()
    now = now or datetime.now(UTC)
    if DeliveryMode(delivery_mode) == DeliveryMode.PICKUP:
        return now + timedelta(minutes=settings.estimated_pickup_minutes)
    return now + timedelta(minutes=settings.estimated_delivery_minutes)


@marketplace.command_handler(part_of=SessionMaterialization)
class MaterializationHandler:
    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        session_id = str(command.session_id)
        records = current_domain.repository_for(SessionMaterialization)

        try:
            record = records.get(session_id)
        except ObjectNotFoundError:
            record = None
        if record is not None:
            logger.info(
                "Duplicate payment confirmation",
                session_id=session_id,
                payment_reference=command.payment_reference,
                original_reference=record.payment_reference,
            )
            return record.orders()

        sessions = current_domain.repository_for(CheckoutSession)
        try:
            session = sessions.get(session_id)
        except ObjectNotFoundError:
            raise SessionNotFoundError(session_id) from None

        now = datetime.now(UTC)
        session.assert_materializable(now)

        drafts = session.drafts()
        eta = estimated_delivery_time(session.delivery_mode, session.scheduled_for, now)
        points_shares = apportion(session.loyalty_points_used or 0, [draft.subtotal for draft in drafts])

        order_repo = current_domain.repository_for(Order)
        order_ids = []
        for position, (draft, points) in enumerate(zip(drafts, points_shares, strict=True)):
            order = Order.place(
                session_id=session_id,
                customer_id=session.customer_id,
                draft=draft,
                delivery_address=session.address(),
                delivery_mode=session.delivery_mode,
                currency=session.currency,
                scheduled_for=session.scheduled_for,
                promo_code=session.promo_code,
                loyalty_points_used=points,
                vendor_position=position,
                now=now,
            )
            order.confirm(command.payment_reference, estimated_delivery_time=eta, now=now)
            order_repo.add(order)
            order_ids.append(str(order.id))

        session.consume(command.payment_reference, now=now)
        sessions.add(session)

        records.add(
            SessionMaterialization(
                session_id=session_id,
                payment_reference=command.payment_reference,
                order_ids=json.dumps(order_ids),
                materialized_at=now,
            )
        )

        logger.info(
            "Checkout session materialized",
            session_id=session_id,
            payment_reference=command.payment_reference,
            order_ids=order_ids,
            aggregate_total=session.aggregate_total,
        )
        return order_ids


def confirm_payment(session_id, payment_reference) -> list[Order]:
    """Materialize a paid session, returning its orders in vendor order.

    Safe to call repeatedly for the same session. Transient order-store
    failures are retried up to ``MATERIALIZATION_MAX_ATTEMPTS`` times.

    Raises:
        SessionNotFoundError: unknown session id.
        SessionExpiredError: the session expired before payment confirmation.
    """
    max_attempts = max(1, get_settings().materialization_max_attempts)

    with _lock_for(session_id):
        for attempt in range(1, max_attempts + 1):
            try:
                order_ids = current_domain.process(
                    ConfirmPayment(session_id=str(session_id), payment_reference=payment_reference),
                    asynchronous=False,
                )
                break
            except RETRYABLE_ERRORS as exc:
                if attempt == max_attempts:
                    logger.error(
                        "Materialization failed",
                        session_id=str(session_id),
                        attempts=attempt,
                        error=str(exc),
                    )
                    raise
                logger.warning(
                    "Order store write failed, retrying",
                    session_id=str(session_id),
                    attempt=attempt,
                    error=str(exc),
                )

    order_repo = current_domain.repository_for(Order)
    return [order_repo.get(order_id) for order_id in order_ids]
