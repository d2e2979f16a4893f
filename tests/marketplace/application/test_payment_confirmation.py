"""Application tests for payment confirmation and order materialization."""

import threading
from datetime import UTC, datetime, timedelta

import pytest
from marketplace.checkout.preview import compute_checkout_preview
from marketplace.checkout.session import CheckoutSession, SessionStatus
from marketplace.domain import marketplace
from marketplace.errors import SessionExpiredError, SessionNotFoundError, TransientStoreError
from marketplace.order.materialization import SessionMaterialization, confirm_payment
from marketplace.order.order import Order, OrderStatus
from protean import current_domain

ADDRESS = {
    "street": "123 Main St",
    "city": "Springfield",
    "state": "IL",
    "postal_code": "62701",
    "country": "US",
    "label": "Home",
}


def _line(vendor_id, unit_price, quantity=1):
    return {
        "product_id": f"prod-{vendor_id}-{unit_price}",
        "vendor_id": vendor_id,
        "vendor_name": f"Vendor {vendor_id}",
        "product_name": "Item",
        "unit_price": unit_price,
        "quantity": quantity,
    }


def _open_session(delivery_mode="DELIVERY", **overrides):
    kwargs = {
        "customer_id": "cust-001",
        "cart": [_line("vendor-a", 2400), _line("vendor-b", 1800), _line("vendor-a", 600)],
        "delivery_address": ADDRESS,
        "delivery_mode": delivery_mode,
    }
    kwargs.update(overrides)
    return compute_checkout_preview(**kwargs)


def _all_orders():
    return current_domain.repository_for(Order)._dao.query.all().items


class TestFirstConfirmation:
    def test_one_confirmed_order_per_vendor(self):
        session = _open_session()
        orders = confirm_payment(session.id, "pay-ref-001")

        assert [order.vendor_id for order in orders] == ["vendor-a", "vendor-b"]
        assert all(order.status == OrderStatus.CONFIRMED.value for order in orders)
        assert all(order.payment_reference == "pay-ref-001" for order in orders)
        assert all(order.created_at is not None for order in orders)

    def test_order_totals_match_the_charged_amount(self):
        session = _open_session()
        orders = confirm_payment(session.id, "pay-ref-001")

        assert sum(order.total for order in orders) == session.aggregate_total
        assert [order.total for order in orders] == [draft.total for draft in session.drafts()]

    def test_order_carries_checkout_details(self):
        session = _open_session()
        order = confirm_payment(session.id, "pay-ref-001")[0]

        assert str(order.session_id) == str(session.id)
        assert order.customer_id == "cust-001"
        assert order.delivery_address.postal_code == "62701"
        assert order.delivery_mode == "DELIVERY"
        assert [item.line_subtotal for item in order.items] == [2400, 600]

    def test_estimated_delivery_time_for_delivery(self):
        before = datetime.now(UTC)
        session = _open_session()
        order = confirm_payment(session.id, "pay-ref-001")[0]

        eta = order.estimated_delivery_time
        eta = eta if eta.tzinfo else eta.replace(tzinfo=UTC)
        assert eta >= before + timedelta(minutes=45)

    def test_scheduled_orders_are_due_at_scheduled_time(self):
        later = datetime.now(UTC) + timedelta(hours=3)
        session = _open_session(scheduled_for=later)
        order = confirm_payment(session.id, "pay-ref-001")[0]

        assert order.estimated_delivery_time == order.scheduled_for

    def test_session_is_consumed(self):
        session = _open_session()
        confirm_payment(session.id, "pay-ref-001")

        stored = current_domain.repository_for(CheckoutSession).get(session.id)
        assert stored.status == SessionStatus.CONSUMED.value

    def test_materialization_is_recorded_against_session_id(self):
        session = _open_session()
        orders = confirm_payment(session.id, "pay-ref-001")

        record = current_domain.repository_for(SessionMaterialization).get(str(session.id))
        assert record.orders() == [str(order.id) for order in orders]
        assert record.payment_reference == "pay-ref-001"

    def test_orders_are_found_by_session(self):
        session = _open_session()
        orders = confirm_payment(session.id, "pay-ref-001")

        found = current_domain.repository_for(Order).find_by_session(session.id)
        assert [order.id for order in found] == [order.id for order in orders]


class TestDuplicateConfirmation:
    def test_second_confirmation_returns_same_orders(self):
        session = _open_session()
        first = confirm_payment(session.id, "pay-ref-001")
        second = confirm_payment(session.id, "pay-ref-001")

        assert [order.id for order in second] == [order.id for order in first]
        assert len(_all_orders()) == 2

    def test_duplicate_with_different_reference_keeps_original(self):
        session = _open_session()
        confirm_payment(session.id, "pay-ref-001")
        again = confirm_payment(session.id, "pay-ref-retry")

        assert all(order.payment_reference == "pay-ref-001" for order in again)

    def test_duplicate_after_expiry_still_returns_orders(self):
        session = _open_session()
        first = confirm_payment(session.id, "pay-ref-001")

        repo = current_domain.repository_for(CheckoutSession)
        stored = repo.get(session.id)
        stored.expires_at = datetime.now(UTC) - timedelta(minutes=1)
        repo.add(stored)

        assert [order.id for order in confirm_payment(session.id, "pay-ref-001")] == [order.id for order in first]

    def test_concurrent_confirmations_materialize_once(self):
        session = _open_session()
        results = []
        errors = []

        def _confirm():
            with marketplace.domain_context():
                try:
                    results.append([str(order.id) for order in confirm_payment(session.id, "pay-ref-001")])
                except Exception as exc:  # pragma: no cover - surfaced by the assertion below
                    errors.append(exc)

        threads = [threading.Thread(target=_confirm) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len({tuple(ids) for ids in results}) == 1
        assert len(_all_orders()) == 2


class TestRejectedConfirmation:
    def test_unknown_session(self):
        with pytest.raises(SessionNotFoundError) as exc:
            confirm_payment("sess-missing", "pay-ref-001")
        assert exc.value.session_id == "sess-missing"

    def test_expired_session(self):
        session = _open_session()
        repo = current_domain.repository_for(CheckoutSession)
        stored = repo.get(session.id)
        stored.expires_at = datetime.now(UTC) - timedelta(minutes=1)
        repo.add(stored)

        with pytest.raises(SessionExpiredError):
            confirm_payment(session.id, "pay-ref-001")
        assert _all_orders() == []


class TestTransientStoreFailures:
    def test_transient_failure_is_retried_without_duplicates(self, monkeypatch):
        session = _open_session()
        original_consume = CheckoutSession.consume
        calls = {"count": 0}

        def flaky_consume(self, payment_reference, now=None):
            calls["count"] += 1
            if calls["count"] == 1:
                raise TransientStoreError("connection reset")
            return original_consume(self, payment_reference, now=now)

        monkeypatch.setattr(CheckoutSession, "consume", flaky_consume)

        orders = confirm_payment(session.id, "pay-ref-001")

        assert calls["count"] == 2
        assert len(orders) == 2
        assert len(_all_orders()) == 2

    def test_gives_up_after_max_attempts(self, monkeypatch):
        monkeypatch.setenv("MATERIALIZATION_MAX_ATTEMPTS", "2")
        session = _open_session()
        calls = {"count": 0}

        def failing_consume(self, payment_reference, now=None):
            calls["count"] += 1
            raise TransientStoreError("database unavailable")

        monkeypatch.setattr(CheckoutSession, "consume", failing_consume)

        with pytest.raises(TransientStoreError):
            confirm_payment(session.id, "pay-ref-001")
        assert calls["count"] == 2
        assert _all_orders() == []
