"""Application tests for starting a checkout via domain.process()."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from marketplace.checkout.preview import compute_checkout_preview, payment_intent_for
from marketplace.checkout.session import CheckoutSession, SessionStatus
from marketplace.errors import (
    EmptyCartError,
    InvalidPromoCodeError,
    InvalidRedemptionError,
    PromoMinimumNotMetError,
    VendorMinimumNotMetError,
)
from marketplace.promotions.management import RegisterPromoCode
from marketplace.vendors.directory.port import PlatformFeeKind, PlatformFeePolicy, VendorPolicy
from protean import current_domain
from protean.exceptions import ValidationError

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


def _no_fee_vendor(vendor_id, minimum_order=0):
    return VendorPolicy(vendor_id, minimum_order, 0, PlatformFeePolicy(PlatformFeeKind.FIXED, Decimal("0")))


def _start(lines, **overrides):
    kwargs = {
        "customer_id": "cust-001",
        "cart": lines,
        "delivery_address": ADDRESS,
        "delivery_mode": "DELIVERY",
    }
    kwargs.update(overrides)
    return compute_checkout_preview(**kwargs)


@pytest.fixture()
def save5():
    current_domain.process(
        RegisterPromoCode(code="SAVE5", discount_type="FIXED", discount_value=500, minimum_order=1500),
        asynchronous=False,
    )


class TestStartCheckout:
    def test_session_is_persisted_and_open(self, directory):
        session = _start([_line("a", 2000)])
        stored = current_domain.repository_for(CheckoutSession).get(session.id)
        assert stored.status == SessionStatus.OPEN.value
        assert stored.aggregate_total == session.aggregate_total

    def test_default_vendor_terms(self, directory):
        session = _start([_line("a", 2000)])
        [draft] = session.drafts()
        assert draft.delivery_fee == 399
        assert draft.platform_fee == 120
        # 0.08 * (2000 + 399 + 120) = 201.52
        assert draft.tax == 202
        assert draft.total == 2721

    def test_promo_discount_is_apportioned_across_vendors(self, directory, save5):
        directory.configure(_no_fee_vendor("a"))
        directory.configure(_no_fee_vendor("b"))

        session = _start(
            [_line("a", 1200), _line("b", 3000)],
            delivery_mode="PICKUP",
            tax_rate=Decimal("0"),
            promo_code="save5",
        )

        drafts = session.drafts()
        assert [draft.discount for draft in drafts] == [143, 357]
        assert [draft.total for draft in drafts] == [1057, 2643]
        assert session.aggregate_total == 3700
        assert session.promo_code == "SAVE5"

    def test_loyalty_points_reduce_total(self, directory, ledger):
        directory.configure(_no_fee_vendor("a"))
        ledger.set_balance("cust-001", 250)

        session = _start(
            [_line("a", 2000)], delivery_mode="PICKUP", tax_rate=Decimal("0"), loyalty_points_to_redeem=200
        )

        assert session.loyalty_points_used == 200
        assert session.aggregate_total == 1800

    def test_loyalty_points_above_balance_are_rejected(self, directory, ledger):
        ledger.set_balance("cust-001", 250)
        with pytest.raises(InvalidRedemptionError):
            _start([_line("a", 2000)], loyalty_points_to_redeem=300)

    def test_negative_loyalty_points_are_rejected(self, directory, ledger):
        ledger.set_balance("cust-001", 500)
        with pytest.raises(InvalidRedemptionError) as exc:
            _start([_line("a", 2400)], loyalty_points_to_redeem=-100)
        assert exc.value.requested == -100
        assert current_domain.repository_for(CheckoutSession)._dao.query.all().items == []

    def test_zero_quantity_line_is_rejected(self, directory):
        with pytest.raises(ValidationError) as exc:
            _start([_line("a", 2400, quantity=0)])
        assert "quantity" in exc.value.messages

    def test_supplied_tax_amounts_are_used(self, directory):
        session = _start([_line("a", 2000)], tax_amounts={"a": 150})
        assert session.drafts()[0].tax == 150

    def test_empty_cart(self, directory):
        with pytest.raises(EmptyCartError):
            _start([])

    def test_vendor_minimum_blocks_whole_checkout(self, directory):
        with pytest.raises(VendorMinimumNotMetError) as exc:
            _start([_line("a", 3000), _line("b", 1000)])
        assert exc.value.vendor_id == "b"
        assert current_domain.repository_for(CheckoutSession)._dao.query.all().items == []

    def test_unknown_promo_code(self, directory):
        with pytest.raises(InvalidPromoCodeError):
            _start([_line("a", 2000)], promo_code="NOPE")

    def test_promo_minimum_uses_aggregate_subtotal(self, directory, save5):
        directory.configure(_no_fee_vendor("a"))
        directory.configure(_no_fee_vendor("b"))
        # Neither vendor alone reaches $15, the cart does
        session = _start([_line("a", 800), _line("b", 800)], promo_code="SAVE5")
        assert sum(draft.discount for draft in session.drafts()) == 500

    def test_promo_minimum_not_met(self, directory, save5):
        directory.configure(_no_fee_vendor("a"))
        with pytest.raises(PromoMinimumNotMetError):
            _start([_line("a", 1000)], promo_code="SAVE5")

    def test_each_attempt_opens_a_fresh_session(self, directory):
        first = _start([_line("a", 2000)])
        second = _start([_line("a", 2000)])
        assert first.id != second.id

    def test_scheduled_checkout(self, directory):
        later = datetime.now(UTC) + timedelta(hours=2)
        session = _start([_line("a", 2000)], scheduled_for=later)
        assert session.scheduled_for is not None

    def test_payment_intent_covers_all_vendors(self, directory):
        session = _start([_line("a", 2000), _line("b", 1600)])
        intent = payment_intent_for(session)
        assert intent["session_id"] == str(session.id)
        assert intent["aggregate_total"] == sum(draft.total for draft in session.drafts())
        assert intent["currency"] == "USD"
