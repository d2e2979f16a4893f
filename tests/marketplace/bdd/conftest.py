"""Shared BDD fixtures and step definitions for checkout pricing."""

from decimal import Decimal

import pytest
from marketplace.errors import CheckoutError
from marketplace.promotions.management import RegisterPromoCode
from marketplace.vendors.directory.port import PlatformFeeKind, PlatformFeePolicy, VendorPolicy
from protean import current_domain
from pytest_bdd import given, parsers, then

ADDRESS = {"street": "123 Main St", "city": "Springfield", "postal_code": "62701", "country": "US"}


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def customer_id():
    return "cust-bdd-001"


@pytest.fixture()
def address():
    return ADDRESS


@pytest.fixture()
def error():
    """Container for captured checkout errors."""
    return {"exc": None}


@pytest.fixture()
def cart():
    return []


@pytest.fixture()
def checkout():
    """Holds the opened session and confirmation results."""
    return {"session": None, "confirmations": []}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('vendor "{vendor_id}" charges no fees and has no minimum'))
def vendor_without_fees(directory, vendor_id):
    directory.configure(
        VendorPolicy(
            vendor_id=vendor_id,
            minimum_order=0,
            delivery_fee=0,
            platform_fee=PlatformFeePolicy(kind=PlatformFeeKind.FIXED, value=Decimal("0")),
        )
    )


@given(parsers.cfparse('the promo code "{code}" takes {amount:d} off orders of at least {minimum:d}'))
def fixed_promo_code(code, amount, minimum):
    current_domain.process(
        RegisterPromoCode(code=code, discount_type="FIXED", discount_value=amount, minimum_order=minimum),
        asynchronous=False,
    )


@given(parsers.cfparse("the customer has {points:d} loyalty points"))
def loyalty_balance(ledger, customer_id, points):
    ledger.set_balance(customer_id, points)


@given(parsers.cfparse('the cart holds {first:d} from "{first_vendor}" and {second:d} from "{second_vendor}"'))
def two_vendor_cart(cart, first, first_vendor, second, second_vendor):
    for vendor_id, amount in ((first_vendor, first), (second_vendor, second)):
        cart.append(
            {
                "product_id": f"prod-{vendor_id}",
                "vendor_id": vendor_id,
                "vendor_name": f"Vendor {vendor_id}",
                "product_name": "Item",
                "unit_price": amount,
                "quantity": 1,
            }
        )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the checkout fails with "{error_name}"'))
def checkout_fails_with(error, error_name):
    assert isinstance(error["exc"], CheckoutError)
    assert type(error["exc"]).__name__ == error_name


@then(parsers.cfparse("the checkout total is {total:d}"))
def checkout_total_is(checkout, total):
    assert checkout["session"].aggregate_total == total
