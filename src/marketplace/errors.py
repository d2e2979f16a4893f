"""Checkout error taxonomy.

Every error is a protean ``ValidationError`` carrying the usual
``messages`` dict keyed by the offending field, plus structured attributes
(vendor, required minimum, ...) for rendering an actionable message.
"""

from protean.exceptions import ValidationError


class CheckoutError(ValidationError):
    """Base class for checkout validation failures."""

    field = "checkout"

    def __init__(self, message: str, **detail):
        self.message = message
        self.detail = detail
        super().__init__({self.field: [message]})

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "messages": {self.field: [self.message]},
            "detail": self.detail,
        }


class EmptyCartError(CheckoutError):
    field = "cart"

    def __init__(self, message: str = "Cart has no items to check out"):
        super().__init__(message)


class InvalidPromoCodeError(CheckoutError):
    field = "promo_code"

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Invalid promo code: {code}", code=code)


class PromoMinimumNotMetError(CheckoutError):
    field = "promo_code"

    def __init__(self, code: str, required: int, actual: int):
        self.code = code
        self.required = required
        self.actual = actual
        super().__init__(
            f"Promo code {code} requires a minimum order of {required}",
            code=code,
            required=required,
            actual=actual,
        )


class PromoExpiredError(CheckoutError):
    field = "promo_code"

    def __init__(self, code: str, expired_at):
        self.code = code
        self.expired_at = expired_at
        super().__init__(f"Promo code {code} has expired", code=code, expired_at=expired_at.isoformat())


class InvalidRedemptionError(CheckoutError):
    field = "loyalty_points"

    def __init__(self, message: str, requested: int, max_redeemable: int):
        self.requested = requested
        self.max_redeemable = max_redeemable
        super().__init__(message, requested=requested, max_redeemable=max_redeemable)


class VendorMinimumNotMetError(CheckoutError):
    field = "vendor"

    def __init__(self, vendor_id: str, required: int, actual: int, shortfalls=None):
        self.vendor_id = vendor_id
        self.required = required
        self.actual = actual
        self.shortfalls = shortfalls or [{"vendor_id": vendor_id, "required": required, "actual": actual}]
        super().__init__(
            f"Vendor {vendor_id} requires a minimum order of {required}, cart has {actual}",
            vendor_id=vendor_id,
            required=required,
            actual=actual,
            shortfalls=self.shortfalls,
        )


class SessionNotFoundError(CheckoutError):
    field = "session_id"

    def __init__(self, session_id: str, message: str | None = None):
        self.session_id = session_id
        super().__init__(message or f"Checkout session {session_id} not found", session_id=session_id)


class SessionExpiredError(SessionNotFoundError):
    def __init__(self, session_id: str, expired_at):
        self.expired_at = expired_at
        super().__init__(session_id, f"Checkout session {session_id} expired at {expired_at.isoformat()}")
        self.detail["expired_at"] = expired_at.isoformat()


class InvalidStatusTransitionError(CheckoutError):
    field = "status"

    def __init__(self, order_id: str, current: str, requested: str):
        self.order_id = order_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot transition order from {current} to {requested}",
            order_id=order_id,
            current=current,
            requested=requested,
        )


class TransientStoreError(Exception):
    """The order store could not complete a write; the write may be retried."""
