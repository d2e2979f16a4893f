"""PromoCode aggregate — a discount rule applied to the whole cart.

Promo codes discount the cart's aggregate subtotal, never an individual
vendor's share; the per-vendor split happens later during pricing.
Codes are stored upper-cased so lookups are case-insensitive.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String

from marketplace.domain import marketplace
from marketplace.shared.money import apply_percent


class DiscountType(Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


def normalize_code(code: str) -> str:
    return code.strip().upper()


@marketplace.aggregate
class PromoCode:
    """A redeemable discount code.

    ``discount_value`` is a percentage for PERCENTAGE codes and an amount in
    minor units for FIXED codes. ``minimum_order`` is compared against the
    aggregate cart subtotal before any discount.
    """

    code = String(required=True, max_length=50, unique=True)
    discount_type = String(required=True, choices=DiscountType)
    discount_value = Float(required=True, min_value=0.0)
    minimum_order = Integer(min_value=0)
    expires_at = DateTime()
    is_active = Boolean(default=True)
    created_at = DateTime()

    @invariant.post
    def percentage_cannot_exceed_one_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and not 0 < self.discount_value <= 100:
            raise ValidationError({"discount_value": ["Percentage discount must be between 0 and 100"]})

    @invariant.post
    def fixed_discount_must_be_whole_minor_units(self):
        if self.discount_type == DiscountType.FIXED.value and self.discount_value != int(self.discount_value):
            raise ValidationError({"discount_value": ["Fixed discount must be a whole number of minor units"]})

    @classmethod
    def register(cls, code, discount_type, discount_value, minimum_order=None, expires_at=None):
        return cls(
            code=normalize_code(code),
            discount_type=DiscountType(discount_type).value,
            discount_value=discount_value,
            minimum_order=minimum_order,
            expires_at=expires_at,
            is_active=True,
            created_at=datetime.now(UTC),
        )

    def deactivate(self):
        self.is_active = False

    def is_expired(self, now=None):
        if self.expires_at is None:
            return False
        expires_at = self.expires_at if self.expires_at.tzinfo else self.expires_at.replace(tzinfo=UTC)
        return expires_at <= (now or datetime.now(UTC))

    def discount_for(self, subtotal: int) -> int:
        """Discount in minor units for an aggregate ``subtotal``.

        Never exceeds the subtotal, so a discounted total is never negative.
        """
        if DiscountType(self.discount_type) == DiscountType.PERCENTAGE:
            discount = apply_percent(subtotal, self.discount_value)
        else:
            discount = int(self.discount_value)
        return max(0, min(discount, subtotal))
