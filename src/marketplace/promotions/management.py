"""Promo code management — commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Integer, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import InvalidPromoCodeError
from marketplace.promotions.promo_code import DiscountType, PromoCode

# Development seed, matching the codes offered on the storefront
SEED_PROMO_CODES = [
    {"code": "WELCOME10", "discount_type": "PERCENTAGE", "discount_value": 10, "minimum_order": 2000},
    {"code": "SAVE5", "discount_type": "FIXED", "discount_value": 500, "minimum_order": 1500},
]


@marketplace.command(part_of="PromoCode")
class RegisterPromoCode:
    code = String(required=True, max_length=50)
    discount_type = String(required=True, choices=DiscountType)
    discount_value = Float(required=True, min_value=0.0)
    minimum_order = Integer(min_value=0)
    expires_at = DateTime()


@marketplace.command(part_of="PromoCode")
class DeactivatePromoCode:
    code = String(required=True, max_length=50)


@marketplace.command_handler(part_of=PromoCode)
class PromoCodeManagementHandler:
    @handle(RegisterPromoCode)
    def register_promo_code(self, command):
        repo = current_domain.repository_for(PromoCode)
        if repo.find_by_code(command.code) is not None:
            raise ValidationError({"code": [f"Promo code {command.code} already exists"]})

        promo = PromoCode.register(
            code=command.code,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            minimum_order=command.minimum_order,
            expires_at=command.expires_at,
        )
        repo.add(promo)
        return promo.code

    @handle(DeactivatePromoCode)
    def deactivate_promo_code(self, command):
        repo = current_domain.repository_for(PromoCode)
        promo = repo.find_by_code(command.code)
        if promo is None:
            raise InvalidPromoCodeError(command.code)
        promo.deactivate()
        repo.add(promo)


def seed_promo_codes():
    """Register the development promo codes that are not already present."""
    repo = current_domain.repository_for(PromoCode)
    for data in SEED_PROMO_CODES:
        if repo.find_by_code(data["code"]) is None:
            current_domain.process(RegisterPromoCode(**data), asynchronous=False)
