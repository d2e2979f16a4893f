"""Repository for the PromoCode aggregate."""

from marketplace.domain import marketplace
from marketplace.promotions.promo_code import PromoCode, normalize_code


@marketplace.repository(part_of=PromoCode)
class PromoCodeRepository:
    def find_by_code(self, code: str) -> PromoCode | None:
        """Case-insensitive lookup of a promo code."""
        results = self._dao.query.filter(code=normalize_code(code)).all().items
        return results[0] if results else None
