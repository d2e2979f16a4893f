"""Vendor directory port (abstract interface).

The catalogue/vendor service owns each vendor's commercial terms: minimum
order, delivery fee and the platform fee charged on its orders. Checkout
consumes them through this port.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from marketplace.shared.money import apply_percent


class PlatformFeeKind(Enum):
    FIXED = "FIXED"
    PERCENTAGE = "PERCENTAGE"


@dataclass(frozen=True)
class PlatformFeePolicy:
    kind: PlatformFeeKind
    value: Decimal  # minor units for FIXED, percent for PERCENTAGE

    def fee_for(self, subtotal: int) -> int:
        if self.kind == PlatformFeeKind.PERCENTAGE:
            return apply_percent(subtotal, self.value)
        return int(self.value)


@dataclass(frozen=True)
class VendorPolicy:
    """Commercial terms of one vendor. Amounts in minor units."""

    vendor_id: str
    minimum_order: int
    delivery_fee: int
    platform_fee: PlatformFeePolicy


class VendorDirectory(ABC):
    """Abstract vendor directory interface."""

    @abstractmethod
    def policy_for(self, vendor_id: str) -> VendorPolicy:
        """Commercial terms for ``vendor_id``."""
        ...
