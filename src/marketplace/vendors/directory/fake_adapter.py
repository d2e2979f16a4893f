"""Configurable in-memory vendor directory.

Vendors without explicit terms get the platform defaults from settings.
"""

from marketplace.config import get_settings
from marketplace.vendors.directory.port import (
    PlatformFeeKind,
    PlatformFeePolicy,
    VendorDirectory,
    VendorPolicy,
)


class StaticVendorDirectory(VendorDirectory):
    def __init__(self, policies: dict[str, VendorPolicy] | None = None) -> None:
        self.policies: dict[str, VendorPolicy] = dict(policies or {})

    def configure(self, policy: VendorPolicy) -> None:
        self.policies[policy.vendor_id] = policy

    def default_policy(self, vendor_id: str) -> VendorPolicy:
        settings = get_settings()
        return VendorPolicy(
            vendor_id=vendor_id,
            minimum_order=settings.default_minimum_order,
            delivery_fee=settings.default_delivery_fee,
            platform_fee=PlatformFeePolicy(
                kind=PlatformFeeKind.PERCENTAGE,
                value=settings.default_platform_fee_percent,
            ),
        )

    def policy_for(self, vendor_id: str) -> VendorPolicy:
        return self.policies.get(vendor_id) or self.default_policy(vendor_id)
