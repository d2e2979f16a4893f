"""Loyalty ledger port (abstract interface).

Point balances are owned by the loyalty service. Checkout only reads them
to validate a redemption request.
"""

from abc import ABC, abstractmethod


class LoyaltyLedger(ABC):
    """Abstract loyalty ledger interface."""

    @abstractmethod
    def balance_for(self, customer_id: str) -> int:
        """Current point balance of a customer (0 when unknown)."""
        ...
