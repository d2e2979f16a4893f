"""Loyalty ledger factory.

Provides get_ledger() / set_ledger() to swap implementations. Defaults to
an empty InMemoryLedger.
"""

from marketplace.loyalty.ledger.fake_adapter import InMemoryLedger
from marketplace.loyalty.ledger.port import LoyaltyLedger

_current_ledger: LoyaltyLedger | None = None


def get_ledger() -> LoyaltyLedger:
    """Return the current loyalty ledger."""
    global _current_ledger
    if _current_ledger is None:
        _current_ledger = InMemoryLedger()
    return _current_ledger


def set_ledger(ledger: LoyaltyLedger) -> None:
    """Override the active loyalty ledger (useful for tests)."""
    global _current_ledger
    _current_ledger = ledger


def reset_ledger() -> None:
    """Reset to the default ledger."""
    global _current_ledger
    _current_ledger = None
