"""In-memory loyalty ledger for development and testing."""

from marketplace.loyalty.ledger.port import LoyaltyLedger


class InMemoryLedger(LoyaltyLedger):
    def __init__(self, balances: dict[str, int] | None = None) -> None:
        self.balances: dict[str, int] = dict(balances or {})

    def set_balance(self, customer_id: str, points: int) -> None:
        self.balances[customer_id] = points

    def balance_for(self, customer_id: str) -> int:
        return self.balances.get(customer_id, 0)
