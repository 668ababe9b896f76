"""Per-account chip balance."""

from dataclasses import dataclass


class InsufficientBalanceError(Exception):
    """Raised when a debit would take a balance below zero."""

    def __init__(self, balance: int, amount: int) -> None:
        super().__init__(f"Cannot debit {amount} from balance {balance}")
        self.balance = balance
        self.amount = amount


@dataclass
class Ledger:
    """Working copy of one account's balance for a single operation."""

    account: str
    balance: int

    def can_afford(self, amount: int) -> bool:
        return self.balance >= amount

    def debit(self, amount: int) -> int:
        """Take `amount` chips. Returns the new balance."""
        if amount < 0:
            raise ValueError("Debit amount must be non-negative")
        if not self.can_afford(amount):
            raise InsufficientBalanceError(self.balance, amount)
        self.balance -= amount
        return self.balance

    def credit(self, amount: int) -> int:
        """Add `amount` chips. Returns the new balance."""
        if amount < 0:
            raise ValueError("Credit amount must be non-negative")
        self.balance += amount
        return self.balance
