"""Ledger interface and in-memory wallet."""

import logging
from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Decimal

from core.errors import InsufficientFunds

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_cents(amount: Decimal | int | str) -> Decimal:
    """Round an amount half-up to whole cents."""
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


class Ledger(ABC):
    """
    Holds a player's balance.

    Engines receive a ledger by reference and only ever touch it through
    debit/credit; they never keep a copy of the balance.
    """

    @property
    @abstractmethod
    def balance(self) -> Decimal:
        """Return the current balance."""
        ...

    @abstractmethod
    def debit(self, amount: Decimal) -> Decimal:
        """
        Remove funds.

        Raises:
            InsufficientFunds: if amount exceeds the balance
        """
        ...

    @abstractmethod
    def credit(self, amount: Decimal) -> Decimal:
        """Add funds."""
        ...

    def can_afford(self, amount: Decimal) -> bool:
        """Check whether a debit of amount would succeed."""
        return to_cents(amount) <= self.balance


class Wallet(Ledger):
    """In-memory ledger, rounded to cents on every mutation."""

    def __init__(self, balance: Decimal | int | str = Decimal("1000")) -> None:
        start = to_cents(balance)
        if start < 0:
            raise ValueError("Balance cannot be negative")
        self._balance = start
        self._total_debited = Decimal("0")
        self._total_credited = Decimal("0")

    @property
    def balance(self) -> Decimal:
        return self._balance

    @property
    def total_debited(self) -> Decimal:
        """Sum of every debit since creation."""
        return self._total_debited

    @property
    def total_credited(self) -> Decimal:
        """Sum of every credit since creation."""
        return self._total_credited

    def debit(self, amount: Decimal) -> Decimal:
        value = self._checked(amount)
        if value > self._balance:
            raise InsufficientFunds(value, self._balance)
        self._balance -= value
        self._total_debited += value
        logger.debug("debit %s -> balance %s", value, self._balance)
        return self._balance

    def credit(self, amount: Decimal) -> Decimal:
        value = self._checked(amount)
        self._balance += value
        self._total_credited += value
        logger.debug("credit %s -> balance %s", value, self._balance)
        return self._balance

    @staticmethod
    def _checked(amount: Decimal) -> Decimal:
        value = to_cents(amount)
        if value <= 0:
            raise ValueError(f"Amount must be positive, got {amount}")
        return value

    def __repr__(self) -> str:
        return f"Wallet(balance={self._balance})"
