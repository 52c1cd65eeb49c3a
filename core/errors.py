"""Error taxonomy for the wagering engines."""

from decimal import Decimal


class WagerError(Exception):
    """Base class for recoverable, local rejections."""


class InsufficientFunds(WagerError):
    """A debit exceeded the available balance."""

    def __init__(self, required: Decimal, available: Decimal) -> None:
        super().__init__(f"Insufficient funds: need {required}, have {available}")
        self.required = required
        self.available = available


class InvalidAction(WagerError):
    """An action is not legal in the current phase or hand state."""


class ShoeExhausted(WagerError):
    """The shoe ran out of cards. Handled inside the engines."""


class RandomSourceUnavailable(RuntimeError):
    """
    No trustworthy entropy source is available.

    Unlike the wager errors this one is fatal: fairness cannot be
    guaranteed, so no game may continue.
    """
