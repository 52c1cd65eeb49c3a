"""Core wagering engines - 100% UI-agnostic."""

from core.cards import Card, Rank, Shoe, Suit
from core.errors import InsufficientFunds, InvalidAction, RandomSourceUnavailable, WagerError
from core.hand import Hand
from core.ledger import Ledger, Wallet
from core.outcome import BetResult, Resolution, RoundOutcome

__all__ = [
    "Card",
    "Rank",
    "Shoe",
    "Suit",
    "Hand",
    "Ledger",
    "Wallet",
    "BetResult",
    "Resolution",
    "RoundOutcome",
    "WagerError",
    "InsufficientFunds",
    "InvalidAction",
    "RandomSourceUnavailable",
]
