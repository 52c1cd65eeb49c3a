"""Table rules for each game."""

from dataclasses import dataclass
from decimal import Decimal

from core.cards import RESHUFFLE_THRESHOLD


@dataclass(frozen=True)
class TableLimits:
    """Betting limits shared by every table."""

    min_bet: Decimal = Decimal("1")
    max_bet: Decimal = Decimal("1000")

    def __post_init__(self) -> None:
        """Validate limits."""
        if self.min_bet <= 0:
            raise ValueError("min_bet must be positive")
        if self.max_bet < self.min_bet:
            raise ValueError("max_bet must be at least min_bet")

    def allows(self, amount: Decimal) -> bool:
        """Check if a bet amount is within the table limits."""
        return self.min_bet <= amount <= self.max_bet


@dataclass(frozen=True)
class BlackjackRules(TableLimits):
    """
    Blackjack table configuration.

    Dealer behaviour (hit soft 17) and payouts are fixed and not listed
    here.
    """

    min_bet: Decimal = Decimal("5")
    num_decks: int = 6
    reshuffle_threshold: int = RESHUFFLE_THRESHOLD
    max_hands: int = 4  # Hands reachable by splitting

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        super().__post_init__()
        if self.num_decks < 1 or self.num_decks > 8:
            raise ValueError("num_decks must be between 1 and 8")
        if self.max_hands < 1:
            raise ValueError("max_hands must be at least 1")


@dataclass(frozen=True)
class BaccaratRules(TableLimits):
    """Baccarat (punto banco) table configuration."""

    min_bet: Decimal = Decimal("10")
    num_decks: int = 8
    reshuffle_threshold: int = RESHUFFLE_THRESHOLD

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.num_decks < 1 or self.num_decks > 8:
            raise ValueError("num_decks must be between 1 and 8")


@dataclass(frozen=True)
class CrapsRules(TableLimits):
    """Craps table configuration."""

    min_bet: Decimal = Decimal("5")
    max_odds_multiple: int = 3  # Odds capped at 3x the line bet

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.max_odds_multiple < 0:
            raise ValueError("max_odds_multiple cannot be negative")


@dataclass(frozen=True)
class RouletteRules(TableLimits):
    """European roulette table configuration."""


@dataclass(frozen=True)
class SlotsRules(TableLimits):
    """Slot machine configuration."""

    free_spin_multiplier: int = 2

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.free_spin_multiplier < 1:
            raise ValueError("free_spin_multiplier must be at least 1")
