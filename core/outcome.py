"""Settlement records returned by every engine."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, auto


class BetResult(Enum):
    """How a single bet was settled."""

    WIN = auto()
    LOSE = auto()
    PUSH = auto()
    BLACKJACK = auto()
    BUST = auto()

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class Resolution:
    """
    Final settlement of one bet.

    ``payout`` is the amount credited back to the ledger (stake included),
    already rounded to cents. Zero for a losing bet.
    """

    bet_id: int
    kind: str
    stake: Decimal
    result: BetResult
    payout: Decimal

    @property
    def net(self) -> Decimal:
        """Player's gain (positive) or loss (negative) on this bet."""
        return self.payout - self.stake


@dataclass(frozen=True, kw_only=True)
class RoundOutcome:
    """Every bet resolved by one engine step, plus the resulting phase."""

    phase: str
    resolutions: tuple[Resolution, ...] = ()

    @property
    def total_payout(self) -> Decimal:
        return sum((r.payout for r in self.resolutions), Decimal("0"))

    @property
    def total_staked(self) -> Decimal:
        return sum((r.stake for r in self.resolutions), Decimal("0"))

    @property
    def net(self) -> Decimal:
        return self.total_payout - self.total_staked
