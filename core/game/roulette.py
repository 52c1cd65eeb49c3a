"""European roulette: bet coverage, spin evaluation and the table engine."""

import logging
from collections import deque
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from random import Random

from core.game.base import WagerEngine
from core.game.events import EventType
from core.ledger import Ledger
from core.outcome import BetResult, Resolution, RoundOutcome
from core.rules import RouletteRules

logger = logging.getLogger(__name__)

WHEEL_SIZE = 37  # 0..36, single zero
HISTORY_LENGTH = 12

RED_NUMBERS = frozenset(
    {1, 3, 5, 7, 9, 12, 14, 16, 18, 19, 21, 23, 25, 27, 30, 32, 34, 36}
)
BLACK_NUMBERS = frozenset(range(1, WHEEL_SIZE)) - RED_NUMBERS


class RouletteBetKind(Enum):
    STRAIGHT = "straight"
    RED = "red"
    BLACK = "black"
    ODD = "odd"
    EVEN = "even"
    LOW = "low"
    HIGH = "high"
    DOZEN_1 = "dozen_1"
    DOZEN_2 = "dozen_2"
    DOZEN_3 = "dozen_3"

    def __str__(self) -> str:
        return self.value


_OUTSIDE_COVERAGE: dict[RouletteBetKind, frozenset[int]] = {
    RouletteBetKind.RED: RED_NUMBERS,
    RouletteBetKind.BLACK: BLACK_NUMBERS,
    RouletteBetKind.ODD: frozenset(range(1, 37, 2)),
    RouletteBetKind.EVEN: frozenset(range(2, 37, 2)),
    RouletteBetKind.LOW: frozenset(range(1, 19)),
    RouletteBetKind.HIGH: frozenset(range(19, 37)),
    RouletteBetKind.DOZEN_1: frozenset(range(1, 13)),
    RouletteBetKind.DOZEN_2: frozenset(range(13, 25)),
    RouletteBetKind.DOZEN_3: frozenset(range(25, 37)),
}


def coverage(kind: RouletteBetKind, number: int | None = None) -> frozenset[int]:
    """
    Numbers a bet wins on.

    Raises:
        ValueError: if a straight bet has no number on the wheel
    """
    if kind == RouletteBetKind.STRAIGHT:
        if number is None or not 0 <= number < WHEEL_SIZE:
            raise ValueError(f"Straight bet needs a number 0-36, got {number}")
        return frozenset({number})
    return _OUTSIDE_COVERAGE[kind]


def payout_multiplier(kind: RouletteBetKind) -> Decimal:
    """Amount credited per unit staked on a win, stake included."""
    if kind == RouletteBetKind.STRAIGHT:
        return Decimal("36")
    if kind in (RouletteBetKind.DOZEN_1, RouletteBetKind.DOZEN_2, RouletteBetKind.DOZEN_3):
        return Decimal("3")
    return Decimal("2")


def number_color(number: int) -> str:
    if number == 0:
        return "green"
    return "red" if number in RED_NUMBERS else "black"


@dataclass
class RouletteBet:
    bet_id: int
    kind: RouletteBetKind
    amount: Decimal
    number: int | None = None


def evaluate_spin(
    bets: list[RouletteBet], number: int
) -> list[tuple[RouletteBet, BetResult, Decimal]]:
    """Result and credited amount of each bet for a wheel result. Pure."""
    results = []
    for bet in bets:
        if number in coverage(bet.kind, bet.number):
            results.append((bet, BetResult.WIN, bet.amount * payout_multiplier(bet.kind)))
        else:
            results.append((bet, BetResult.LOSE, Decimal("0")))
    return results


@dataclass(frozen=True, kw_only=True)
class RouletteOutcome(RoundOutcome):
    number: int = 0

    @property
    def color(self) -> str:
        return number_color(self.number)


class RouletteTable(WagerEngine):
    """Single-zero roulette table. Bets are debited when placed and settled on the spin."""

    def __init__(
        self,
        ledger: Ledger,
        rules: RouletteRules | None = None,
        rng: Random | None = None,
    ) -> None:
        self.rules = rules or RouletteRules()
        super().__init__(ledger, self.rules, rng)
        self._bets: list[RouletteBet] = []
        self.history: deque[int] = deque(maxlen=HISTORY_LENGTH)
        self._outcome: RouletteOutcome | None = None

    @property
    def bets(self) -> list[RouletteBet]:
        return list(self._bets)

    @property
    def total_bet(self) -> Decimal:
        return sum((bet.amount for bet in self._bets), Decimal("0"))

    @property
    def last_outcome(self) -> RouletteOutcome | None:
        return self._outcome

    def place_bet(
        self,
        kind: RouletteBetKind | str,
        amount: Decimal | int | str,
        number: int | None = None,
    ) -> RouletteBet | None:
        """
        Put chips on the layout.

        Chips on a spot that already holds a bet are added to it, and
        the combined amount must stay within the table maximum.

        Returns:
            The bet holding the chips, or None if rejected
        """
        try:
            kind = RouletteBetKind(kind)
        except ValueError:
            self._reject(f"Unknown bet kind: {kind}")
            return None
        if kind != RouletteBetKind.STRAIGHT:
            number = None
        try:
            coverage(kind, number)
        except ValueError as exc:
            self._reject(str(exc))
            return None

        stake = self._stake(amount)
        if stake is None:
            return None
        existing = next(
            (b for b in self._bets if b.kind == kind and b.number == number),
            None,
        )
        if existing is not None and not self.rules.allows(existing.amount + stake):
            self._reject(f"Bet on {kind} would exceed the table maximum")
            return None
        if not self._take(stake):
            return None

        if existing is not None:
            existing.amount += stake
            bet = existing
        else:
            bet = RouletteBet(bet_id=self._next_bet_id(), kind=kind, amount=stake, number=number)
            self._bets.append(bet)

        self.events.emit_new(
            EventType.BET_PLACED,
            bet_id=bet.bet_id,
            kind=str(kind),
            number=number,
            amount=str(stake),
            total=str(bet.amount),
        )
        return bet

    def clear_bets(self) -> Decimal:
        """
        Take every chip back off the layout before the spin.

        Returns:
            The amount refunded
        """
        refund = self.total_bet
        if refund > 0:
            self.ledger.credit(refund)
        self._bets.clear()
        self.events.emit_new(EventType.BETS_CLEARED, refunded=str(refund))
        return refund

    def spin(self) -> RouletteOutcome | None:
        """
        Spin the wheel and settle every bet on the layout.

        Returns:
            The spin's outcome, or None if no bets are down
        """
        if not self._bets:
            self._reject("Place a bet before spinning")
            return None

        number = self.rng.randint(0, WHEEL_SIZE - 1)
        self.history.appendleft(number)
        self.events.emit_new(EventType.WHEEL_SPUN, number=number, color=number_color(number))

        resolutions: list[Resolution] = []
        for bet, result, payout in evaluate_spin(self._bets, number):
            resolutions.append(
                self._settle(
                    bet_id=bet.bet_id,
                    kind=str(bet.kind) if bet.number is None else f"{bet.kind}-{bet.number}",
                    stake=bet.amount,
                    result=result,
                    payout=payout,
                )
            )
        self._bets.clear()

        self._outcome = RouletteOutcome(
            phase="resolved",
            resolutions=tuple(resolutions),
            number=number,
        )
        logger.debug("roulette spin %d, net %s", number, self._outcome.net)
        self.events.emit_new(
            EventType.ROUND_ENDED,
            number=number,
            balance=str(self.ledger.balance),
        )
        return self._outcome
