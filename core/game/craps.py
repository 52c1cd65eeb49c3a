"""Craps table engine."""

import logging
from collections import deque
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from random import Random

from transitions import Machine

from core.game.base import WagerEngine
from core.game.events import EventType
from core.game.state import CrapsPhase, machine_states
from core.ledger import Ledger, to_cents
from core.outcome import BetResult, Resolution, RoundOutcome
from core.rng import roll_die
from core.rules import CrapsRules

logger = logging.getLogger(__name__)

POINT_NUMBERS = frozenset({4, 5, 6, 8, 9, 10})
NATURALS = frozenset({7, 11})
CRAPS = frozenset({2, 3, 12})
BAR_NUMBER = 12
HISTORY_LENGTH = 10

# True odds paid on odds bets, per unit of odds, by point.
RIGHT_ODDS: dict[int, Decimal] = {
    4: Decimal(2),
    10: Decimal(2),
    5: Decimal(3) / Decimal(2),
    9: Decimal(3) / Decimal(2),
    6: Decimal(6) / Decimal(5),
    8: Decimal(6) / Decimal(5),
}
WRONG_ODDS: dict[int, Decimal] = {
    4: Decimal(1) / Decimal(2),
    10: Decimal(1) / Decimal(2),
    5: Decimal(2) / Decimal(3),
    9: Decimal(2) / Decimal(3),
    6: Decimal(5) / Decimal(6),
    8: Decimal(5) / Decimal(6),
}


class CrapsBetKind(Enum):
    """Line bets available on the layout."""

    PASS = "pass"
    DONT_PASS = "dont_pass"
    COME = "come"
    DONT_COME = "dont_come"

    def __str__(self) -> str:
        return self.value

    @property
    def is_dont(self) -> bool:
        """Bets against the shooter (win on 7 once pointed)."""
        return self in (CrapsBetKind.DONT_PASS, CrapsBetKind.DONT_COME)

    @property
    def is_line(self) -> bool:
        """Pass-line bets, placed on the come-out roll."""
        return self in (CrapsBetKind.PASS, CrapsBetKind.DONT_PASS)


def odds_payout(kind: CrapsBetKind, point: int, odds: Decimal) -> Decimal:
    """Winnings on an odds bet at true odds, excluding the returned odds stake."""
    table = WRONG_ODDS if kind.is_dont else RIGHT_ODDS
    return odds * table[point]


@dataclass
class CrapsBet:
    """A bet on the layout. ``point`` is set once the bet has traveled."""

    bet_id: int
    kind: CrapsBetKind
    amount: Decimal
    point: int | None = None
    odds: Decimal = Decimal("0")

    @property
    def stake(self) -> Decimal:
        return self.amount + self.odds


@dataclass(frozen=True, kw_only=True)
class CrapsOutcome(RoundOutcome):
    """Dice and settlement of one roll."""

    dice: tuple[int, int] = (1, 1)
    point: int | None = None

    @property
    def total(self) -> int:
        return sum(self.dice)


def come_out_result(kind: CrapsBetKind, total: int) -> BetResult | None:
    """
    Fate of an unpointed bet on a come-out style roll.

    Returns None when the bet travels to ``total`` instead.
    """
    if kind.is_dont:
        if total in (2, 3):
            return BetResult.WIN
        if total == BAR_NUMBER:
            return BetResult.PUSH
        if total in NATURALS:
            return BetResult.LOSE
        return None
    if total in NATURALS:
        return BetResult.WIN
    if total in CRAPS:
        return BetResult.LOSE
    return None


def pointed_result(kind: CrapsBetKind, point: int, total: int) -> BetResult | None:
    """Fate of a bet with a point, or None if the roll does not decide it."""
    if total == 7:
        return BetResult.WIN if kind.is_dont else BetResult.LOSE
    if total == point:
        return BetResult.LOSE if kind.is_dont else BetResult.WIN
    return None


class CrapsTable(WagerEngine):
    """
    Craps table holding any number of concurrent line, come and odds bets.

    A roll settles every outstanding bet against the same dice total
    before anything else may happen; the table sits in ROLLING for the
    duration so that no bet can be placed mid-resolution.
    """

    TRANSITIONS = [
        {"trigger": "begin_roll", "source": ["come_out", "point"], "dest": "rolling"},
        {"trigger": "to_come_out", "source": "rolling", "dest": "come_out"},
        {"trigger": "to_point", "source": "rolling", "dest": "point"},
    ]

    def __init__(
        self,
        ledger: Ledger,
        rules: CrapsRules | None = None,
        rng: Random | None = None,
    ) -> None:
        self.rules = rules or CrapsRules()
        super().__init__(ledger, self.rules, rng)
        self._bets: dict[int, CrapsBet] = {}
        self._point: int | None = None
        self.history: deque[int] = deque(maxlen=HISTORY_LENGTH)
        self._outcome: CrapsOutcome | None = None

        self.machine = Machine(
            model=self,
            states=machine_states(CrapsPhase),
            transitions=self.TRANSITIONS,
            initial=CrapsPhase.COME_OUT.value,
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def phase(self) -> CrapsPhase:
        return CrapsPhase(self._machine_state)  # type: ignore[attr-defined]

    def table_point(self) -> int | None:
        """The established point, or None on the come-out."""
        return self._point

    @property
    def bets(self) -> list[CrapsBet]:
        """Outstanding bets in placement order."""
        return list(self._bets.values())

    def bet(self, bet_id: int) -> CrapsBet | None:
        return self._bets.get(bet_id)

    @property
    def last_outcome(self) -> CrapsOutcome | None:
        return self._outcome

    def place_bet(self, kind: CrapsBetKind | str, amount: Decimal | int | str) -> CrapsBet | None:
        """
        Put a line or come bet on the layout.

        Pass and don't pass are taken on the come-out only, come and
        don't come only once a point is on. Another chip on a kind that
        already has an unpointed bet is added to it.

        Returns:
            The bet holding the chips, or None if rejected
        """
        try:
            kind = CrapsBetKind(kind)
        except ValueError:
            self._reject(f"Unknown bet kind: {kind}")
            return None

        if kind.is_line and self.phase != CrapsPhase.COME_OUT:
            self._reject(f"{kind} is only taken on the come-out roll", phase=self.phase.name)
            return None
        if not kind.is_line and self.phase != CrapsPhase.POINT:
            self._reject(f"{kind} is only taken while a point is on", phase=self.phase.name)
            return None

        existing = next(
            (b for b in self._bets.values() if b.kind == kind and b.point is None),
            None,
        )
        stake = self._stake(amount)
        if stake is None:
            return None
        if existing is not None and not self.rules.allows(existing.amount + stake):
            self._reject(f"Bet on {kind} would exceed the table maximum")
            return None
        if not self._take(stake):
            return None

        if existing is not None:
            existing.amount += stake
            bet = existing
        else:
            bet = CrapsBet(bet_id=self._next_bet_id(), kind=kind, amount=stake)
            self._bets[bet.bet_id] = bet

        self.events.emit_new(
            EventType.BET_PLACED,
            bet_id=bet.bet_id,
            kind=str(kind),
            amount=str(stake),
            total=str(bet.amount),
        )
        return bet

    def add_odds(self, bet_id: int, amount: Decimal | int | str) -> CrapsBet | None:
        """
        Back a pointed bet with odds, up to the table's odds multiple.

        Returns:
            The backed bet, or None if rejected
        """
        if self.phase == CrapsPhase.ROLLING:
            self._reject("Cannot place odds while the dice are rolling")
            return None
        bet = self._bets.get(bet_id)
        if bet is None or bet.point is None:
            self._reject("Odds need a bet with an established point", bet_id=bet_id)
            return None

        try:
            odds = Decimal(str(amount))
        except ArithmeticError:
            self._reject(f"Not an amount: {amount!r}")
            return None
        if not odds.is_finite() or odds <= 0 or odds != to_cents(odds):
            self._reject(f"Odds must be a positive whole number of cents: {amount}")
            return None
        cap = bet.amount * self.rules.max_odds_multiple
        if bet.odds + odds > cap:
            self._reject(f"Odds on bet {bet_id} are capped at {cap}", bet_id=bet_id)
            return None
        if not self._take(odds):
            return None

        bet.odds += odds
        self.events.emit_new(
            EventType.ODDS_PLACED,
            bet_id=bet_id,
            amount=str(odds),
            total=str(bet.odds),
        )
        return bet

    def roll(self) -> CrapsOutcome | None:
        """
        Roll two dice and settle every bet against the total.

        Returns:
            The roll's outcome, or None if there is nothing on the layout
        """
        if self.phase == CrapsPhase.ROLLING:
            self._reject("Dice are already rolling")
            return None
        if not self._bets:
            self._reject("Place a bet before rolling")
            return None

        self.begin_roll()
        dice = (roll_die(self.rng), roll_die(self.rng))
        total = sum(dice)
        self.history.appendleft(total)
        self.events.emit_new(EventType.DICE_ROLLED, dice=list(dice), total=total)

        resolutions: list[Resolution] = []
        for bet in list(self._bets.values()):
            resolution = self._resolve_bet(bet, total)
            if resolution is not None:
                resolutions.append(resolution)

        self._move_table_point(total)
        logger.debug("craps roll %s settled %d bets, point %s", dice, len(resolutions), self._point)

        self._outcome = CrapsOutcome(
            phase=self.phase.value,
            resolutions=tuple(resolutions),
            dice=dice,
            point=self._point,
        )
        self.events.emit_new(
            EventType.ROUND_ENDED,
            total=total,
            point=self._point,
            balance=str(self.ledger.balance),
        )
        return self._outcome

    def _resolve_bet(self, bet: CrapsBet, total: int) -> Resolution | None:
        """Settle or travel a single bet. Removes it from the layout when settled."""
        if bet.point is None:
            result = come_out_result(bet.kind, total)
            if result is None:
                bet.point = total
                self.events.emit_new(
                    EventType.BET_TRAVELED,
                    bet_id=bet.bet_id,
                    kind=str(bet.kind),
                    point=total,
                )
                return None
            payout = self._line_payout(bet, result)
        else:
            result = pointed_result(bet.kind, bet.point, total)
            if result is None:
                return None
            payout = self._line_payout(bet, result)
            if result == BetResult.WIN and bet.odds:
                payout += bet.odds + odds_payout(bet.kind, bet.point, bet.odds)

        del self._bets[bet.bet_id]
        return self._settle(
            bet_id=bet.bet_id,
            kind=str(bet.kind),
            stake=bet.stake,
            result=result,
            payout=payout,
        )

    @staticmethod
    def _line_payout(bet: CrapsBet, result: BetResult) -> Decimal:
        if result == BetResult.WIN:
            return bet.amount * 2
        if result == BetResult.PUSH:
            return bet.amount
        return Decimal("0")

    def _move_table_point(self, total: int) -> None:
        """Leave ROLLING for the phase this roll decides."""
        if self._point is None:
            if total in POINT_NUMBERS:
                self._point = total
                self.events.emit_new(EventType.POINT_ESTABLISHED, point=total)
                self.to_point()
            else:
                self.to_come_out()
            return

        if total == 7:
            self.events.emit_new(EventType.SEVEN_OUT, point=self._point)
            self._point = None
            self.to_come_out()
        elif total == self._point:
            self.events.emit_new(EventType.POINT_MADE, point=self._point)
            self._point = None
            self.to_come_out()
        else:
            self.to_point()
