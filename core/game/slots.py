"""Five-reel slot machine with paylines, wilds and scatter free spins."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from random import Random

from core.game.base import WagerEngine
from core.game.events import EventType
from core.ledger import Ledger
from core.outcome import BetResult, RoundOutcome
from core.rules import SlotsRules

logger = logging.getLogger(__name__)

REELS = 5
ROWS = 3
MIN_LINE_MATCH = 3


class Symbol(Enum):
    CHERRY = "cherry"
    LEMON = "lemon"
    ORANGE = "orange"
    BELL = "bell"
    STAR = "star"
    DIAMOND = "diamond"
    SEVEN = "seven"
    SCATTER = "scatter"
    WILD = "wild"

    def __str__(self) -> str:
        return self.value


WEIGHTS: dict[Symbol, int] = {
    Symbol.CHERRY: 8,
    Symbol.LEMON: 7,
    Symbol.ORANGE: 6,
    Symbol.BELL: 5,
    Symbol.STAR: 4,
    Symbol.DIAMOND: 3,
    Symbol.SEVEN: 2,
    Symbol.SCATTER: 2,
    Symbol.WILD: 1,
}

# Multiplier of the line stake for 3, 4 and 5 in a row.
PAYTABLE: dict[Symbol, tuple[int, int, int]] = {
    Symbol.CHERRY: (2, 5, 10),
    Symbol.LEMON: (3, 8, 15),
    Symbol.ORANGE: (4, 10, 20),
    Symbol.BELL: (5, 15, 30),
    Symbol.STAR: (8, 20, 50),
    Symbol.DIAMOND: (10, 30, 100),
    Symbol.SEVEN: (15, 50, 200),
    Symbol.SCATTER: (20, 75, 500),
    Symbol.WILD: (25, 100, 750),
}

# Row index on each reel, left to right.
PAYLINES: tuple[tuple[int, ...], ...] = (
    (1, 1, 1, 1, 1),
    (0, 0, 0, 0, 0),
    (2, 2, 2, 2, 2),
    (0, 1, 2, 1, 0),
    (2, 1, 0, 1, 2),
    (0, 0, 1, 2, 2),
    (2, 2, 1, 0, 0),
    (1, 0, 1, 0, 1),
    (1, 2, 1, 2, 1),
    (0, 1, 0, 1, 0),
)

# Scatter count -> free spins awarded; 5 or more award the top tier.
FREE_SPIN_AWARDS: dict[int, int] = {3: 10, 4: 15, 5: 25}

Grid = list[list[Symbol]]


def generate_grid(rng: Random) -> Grid:
    """Draw a ``grid[reel][row]`` of weighted symbols."""
    symbols = list(WEIGHTS)
    weights = list(WEIGHTS.values())
    return [rng.choices(symbols, weights=weights, k=ROWS) for _ in range(REELS)]


@dataclass(frozen=True)
class LineWin:
    line: int
    symbol: Symbol
    count: int
    multiplier: int


def _run_length(cells: list[Symbol], symbol: Symbol) -> int:
    """Length of the leading run of ``symbol``, wilds included unless it is a scatter."""
    count = 0
    for cell in cells:
        if cell == symbol or (cell == Symbol.WILD and symbol != Symbol.SCATTER):
            count += 1
        else:
            break
    return count


def _line_multiplier(symbol: Symbol, count: int) -> int:
    if count < MIN_LINE_MATCH:
        return 0
    return PAYTABLE[symbol][count - MIN_LINE_MATCH]


def evaluate_line(grid: Grid, line: tuple[int, ...]) -> tuple[Symbol, int] | None:
    """
    Symbol and length of the best-paying leading run on a payline, if any.

    Wilds stand in for any symbol but a scatter. Leading wilds are also
    scored as a run of wilds, and the line pays whichever reading is
    worth more; on a tie the wilds are taken.
    """
    cells = [grid[reel][row] for reel, row in enumerate(line)]
    base = next((s for s in cells if s != Symbol.WILD), Symbol.WILD)
    readings = [
        (Symbol.WILD, _run_length(cells, Symbol.WILD)),
        (base, _run_length(cells, base)),
    ]
    symbol, count = max(readings, key=lambda reading: _line_multiplier(*reading))
    if count < MIN_LINE_MATCH:
        return None
    return symbol, count


def evaluate_grid(grid: Grid) -> list[LineWin]:
    """Every winning payline on the grid."""
    wins = []
    for index, line in enumerate(PAYLINES):
        hit = evaluate_line(grid, line)
        if hit is None:
            continue
        symbol, count = hit
        wins.append(
            LineWin(
                line=index,
                symbol=symbol,
                count=count,
                multiplier=_line_multiplier(symbol, count),
            )
        )
    return wins


def count_scatters(grid: Grid) -> int:
    return sum(symbol == Symbol.SCATTER for reel in grid for symbol in reel)


def free_spins_for(scatters: int) -> int:
    if scatters < MIN_LINE_MATCH:
        return 0
    return FREE_SPIN_AWARDS[min(scatters, max(FREE_SPIN_AWARDS))]


@dataclass(frozen=True, kw_only=True)
class SlotsOutcome(RoundOutcome):
    grid: tuple[tuple[Symbol, ...], ...] = ()
    line_wins: tuple[LineWin, ...] = ()
    scatters: int = 0
    free_spins_awarded: int = 0
    free_spin: bool = False


class SlotMachine(WagerEngine):
    """
    Slot machine engine.

    A free spin is played at the bet of the spin that triggered it, is
    not debited, and pays with the free spin multiplier.
    """

    def __init__(
        self,
        ledger: Ledger,
        rules: SlotsRules | None = None,
        rng: Random | None = None,
    ) -> None:
        self.rules = rules or SlotsRules()
        super().__init__(ledger, self.rules, rng)
        self.free_spins = 0
        self._free_spin_bet: Decimal | None = None
        self._outcome: SlotsOutcome | None = None

    @property
    def last_outcome(self) -> SlotsOutcome | None:
        return self._outcome

    def spin(self, bet: Decimal | int | str | None = None) -> SlotsOutcome | None:
        """
        Spin the reels.

        Args:
            bet: Line stake. Ignored while free spins remain.

        Returns:
            The spin's outcome, or None if the bet was rejected
        """
        free_spin = self.free_spins > 0
        if free_spin:
            stake = self._free_spin_bet
            self.free_spins -= 1
        else:
            if bet is None:
                self._reject("A bet is required")
                return None
            stake = self._stake(bet)
            if stake is None or not self._take(stake):
                return None
            self._free_spin_bet = stake

        bet_id = self._next_bet_id()
        self.events.emit_new(
            EventType.BET_PLACED,
            bet_id=bet_id,
            amount=str(stake),
            free_spin=free_spin,
        )

        grid = generate_grid(self.rng)
        self.events.emit_new(
            EventType.REELS_SPUN,
            grid=[[str(symbol) for symbol in reel] for reel in grid],
        )

        line_wins = evaluate_grid(grid)
        multiplier = self.rules.free_spin_multiplier if free_spin else 1
        payout = sum(win.multiplier for win in line_wins) * stake * multiplier
        # Free spins stake nothing, so the resolution records a zero stake.
        resolution = self._settle(
            bet_id=bet_id,
            kind="free_spin" if free_spin else "spin",
            stake=Decimal("0") if free_spin else stake,
            result=BetResult.WIN if payout > 0 else BetResult.LOSE,
            payout=payout,
        )

        scatters = count_scatters(grid)
        awarded = free_spins_for(scatters)
        if awarded:
            self.free_spins += awarded
            self.events.emit_new(
                EventType.FREE_SPINS_AWARDED,
                scatters=scatters,
                awarded=awarded,
                remaining=self.free_spins,
            )

        self._outcome = SlotsOutcome(
            phase="resolved",
            resolutions=(resolution,),
            grid=tuple(tuple(reel) for reel in grid),
            line_wins=tuple(line_wins),
            scatters=scatters,
            free_spins_awarded=awarded,
            free_spin=free_spin,
        )
        logger.debug("slots spin paid %s, %d free spins left", resolution.payout, self.free_spins)
        self.events.emit_new(
            EventType.ROUND_ENDED,
            payout=str(resolution.payout),
            free_spins=self.free_spins,
            balance=str(self.ledger.balance),
        )
        return self._outcome
