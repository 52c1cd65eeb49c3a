"""Game engines and state management."""

from core.game.baccarat import BaccaratOutcome, BaccaratRound, BetSide
from core.game.blackjack import BlackjackOutcome, BlackjackRound
from core.game.craps import CrapsBet, CrapsBetKind, CrapsOutcome, CrapsTable
from core.game.events import EventType, GameEvent
from core.game.roulette import RouletteBet, RouletteBetKind, RouletteOutcome, RouletteTable
from core.game.slots import SlotMachine, SlotsOutcome, Symbol
from core.game.state import BaccaratPhase, BlackjackPhase, CrapsPhase

__all__ = [
    "GameEvent",
    "EventType",
    "BlackjackPhase",
    "BaccaratPhase",
    "CrapsPhase",
    "BlackjackRound",
    "BlackjackOutcome",
    "BaccaratRound",
    "BaccaratOutcome",
    "BetSide",
    "CrapsTable",
    "CrapsBet",
    "CrapsBetKind",
    "CrapsOutcome",
    "RouletteTable",
    "RouletteBet",
    "RouletteBetKind",
    "RouletteOutcome",
    "SlotMachine",
    "SlotsOutcome",
    "Symbol",
]
