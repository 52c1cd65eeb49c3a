"""Game events for the event system."""

from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable


class EventType(Enum):
    """Types of game events."""

    # Round flow
    ROUND_STARTED = auto()
    ROUND_ENDED = auto()

    # Betting
    BET_PLACED = auto()
    BET_RESOLVED = auto()
    BETS_CLEARED = auto()

    # Cards
    CARD_DEALT = auto()
    HOLE_CARD_REVEALED = auto()
    SHOE_SHUFFLED = auto()

    # Blackjack player actions
    PLAYER_HIT = auto()
    PLAYER_STAND = auto()
    PLAYER_DOUBLE = auto()
    PLAYER_SPLIT = auto()
    PLAYER_BLACKJACK = auto()
    PLAYER_BUSTS = auto()

    # Blackjack dealer
    DEALER_HITS = auto()
    DEALER_STANDS = auto()
    DEALER_BUSTS = auto()
    DEALER_BLACKJACK = auto()

    # Baccarat
    NATURAL = auto()
    THIRD_CARD = auto()

    # Craps
    DICE_ROLLED = auto()
    POINT_ESTABLISHED = auto()
    POINT_MADE = auto()
    SEVEN_OUT = auto()
    BET_TRAVELED = auto()
    ODDS_PLACED = auto()

    # Roulette
    WHEEL_SPUN = auto()

    # Slots
    REELS_SPUN = auto()
    FREE_SPINS_AWARDED = auto()

    # Rejections
    INVALID_ACTION = auto()
    INSUFFICIENT_FUNDS = auto()


@dataclass(frozen=True)
class GameEvent:
    """
    Immutable game event.

    Events are the primary communication mechanism between the engines
    and the presentation layer, which replays them with its own timing.
    """

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.event_type.name}: {self.data}"


EventHandler = Callable[[GameEvent], None]

# Events kept per engine; long sessions drop the oldest.
HISTORY_LIMIT = 500


class EventEmitter:
    """
    Per-engine event bus.

    Handlers registered for a specific type run before catch-all
    handlers, in subscription order. Every emitted event is also kept in
    a bounded history so callers can inspect what a step did.
    """

    def __init__(self, history_limit: int = HISTORY_LIMIT) -> None:
        self._handlers: dict[EventType | None, list[EventHandler]] = defaultdict(list)
        self._history: deque[GameEvent] = deque(maxlen=history_limit)

    def subscribe(self, handler: EventHandler, event_type: EventType | None = None) -> None:
        """Register a handler for one event type, or for all events when None."""
        self._handlers[event_type].append(handler)

    def unsubscribe(self, handler: EventHandler, event_type: EventType | None = None) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: GameEvent) -> None:
        self._history.append(event)
        for handler in [*self._handlers.get(event.event_type, ()), *self._handlers.get(None, ())]:
            handler(event)

    def emit_new(self, event_type: EventType, **data: Any) -> GameEvent:
        """Build an event from keyword data, emit it and return it."""
        event = GameEvent(event_type=event_type, data=data)
        self.emit(event)
        return event

    @property
    def history(self) -> list[GameEvent]:
        """Oldest first."""
        return list(self._history)

    @property
    def last(self) -> GameEvent | None:
        return self._history[-1] if self._history else None

    def clear_history(self) -> None:
        self._history.clear()
