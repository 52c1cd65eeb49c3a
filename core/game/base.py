"""Plumbing shared by every wagering engine."""

import itertools
import logging
from decimal import Decimal, InvalidOperation
from random import Random
from typing import Any, Callable

from core.cards import Card, Shoe
from core.counting import HiLoSystem
from core.errors import InsufficientFunds, InvalidAction, ShoeExhausted, WagerError
from core.game.events import EventEmitter, EventType, GameEvent
from core.ledger import Ledger, to_cents
from core.outcome import BetResult, Resolution
from core.rng import default_rng
from core.rules import TableLimits

logger = logging.getLogger(__name__)


class WagerEngine:
    """
    Base for all game engines.

    Owns the debit/settle contract with the ledger: stakes are debited
    when placed, and each bet id is credited at most once.
    """

    def __init__(
        self,
        ledger: Ledger,
        limits: TableLimits,
        rng: Random | None = None,
    ) -> None:
        self.ledger = ledger
        self.limits = limits
        self.rng = rng or default_rng()
        self.events = EventEmitter()
        self._bet_ids = itertools.count(1)
        self._settled: set[int] = set()

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to game events."""
        self.events.subscribe(handler, event_type)

    @property
    def balance(self) -> Decimal:
        return self.ledger.balance

    def _reject(self, message: str, **data: Any) -> None:
        """Record an action refused as a no-op."""
        self.events.emit_new(EventType.INVALID_ACTION, message=message, **data)

    def last_rejection(self) -> WagerError | None:
        """
        The typed reason the most recent action was refused.

        Returns:
            InsufficientFunds or InvalidAction, or None if the most
            recent event was not a rejection
        """
        event = self.events.last
        if event is None:
            return None
        if event.event_type == EventType.INSUFFICIENT_FUNDS:
            return InsufficientFunds(
                Decimal(event.data["required"]), Decimal(event.data["available"])
            )
        if event.event_type == EventType.INVALID_ACTION:
            return InvalidAction(event.data["message"])
        return None

    def _stake(self, amount: Decimal | int | str) -> Decimal | None:
        """Normalise a bet amount and check the table limits."""
        try:
            value = Decimal(str(amount))
        except InvalidOperation:
            self._reject(f"Not an amount: {amount!r}")
            return None
        if not value.is_finite() or value != to_cents(value):
            self._reject(f"Bet must be a whole number of cents: {amount}")
            return None
        if not self.limits.allows(value):
            self._reject(
                f"Bet must be between {self.limits.min_bet} and {self.limits.max_bet}",
                amount=str(value),
            )
            return None
        return value

    def _take(self, amount: Decimal) -> bool:
        """Debit the ledger, reporting a shortfall as an event."""
        try:
            self.ledger.debit(amount)
        except InsufficientFunds as exc:
            self.events.emit_new(
                EventType.INSUFFICIENT_FUNDS,
                required=str(exc.required),
                available=str(exc.available),
            )
            return False
        return True

    def _next_bet_id(self) -> int:
        return next(self._bet_ids)

    def _settle(
        self,
        bet_id: int,
        kind: str,
        stake: Decimal,
        result: BetResult,
        payout: Decimal | int = 0,
    ) -> Resolution:
        """Credit a bet's payout, rounded half-up to cents, exactly once."""
        if bet_id in self._settled:
            raise RuntimeError(f"Bet {bet_id} has already been settled")
        self._settled.add(bet_id)

        credited = to_cents(payout)
        if credited > 0:
            self.ledger.credit(credited)

        resolution = Resolution(
            bet_id=bet_id,
            kind=kind,
            stake=stake,
            result=result,
            payout=credited,
        )
        logger.debug("settled bet %d (%s): %s pays %s", bet_id, kind, result, credited)
        self.events.emit_new(
            EventType.BET_RESOLVED,
            bet_id=bet_id,
            kind=kind,
            stake=str(stake),
            result=str(result),
            payout=str(credited),
        )
        return resolution


class CardEngine(WagerEngine):
    """An engine dealing from a shoe, with a Hi-Lo count of visible cards."""

    def __init__(
        self,
        ledger: Ledger,
        limits: TableLimits,
        num_decks: int,
        reshuffle_threshold: int,
        rng: Random | None = None,
    ) -> None:
        super().__init__(ledger, limits, rng)
        self.shoe = Shoe(
            num_decks=num_decks,
            reshuffle_threshold=reshuffle_threshold,
            rng=self.rng,
        )
        self.counter = HiLoSystem()
        self._shuffle()

    def _shuffle(self) -> None:
        self.shoe.shuffle()
        self.counter.reset()
        self.events.emit_new(EventType.SHOE_SHUFFLED, cards=self.shoe.cards_remaining)

    def _prepare_shoe(self) -> None:
        """Reshuffle between rounds once the shoe runs low."""
        if self.shoe.needs_shuffle:
            logger.debug("shoe below %d cards, reshuffling", self.shoe.reshuffle_threshold)
            self._shuffle()

    def _draw(self, face_up: bool = True) -> Card:
        """Draw a card, counting it if it lands face up."""
        try:
            card = self.shoe.draw(face_up)
        except ShoeExhausted:
            logger.warning("shoe exhausted mid-round, reshuffling")
            self._shuffle()
            card = self.shoe.draw(face_up)
        if face_up:
            self.counter.count_card(card)
        return card

    def shoe_remaining(self) -> int:
        return self.shoe.cards_remaining

    @property
    def running_count(self) -> int:
        return self.counter.running_count

    @property
    def true_count(self) -> float:
        return self.counter.true_count(self.shoe.cards_remaining)
