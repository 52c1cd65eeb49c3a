"""Punto banco baccarat round engine."""

from collections import deque
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from random import Random

from transitions import Machine

from core.cards import Card
from core.game.base import CardEngine
from core.game.events import EventType
from core.game.state import BaccaratPhase, machine_states
from core.hand import baccarat_total, is_natural
from core.ledger import Ledger
from core.outcome import BetResult, RoundOutcome
from core.rules import BaccaratRules

ROAD_LENGTH = 20


class BetSide(Enum):
    """What a baccarat bet is placed on; also names the round winner."""

    PLAYER = "player"
    BANKER = "banker"
    TIE = "tie"

    def __str__(self) -> str:
        return self.value


# Amount credited per unit staked when the bet wins, stake included.
WIN_MULTIPLIERS: dict[BetSide, Decimal] = {
    BetSide.PLAYER: Decimal("2"),
    BetSide.BANKER: Decimal("1.95"),  # 5% commission
    BetSide.TIE: Decimal("9"),  # 8:1
}


def player_draws_third(player_cards: list[Card]) -> bool:
    return baccarat_total(player_cards) <= 5


def banker_draws_third(banker_cards: list[Card], player_third: Card | None) -> bool:
    """
    Banker's drawing rule.

    Args:
        banker_cards: Banker's first two cards
        player_third: Player's third card, or None if the player stood
    """
    total = baccarat_total(banker_cards)
    if total <= 2:
        return True
    if player_third is None:
        return total <= 5

    third = player_third.baccarat_value
    if total == 3:
        return third != 8
    if total == 4:
        return 2 <= third <= 7
    if total == 5:
        return 4 <= third <= 7
    if total == 6:
        return third in (6, 7)
    return False


def round_winner(player_cards: list[Card], banker_cards: list[Card]) -> BetSide:
    player_total = baccarat_total(player_cards)
    banker_total = baccarat_total(banker_cards)
    if player_total > banker_total:
        return BetSide.PLAYER
    if banker_total > player_total:
        return BetSide.BANKER
    return BetSide.TIE


def settle_side(side: BetSide, winner: BetSide) -> tuple[BetResult, Decimal]:
    """
    Result and payout multiplier of a bet on ``side``.

    A tie returns player and banker bets as a push.
    """
    if side == winner:
        return BetResult.WIN, WIN_MULTIPLIERS[side]
    if winner == BetSide.TIE:
        return BetResult.PUSH, Decimal("1")
    return BetResult.LOSE, Decimal("0")


@dataclass(frozen=True, kw_only=True)
class BaccaratOutcome(RoundOutcome):
    """Cards, totals and settlement of one coup."""

    player_cards: tuple[Card, ...] = ()
    banker_cards: tuple[Card, ...] = ()
    winner: BetSide = BetSide.TIE
    natural: bool = False

    @property
    def player_total(self) -> int:
        return baccarat_total(self.player_cards)

    @property
    def banker_total(self) -> int:
        return baccarat_total(self.banker_cards)


class BaccaratRound(CardEngine):
    """
    Baccarat engine: one bet per coup, dealt and settled in a single call.

    The phase is DEALING only while the coup is being drawn; callers see
    BETTING before the first coup and RESOLVED afterwards.
    """

    TRANSITIONS = [
        {"trigger": "begin_deal", "source": ["betting", "resolved"], "dest": "dealing"},
        {"trigger": "finish_deal", "source": "dealing", "dest": "resolved"},
    ]

    def __init__(
        self,
        ledger: Ledger,
        rules: BaccaratRules | None = None,
        rng: Random | None = None,
    ) -> None:
        self.rules = rules or BaccaratRules()
        super().__init__(
            ledger,
            self.rules,
            num_decks=self.rules.num_decks,
            reshuffle_threshold=self.rules.reshuffle_threshold,
            rng=rng,
        )
        self.player_cards: list[Card] = []
        self.banker_cards: list[Card] = []
        self.road: deque[BetSide] = deque(maxlen=ROAD_LENGTH)
        self._outcome: BaccaratOutcome | None = None

        self.machine = Machine(
            model=self,
            states=machine_states(BaccaratPhase),
            transitions=self.TRANSITIONS,
            initial=BaccaratPhase.BETTING.value,
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def phase(self) -> BaccaratPhase:
        return BaccaratPhase(self._machine_state)  # type: ignore[attr-defined]

    @property
    def last_outcome(self) -> BaccaratOutcome | None:
        return self._outcome

    def deal(self, side: BetSide | str, amount: Decimal | int | str) -> BaccaratOutcome | None:
        """
        Bet on a side and play out a full coup.

        Returns:
            The settled outcome, or None if the bet was rejected
        """
        if self.phase not in (BaccaratPhase.BETTING, BaccaratPhase.RESOLVED):
            self._reject("Cannot deal in current phase", phase=self.phase.name)
            return None
        try:
            side = BetSide(side)
        except ValueError:
            self._reject(f"Unknown bet side: {side}")
            return None

        stake = self._stake(amount)
        if stake is None or not self._take(stake):
            return None

        bet_id = self._next_bet_id()
        self.events.emit_new(EventType.BET_PLACED, bet_id=bet_id, side=str(side), amount=str(stake))
        self.begin_deal()
        self._prepare_shoe()

        player = [self._deal_to("player")]
        banker = [self._deal_to("banker")]
        player.append(self._deal_to("player"))
        banker.append(self._deal_to("banker"))
        self.player_cards, self.banker_cards = player, banker

        natural = is_natural(player) or is_natural(banker)
        if natural:
            self.events.emit_new(
                EventType.NATURAL,
                player_total=baccarat_total(player),
                banker_total=baccarat_total(banker),
            )
        else:
            player_third: Card | None = None
            if player_draws_third(player):
                player_third = self._deal_to("player")
                player.append(player_third)
                self.events.emit_new(EventType.THIRD_CARD, hand="player", card=str(player_third))
            if banker_draws_third(banker, player_third):
                card = self._deal_to("banker")
                banker.append(card)
                self.events.emit_new(EventType.THIRD_CARD, hand="banker", card=str(card))

        winner = round_winner(player, banker)
        result, multiplier = settle_side(side, winner)
        resolution = self._settle(
            bet_id=bet_id,
            kind=str(side),
            stake=stake,
            result=result,
            payout=stake * multiplier,
        )
        self.road.append(winner)
        self.finish_deal()

        self._outcome = BaccaratOutcome(
            phase=self.phase.value,
            player_cards=tuple(player),
            banker_cards=tuple(banker),
            winner=winner,
            natural=natural,
            resolutions=(resolution,),
        )
        self.events.emit_new(
            EventType.ROUND_ENDED,
            winner=str(winner),
            player_total=self._outcome.player_total,
            banker_total=self._outcome.banker_total,
            balance=str(self.ledger.balance),
        )
        return self._outcome

    def _deal_to(self, hand: str) -> Card:
        card = self._draw()
        self.events.emit_new(EventType.CARD_DEALT, card=str(card), hand=hand)
        return card
