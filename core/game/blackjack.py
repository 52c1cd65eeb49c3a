"""Blackjack round engine with state machine."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from random import Random

from transitions import Machine

from core.cards import Card
from core.game.base import CardEngine
from core.game.events import EventType
from core.game.state import BlackjackPhase, machine_states
from core.hand import Hand, determine_result
from core.ledger import Ledger
from core.outcome import BetResult, Resolution, RoundOutcome
from core.rules import BlackjackRules

logger = logging.getLogger(__name__)

# Amount credited per unit of the hand's bet, stake included.
PAYOUT_MULTIPLIERS: dict[BetResult, Decimal] = {
    BetResult.BLACKJACK: Decimal("2.5"),
    BetResult.WIN: Decimal("2"),
    BetResult.PUSH: Decimal("1"),
    BetResult.LOSE: Decimal("0"),
    BetResult.BUST: Decimal("0"),
}


def dealer_should_hit(hand: Hand) -> bool:
    """Dealer draws below 17 and on soft 17."""
    value = hand.value
    if value < 17:
        return True
    return value == 17 and hand.is_soft


@dataclass(frozen=True, kw_only=True)
class BlackjackOutcome(RoundOutcome):
    """Settled blackjack round."""

    dealer_cards: tuple[Card, ...] = ()
    dealer_total: int = 0


class BlackjackRound(CardEngine):
    """
    Blackjack round engine using a state machine.

    Player hands live in an arena and keep their index for the whole
    round; splitting appends to the arena and inserts the new index into
    the seat order right after the hand it came from. The leftmost
    unfinished hand in seat order is the active one.

    Actions issued in the wrong phase or on the wrong hand are no-ops:
    they return False and emit INVALID_ACTION.
    """

    TRANSITIONS = [
        {"trigger": "begin_play", "source": ["betting", "resolved"], "dest": "playing"},
        {"trigger": "settle_naturals", "source": ["betting", "resolved"], "dest": "resolved"},
        {"trigger": "begin_dealer_turn", "source": "playing", "dest": "dealer_turn"},
        {"trigger": "settle_busts", "source": "playing", "dest": "resolved"},
        {"trigger": "settle_dealer", "source": "dealer_turn", "dest": "resolved"},
    ]

    def __init__(
        self,
        ledger: Ledger,
        rules: BlackjackRules | None = None,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize a blackjack table.

        Args:
            ledger: Player's ledger, shared with other tables
            rules: Table rules (uses defaults if not provided)
            rng: Random number generator for reproducible games
        """
        self.rules = rules or BlackjackRules()
        super().__init__(
            ledger,
            self.rules,
            num_decks=self.rules.num_decks,
            reshuffle_threshold=self.rules.reshuffle_threshold,
            rng=rng,
        )

        self._hands: list[Hand] = []
        self._seats: list[int] = []
        self.dealer_hand = Hand()
        self._outcome: BlackjackOutcome | None = None

        self.machine = Machine(
            model=self,
            states=machine_states(BlackjackPhase),
            transitions=self.TRANSITIONS,
            initial=BlackjackPhase.BETTING.value,
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def phase(self) -> BlackjackPhase:
        """Get current round phase as enum."""
        return BlackjackPhase(self._machine_state)  # type: ignore[attr-defined]

    # Queries

    def active_hands(self) -> list[Hand]:
        """Player hands in seat order."""
        return [self._hands[i] for i in self._seats]

    @property
    def hand_order(self) -> list[int]:
        """Arena indices of the player hands, in seat order."""
        return list(self._seats)

    def hand(self, hand_index: int) -> Hand | None:
        if 0 <= hand_index < len(self._hands):
            return self._hands[hand_index]
        return None

    @property
    def active_hand_index(self) -> int | None:
        """Arena index of the hand being played, if any."""
        if self.phase != BlackjackPhase.PLAYING:
            return None
        for i in self._seats:
            if not self._hands[i].is_done:
                return i
        return None

    @property
    def last_outcome(self) -> BlackjackOutcome | None:
        """Settlement of the most recent resolved round."""
        return self._outcome

    # Player actions

    def deal(self, bet: Decimal | int | str) -> bool:
        """
        Place a bet and deal a new round.

        Args:
            bet: Bet amount, within the table limits and the balance

        Returns:
            True if the round was dealt
        """
        if self.phase not in (BlackjackPhase.BETTING, BlackjackPhase.RESOLVED):
            self._reject("Cannot deal in current phase", phase=self.phase.name)
            return False

        stake = self._stake(bet)
        if stake is None or not self._take(stake):
            return False

        self._prepare_shoe()
        self._hands = [Hand(bet=stake)]
        self._seats = [0]
        self.dealer_hand = Hand()
        self._outcome = None
        self.events.emit_new(EventType.BET_PLACED, amount=str(stake))

        player_hand = self._hands[0]
        # Deal: player, dealer, player, dealer (face down)
        self._deal_card_to_hand(player_hand)
        self._deal_card_to_hand(self.dealer_hand)
        self._deal_card_to_hand(player_hand)
        self._deal_card_to_hand(self.dealer_hand, face_up=False)

        self.events.emit_new(EventType.ROUND_STARTED, bet=str(stake))

        player_bj = player_hand.is_blackjack
        dealer_bj = self.dealer_hand.is_blackjack
        if player_bj or dealer_bj:
            if player_bj:
                self.events.emit_new(EventType.PLAYER_BLACKJACK)
            self._reveal_hole_card()
            if dealer_bj:
                self.events.emit_new(EventType.DEALER_BLACKJACK)
            player_hand.is_done = True
            self.settle_naturals()
            self._resolve_round()
            return True

        self.begin_play()
        return True

    def hit(self, hand_index: int | None = None) -> bool:
        """Player hits (takes another card) on the active hand."""
        hand = self._playable_hand(hand_index, "hit")
        if hand is None:
            return False

        self._deal_card_to_hand(hand)
        self.events.emit_new(EventType.PLAYER_HIT, hand_value=hand.value)

        if hand.value >= 21:
            hand.is_done = True
            if hand.is_busted:
                self.events.emit_new(EventType.PLAYER_BUSTS, hand_value=hand.value)
            self._advance()
        return True

    def stand(self, hand_index: int | None = None) -> bool:
        """Player stands on the active hand."""
        hand = self._playable_hand(hand_index, "stand")
        if hand is None:
            return False

        hand.is_done = True
        self.events.emit_new(EventType.PLAYER_STAND, hand_value=hand.value)
        self._advance()
        return True

    def double_down(self, hand_index: int | None = None) -> bool:
        """Double the bet, take exactly one card and stand."""
        hand = self._playable_hand(hand_index, "double")
        if hand is None:
            return False
        if not hand.can_double:
            self._reject("Can only double on two cards")
            return False
        if not self._take(hand.bet):
            return False

        hand.bet *= 2
        hand.is_doubled = True
        self._deal_card_to_hand(hand)
        hand.is_done = True
        self.events.emit_new(
            EventType.PLAYER_DOUBLE,
            hand_value=hand.value,
            new_bet=str(hand.bet),
        )
        if hand.is_busted:
            self.events.emit_new(EventType.PLAYER_BUSTS, hand_value=hand.value)

        self._advance()
        return True

    def split(self, hand_index: int | None = None) -> bool:
        """Split two cards of equal value into two hands."""
        hand = self._playable_hand(hand_index, "split")
        if hand is None:
            return False
        if not hand.is_pair:
            self._reject("Can only split two cards of equal value")
            return False
        if len(self._hands) >= self.rules.max_hands:
            self._reject("Max splits reached")
            return False
        if not self._take(hand.bet):
            return False

        source_index = self.active_hand_index
        new_index = len(self._hands)
        new_hand = Hand(cards=[hand.cards.pop()], bet=hand.bet, is_split_hand=True)
        hand.is_split_hand = True
        self._hands.append(new_hand)
        self._seats.insert(self._seats.index(source_index) + 1, new_index)

        self._deal_card_to_hand(hand)
        self._deal_card_to_hand(new_hand)
        self.events.emit_new(
            EventType.PLAYER_SPLIT,
            hand_index=source_index,
            new_hand_index=new_index,
            hand1_value=hand.value,
            hand2_value=new_hand.value,
        )

        for split_hand in (hand, new_hand):
            # Split aces get one card only
            if split_hand.cards[0].is_ace or split_hand.value >= 21:
                split_hand.is_done = True

        self._advance()
        return True

    # Affordances

    @property
    def can_hit(self) -> bool:
        return self.active_hand_index is not None

    @property
    def can_stand(self) -> bool:
        return self.active_hand_index is not None

    @property
    def can_double(self) -> bool:
        index = self.active_hand_index
        if index is None:
            return False
        hand = self._hands[index]
        return hand.can_double and self.ledger.can_afford(hand.bet)

    @property
    def can_split(self) -> bool:
        index = self.active_hand_index
        if index is None:
            return False
        hand = self._hands[index]
        return (
            hand.is_pair
            and len(self._hands) < self.rules.max_hands
            and self.ledger.can_afford(hand.bet)
        )

    # Internals

    def _playable_hand(self, hand_index: int | None, action: str) -> Hand | None:
        """Return the active hand if the action may target it."""
        active = self.active_hand_index
        if active is None:
            self._reject(f"Cannot {action} in current phase", phase=self.phase.name)
            return None
        if hand_index is not None and hand_index != active:
            self._reject(
                f"Cannot {action} hand {hand_index}, hand {active} is active",
                hand_index=hand_index,
            )
            return None
        return self._hands[active]

    def _deal_card_to_hand(self, hand: Hand, face_up: bool = True) -> Card:
        """Deal a card to a hand."""
        card = self._draw(face_up)
        hand.add_card(card)
        is_dealer = hand is self.dealer_hand
        self.events.emit_new(
            EventType.CARD_DEALT,
            card=str(card),
            hand="dealer" if is_dealer else "player",
            hand_value=hand.visible_value if is_dealer else hand.value,
        )
        return card

    def _reveal_hole_card(self) -> None:
        card = self.dealer_hand.reveal()
        if card is None:
            return
        self.counter.count_card(card)
        self.events.emit_new(
            EventType.HOLE_CARD_REVEALED,
            card=str(card),
            hand_value=self.dealer_hand.value,
        )

    def _advance(self) -> None:
        """Move to the next unfinished hand, or finish the round."""
        if self.active_hand_index is not None:
            return

        self._reveal_hole_card()
        if all(hand.is_busted for hand in self._hands):
            self.settle_busts()
            self._resolve_round()
            return

        self.begin_dealer_turn()
        self._play_dealer()
        self.settle_dealer()
        self._resolve_round()

    def _play_dealer(self) -> None:
        """Dealer draws to 17, hitting soft 17."""
        while dealer_should_hit(self.dealer_hand):
            self._deal_card_to_hand(self.dealer_hand)
            self.events.emit_new(EventType.DEALER_HITS, hand_value=self.dealer_hand.value)

        if self.dealer_hand.is_busted:
            self.events.emit_new(EventType.DEALER_BUSTS, hand_value=self.dealer_hand.value)
        else:
            self.events.emit_new(EventType.DEALER_STANDS, hand_value=self.dealer_hand.value)

    def _resolve_round(self) -> None:
        """Settle every hand against the dealer."""
        resolutions: list[Resolution] = []
        for index in self._seats:
            hand = self._hands[index]
            result = determine_result(hand, self.dealer_hand)
            hand.result = result
            resolutions.append(
                self._settle(
                    bet_id=self._next_bet_id(),
                    kind=f"hand-{index}",
                    stake=hand.bet,
                    result=result,
                    payout=hand.bet * PAYOUT_MULTIPLIERS[result],
                )
            )

        self._outcome = BlackjackOutcome(
            phase=self.phase.value,
            resolutions=tuple(resolutions),
            dealer_cards=tuple(self.dealer_hand.cards),
            dealer_total=self.dealer_hand.value,
        )
        logger.debug("blackjack round resolved, net %s", self._outcome.net)
        self.events.emit_new(
            EventType.ROUND_ENDED,
            result=str(self._outcome.net),
            balance=str(self.ledger.balance),
        )
