"""Hand evaluation for blackjack and baccarat."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterator, Sequence

from core.cards import Card
from core.outcome import BetResult


def blackjack_total(cards: Sequence[Card]) -> tuple[int, bool]:
    """
    Calculate the best blackjack total.

    Aces start at 11 and are reduced to 1 one at a time, only while the
    total is over 21.

    Returns:
        (total, soft) where soft means an ace is still counted as 11
    """
    total = 0
    aces = 0

    for card in cards:
        if card.is_ace:
            aces += 1
        total += card.value

    while total > 21 and aces > 0:
        total -= 10
        aces -= 1

    return total, aces > 0


def is_blackjack(cards: Sequence[Card]) -> bool:
    """Exactly two cards totalling 21."""
    return len(cards) == 2 and blackjack_total(cards)[0] == 21


def is_bust(cards: Sequence[Card]) -> bool:
    return blackjack_total(cards)[0] > 21


def baccarat_total(cards: Sequence[Card]) -> int:
    """Sum of baccarat values, modulo 10."""
    return sum(card.baccarat_value for card in cards) % 10


def is_natural(cards: Sequence[Card]) -> bool:
    """Two-card baccarat hand of 8 or 9."""
    return len(cards) == 2 and baccarat_total(cards) >= 8


@dataclass
class Hand:
    """A blackjack hand with value calculation."""

    cards: list[Card] = field(default_factory=list)
    bet: Decimal = Decimal("0")
    is_doubled: bool = False
    is_split_hand: bool = False
    is_done: bool = False
    result: BetResult | None = None

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    def reveal(self) -> Card | None:
        """Turn the first face-down card up and return it."""
        for i, card in enumerate(self.cards):
            if not card.face_up:
                self.cards[i] = card.revealed()
                return self.cards[i]
        return None

    @property
    def value(self) -> int:
        """Best total, counting face-down cards too."""
        return blackjack_total(self.cards)[0]

    @property
    def visible_cards(self) -> list[Card]:
        return [c for c in self.cards if c.face_up]

    @property
    def visible_value(self) -> int:
        """Total of the face-up cards only."""
        return blackjack_total(self.visible_cards)[0]

    @property
    def is_soft(self) -> bool:
        """Check if the hand is soft (has an ace counted as 11)."""
        return blackjack_total(self.cards)[1]

    @property
    def is_blackjack(self) -> bool:
        """A natural: 21 with 2 cards on an unsplit hand."""
        return is_blackjack(self.cards) and not self.is_split_hand

    @property
    def is_busted(self) -> bool:
        """Check if the hand has busted (value > 21)."""
        return is_bust(self.cards)

    @property
    def is_pair(self) -> bool:
        """
        Two cards of equal blackjack value.

        Grouping is by value, so 10/J/Q/K are mutually splittable.
        """
        return (
            len(self.cards) == 2
            and self.cards[0].value == self.cards[1].value
        )

    @property
    def can_double(self) -> bool:
        """Check if the hand can be doubled down."""
        return len(self.cards) == 2 and not self.is_doubled and not self.is_done

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self.cards)
        value_str = f"({self.value})"
        if self.is_soft:
            value_str = f"(soft {self.value})"
        if self.is_blackjack:
            value_str = "(BLACKJACK)"
        if self.is_busted:
            value_str = "(BUST)"
        return f"{cards_str} {value_str}"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value})"


def determine_result(player_hand: Hand, dealer_hand: Hand) -> BetResult:
    """
    Compare a finished player hand against the dealer.

    Naturals take precedence over totals; a dealer bust loses to any
    standing player hand.
    """
    player_bj = player_hand.is_blackjack
    dealer_bj = dealer_hand.is_blackjack

    if player_bj and dealer_bj:
        return BetResult.PUSH
    if player_bj:
        return BetResult.BLACKJACK
    if dealer_bj:
        return BetResult.LOSE

    if player_hand.is_busted:
        return BetResult.BUST
    if dealer_hand.is_busted:
        return BetResult.WIN

    player_value = player_hand.value
    dealer_value = dealer_hand.value
    if player_value > dealer_value:
        return BetResult.WIN
    if dealer_value > player_value:
        return BetResult.LOSE
    return BetResult.PUSH
