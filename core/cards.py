"""Playing cards and the multi-deck shoe they are dealt from."""

from dataclasses import dataclass, field, replace
from enum import Enum, auto
from random import Random
from typing import Iterator

from core.errors import ShoeExhausted
from core.rng import default_rng

CARDS_PER_DECK = 52

# One deck's worth; engines reshuffle between rounds below this.
RESHUFFLE_THRESHOLD = CARDS_PER_DECK


class Suit(Enum):
    CLUBS = auto()
    DIAMONDS = auto()
    HEARTS = auto()
    SPADES = auto()

    def __str__(self) -> str:
        return _SUIT_SYMBOLS[self]


class Rank(Enum):
    """Ranks, ordered deuce to ace."""

    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14

    def __str__(self) -> str:
        return _RANK_SYMBOLS[self]

    @property
    def blackjack_value(self) -> int:
        """Ace 11, tens and faces 10, numerals face value."""
        if self == Rank.ACE:
            return 11
        return min(self.value, 10)

    @property
    def baccarat_value(self) -> int:
        """Ace 1, tens and faces 0, numerals face value."""
        if self == Rank.ACE:
            return 1
        return self.value if self.value < 10 else 0

    @property
    def is_ace(self) -> bool:
        return self == Rank.ACE

    @property
    def is_ten_value(self) -> bool:
        return self.blackjack_value == 10


_SUIT_SYMBOLS = {
    Suit.CLUBS: "♣",
    Suit.DIAMONDS: "♦",
    Suit.HEARTS: "♥",
    Suit.SPADES: "♠",
}
_RANK_SYMBOLS = {rank: str(rank.value) for rank in Rank if rank.value <= 10}
_RANK_SYMBOLS.update({Rank.JACK: "J", Rank.QUEEN: "Q", Rank.KING: "K", Rank.ACE: "A"})

# Parsing accepts the printed symbols plus letter suits and "T" for ten.
_PARSE_RANKS = {symbol: rank for rank, symbol in _RANK_SYMBOLS.items()} | {"T": Rank.TEN}
_PARSE_SUITS = {symbol: suit for suit, symbol in _SUIT_SYMBOLS.items()} | {
    suit.name[0]: suit for suit in Suit
}


@dataclass(frozen=True, slots=True)
class Card:
    """
    Immutable playing card.

    ``face_up`` does not take part in equality or hashing; a hole card
    equals its revealed copy.
    """

    rank: Rank
    suit: Suit
    face_up: bool = field(default=True, compare=False)

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}" if self.face_up else "??"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def value(self) -> int:
        """Blackjack point value."""
        return self.rank.blackjack_value

    @property
    def baccarat_value(self) -> int:
        return self.rank.baccarat_value

    @property
    def is_ace(self) -> bool:
        return self.rank.is_ace

    @property
    def is_ten_value(self) -> bool:
        return self.rank.is_ten_value

    def revealed(self) -> "Card":
        """This card turned face up."""
        return self if self.face_up else replace(self, face_up=True)

    @classmethod
    def from_string(cls, text: str) -> "Card":
        """
        Parse a card code such as 'AS', '10h' or 'K♥'.

        Raises:
            ValueError: if the rank or suit is not recognised
        """
        code = text.strip().upper()
        rank, suit = _PARSE_RANKS.get(code[:-1]), _PARSE_SUITS.get(code[-1:])
        if rank is None or suit is None:
            raise ValueError(f"Invalid card: {text!r}")
        return cls(rank, suit)


class Shoe:
    """
    A multi-deck shoe.

    Cards are drawn from the end of the list, so the last card is the
    top of the shoe.
    """

    def __init__(
        self,
        num_decks: int = 6,
        reshuffle_threshold: int = RESHUFFLE_THRESHOLD,
        rng: Random | None = None,
    ) -> None:
        """
        Args:
            num_decks: Number of 52-card decks
            reshuffle_threshold: Remaining-card count below which the shoe
                must be reshuffled before the next round
            rng: Source for shuffling; the OS CSPRNG when omitted
        """
        if num_decks < 1:
            raise ValueError("Shoe must have at least 1 deck")
        if reshuffle_threshold < 0:
            raise ValueError("Reshuffle threshold cannot be negative")

        self._num_decks = num_decks
        self._reshuffle_threshold = reshuffle_threshold
        self._rng = rng or default_rng()
        self._cards: list[Card] = []
        self.reset()

    def reset(self) -> None:
        """Refill with every card of every deck, unshuffled."""
        self._cards = [
            Card(rank, suit)
            for _ in range(self._num_decks)
            for suit in Suit
            for rank in Rank
        ]

    def shuffle(self) -> None:
        """Refill and apply a uniform random permutation (Fisher-Yates)."""
        self.reset()
        self._rng.shuffle(self._cards)

    def draw(self, face_up: bool = True) -> Card:
        """
        Take the top card.

        Raises:
            ShoeExhausted: if the shoe is empty
        """
        if not self._cards:
            raise ShoeExhausted("Cannot draw from empty shoe")
        card = self._cards.pop()
        return card if face_up else replace(card, face_up=False)

    @property
    def needs_shuffle(self) -> bool:
        return len(self._cards) < self._reshuffle_threshold

    @property
    def cards_remaining(self) -> int:
        return len(self._cards)

    @property
    def cards_dealt(self) -> int:
        return self.total_cards - len(self._cards)

    @property
    def total_cards(self) -> int:
        return self._num_decks * CARDS_PER_DECK

    @property
    def num_decks(self) -> int:
        return self._num_decks

    @property
    def decks_remaining(self) -> float:
        return len(self._cards) / CARDS_PER_DECK

    @property
    def reshuffle_threshold(self) -> int:
        return self._reshuffle_threshold

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)
