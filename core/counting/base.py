"""Running/true count bookkeeping shared by counting systems."""

from abc import ABC, abstractmethod
from typing import Iterable, Mapping

from core.cards import CARDS_PER_DECK, Card, Rank


class CountingSystem(ABC):
    """
    A tag-based count over the face-up cards seen since the last shuffle.

    Subclasses only supply their tag table; engines call ``count_card``
    for every card that becomes visible and ``reset`` on each shuffle.
    """

    def __init__(self) -> None:
        self._running_count = 0
        self._cards_seen = 0

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def tag_values(self) -> Mapping[Rank, int]: ...

    @property
    def full_deck_sum(self) -> int:
        """Tag total of one 52-card deck; zero for a balanced system."""
        return sum(tag * 4 for tag in self.tag_values.values())

    @property
    def is_balanced(self) -> bool:
        return self.full_deck_sum == 0

    @property
    def running_count(self) -> int:
        return self._running_count

    @property
    def cards_seen(self) -> int:
        return self._cards_seen

    def count_card(self, card: Card) -> int:
        """Add one card's tag to the running count and return the tag."""
        tag = self.tag_values[card.rank]
        self._running_count += tag
        self._cards_seen += 1
        return tag

    def count_cards(self, cards: Iterable[Card]) -> int:
        return sum(self.count_card(card) for card in cards)

    def true_count(self, cards_remaining: int) -> float:
        """
        Running count per deck left in the shoe, to one decimal.

        Below one deck the estimate is meaningless and 0.0 is returned.
        """
        if cards_remaining < CARDS_PER_DECK:
            return 0.0
        return round(self._running_count * CARDS_PER_DECK / cards_remaining, 1)

    def reset(self) -> None:
        self._running_count = 0
        self._cards_seen = 0

    def __repr__(self) -> str:
        return f"{type(self).__name__}(running_count={self._running_count})"
