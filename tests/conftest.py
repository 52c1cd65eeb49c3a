"""Pytest fixtures for casino engine tests."""

from collections import deque
from decimal import Decimal
from random import Random

import pytest
from hypothesis import strategies as st

from core.cards import Card, Rank, Suit
from core.counting import HiLoSystem
from core.game import BaccaratRound, BlackjackRound, CrapsTable, RouletteTable, SlotMachine
from core.hand import Hand
from core.ledger import Wallet


class ScriptedRandom(Random):
    """Random whose ``randint`` replays queued results, for dice and wheels."""

    def __init__(self, results=(), seed: int = 42) -> None:
        super().__init__(seed)
        self.results = deque(results)

    def randint(self, a: int, b: int) -> int:
        if not self.results:
            return super().randint(a, b)
        value = self.results.popleft()
        assert a <= value <= b, f"scripted {value} outside [{a}, {b}]"
        return value


def cards(*codes: str) -> list[Card]:
    """Build cards from strings like 'AS', '10H'."""
    return [Card.from_string(code) for code in codes]


def stack_shoe(engine, *codes: str) -> None:
    """Put cards on top of an engine's shoe so they are drawn in the given order."""
    stacked = cards(*codes)
    engine.shoe._cards[-len(stacked):] = list(reversed(stacked))


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def wallet():
    """A wallet holding $1000."""
    return Wallet(Decimal("1000"))


@pytest.fixture
def empty_hand():
    """An empty player hand."""
    return Hand()


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    return Hand(cards=cards("AS", "KH"))


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return Hand(cards=cards("AS", "6H"))


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return Hand(cards=cards("10S", "6H"))


@pytest.fixture
def bust_hand():
    """A busted hand."""
    return Hand(cards=cards("10S", "6H", "KC"))


@pytest.fixture
def hilo():
    """Hi-Lo counting system."""
    return HiLoSystem()


@pytest.fixture
def blackjack(wallet, rng):
    """A blackjack table with a freshly shuffled shoe."""
    return BlackjackRound(wallet, rng=rng)


@pytest.fixture
def baccarat(wallet, rng):
    """A baccarat table with a freshly shuffled shoe."""
    return BaccaratRound(wallet, rng=rng)


@pytest.fixture
def dice():
    """Scripted random source; append totals' faces to ``dice.results``."""
    return ScriptedRandom()


@pytest.fixture
def craps(wallet, dice):
    """A craps table rolling scripted dice."""
    return CrapsTable(wallet, rng=dice)


@pytest.fixture
def roulette(wallet, dice):
    """A roulette table spinning scripted numbers."""
    return RouletteTable(wallet, rng=dice)


@pytest.fixture
def slots(wallet, rng):
    """A slot machine."""
    return SlotMachine(wallet, rng=rng)


# Hypothesis strategies for property-based testing
@st.composite
def card_strategy(draw):
    """Generate a random card."""
    rank = draw(st.sampled_from(list(Rank)))
    suit = draw(st.sampled_from(list(Suit)))
    return Card(rank, suit)


@st.composite
def hand_strategy(draw, min_cards=2, max_cards=5):
    """Generate a random hand."""
    drawn = draw(st.lists(card_strategy(), min_size=min_cards, max_size=max_cards))
    return Hand(cards=drawn)
