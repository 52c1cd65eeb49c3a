"""Pydantic schemas for API requests and responses."""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# Shared schemas
class BetRequest(BaseModel):
    """Request to place a bet."""

    amount: Decimal = Field(..., gt=0, decimal_places=2, description="Bet amount")


class CardResponse(BaseModel):
    """Card representation. Rank and suit are hidden while face down."""

    model_config = ConfigDict(from_attributes=True)

    rank: str | None
    suit: str | None
    face_up: bool


class ResolutionResponse(BaseModel):
    """A settled bet."""

    bet_id: int
    kind: str
    stake: Decimal
    result: str
    payout: Decimal
    net: Decimal


class WalletResponse(BaseModel):
    session_id: str
    balance: Decimal


# Blackjack schemas
class ActionRequest(BaseModel):
    """Request for player action."""

    action: Literal["hit", "stand", "double", "split"]
    hand_index: int | None = Field(default=None, ge=0)


class HandResponse(BaseModel):
    """Hand representation."""

    index: int | None = None
    cards: list[CardResponse]
    value: int
    is_soft: bool
    is_blackjack: bool
    is_busted: bool
    is_done: bool
    bet: Decimal
    result: str | None = None


class BlackjackStateResponse(BaseModel):
    """Current blackjack table state."""

    phase: str
    player_hands: list[HandResponse]
    active_hand_index: int | None
    dealer_hand: HandResponse
    balance: Decimal
    can_hit: bool
    can_stand: bool
    can_double: bool
    can_split: bool
    shoe_remaining: int
    running_count: int
    true_count: float
    resolutions: list[ResolutionResponse] = Field(default_factory=list)


# Baccarat schemas
class BaccaratDealRequest(BetRequest):
    side: Literal["player", "banker", "tie"]


class BaccaratStateResponse(BaseModel):
    phase: str
    player_cards: list[CardResponse]
    banker_cards: list[CardResponse]
    player_total: int | None = None
    banker_total: int | None = None
    winner: str | None = None
    natural: bool = False
    road: list[str]
    balance: Decimal
    shoe_remaining: int
    resolutions: list[ResolutionResponse] = Field(default_factory=list)


# Craps schemas
class CrapsBetRequest(BetRequest):
    kind: Literal["pass", "dont_pass", "come", "dont_come"]


class CrapsOddsRequest(BetRequest):
    bet_id: int


class CrapsBetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    bet_id: int
    kind: str
    amount: Decimal
    point: int | None
    odds: Decimal


class CrapsStateResponse(BaseModel):
    phase: str
    point: int | None
    bets: list[CrapsBetResponse]
    history: list[int]
    dice: list[int] | None = None
    balance: Decimal
    resolutions: list[ResolutionResponse] = Field(default_factory=list)


# Roulette schemas
class RouletteBetRequest(BetRequest):
    kind: Literal[
        "straight",
        "red",
        "black",
        "odd",
        "even",
        "low",
        "high",
        "dozen_1",
        "dozen_2",
        "dozen_3",
    ]
    number: int | None = Field(default=None, ge=0, le=36)


class RouletteBetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    bet_id: int
    kind: str
    amount: Decimal
    number: int | None


class RouletteStateResponse(BaseModel):
    bets: list[RouletteBetResponse]
    total_bet: Decimal
    last_number: int | None = None
    last_color: str | None = None
    history: list[int]
    balance: Decimal
    resolutions: list[ResolutionResponse] = Field(default_factory=list)


# Slots schemas
class SlotsSpinRequest(BaseModel):
    """Bet is ignored while free spins remain."""

    amount: Decimal | None = Field(default=None, gt=0, decimal_places=2)


class LineWinResponse(BaseModel):
    line: int
    symbol: str
    count: int
    multiplier: int


class SlotsStateResponse(BaseModel):
    grid: list[list[str]]
    line_wins: list[LineWinResponse]
    scatters: int
    free_spins: int
    free_spins_awarded: int
    free_spin: bool
    balance: Decimal
    resolutions: list[ResolutionResponse] = Field(default_factory=list)
