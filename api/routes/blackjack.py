"""Blackjack table endpoints."""

from typing import Annotated

from fastapi import APIRouter, Header

from api.schemas import ActionRequest, BetRequest, BlackjackStateResponse, HandResponse
from api.tables import card_response, get_casino, rejected, resolution_responses, save_casino
from core.game import BlackjackPhase, BlackjackRound
from core.hand import Hand, blackjack_total, is_blackjack

router = APIRouter()


def _hand_to_response(hand: Hand, index: int | None = None, dealer: bool = False) -> HandResponse:
    """
    Convert a Hand to HandResponse.

    The dealer's hand is scored from its face-up cards only, so nothing
    in the response gives away the hole card.
    """
    cards = hand.visible_cards if dealer else hand.cards
    value, soft = blackjack_total(cards)
    return HandResponse(
        index=index,
        cards=[card_response(c) for c in hand.cards],
        value=value,
        is_soft=soft,
        is_blackjack=is_blackjack(cards) and not hand.is_split_hand,
        is_busted=value > 21,
        is_done=hand.is_done,
        bet=hand.bet,
        result=str(hand.result) if hand.result is not None else None,
    )


def _state_response(table: BlackjackRound) -> BlackjackStateResponse:
    return BlackjackStateResponse(
        phase=table.phase.value,
        player_hands=[
            _hand_to_response(table.hand(i), index=i) for i in table.hand_order
        ],
        active_hand_index=table.active_hand_index,
        dealer_hand=_hand_to_response(table.dealer_hand, dealer=True),
        balance=table.balance,
        can_hit=table.can_hit,
        can_stand=table.can_stand,
        can_double=table.can_double,
        can_split=table.can_split,
        shoe_remaining=table.shoe_remaining(),
        running_count=table.running_count,
        true_count=table.true_count,
        resolutions=(
            resolution_responses(table.last_outcome)
            if table.phase == BlackjackPhase.RESOLVED
            else []
        ),
    )


@router.get("/state")
async def get_state(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> BlackjackStateResponse:
    """Get current table state."""
    casino = await get_casino(session_id)
    return _state_response(casino.blackjack)


@router.post("/deal")
async def deal(
    request: BetRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> BlackjackStateResponse:
    """Place a bet and deal a round."""
    casino = await get_casino(session_id)
    table = casino.blackjack

    if not table.deal(request.amount):
        raise rejected(table)

    await save_casino(session_id, casino)
    return _state_response(table)


@router.post("/action")
async def player_action(
    request: ActionRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> BlackjackStateResponse:
    """Execute a player action on the active hand."""
    casino = await get_casino(session_id)
    table = casino.blackjack

    actions = {
        "hit": table.hit,
        "stand": table.stand,
        "double": table.double_down,
        "split": table.split,
    }

    if not actions[request.action](request.hand_index):
        raise rejected(table)

    await save_casino(session_id, casino)
    return _state_response(table)
