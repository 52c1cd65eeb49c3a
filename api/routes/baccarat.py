"""Baccarat table endpoints."""

from typing import Annotated

from fastapi import APIRouter, Header

from api.schemas import BaccaratDealRequest, BaccaratStateResponse
from api.tables import card_response, get_casino, rejected, resolution_responses, save_casino
from core.game import BaccaratRound

router = APIRouter()


def _state_response(table: BaccaratRound) -> BaccaratStateResponse:
    outcome = table.last_outcome
    return BaccaratStateResponse(
        phase=table.phase.value,
        player_cards=[card_response(c) for c in table.player_cards],
        banker_cards=[card_response(c) for c in table.banker_cards],
        player_total=outcome.player_total if outcome else None,
        banker_total=outcome.banker_total if outcome else None,
        winner=str(outcome.winner) if outcome else None,
        natural=outcome.natural if outcome else False,
        road=[str(winner) for winner in table.road],
        balance=table.balance,
        shoe_remaining=table.shoe_remaining(),
        resolutions=resolution_responses(outcome),
    )


@router.get("/state")
async def get_state(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> BaccaratStateResponse:
    casino = await get_casino(session_id)
    return _state_response(casino.baccarat)


@router.post("/deal")
async def deal(
    request: BaccaratDealRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> BaccaratStateResponse:
    """Bet on a side and play out a coup."""
    casino = await get_casino(session_id)
    table = casino.baccarat

    if table.deal(request.side, request.amount) is None:
        raise rejected(table)

    await save_casino(session_id, casino)
    return _state_response(table)
