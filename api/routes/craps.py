"""Craps table endpoints."""

from typing import Annotated

from fastapi import APIRouter, Header

from api.schemas import CrapsBetRequest, CrapsBetResponse, CrapsOddsRequest, CrapsStateResponse
from api.tables import get_casino, rejected, resolution_responses, save_casino
from core.game import CrapsTable

router = APIRouter()


def _state_response(table: CrapsTable, rolled: bool = False) -> CrapsStateResponse:
    outcome = table.last_outcome if rolled else None
    return CrapsStateResponse(
        phase=table.phase.value,
        point=table.table_point(),
        bets=[
            CrapsBetResponse(
                bet_id=bet.bet_id,
                kind=str(bet.kind),
                amount=bet.amount,
                point=bet.point,
                odds=bet.odds,
            )
            for bet in table.bets
        ],
        history=list(table.history),
        dice=list(outcome.dice) if outcome else None,
        balance=table.balance,
        resolutions=resolution_responses(outcome),
    )


@router.get("/state")
async def get_state(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> CrapsStateResponse:
    casino = await get_casino(session_id)
    return _state_response(casino.craps)


@router.post("/bet")
async def place_bet(
    request: CrapsBetRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> CrapsStateResponse:
    """Put a line or come bet on the layout."""
    casino = await get_casino(session_id)
    table = casino.craps

    if table.place_bet(request.kind, request.amount) is None:
        raise rejected(table)

    await save_casino(session_id, casino)
    return _state_response(table)


@router.post("/odds")
async def add_odds(
    request: CrapsOddsRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> CrapsStateResponse:
    """Back a pointed bet with odds."""
    casino = await get_casino(session_id)
    table = casino.craps

    if table.add_odds(request.bet_id, request.amount) is None:
        raise rejected(table)

    await save_casino(session_id, casino)
    return _state_response(table)


@router.post("/roll")
async def roll(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> CrapsStateResponse:
    """Roll the dice and settle the layout."""
    casino = await get_casino(session_id)
    table = casino.craps

    if table.roll() is None:
        raise rejected(table)

    await save_casino(session_id, casino)
    return _state_response(table, rolled=True)
