"""Roulette table endpoints."""

from typing import Annotated

from fastapi import APIRouter, Header

from api.schemas import RouletteBetRequest, RouletteBetResponse, RouletteStateResponse
from api.tables import get_casino, rejected, resolution_responses, save_casino
from core.game import RouletteTable

router = APIRouter()


def _state_response(table: RouletteTable, spun: bool = False) -> RouletteStateResponse:
    outcome = table.last_outcome
    return RouletteStateResponse(
        bets=[
            RouletteBetResponse(
                bet_id=bet.bet_id,
                kind=str(bet.kind),
                amount=bet.amount,
                number=bet.number,
            )
            for bet in table.bets
        ],
        total_bet=table.total_bet,
        last_number=outcome.number if outcome else None,
        last_color=outcome.color if outcome else None,
        history=list(table.history),
        balance=table.balance,
        resolutions=resolution_responses(outcome) if spun else [],
    )


@router.get("/state")
async def get_state(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> RouletteStateResponse:
    casino = await get_casino(session_id)
    return _state_response(casino.roulette)


@router.post("/bet")
async def place_bet(
    request: RouletteBetRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> RouletteStateResponse:
    casino = await get_casino(session_id)
    table = casino.roulette

    if table.place_bet(request.kind, request.amount, request.number) is None:
        raise rejected(table)

    await save_casino(session_id, casino)
    return _state_response(table)


@router.post("/clear")
async def clear_bets(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> RouletteStateResponse:
    """Refund every chip on the layout."""
    casino = await get_casino(session_id)
    table = casino.roulette
    table.clear_bets()

    await save_casino(session_id, casino)
    return _state_response(table)


@router.post("/spin")
async def spin(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> RouletteStateResponse:
    casino = await get_casino(session_id)
    table = casino.roulette

    if table.spin() is None:
        raise rejected(table)

    await save_casino(session_id, casino)
    return _state_response(table, spun=True)
