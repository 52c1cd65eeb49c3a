"""Slot machine endpoints."""

from typing import Annotated

from fastapi import APIRouter, Header

from api.schemas import LineWinResponse, SlotsSpinRequest, SlotsStateResponse
from api.tables import get_casino, rejected, resolution_responses, save_casino
from core.game import SlotMachine

router = APIRouter()


def _state_response(machine: SlotMachine) -> SlotsStateResponse:
    outcome = machine.last_outcome
    if outcome is None:
        return SlotsStateResponse(
            grid=[],
            line_wins=[],
            scatters=0,
            free_spins=machine.free_spins,
            free_spins_awarded=0,
            free_spin=False,
            balance=machine.balance,
        )
    return SlotsStateResponse(
        grid=[[str(symbol) for symbol in reel] for reel in outcome.grid],
        line_wins=[
            LineWinResponse(
                line=win.line,
                symbol=str(win.symbol),
                count=win.count,
                multiplier=win.multiplier,
            )
            for win in outcome.line_wins
        ],
        scatters=outcome.scatters,
        free_spins=machine.free_spins,
        free_spins_awarded=outcome.free_spins_awarded,
        free_spin=outcome.free_spin,
        balance=machine.balance,
        resolutions=resolution_responses(outcome),
    )


@router.get("/state")
async def get_state(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> SlotsStateResponse:
    casino = await get_casino(session_id)
    return _state_response(casino.slots)


@router.post("/spin")
async def spin(
    request: SlotsSpinRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> SlotsStateResponse:
    """Spin the reels. Free spins are played before any bet is taken."""
    casino = await get_casino(session_id)
    machine = casino.slots

    if machine.spin(request.amount) is None:
        raise rejected(machine)

    await save_casino(session_id, casino)
    return _state_response(machine)
