"""Wallet and session endpoints."""

from typing import Annotated

from fastapi import APIRouter, Header

from api.schemas import WalletResponse
from api.tables import close_casino, get_casino, open_casino

router = APIRouter()


@router.post("/new")
async def new_wallet() -> WalletResponse:
    """Create a new session holding a wallet at the starting balance."""
    session_id, casino = await open_casino()
    return WalletResponse(session_id=session_id, balance=casino.wallet.balance)


@router.get("")
async def get_wallet(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> WalletResponse:
    """Get the session's balance."""
    casino = await get_casino(session_id)
    return WalletResponse(session_id=session_id, balance=casino.wallet.balance)


@router.delete("")
async def cash_out(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> WalletResponse:
    """
    End the session and report the final balance.

    Chips still on a table are forfeited along with the session.
    """
    balance = await close_casino(session_id)
    return WalletResponse(session_id=session_id, balance=balance)
