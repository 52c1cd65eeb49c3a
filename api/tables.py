"""Per-session wallet and game tables, backed by the session store."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from fastapi import HTTPException

from api.schemas import CardResponse, ResolutionResponse
from api.session import WalletSession, extract_session_id, get_session_store, new_session_token
from config import config
from core.cards import Card
from core.game import BaccaratRound, BlackjackRound, CrapsTable, RouletteTable, SlotMachine
from core.game.base import WagerEngine
from core.ledger import Wallet
from core.outcome import RoundOutcome

logger = logging.getLogger(__name__)


@dataclass
class Casino:
    """One player's wallet and the tables they sit at. Tables open on first use."""

    wallet: Wallet
    session: WalletSession
    _blackjack: BlackjackRound | None = field(default=None, repr=False)
    _baccarat: BaccaratRound | None = field(default=None, repr=False)
    _craps: CrapsTable | None = field(default=None, repr=False)
    _roulette: RouletteTable | None = field(default=None, repr=False)
    _slots: SlotMachine | None = field(default=None, repr=False)

    @property
    def blackjack(self) -> BlackjackRound:
        if self._blackjack is None:
            self._blackjack = BlackjackRound(self.wallet, rules=config.blackjack)
        return self._blackjack

    @property
    def baccarat(self) -> BaccaratRound:
        if self._baccarat is None:
            self._baccarat = BaccaratRound(self.wallet, rules=config.baccarat)
        return self._baccarat

    @property
    def craps(self) -> CrapsTable:
        if self._craps is None:
            self._craps = CrapsTable(self.wallet, rules=config.craps)
        return self._craps

    @property
    def roulette(self) -> RouletteTable:
        if self._roulette is None:
            self._roulette = RouletteTable(self.wallet, rules=config.roulette)
        return self._roulette

    @property
    def slots(self) -> SlotMachine:
        if self._slots is None:
            self._slots = SlotMachine(self.wallet, rules=config.slots)
        return self._slots


# In-memory table cache; the session store only keeps the balance.
# Entries go on cash-out or once their session id expires.
_casinos: dict[str, Casino] = {}


def _evict_expired() -> None:
    """Drop cached tables whose session id can no longer be presented."""
    expired = [
        session_id
        for session_id, casino in _casinos.items()
        if casino.session.is_expired(config.session_ttl)
    ]
    for session_id in expired:
        del _casinos[session_id]
    if expired:
        logger.info("evicted %d expired sessions", len(expired))


def _verify_session(token: str) -> None:
    """Reject tokens that were not signed by this server or have expired."""
    if extract_session_id(token) is None:
        _casinos.pop(token, None)
        raise HTTPException(status_code=401, detail="Invalid or expired session")


async def open_casino(starting_balance: Decimal | None = None) -> tuple[str, Casino]:
    """Create a session with a fresh wallet."""
    _evict_expired()
    if starting_balance is None:
        starting_balance = config.wallet.starting_balance
    session_id = new_session_token()
    wallet = Wallet(starting_balance)
    casino = Casino(wallet=wallet, session=WalletSession(balance=wallet.balance))
    _casinos[session_id] = casino
    await save_casino(session_id, casino)
    logger.info("opened session with balance %s", wallet.balance)
    return session_id, casino


async def get_casino(session_id: str) -> Casino:
    """Get the session's tables, restoring the wallet from the store if needed."""
    _verify_session(session_id)
    _evict_expired()
    if session_id in _casinos:
        return _casinos[session_id]

    store = await get_session_store()
    session = await store.load_wallet(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")

    casino = Casino(wallet=Wallet(session.balance), session=session)
    _casinos[session_id] = casino
    logger.debug("restored session with balance %s", session.balance)
    return casino


async def save_casino(session_id: str, casino: Casino) -> None:
    """Persist the wallet's balance."""
    casino.session.balance = casino.wallet.balance
    store = await get_session_store()
    await store.save_wallet(session_id, casino.session)


async def close_casino(session_id: str) -> Decimal:
    """
    End a session, dropping its tables.

    Returns:
        The balance the player leaves with
    """
    casino = await get_casino(session_id)
    _casinos.pop(session_id, None)
    store = await get_session_store()
    await store.delete(session_id)
    logger.info("closed session with balance %s", casino.wallet.balance)
    return casino.wallet.balance


def rejected(engine: WagerEngine) -> HTTPException:
    """400 carrying the reason the engine refused the last action."""
    error = engine.last_rejection()
    return HTTPException(status_code=400, detail=str(error) if error else "Invalid action")


def card_response(card: Card) -> CardResponse:
    if not card.face_up:
        return CardResponse(rank=None, suit=None, face_up=False)
    return CardResponse(rank=str(card.rank), suit=card.suit.name.lower(), face_up=True)


def resolution_responses(outcome: RoundOutcome | None) -> list[ResolutionResponse]:
    if outcome is None:
        return []
    return [
        ResolutionResponse(
            bet_id=r.bet_id,
            kind=r.kind,
            stake=r.stake,
            result=str(r.result),
            payout=r.payout,
            net=r.net,
        )
        for r in outcome.resolutions
    ]
