"""Wallet sessions: signed ids, and a Redis store with an in-memory fallback."""

import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import uuid4

import redis.asyncio as redis
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from redis.exceptions import RedisError

from config import config
from core.ledger import to_cents

logger = logging.getLogger(__name__)


class SessionSigner:
    """Sign and verify session ids using itsdangerous."""

    def __init__(self, secret_key: str | None = None) -> None:
        self._serializer = URLSafeTimedSerializer(
            secret_key or config.security.secret_key,
            salt="wallet-session",
        )

    def sign(self, session_id: str) -> str:
        return self._serializer.dumps(session_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Verify a signed token.

        Args:
            token: The signed token to verify
            max_age: Maximum age in seconds (defaults to session_ttl)

        Returns:
            The session id if valid, None otherwise
        """
        try:
            return self._serializer.loads(token, max_age=max_age or config.session_ttl)
        except (BadSignature, SignatureExpired):
            return None


_session_signer: SessionSigner | None = None


def get_session_signer() -> SessionSigner:
    global _session_signer
    if _session_signer is None:
        _session_signer = SessionSigner()
    return _session_signer


def new_session_token() -> str:
    """A fresh signed session id."""
    return get_session_signer().sign(str(uuid4()))


def extract_session_id(token: str) -> str | None:
    """The raw session id inside a signed token, or None if it does not verify."""
    return get_session_signer().unsign(token)


@dataclass
class WalletSession:
    """
    What a session persists between requests.

    Only the balance survives; open tables live in process memory. The
    balance is stored as a two-decimal string so no float ever touches it.
    """

    balance: Decimal
    created_at: int = field(default_factory=lambda: int(time.time()))
    last_activity: int = field(default_factory=lambda: int(time.time()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "balance": str(to_cents(self.balance)),
            "created_at": self.created_at,
            "last_activity": self.last_activity,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WalletSession":
        """
        Raises:
            KeyError: if the record has no balance
        """
        now = int(time.time())
        return cls(
            balance=Decimal(data["balance"]),
            created_at=data.get("created_at", now),
            last_activity=data.get("last_activity", now),
        )

    def touch(self) -> None:
        self.last_activity = int(time.time())

    def is_expired(self, ttl: int) -> bool:
        """
        Whether the signed id for this session has stopped verifying.

        Ids are signed when the session opens and expire ``ttl`` seconds
        later. The store's record lasts at least as long, since every save
        refreshes it.
        """
        return int(time.time()) - self.created_at > ttl


class SessionStore(ABC):
    """Abstract session store, keyed by the signed session token."""

    @abstractmethod
    async def get(self, session_id: str) -> dict[str, Any] | None:
        """Get session data."""
        ...

    @abstractmethod
    async def set(self, session_id: str, data: dict[str, Any], ttl: int | None = None) -> None:
        """Set session data, resetting its time to live."""
        ...

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        """Delete session."""
        ...

    async def exists(self, session_id: str) -> bool:
        return await self.get(session_id) is not None

    async def load_wallet(self, session_id: str) -> WalletSession | None:
        data = await self.get(session_id)
        if not data or "balance" not in data:
            return None
        return WalletSession.from_dict(data)

    async def save_wallet(self, session_id: str, session: WalletSession) -> None:
        session.touch()
        await self.set(session_id, session.to_dict())


class InMemorySessionStore(SessionStore):
    """In-memory session store for local development and tests."""

    def __init__(self) -> None:
        self._sessions: dict[str, tuple[dict[str, Any], datetime]] = {}

    async def get(self, session_id: str) -> dict[str, Any] | None:
        if session_id not in self._sessions:
            return None

        data, expiry = self._sessions[session_id]
        if expiry < datetime.now():
            await self.delete(session_id)
            return None
        return dict(data)

    async def set(
        self,
        session_id: str,
        data: dict[str, Any],
        ttl: int | None = None,
    ) -> None:
        expiry = datetime.now() + timedelta(seconds=ttl or config.session_ttl)
        self._sessions[session_id] = (dict(data), expiry)

    async def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    async def cleanup_expired(self) -> int:
        """Remove expired sessions, returning how many were dropped."""
        now = datetime.now()
        expired = [sid for sid, (_, expiry) in self._sessions.items() if expiry < now]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)


class RedisSessionStore(SessionStore):
    """Redis-backed session store. Records are JSON strings with a TTL."""

    prefix = "casino:session:"

    def __init__(self, redis_client: redis.Redis) -> None:
        self._redis = redis_client

    def _key(self, session_id: str) -> str:
        return f"{self.prefix}{session_id}"

    async def get(self, session_id: str) -> dict[str, Any] | None:
        data = await self._redis.get(self._key(session_id))
        if data is None:
            return None
        return json.loads(data)

    async def set(
        self,
        session_id: str,
        data: dict[str, Any],
        ttl: int | None = None,
    ) -> None:
        await self._redis.setex(
            self._key(session_id),
            ttl or config.session_ttl,
            json.dumps(data),
        )

    async def delete(self, session_id: str) -> None:
        await self._redis.delete(self._key(session_id))

    async def exists(self, session_id: str) -> bool:
        return await self._redis.exists(self._key(session_id)) > 0


_session_store: SessionStore | None = None


async def get_session_store() -> SessionStore:
    """Connect to Redis once; fall back to process memory if it is unreachable."""
    global _session_store

    if _session_store is not None:
        return _session_store

    try:
        redis_client = redis.from_url(config.redis.url)
        await redis_client.ping()
        _session_store = RedisSessionStore(redis_client)
        logger.info("using Redis session store at %s", config.redis.url)
        return _session_store
    except (RedisError, OSError) as exc:
        logger.warning("Redis unavailable at %s (%s), using in-memory sessions", config.redis.url, exc)

    _session_store = InMemorySessionStore()
    return _session_store
