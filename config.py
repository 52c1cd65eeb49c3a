"""Configuration management with environment variable support."""

import os
import secrets
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from core.rules import BaccaratRules, BlackjackRules, CrapsRules, RouletteRules, SlotsRules


def _env_flag(name: str, default: str) -> bool:
    """Only "true", in any case, switches a flag on."""
    return os.getenv(name, default).lower() == "true"


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _parse_cors_origins() -> list[str]:
    """Comma-separated CORS_ORIGINS, blanks dropped."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:8000")
    return [o.strip() for o in origins.split(",") if o.strip()]


def _parse_starting_balance() -> Decimal:
    raw = os.getenv("STARTING_BALANCE", "1000")
    try:
        return Decimal(raw)
    except InvalidOperation as exc:
        raise ValueError(f"STARTING_BALANCE is not a number: {raw!r}") from exc


@dataclass(frozen=True)
class CORSConfig:
    allowed_origins: list[str] = field(default_factory=_parse_cors_origins)
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class RateLimitConfig:
    """Per-client request allowance for the HTTP API."""

    enabled: bool = field(default_factory=lambda: _env_flag("RATE_LIMIT_ENABLED", "true"))
    requests_per_minute: int = field(default_factory=lambda: _env_int("RATE_LIMIT_RPM", 120))


@dataclass(frozen=True)
class SecurityConfig:
    """Key used to sign session ids. A random key is generated when unset."""

    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY") or secrets.token_urlsafe(32)
    )


@dataclass(frozen=True)
class RedisConfig:
    host: str = field(default_factory=lambda: os.getenv("REDIS_HOST", "localhost"))
    port: int = field(default_factory=lambda: _env_int("REDIS_PORT", 6379))
    db: int = field(default_factory=lambda: _env_int("REDIS_DB", 0))
    password: str | None = field(default_factory=lambda: os.getenv("REDIS_PASSWORD"))

    @property
    def url(self) -> str:
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


@dataclass(frozen=True)
class WalletConfig:
    """Balance a new session's wallet starts with."""

    starting_balance: Decimal = field(default_factory=_parse_starting_balance)

    def __post_init__(self) -> None:
        if not self.starting_balance.is_finite() or self.starting_balance < 0:
            raise ValueError("starting_balance must be a non-negative amount")


@dataclass(frozen=True)
class AppConfig:
    """
    Application configuration.

    Table rules are not read from the environment; the defaults are the
    house rules every table opens with.
    """

    debug: bool = field(default_factory=lambda: _env_flag("DEBUG", "false"))
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env_int("PORT", 8000))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    session_ttl: int = 3600  # Session timeout in seconds

    redis: RedisConfig = field(default_factory=RedisConfig)
    wallet: WalletConfig = field(default_factory=WalletConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)

    blackjack: BlackjackRules = field(default_factory=BlackjackRules)
    baccarat: BaccaratRules = field(default_factory=BaccaratRules)
    craps: CrapsRules = field(default_factory=CrapsRules)
    roulette: RouletteRules = field(default_factory=RouletteRules)
    slots: SlotsRules = field(default_factory=SlotsRules)


# Global configuration instance
config = AppConfig()
