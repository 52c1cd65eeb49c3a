"""FastAPI application entry point."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from api.routes import baccarat, blackjack, craps, roulette, slots, wallet
from config import config
from core.errors import RandomSourceUnavailable

logging.basicConfig(
    level=config.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    enabled=config.rate_limit.enabled,
    default_limits=[f"{config.rate_limit.requests_per_minute}/minute"],
)


def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )


def _random_source_unavailable_handler(
    request: Request, exc: RandomSourceUnavailable
) -> JSONResponse:
    """No game can be played fairly without an entropy source."""
    logger.critical("refusing to play: %s", exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Random source unavailable"},
    )


app = FastAPI(
    title="Casino Wagering Engine",
    description="Blackjack, baccarat, craps, roulette and slots against the house",
    version="0.1.0",
)

# Add rate limiter to app state and exception handlers
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(RandomSourceUnavailable, _random_source_unavailable_handler)

# CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors.allowed_origins,
    allow_credentials=config.cors.allow_credentials,
    allow_methods=config.cors.allow_methods,
    allow_headers=config.cors.allow_headers,
)


@app.get("/api/health")
@limiter.limit(f"{config.rate_limit.requests_per_minute}/minute")
async def health_check(request: Request) -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


# Include routers
app.include_router(wallet.router, prefix="/api/wallet", tags=["wallet"])
app.include_router(blackjack.router, prefix="/api/blackjack", tags=["blackjack"])
app.include_router(baccarat.router, prefix="/api/baccarat", tags=["baccarat"])
app.include_router(craps.router, prefix="/api/craps", tags=["craps"])
app.include_router(roulette.router, prefix="/api/roulette", tags=["roulette"])
app.include_router(slots.router, prefix="/api/slots", tags=["slots"])
