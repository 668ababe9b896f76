"""FastAPI application entry point."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from api.limits import limiter, operation_limit, rate_limit_exceeded_handler
from api.routes import accounts, game
from api.store import StoreError
from config import config

logger = logging.getLogger("blackjack.api")


async def _store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Storage failures abort the request; nothing was committed."""
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "State store unavailable; operation aborted"},
    )


app = FastAPI(
    title="Blackjack Table",
    description="Per-account blackjack with a shared deterministic deck",
    version="0.1.0",
)

# Add rate limiter to app state and exception handlers
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(StoreError, _store_error_handler)

# CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors.allowed_origins,
    allow_credentials=config.cors.allow_credentials,
    allow_methods=config.cors.allow_methods,
    allow_headers=config.cors.allow_headers,
)


@app.get("/api/health")
@limiter.limit(operation_limit)
async def health_check(request: Request) -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


# Include routers
app.include_router(game.router, prefix="/api/game", tags=["game"])
app.include_router(accounts.router, prefix="/api/accounts", tags=["accounts"])
