"""Configuration management with environment variable support."""

import os
from dataclasses import dataclass, field
from typing import Literal


def _parse_cors_origins() -> list[str]:
    """Parse CORS_ORIGINS environment variable."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    return [o.strip() for o in origins.split(",") if o.strip()]


def _parse_store_backend() -> Literal["memory", "redis"]:
    """Parse STORE_BACKEND environment variable."""
    backend = os.getenv("STORE_BACKEND", "memory").strip().lower()
    if backend not in ("memory", "redis"):
        raise ValueError(f"STORE_BACKEND must be 'memory' or 'redis', got {backend!r}")
    return backend  # type: ignore[return-value]


@dataclass(frozen=True)
class CORSConfig:
    """CORS configuration."""

    allowed_origins: list[str] = field(default_factory=_parse_cors_origins)
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate limiting configuration."""

    enabled: bool = field(
        default_factory=lambda: os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    )
    requests_per_minute: int = field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_RPM", "60"))
    )


@dataclass(frozen=True)
class RedisConfig:
    """Redis connection configuration."""

    host: str = field(default_factory=lambda: os.getenv("REDIS_HOST", "localhost"))
    port: int = field(default_factory=lambda: int(os.getenv("REDIS_PORT", "6379")))
    db: int = field(default_factory=lambda: int(os.getenv("REDIS_DB", "0")))
    password: str | None = field(default_factory=lambda: os.getenv("REDIS_PASSWORD"))
    key_prefix: str = field(default_factory=lambda: os.getenv("REDIS_PREFIX", "blackjack:"))
    # Table lock shared by every process using the same Redis, in seconds
    lock_timeout: float = field(
        default_factory=lambda: float(os.getenv("REDIS_LOCK_TIMEOUT", "10"))
    )
    lock_wait: float = field(default_factory=lambda: float(os.getenv("REDIS_LOCK_WAIT", "5")))

    @property
    def url(self) -> str:
        """Build Redis connection URL."""
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


@dataclass(frozen=True)
class StoreConfig:
    """Persistent state store selection."""

    backend: Literal["memory", "redis"] = field(default_factory=_parse_store_backend)
    # Fall back to the in-memory store when Redis cannot be reached at startup
    fallback_to_memory: bool = field(
        default_factory=lambda: os.getenv("STORE_FALLBACK", "true").lower() == "true"
    )


@dataclass(frozen=True)
class GameConfig:
    """Table rules and bootstrap values."""

    # Balance an account reads as before it has ever been written
    starting_balance: int = field(
        default_factory=lambda: int(os.getenv("STARTING_BALANCE", "1000"))
    )
    # Deck seed written at bootstrap when the store has none
    initial_seed: int = field(default_factory=lambda: int(os.getenv("DECK_SEED", "0")))
    dealer_stands_on: int = 17


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    # Header carrying the caller's account id, set by the authenticating proxy
    identity_header: str = field(
        default_factory=lambda: os.getenv("IDENTITY_HEADER", "X-Account-ID")
    )

    redis: RedisConfig = field(default_factory=RedisConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    game: GameConfig = field(default_factory=GameConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)


# Global configuration instance
config = AppConfig()
