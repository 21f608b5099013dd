"""
Environment-driven settings for the call signaling relay
"""

import os
from typing import List, Literal

from dotenv import load_dotenv

from .constants import (
    DEFAULT_ALLOWED_ORIGINS,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_REDIS_URL,
    DEFAULT_STORE_QUEUE_SIZE,
    DEFAULT_STORE_RETRIES,
    DEFAULT_STORE_TIMEOUT_SECONDS,
    LOG_LEVEL,
)
from .logger import get_logger

logger = get_logger()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}={raw!r}, using {default}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid number for {name}={raw!r}, using {default}")
        return default


def _env_origins(name: str) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(DEFAULT_ALLOWED_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


class Settings:
    """
    Runtime settings read from the environment.
        - ALLOWED_ORIGINS comma-separated CORS allow-list (HTTP and socket.io)
        - STORE_BACKEND "memory" or "redis"
        - HISTORY_LIMIT chat entries kept per room
        - STORE_TIMEOUT_SECONDS / STORE_RETRIES bound each durable write
        - STORE_QUEUE_SIZE durable writes allowed to wait before new ones are dropped
    """

    def __init__(self):
        # Load environment variables from the .env file
        load_dotenv()

        self.HOST: str = os.getenv("HOST", DEFAULT_HOST)
        self.PORT: int = _env_int("PORT", DEFAULT_PORT)
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", LOG_LEVEL).upper()
        self.ALLOWED_ORIGINS: List[str] = _env_origins("ALLOWED_ORIGINS")

        backend = os.getenv("STORE_BACKEND", "memory").lower()
        if backend not in ("memory", "redis"):
            logger.warning(f"Unknown STORE_BACKEND={backend!r}, using memory")
            backend = "memory"
        self.STORE_BACKEND: Literal["memory", "redis"] = backend
        self.REDIS_URL: str = os.getenv("REDIS_URL", DEFAULT_REDIS_URL)

        self.HISTORY_LIMIT: int = max(1, _env_int("HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT))
        self.STORE_TIMEOUT_SECONDS: float = _env_float("STORE_TIMEOUT_SECONDS", DEFAULT_STORE_TIMEOUT_SECONDS)
        self.STORE_RETRIES: int = max(0, _env_int("STORE_RETRIES", DEFAULT_STORE_RETRIES))
        self.STORE_QUEUE_SIZE: int = max(1, _env_int("STORE_QUEUE_SIZE", DEFAULT_STORE_QUEUE_SIZE))


def get_settings() -> Settings:
    return Settings()
