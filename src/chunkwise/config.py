"""Configuration management for chunkwise."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

DEFAULT_PLACEHOLDER_PATTERN = r"^\$(\d+)$"


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back on empty values."""
    raw = os.getenv(name)
    if not raw:
        return default
    return int(raw)


class Settings(BaseModel):
    """Library settings."""

    # Placeholder grammar (must contain exactly one capturing group)
    placeholder_pattern: str = Field(
        default_factory=lambda: os.getenv(
            "CHUNKWISE_PLACEHOLDER_PATTERN", DEFAULT_PLACEHOLDER_PATTERN
        )
    )

    # Nesting limit for document walks; cyclic documents hit this and fail fast
    max_depth: int = Field(
        default_factory=lambda: _env_int("CHUNKWISE_MAX_DEPTH", 256), ge=1
    )

    # Maximum number of fingerprint -> result entries kept by a resolver
    resolver_cache_size: int = Field(
        default_factory=lambda: _env_int("CHUNKWISE_RESOLVER_CACHE_SIZE", 128), ge=0
    )

    # Log level used by the CLI
    log_level: str = Field(
        default_factory=lambda: os.getenv("CHUNKWISE_LOG_LEVEL", "WARNING").upper()
    )


settings = Settings()
