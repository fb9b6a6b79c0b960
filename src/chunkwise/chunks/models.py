"""Data models for chunk state tracking."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class ChunkState(str, Enum):
    """Lifecycle state of a chunk.

    ``PENDING`` moves to either ``LOADED`` or ``ERROR``; both are terminal.
    """

    PENDING = "pending"
    LOADED = "loaded"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not ChunkState.PENDING


class ChunkSnapshot(BaseModel):
    """Point-in-time view of one ledger record."""

    chunk_id: str
    state: ChunkState
    value: Any = None
    error: Optional[str] = None  # repr of the rejection error
