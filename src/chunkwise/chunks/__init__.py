"""Chunk lifecycle tracking."""

from .models import ChunkState, ChunkSnapshot
from .completer import ChunkCompleter, wait_all
from .ledger import ChunkLedger

__all__ = [
    "ChunkState",
    "ChunkSnapshot",
    "ChunkCompleter",
    "wait_all",
    "ChunkLedger",
]
