"""Chunk ingestion and update broadcasting."""

from .models import BatchDecodeError, ProcessorClosedError, UpdateEvent
from .broadcast import BroadcastChannel, Subscription
from .decoders import BatchDecoder, decode_json_batch
from .processor import ChunkProcessor

__all__ = [
    "BatchDecodeError",
    "ProcessorClosedError",
    "UpdateEvent",
    "BroadcastChannel",
    "Subscription",
    "BatchDecoder",
    "decode_json_batch",
    "ChunkProcessor",
]
