"""chunkwise - progressive hydration of JSON documents from out-of-band chunks."""

from .errors import ChunkwiseError
from .chunks import ChunkCompleter, ChunkLedger, ChunkSnapshot, ChunkState
from .placeholders import (
    InvalidPlaceholderPatternError,
    PlaceholderParser,
    PlaceholderResolver,
    StructureTooDeepError,
)
from .processor import (
    BatchDecodeError,
    BroadcastChannel,
    ChunkProcessor,
    ProcessorClosedError,
    Subscription,
    UpdateEvent,
    decode_json_batch,
)
from .document import (
    ChunkDocument,
    ChunkField,
    ChunkFields,
    ChunkObject,
    ConversionError,
    DeserializationError,
    FieldNotReadyError,
)

__version__ = "0.1.0"

__all__ = [
    "ChunkwiseError",
    "ChunkCompleter",
    "ChunkLedger",
    "ChunkSnapshot",
    "ChunkState",
    "InvalidPlaceholderPatternError",
    "PlaceholderParser",
    "PlaceholderResolver",
    "StructureTooDeepError",
    "BatchDecodeError",
    "BroadcastChannel",
    "ChunkProcessor",
    "ProcessorClosedError",
    "Subscription",
    "UpdateEvent",
    "decode_json_batch",
    "ChunkDocument",
    "ChunkField",
    "ChunkFields",
    "ChunkObject",
    "ConversionError",
    "DeserializationError",
    "FieldNotReadyError",
]
