"""Document façades built on the ledger, resolver and processor."""

from .models import ConversionError, DeserializationError, FieldNotReadyError
from .fields import ChunkField, ChunkFields, Converter, RawValue
from .base import HydratedDocument
from .chunk_document import ChunkDocument
from .chunk_object import ChunkObject

__all__ = [
    "ConversionError",
    "DeserializationError",
    "FieldNotReadyError",
    "ChunkField",
    "ChunkFields",
    "Converter",
    "RawValue",
    "HydratedDocument",
    "ChunkDocument",
    "ChunkObject",
]
