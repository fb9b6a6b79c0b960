"""Errors raised by the document façades and chunk fields."""

from typing import Any, Optional

from ..errors import ChunkwiseError


class ConversionError(ChunkwiseError, ValueError):
    """Raised when a raw chunk value cannot be converted to a field's type."""

    def __init__(self, message: str, raw: Any = None):
        self.raw = raw
        super().__init__(message)


class FieldNotReadyError(ChunkwiseError):
    """Raised when reading the value of a field that is not loaded."""

    def __init__(self, chunk_id: str, error: Optional[BaseException] = None):
        self.chunk_id = chunk_id
        self.error = error
        if error is not None:
            message = f"Chunk '{chunk_id}' failed to load: {error}"
        else:
            message = f"Chunk '{chunk_id}' not yet resolved; use value_or_none or wait()"
        super().__init__(message)


class DeserializationError(ChunkwiseError):
    """Raised when the user deserializer rejects a resolved document."""

    pass
