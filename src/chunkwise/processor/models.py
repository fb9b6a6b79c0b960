"""Data models and errors for chunk processing."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from ..errors import ChunkwiseError


class BatchDecodeError(ChunkwiseError, ValueError):
    """Raised when an encoded batch cannot be decoded into an identifier mapping."""

    def __init__(self, message: str, raw: Any = None):
        self.raw = raw
        super().__init__(message)


class ProcessorClosedError(ChunkwiseError):
    """Raised when a closed processor is asked to process more chunks."""

    pass


class UpdateEvent(BaseModel):
    """One event on a processor's update channel: an accepted batch or an error."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    batch: Optional[dict[str, Any]] = None
    error: Optional[BaseException] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def of_batch(cls, batch: dict[str, Any]) -> "UpdateEvent":
        return cls(batch=batch)

    @classmethod
    def of_error(cls, error: BaseException) -> "UpdateEvent":
        return cls(error=error)
