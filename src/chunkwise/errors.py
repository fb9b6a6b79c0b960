"""Base exception for chunkwise."""


class ChunkwiseError(Exception):
    """Base class for all errors raised by chunkwise."""

    pass
