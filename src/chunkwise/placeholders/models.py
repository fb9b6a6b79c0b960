"""Errors raised by the placeholder grammar and resolver."""

from pydantic import BaseModel

from ..errors import ChunkwiseError


class InvalidPlaceholderPatternError(ChunkwiseError, ValueError):
    """Raised when a placeholder pattern does not have exactly one capture group."""

    def __init__(self, pattern: str, groups: int):
        self.pattern = pattern
        self.groups = groups
        super().__init__(
            f"Placeholder pattern {pattern!r} must have exactly one capturing group, "
            f"found {groups}"
        )


class StructureTooDeepError(ChunkwiseError):
    """Raised when a document nests deeper than the configured limit.

    Cyclic documents end up here too, since their walk never bottoms out.
    """

    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        super().__init__(
            f"Document nesting exceeds {max_depth} levels (is the structure cyclic?)"
        )


class CacheInfo(BaseModel):
    """Resolver cache statistics."""

    hits: int = 0
    misses: int = 0
    size: int = 0
    max_size: int = 0
