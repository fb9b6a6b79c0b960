"""Placeholder grammar and resolution.

A placeholder is a string value whose whole text matches the configured
pattern (``$1``, ``$2``... by default); the captured group names the chunk
that will eventually replace it.
"""

from .models import CacheInfo, InvalidPlaceholderPatternError, StructureTooDeepError
from .syntax import PLACEHOLDER_PATTERN, compile_placeholder_pattern
from .parser import PlaceholderParser
from .resolver import PlaceholderResolver

__all__ = [
    "CacheInfo",
    "InvalidPlaceholderPatternError",
    "StructureTooDeepError",
    "PLACEHOLDER_PATTERN",
    "compile_placeholder_pattern",
    "PlaceholderParser",
    "PlaceholderResolver",
]
