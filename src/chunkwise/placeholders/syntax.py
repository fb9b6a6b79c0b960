"""Placeholder syntax definitions and patterns."""

import re
from typing import Optional, Pattern, Union

from ..config import DEFAULT_PLACEHOLDER_PATTERN
from .models import InvalidPlaceholderPatternError

# $<digits> - the chunk identifier is the digit sequence
PLACEHOLDER_PATTERN: Pattern = re.compile(DEFAULT_PLACEHOLDER_PATTERN)


def compile_placeholder_pattern(pattern: Optional[Union[str, Pattern]] = None) -> Pattern:
    """
    Compile and validate a placeholder pattern.

    Args:
        pattern: Regex source or compiled pattern; defaults to ``^\\$(\\d+)$``

    Returns:
        Compiled pattern with exactly one capturing group

    Raises:
        InvalidPlaceholderPatternError: If the group count is not one
    """
    if pattern is None:
        return PLACEHOLDER_PATTERN

    compiled = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)
    if compiled.groups != 1:
        raise InvalidPlaceholderPatternError(compiled.pattern, compiled.groups)
    return compiled


def match_identifier(pattern: Pattern, value: object) -> Optional[str]:
    """Return the captured chunk identifier if ``value`` fully matches, else None."""
    if not isinstance(value, str):
        return None
    match = pattern.fullmatch(value)
    if match is None:
        return None
    return match.group(1)
