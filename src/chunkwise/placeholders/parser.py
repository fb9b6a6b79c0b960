"""Parser for discovering placeholders in documents."""

import logging
from collections.abc import Mapping
from typing import Any, Optional, Pattern, Union

from ..config import settings
from .models import StructureTooDeepError
from .syntax import compile_placeholder_pattern, match_identifier

logger = logging.getLogger(__name__)


def is_sequence(value: Any) -> bool:
    """True for list-like containers (strings and bytes excluded)."""
    return isinstance(value, (list, tuple))


class PlaceholderParser:
    """Recognise placeholder values and collect their chunk identifiers."""

    def __init__(
        self,
        pattern: Optional[Union[str, Pattern]] = None,
        max_depth: Optional[int] = None,
    ):
        """
        Initialize the parser.

        Args:
            pattern: Placeholder regex with exactly one capturing group
                (defaults to ``settings.placeholder_pattern``)
            max_depth: Nesting limit for document walks
        """
        self.pattern = compile_placeholder_pattern(
            pattern if pattern is not None else settings.placeholder_pattern
        )
        self.max_depth = settings.max_depth if max_depth is None else max_depth

    def is_placeholder(self, value: Any) -> bool:
        """Check whether ``value`` is a string that fully matches the pattern."""
        return isinstance(value, str) and self.pattern.fullmatch(value) is not None

    def extract_identifier(self, value: Any) -> Optional[str]:
        """
        Extract the chunk identifier from a placeholder.

        Args:
            value: Any document value

        Returns:
            The captured identifier, or None if ``value`` is not a placeholder
        """
        return match_identifier(self.pattern, value)

    def find_all_identifiers(self, document: Any) -> set[str]:
        """
        Recursively collect every chunk identifier referenced by a document.

        Mapping values and sequence elements are visited; mapping keys are not.

        Args:
            document: Nested mappings, sequences and scalars

        Returns:
            Deduplicated set of identifiers

        Raises:
            StructureTooDeepError: If nesting exceeds ``max_depth``
        """
        identifiers = set(self.find_identifiers_in_order(document))
        logger.debug(f"Found {len(identifiers)} placeholder identifiers")
        return identifiers

    def find_identifiers_in_order(self, document: Any) -> list[str]:
        """Like :meth:`find_all_identifiers` but in first-seen order."""
        ordered: dict[str, None] = {}
        self._collect(document, ordered, 0)
        return list(ordered)

    def _collect(self, value: Any, found: dict[str, None], depth: int) -> None:
        if depth > self.max_depth:
            raise StructureTooDeepError(self.max_depth)

        if isinstance(value, str):
            identifier = self.extract_identifier(value)
            if identifier is not None:
                found.setdefault(identifier, None)
        elif isinstance(value, Mapping):
            for item in value.values():
                self._collect(item, found, depth + 1)
        elif is_sequence(value):
            for item in value:
                self._collect(item, found, depth + 1)
