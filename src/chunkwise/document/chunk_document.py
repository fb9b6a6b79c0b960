"""Map-like façade over a progressively hydrated JSON document."""

import logging
from collections.abc import Iterator, Mapping
from typing import Any, Optional, Pattern, Union

from ..chunks import ChunkState
from ..processor import BatchDecoder
from .base import HydratedDocument

logger = logging.getLogger(__name__)


class ChunkDocument(HydratedDocument, Mapping):
    """
    A JSON object whose placeholder values fill in as chunks arrive.

    Reading a key returns its value with every loaded placeholder substituted;
    unloaded placeholders are returned as their placeholder string.

    Example:
        doc = ChunkDocument.from_json({"title": "T", "body": "$1"})
        await doc.process_batch({"1": "hello"})
        doc["body"]  # "hello"
    """

    @classmethod
    def from_json(
        cls,
        document: dict[str, Any],
        pattern: Optional[Union[str, Pattern]] = None,
        decoder: Optional[BatchDecoder] = None,
    ) -> "ChunkDocument":
        """
        Create a document and register all of its placeholders.

        Args:
            document: JSON object with placeholder values
            pattern: Placeholder regex (one capturing group)
            decoder: Decoder for :meth:`process_chunk_stream` items
        """
        instance = cls(document, pattern, decoder)
        logger.debug(f"ChunkDocument created with {len(instance.ledger)} placeholders")
        return instance

    @property
    def json(self) -> dict[str, Any]:
        """The underlying document, placeholders included."""
        return self._json

    def get_value(self, key: str) -> Any:
        """Value for ``key`` with loaded placeholders substituted."""
        return self._resolver.resolve_placeholders(self._json.get(key), self._ledger)

    async def get_value_async(self, key: str) -> Any:
        """
        Wait for the value of ``key``.

        A top-level placeholder is awaited (raising if its chunk failed);
        any other value is returned as :meth:`get_value` would.
        """
        value = self._json.get(key)
        chunk_id = self._resolver.extract_identifier(value)
        if chunk_id is not None:
            self._ledger.register(chunk_id)
            return await self._ledger.wait_for(chunk_id)
        return self.get_value(key)

    def get_key_state(self, key: str) -> ChunkState:
        """State of the chunk behind ``key``; plain values count as loaded."""
        chunk_id = self._resolver.extract_identifier(self._json.get(key))
        if chunk_id is None:
            return ChunkState.LOADED
        return self._ledger.get_state(chunk_id)

    def get_resolved_data(self) -> dict[str, Any]:
        """The whole document with loaded placeholders substituted."""
        return self._resolver.resolve_placeholders(self._json, self._ledger)

    async def wait_for_all_chunks(self) -> dict[str, Any]:
        """
        Wait until every placeholder in the document has settled.

        Returns:
            The resolved document

        Raises:
            The first chunk error, once every chunk has settled
        """
        await self._wait_for_placeholders()
        return self.get_resolved_data()

    @property
    def all_chunks_resolved(self) -> bool:
        return all(self._ledger.is_resolved(chunk_id) for chunk_id in self.placeholder_ids())

    def __getitem__(self, key: str) -> Any:
        if key not in self._json:
            raise KeyError(key)
        return self.get_value(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self._json[key] = value
        self._register_placeholders(value)

    def __contains__(self, key: object) -> bool:
        return key in self._json

    def __iter__(self) -> Iterator[str]:
        return iter(self._json)

    def __len__(self) -> int:
        return len(self._json)

    def __str__(self) -> str:
        return str(self.get_resolved_data())

    def __repr__(self) -> str:
        return f"ChunkDocument({self.get_resolved_data()!r})"
