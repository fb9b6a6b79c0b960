"""Typed façade: a hydrated document deserialized into a user type."""

import logging
from collections.abc import AsyncIterator
from typing import Any, Callable, Generic, Optional, Pattern, TypeVar, Union

from ..chunks import ChunkState
from ..processor import BatchDecoder, Subscription, UpdateEvent
from .base import HydratedDocument, iter_batches
from .fields import ChunkField
from .models import DeserializationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NO_RESULT = object()


class ChunkObject(HydratedDocument, Generic[T]):
    """
    A placeholder document deserialized into ``T`` as its chunks arrive.

    Optional :class:`ChunkField` objects, keyed by a field name, track and
    convert individual chunks. Incoming batch entries whose identifier belongs
    to a field are pushed into that field as well as the ledger.
    """

    def __init__(
        self,
        document: dict[str, Any],
        deserializer: Callable[[dict[str, Any]], T],
        chunk_fields: Optional[dict[str, ChunkField]] = None,
        pattern: Optional[Union[str, Pattern]] = None,
        decoder: Optional[BatchDecoder] = None,
    ):
        super().__init__(document, pattern, decoder)
        self._deserializer = deserializer
        self._chunk_fields: dict[str, ChunkField] = {}
        self._field_keys: dict[str, list[str]] = {}
        self._cached_result: Any = _NO_RESULT

        for key, field in (chunk_fields or {}).items():
            self.register_chunk_field(key, field)

        self._processor.updates.add_listener(self._handle_chunk_update)

    @classmethod
    def from_json(
        cls,
        document: dict[str, Any],
        deserializer: Callable[[dict[str, Any]], T],
        chunk_fields: Optional[dict[str, ChunkField]] = None,
        pattern: Optional[Union[str, Pattern]] = None,
        decoder: Optional[BatchDecoder] = None,
    ) -> "ChunkObject[T]":
        """
        Create a typed object and register its placeholders and fields.

        Args:
            document: JSON object with placeholder values
            deserializer: Builds ``T`` from a (possibly partially) resolved document
            chunk_fields: Field name -> ChunkField
            pattern: Placeholder regex (one capturing group)
            decoder: Decoder for :meth:`process_chunk_stream` items
        """
        return cls(document, deserializer, chunk_fields, pattern, decoder)

    @property
    def initial_json(self) -> dict[str, Any]:
        return self._json

    @property
    def chunk_fields(self) -> dict[str, ChunkField]:
        """Copy of the registered fields."""
        return dict(self._chunk_fields)

    def register_chunk_field(self, key: str, field: ChunkField) -> None:
        """Attach ``field`` under ``key`` and start tracking its chunk."""
        previous = self._chunk_fields.get(key)
        if previous is not None:
            self._field_keys[previous.chunk_id].remove(key)

        self._chunk_fields[key] = field
        self._field_keys.setdefault(field.chunk_id, []).append(key)
        self._ledger.register(field.chunk_id)

        # The chunk may already have arrived
        if self._ledger.is_resolved(field.chunk_id):
            field.resolve(self._ledger.get_value_or_none(field.chunk_id))
        self._invalidate_cache()

    def get_chunk_field(self, key: str) -> ChunkField:
        """
        Raises:
            KeyError: If no field is registered under ``key``
        """
        try:
            return self._chunk_fields[key]
        except KeyError:
            raise KeyError(f"Chunk field '{key}' not found") from None

    def is_field_ready(self, key: str) -> bool:
        field = self._chunk_fields.get(key)
        return field.is_resolved if field is not None else False

    def get_field_state(self, key: str) -> ChunkState:
        field = self._chunk_fields.get(key)
        return field.state if field is not None else ChunkState.PENDING

    def get_field_error(self, key: str) -> Optional[BaseException]:
        field = self._chunk_fields.get(key)
        return field.error if field is not None else None

    def chunk_states(self) -> dict[str, ChunkState]:
        """
        States keyed by field name, then by placeholder identifier.

        Both kinds of key share one dict: a field named like a placeholder
        identifier (e.g. ``"1"``) is reported with that identifier's ledger state.
        """
        states = {key: field.state for key, field in self._chunk_fields.items()}
        for chunk_id in self.placeholder_ids():
            states[chunk_id] = self._ledger.get_state(chunk_id)
        return states

    @property
    def all_chunks_resolved(self) -> bool:
        return all(state is ChunkState.LOADED for state in self.chunk_states().values())

    def get_resolved_json(self) -> dict[str, Any]:
        return self._resolver.resolve_placeholders(self._json, self._ledger)

    def get_data(self) -> T:
        """
        Deserialize the current resolved document.

        Raises:
            DeserializationError: If the deserializer fails
        """
        if self._cached_result is not _NO_RESULT:
            return self._cached_result

        try:
            result = self._deserializer(self.get_resolved_json())
        except Exception as e:
            raise DeserializationError(f"Failed to deserialize data: {e}") from e

        self._cached_result = result
        return result

    def get_data_or_none(self) -> Optional[T]:
        """
        Deserialize what is available so far, or None.

        While placeholders remain, deserialization is only attempted if at
        least one top-level value is already real data. Only fully resolved
        results are cached.
        """
        if self._cached_result is not _NO_RESULT:
            return self._cached_result

        resolved = self.get_resolved_json()
        has_unresolved = bool(self._resolver.find_all_identifiers(resolved))
        if has_unresolved and not any(
            not self._resolver.is_placeholder(value) for value in resolved.values()
        ):
            return None

        try:
            result = self._deserializer(resolved)
        except Exception as e:
            logger.debug(f"Partial deserialization failed: {e}")
            return None

        if not has_unresolved:
            self._cached_result = result
        return result

    async def wait_for_data(self) -> T:
        """
        Wait for every field and every document placeholder, then deserialize.

        Raises:
            The first chunk or conversion error, once everything has settled
            DeserializationError: If the deserializer fails
        """
        if not self.all_chunks_resolved:
            await self._wait_for_placeholders(
                field.completer for field in self._chunk_fields.values()
            )
        return self.get_data()

    def raw_updates(self) -> AsyncIterator[dict[str, Any]]:
        """Every batch as received."""
        return iter_batches(self.subscribe())

    def chunk_updates(self) -> AsyncIterator[tuple[str, Any]]:
        """``(chunk_id, value)`` per batch entry, converted by the owning field if any."""
        return self._chunk_updates(self.subscribe())

    def object_updates(self) -> AsyncIterator[T]:
        """The deserialized object after every batch, whenever one can be built."""
        return self._object_updates(self.subscribe())

    def resolved_updates(self) -> AsyncIterator[T]:
        """The deserialized object after every batch, once fully resolved."""
        return self._resolved_updates(self.subscribe())

    def state_updates(self) -> AsyncIterator[dict[str, ChunkState]]:
        """A chunk state snapshot after every batch."""
        return self._state_updates(self.subscribe())

    def reject(self, chunk_id: str, error: BaseException) -> None:
        """Fail a pending chunk in the ledger and in every field tracking it."""
        super().reject(chunk_id, error)
        for field in self._fields_for(chunk_id):
            if field.state is ChunkState.PENDING:
                field.reject(error)
        self._invalidate_cache()

    def clear(self) -> None:
        """Forget all chunk data and reset every field."""
        super().clear()
        for field in self._chunk_fields.values():
            field.reset()
            self._ledger.register(field.chunk_id)
        self._invalidate_cache()

    async def dispose(self) -> None:
        await super().dispose()
        self._chunk_fields.clear()
        self._field_keys.clear()
        self._invalidate_cache()

    def _fields_for(self, chunk_id: str) -> list[ChunkField]:
        return [self._chunk_fields[key] for key in self._field_keys.get(chunk_id, [])]

    def _handle_chunk_update(self, event: UpdateEvent) -> None:
        if event.is_error:
            return

        self._invalidate_cache()
        for chunk_id, raw in event.batch.items():
            for field in self._fields_for(chunk_id):
                if field.state is ChunkState.PENDING:
                    field.resolve(raw)

    async def _chunk_updates(self, subscription: Subscription[UpdateEvent]):
        async for batch in iter_batches(subscription):
            for chunk_id, raw in batch.items():
                yield chunk_id, self._field_value(chunk_id, raw)

    def _field_value(self, chunk_id: str, raw: Any) -> Any:
        for field in self._fields_for(chunk_id):
            if field.is_resolved:
                return field.value
            try:
                return field.convert(raw)
            except Exception:
                return raw
        return raw

    async def _object_updates(self, subscription: Subscription[UpdateEvent]):
        async for _ in iter_batches(subscription):
            data = self.get_data_or_none()
            if data is not None:
                yield data

    async def _resolved_updates(self, subscription: Subscription[UpdateEvent]):
        async for _ in iter_batches(subscription):
            if self.all_chunks_resolved:
                yield self.get_data()

    async def _state_updates(self, subscription: Subscription[UpdateEvent]):
        async for _ in iter_batches(subscription):
            yield self.chunk_states()

    def _invalidate_cache(self) -> None:
        self._cached_result = _NO_RESULT

    def __repr__(self) -> str:
        if self.all_chunks_resolved:
            try:
                return f"ChunkObject(resolved: {self.get_data()!r})"
            except DeserializationError as e:
                return f"ChunkObject(error: {e})"
        pending = [key for key, state in self.chunk_states().items() if state is not ChunkState.LOADED]
        return f"ChunkObject(pending: {pending})"
