"""Chunk ledger: per-identifier lifecycle, resolved values and wait-handles."""

import logging
import uuid
from typing import Any, Optional

from .completer import ChunkCompleter
from .models import ChunkSnapshot, ChunkState

logger = logging.getLogger(__name__)


def _check_chunk_id(chunk_id: Any) -> str:
    if not isinstance(chunk_id, str):
        raise TypeError(f"Chunk identifier must be a str, got {type(chunk_id).__name__}")
    return chunk_id


class ChunkLedger:
    """
    Tracks every chunk identifier a document refers to.

    Each identifier owns one :class:`ChunkCompleter`, which is both the record
    (state, value, error) and the wait-handle. Records only ever move from
    pending to loaded or error, once.
    """

    def __init__(self):
        self._records: dict[str, ChunkCompleter[Any]] = {}
        self._epoch = uuid.uuid4().hex

    @property
    def epoch(self) -> str:
        """Token that changes whenever the ledger is cleared."""
        return self._epoch

    @property
    def resolved_ids(self) -> frozenset[str]:
        """Identifiers currently in the loaded state."""
        return frozenset(
            chunk_id
            for chunk_id, record in self._records.items()
            if record.state is ChunkState.LOADED
        )

    def register(self, chunk_id: str) -> None:
        """Create a pending record for ``chunk_id`` unless one exists."""
        _check_chunk_id(chunk_id)
        if chunk_id not in self._records:
            self._records[chunk_id] = ChunkCompleter()
            logger.debug(f"Registered chunk '{chunk_id}'")

    def resolve(self, chunk_id: str, data: Any) -> None:
        """
        Mark ``chunk_id`` loaded with ``data``.

        Unknown identifiers are registered on the fly. Records that are
        already loaded or errored are left untouched.
        """
        _check_chunk_id(chunk_id)
        record = self._records.get(chunk_id)
        if record is None:
            record = self._records[chunk_id] = ChunkCompleter()

        if record.complete(data):
            logger.debug(f"Chunk '{chunk_id}' loaded")
        else:
            logger.debug(f"Ignoring resolve for settled chunk '{chunk_id}' ({record.state.value})")

    def reject(self, chunk_id: str, error: BaseException) -> None:
        """
        Mark a registered, pending ``chunk_id`` as failed.

        Unknown identifiers and settled records are left untouched.
        """
        _check_chunk_id(chunk_id)
        record = self._records.get(chunk_id)
        if record is None:
            logger.debug(f"Ignoring reject for unknown chunk '{chunk_id}'")
            return

        if record.complete_error(error):
            logger.debug(f"Chunk '{chunk_id}' rejected: {error!r}")
        else:
            logger.debug(f"Ignoring reject for settled chunk '{chunk_id}' ({record.state.value})")

    def get_state(self, chunk_id: str) -> ChunkState:
        """State of ``chunk_id``; unknown identifiers count as pending."""
        record = self._records.get(chunk_id)
        return record.state if record is not None else ChunkState.PENDING

    def get_value_or_none(self, chunk_id: str) -> Any:
        """Resolved value if loaded, else None. Never waits."""
        record = self._records.get(chunk_id)
        if record is None or record.state is not ChunkState.LOADED:
            return None
        return record.value

    def get_error(self, chunk_id: str) -> Optional[BaseException]:
        """Rejection error if ``chunk_id`` failed, else None."""
        record = self._records.get(chunk_id)
        return record.error if record is not None else None

    async def wait_for(self, chunk_id: str) -> Any:
        """
        Wait for ``chunk_id`` to settle.

        Returns:
            The resolved value, or None right away for unregistered identifiers

        Raises:
            The rejection error if the chunk failed
        """
        record = self._records.get(chunk_id)
        if record is None:
            return None
        return await record.wait()

    def completer(self, chunk_id: str) -> Optional[ChunkCompleter[Any]]:
        """Wait-handle for ``chunk_id``, if registered."""
        return self._records.get(chunk_id)

    def is_resolved(self, chunk_id: str) -> bool:
        """True only for identifiers in the loaded state."""
        return self.get_state(chunk_id) is ChunkState.LOADED

    def has_unresolved_work(self) -> bool:
        """True if any registered identifier is not loaded."""
        return any(record.state is not ChunkState.LOADED for record in self._records.values())

    def snapshot(self) -> list[ChunkSnapshot]:
        """Snapshot of every record, in registration order."""
        return [
            ChunkSnapshot(
                chunk_id=chunk_id,
                state=record.state,
                value=record.value,
                error=repr(record.error) if record.error is not None else None,
            )
            for chunk_id, record in self._records.items()
        ]

    def clear(self) -> None:
        """Drop all records, as if newly constructed."""
        count = len(self._records)
        self._records.clear()
        self._epoch = uuid.uuid4().hex
        logger.info(f"Cleared {count} chunk records")

    def __contains__(self, chunk_id: object) -> bool:
        return chunk_id in self._records

    def __len__(self) -> int:
        return len(self._records)
