"""Shared wiring for documents hydrated from chunk batches."""

import asyncio
import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Mapping
from typing import Any, Optional, Pattern, Union

from ..chunks import ChunkCompleter, ChunkLedger, wait_all
from ..placeholders import PlaceholderResolver
from ..processor import BatchDecoder, ChunkProcessor, Subscription, UpdateEvent

logger = logging.getLogger(__name__)


async def iter_batches(subscription: Subscription[UpdateEvent]) -> AsyncIterator[dict[str, Any]]:
    """Yield the batches of a subscription, skipping error events."""
    try:
        async for event in subscription:
            if not event.is_error:
                yield event.batch
    finally:
        subscription.cancel()


async def iter_errors(subscription: Subscription[UpdateEvent]) -> AsyncIterator[BaseException]:
    """Yield the errors of a subscription, skipping batch events."""
    try:
        async for event in subscription:
            if event.is_error:
                yield event.error
    finally:
        subscription.cancel()


class HydratedDocument:
    """
    Owns one ledger, resolver and processor for a placeholder document.

    The three collaborators are kept as attributes of the façade and are
    never stored inside the user's document.
    """

    def __init__(
        self,
        document: dict[str, Any],
        pattern: Optional[Union[str, Pattern]] = None,
        decoder: Optional[BatchDecoder] = None,
    ):
        self._json = document
        self._ledger = ChunkLedger()
        self._resolver = PlaceholderResolver(pattern)
        self._processor = ChunkProcessor(self._ledger, decoder)
        self._stream_tasks: set[asyncio.Task] = set()
        self._register_placeholders(document)

    @property
    def ledger(self) -> ChunkLedger:
        return self._ledger

    @property
    def resolver(self) -> PlaceholderResolver:
        return self._resolver

    @property
    def processor(self) -> ChunkProcessor:
        return self._processor

    @property
    def updates(self):
        """Broadcast channel of raw batches and error events."""
        return self._processor.updates

    def subscribe(self) -> Subscription[UpdateEvent]:
        return self._processor.updates.subscribe()

    def errors(self) -> AsyncIterator[BaseException]:
        """Errors published from now on (decode failures, failed batches)."""
        return iter_errors(self.subscribe())

    async def process_batch(self, batch: Mapping[str, Any]) -> bool:
        return await self._processor.process_batch(batch)

    def process_chunk_stream(
        self,
        source: Union[Iterable[Any], AsyncIterable[Any]],
    ) -> asyncio.Task:
        """
        Consume an encoded batch stream in the background.

        Must be called from a running event loop. The task is cancelled by
        :meth:`dispose`.
        """
        task = asyncio.get_running_loop().create_task(
            self._processor.process_encoded_stream(source)
        )
        self._stream_tasks.add(task)
        task.add_done_callback(self._stream_tasks.discard)
        return task

    def reject(self, chunk_id: str, error: BaseException) -> None:
        """Fail a pending chunk; whoever waits on it receives ``error``."""
        self._ledger.reject(chunk_id, error)

    def placeholder_ids(self) -> list[str]:
        """Identifiers referenced by the document, in first-seen order."""
        return self._resolver.parser.find_identifiers_in_order(self._json)

    def clear(self) -> None:
        """Forget all chunk data; the document's placeholders become pending again."""
        self._ledger.clear()
        self._resolver.clear_cache()
        self._register_placeholders(self._json)

    async def dispose(self) -> None:
        """Close the update channel, stop background streams and drop chunk data."""
        self._processor.close()
        tasks = list(self._stream_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._ledger.clear()
        self._resolver.clear_cache()
        logger.info(f"{type(self).__name__} disposed")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.dispose()

    def _register_placeholders(self, value: Any) -> list[str]:
        identifiers = self._resolver.parser.find_identifiers_in_order(value)
        for chunk_id in identifiers:
            self._ledger.register(chunk_id)
        return identifiers

    async def _wait_for_placeholders(self, extra: Iterable[ChunkCompleter[Any]] = ()) -> None:
        # Register first so identifiers added behind our back still get waited on
        completers = list(extra) + [
            self._ledger.completer(chunk_id)
            for chunk_id in self._register_placeholders(self._json)
        ]
        await wait_all(completers)
