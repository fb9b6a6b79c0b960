"""Chunk processor: feeds incoming batches into a ledger and broadcasts them."""

import asyncio
import logging
from collections.abc import AsyncIterable, Iterable, Mapping
from typing import Any, Optional, Union

from ..chunks import ChunkLedger
from ..streams import aiter_from
from .broadcast import BroadcastChannel
from .decoders import BatchDecoder, decode_json_batch
from .models import BatchDecodeError, ProcessorClosedError, UpdateEvent

logger = logging.getLogger(__name__)


class ChunkProcessor:
    """
    Ingestion front door for chunk data.

    Every accepted batch is written into the ledger entry by entry and then
    published as a single :class:`UpdateEvent` on :attr:`updates`, so a
    subscriber reacting to an event always sees a ledger that already holds
    that batch. Failures are published as error events instead of raised, and
    the processor stays usable afterwards.
    """

    def __init__(self, ledger: ChunkLedger, decoder: Optional[BatchDecoder] = None):
        """
        Initialize the processor.

        Args:
            ledger: Ledger receiving every chunk value
            decoder: Turns one encoded stream item into a batch mapping
                (defaults to JSON object decoding)
        """
        self.ledger = ledger
        self.decoder = decoder or decode_json_batch
        self._updates: BroadcastChannel[UpdateEvent] = BroadcastChannel("chunk-updates")

    @property
    def updates(self) -> BroadcastChannel[UpdateEvent]:
        """Broadcast channel of accepted batches and error events."""
        return self._updates

    @property
    def is_closed(self) -> bool:
        return self._updates.is_closed

    async def process_batch(self, batch: Mapping[str, Any]) -> bool:
        """
        Resolve every entry of ``batch`` in the ledger, then publish the batch.

        Entries written before a failing one stay written.

        Args:
            batch: Mapping of chunk identifier to chunk data

        Returns:
            True if the batch was accepted, False if it produced an error event

        Raises:
            ProcessorClosedError: If :meth:`close` was already called
        """
        if self.is_closed:
            raise ProcessorClosedError("Cannot process chunks after the processor was closed")

        try:
            for chunk_id, data in batch.items():
                self.ledger.resolve(chunk_id, data)
            self._updates.publish(UpdateEvent.of_batch(dict(batch)))
            logger.debug(f"Processed batch with {len(batch)} chunks")
            accepted = True
        except Exception as e:
            logger.error(f"Failed to process chunk batch: {e}")
            self.publish_error(e)
            accepted = False

        # Let subscribers react before the caller moves on
        await asyncio.sleep(0)
        return accepted

    async def process_encoded_stream(
        self,
        source: Union[Iterable[Any], AsyncIterable[Any]],
    ) -> int:
        """
        Decode and process every item of an encoded batch stream.

        Items that fail to decode become error events and processing carries
        on with the next item. An error raised by ``source`` itself is published
        and ends the stream.

        Args:
            source: Sync or async iterable of encoded batches (e.g. JSON lines)

        Returns:
            Number of batches accepted
        """
        accepted = 0
        try:
            async for item in aiter_from(source):
                try:
                    batch = self.decoder(item)
                except Exception as e:
                    error = e if isinstance(e, BatchDecodeError) else BatchDecodeError(str(e), item)
                    logger.error(f"Failed to decode chunk batch: {error}")
                    self.publish_error(error)
                    continue

                if await self.process_batch(batch):
                    accepted += 1
        except ProcessorClosedError:
            logger.warning("Processor closed while consuming a chunk stream")
        except Exception as e:
            logger.error(f"Chunk stream failed: {e}")
            self.publish_error(e)

        logger.info(f"Chunk stream finished, {accepted} batches accepted")
        return accepted

    def publish_error(self, error: BaseException) -> None:
        """Publish an error event on :attr:`updates`."""
        self._updates.publish(UpdateEvent.of_error(error))

    def close(self) -> None:
        """Complete every subscriber's stream. The processor cannot be reused."""
        self._updates.close()
        logger.debug("ChunkProcessor closed")
