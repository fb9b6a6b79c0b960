"""Stream plumbing for feeding encoded chunk batches into a processor."""

import asyncio
import logging
import sys
from collections.abc import AsyncIterable, AsyncIterator, Iterable
from pathlib import Path
from typing import IO, Any, Optional, Union

logger = logging.getLogger(__name__)


async def aiter_from(source: Union[Iterable[Any], AsyncIterable[Any]]) -> AsyncIterator[Any]:
    """Iterate a sync or async iterable asynchronously, yielding to the loop between items."""
    if isinstance(source, AsyncIterable):
        async for item in source:
            yield item
        return

    for item in source:
        yield item
        await asyncio.sleep(0)


async def iter_lines(
    source: Optional[Union[str, Path, IO[str]]] = None,
) -> AsyncIterator[str]:
    """
    Yield the non-blank lines of a line-delimited chunk source.

    Args:
        source: File path, open text file, or None for stdin

    Yields:
        Each line with surrounding whitespace stripped
    """
    if source is None:
        source = sys.stdin

    if isinstance(source, (str, Path)):
        with open(source, encoding="utf-8") as handle:
            async for line in iter_lines(handle):
                yield line
        return

    count = 0
    for raw_line in source:
        line = raw_line.strip()
        if line:
            count += 1
            yield line
        await asyncio.sleep(0)
    logger.debug(f"Read {count} chunk lines")
