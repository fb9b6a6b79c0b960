"""Single-settlement wait-handle shared by many awaiters."""

import asyncio
from typing import Any, Generic, Optional, TypeVar

from .models import ChunkState

T = TypeVar("T")


class ChunkCompleter(Generic[T]):
    """
    Completion cell for one chunk.

    The first call to :meth:`complete` or :meth:`complete_error` settles it;
    later calls return False and change nothing. Any number of coroutines may
    :meth:`wait` on it, before or after settlement, and all observe the same
    outcome. Backed by an :class:`asyncio.Event`, so it can be created outside
    a running loop and a rejection nobody awaits is never reported as an
    unretrieved exception.
    """

    def __init__(self):
        self._event = asyncio.Event()
        self._state = ChunkState.PENDING
        self._value: Optional[T] = None
        self._error: Optional[BaseException] = None

    @property
    def state(self) -> ChunkState:
        return self._state

    @property
    def is_completed(self) -> bool:
        return self._state is not ChunkState.PENDING

    @property
    def value(self) -> Optional[T]:
        return self._value

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    def complete(self, value: T) -> bool:
        """Settle with a value. Returns False if already settled."""
        if self.is_completed:
            return False
        self._value = value
        self._state = ChunkState.LOADED
        self._event.set()
        return True

    def complete_error(self, error: BaseException) -> bool:
        """Settle with an error. Returns False if already settled."""
        if self.is_completed:
            return False
        self._error = error
        self._state = ChunkState.ERROR
        self._event.set()
        return True

    async def wait(self) -> T:
        """Wait for settlement; return the value or raise the error."""
        await self._event.wait()
        if self._state is ChunkState.ERROR:
            raise self._error
        return self._value

    def __repr__(self) -> str:
        if self._state is ChunkState.LOADED:
            return f"ChunkCompleter(loaded: {self._value!r})"
        if self._state is ChunkState.ERROR:
            return f"ChunkCompleter(error: {self._error!r})"
        return "ChunkCompleter(pending)"


async def wait_all(completers: list[ChunkCompleter[Any]]) -> list[Any]:
    """
    Wait until every completer has settled.

    Returns:
        Values in the order given

    Raises:
        The first error (in the order given), once all have settled
    """
    results = await asyncio.gather(
        *(completer.wait() for completer in completers), return_exceptions=True
    )
    for completer, result in zip(completers, results):
        if completer.state is ChunkState.ERROR:
            raise result
    return list(results)
