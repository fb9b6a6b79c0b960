"""Broadcast channel fanning update events out to many subscribers."""

import asyncio
import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CLOSED = object()


class Subscription(Generic[T]):
    """
    One subscriber's view of a :class:`BroadcastChannel`.

    Async-iterate it to receive events; iteration ends when the channel is
    closed or the subscription is cancelled. Only events published after the
    subscription was created are delivered.
    """

    def __init__(self, channel: "BroadcastChannel[T]"):
        self._channel = channel
        self._queue: asyncio.Queue = asyncio.Queue()
        self._done = False

    @property
    def is_done(self) -> bool:
        return self._done

    def _push(self, item) -> None:
        self._queue.put_nowait(item)

    def cancel(self) -> None:
        """Stop receiving events. Other subscribers are unaffected."""
        if self._done:
            return
        self._channel._unsubscribe(self)
        self._push(_CLOSED)

    def drain(self) -> list[T]:
        """Return the events already queued, without waiting."""
        events = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is _CLOSED:
                self._done = True
                break
            events.append(item)
        return events

    def __aiter__(self) -> "Subscription[T]":
        return self

    async def __anext__(self) -> T:
        if self._done:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            self._done = True
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> "Subscription[T]":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.cancel()


class BroadcastChannel(Generic[T]):
    """
    Publish/subscribe fan-out with no replay.

    Queue-backed subscribers consume asynchronously; synchronous listeners are
    called inline by :meth:`publish`, before any subscriber gets to run.
    """

    def __init__(self, name: str = "updates"):
        self.name = name
        self._subscriptions: list[Subscription[T]] = []
        self._listeners: list[Callable[[T], None]] = []
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self) -> Subscription[T]:
        """Create a subscription. On a closed channel it is already finished."""
        subscription = Subscription(self)
        if self._closed:
            subscription._push(_CLOSED)
        else:
            self._subscriptions.append(subscription)
        return subscription

    def add_listener(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """
        Register a synchronous listener.

        Returns:
            Function that removes the listener again
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def publish(self, event: T) -> None:
        """Deliver ``event`` to every listener and subscriber."""
        if self._closed:
            logger.warning(f"Dropping event published on closed channel '{self.name}'")
            return

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Listener on channel '{self.name}' failed")

        for subscription in list(self._subscriptions):
            subscription._push(event)

    def close(self) -> None:
        """End every subscription normally. Idempotent."""
        if self._closed:
            return
        self._closed = True
        for subscription in self._subscriptions:
            subscription._push(_CLOSED)
        self._subscriptions.clear()
        self._listeners.clear()
        logger.debug(f"Channel '{self.name}' closed")

    def _unsubscribe(self, subscription: Subscription[T]) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

