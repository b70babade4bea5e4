"""
Unbuffered, synchronous hand-off between one producer and one consumer.

``put`` does not return until a consumer has taken the item, so a producer
can never run ahead of its consumer. Either side may ``close`` the channel to
release the other.
"""

import threading
import time
from typing import Generic
from typing import TypeVar

T = TypeVar("T")


class ChannelClosed(Exception):
    """Raised by ``put`` or ``get`` once the channel has been closed."""


class RendezvousChannel(Generic[T]):
    """Single-slot channel with rendezvous semantics."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._item: T | None = None
        self._full = False
        self._offered = 0
        self._taken = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _wait(self, deadline: float | None) -> bool:
        """Waits for a notification, returns False once the deadline passed."""
        if deadline is None:
            self._cond.wait()
            return True
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        self._cond.wait(remaining)
        return True

    def put(self, item: T, timeout: float | None = None) -> None:
        """
        Offers ``item`` and blocks until a consumer has taken it.

        Raises:
            ChannelClosed: if the channel is closed before the hand-off.
            TimeoutError: if no consumer took the item within ``timeout``
                seconds; the item is withdrawn.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while self._full and not self._closed:
                if not self._wait(deadline):
                    raise TimeoutError("timed out waiting for a free slot")
            if self._closed:
                raise ChannelClosed("put on a closed channel")

            self._item = item
            self._full = True
            self._offered += 1
            ticket = self._offered
            self._cond.notify_all()

            while self._taken < ticket and not self._closed:
                if not self._wait(deadline):
                    break

            if self._taken < ticket:
                self._item = None
                self._full = False
                self._offered -= 1
                self._cond.notify_all()
                if self._closed:
                    raise ChannelClosed("channel closed before the hand-off")
                raise TimeoutError("timed out waiting for a consumer")

    def get(self, timeout: float | None = None) -> T:
        """
        Takes the next item, blocking until a producer offers one.

        Raises:
            ChannelClosed: if the channel is closed and holds no item.
            TimeoutError: if nothing was offered within ``timeout`` seconds.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while not self._full:
                if self._closed:
                    raise ChannelClosed("get on a closed channel")
                if not self._wait(deadline):
                    raise TimeoutError("timed out waiting for a producer")

            item = self._item
            self._item = None
            self._full = False
            self._taken += 1
            self._cond.notify_all()
            return item  # type: ignore[return-value]

    def close(self) -> None:
        """Closes the channel and wakes every blocked caller."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()
