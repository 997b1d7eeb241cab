"""Bounded channels and a readiness multiplexer over them.

All channels created by one ``Multiplexer`` share a single condition variable,
so one consumer can block until any of them has an item. ``select`` serves
channels round robin: the scan starts just after the channel served last,
which keeps a continuously busy source from starving the others.

The condition uses an ``RLock`` because signal handlers run on the consumer's
thread and may enqueue while that thread is inside ``select``.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Generic, TypeVar

T = TypeVar("T")


class ChannelFull(Exception):
    """Raised by ``put_nowait`` on a full channel."""


class ChannelEmpty(Exception):
    """Raised by ``get_nowait`` on an empty channel."""


class Channel(Generic[T]):
    """FIFO with a fixed capacity; ``put`` blocks while full."""

    def __init__(self, mux: Multiplexer, name: str, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("channel capacity must be >= 1")
        self.mux = mux
        self.name = name
        self.capacity = capacity
        self._items: deque[T] = deque()

    def __len__(self) -> int:
        with self.mux.cond:
            return len(self._items)

    def put(self, item: T, timeout: float | None = None) -> bool:
        """Append ``item``, waiting for room. Returns ``False`` on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self.mux.cond:
            while len(self._items) >= self.capacity:
                if deadline is None:
                    self.mux.cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self.mux.cond.wait(remaining)
            self._items.append(item)
            self.mux.cond.notify_all()
        return True

    def put_nowait(self, item: T) -> None:
        with self.mux.cond:
            if len(self._items) >= self.capacity:
                raise ChannelFull(self.name)
            self._items.append(item)
            self.mux.cond.notify_all()

    def offer(self, item: T) -> bool:
        """Non-blocking put that drops ``item`` when full."""
        try:
            self.put_nowait(item)
        except ChannelFull:
            return False
        return True

    def get_nowait(self) -> T:
        with self.mux.cond:
            if not self._items:
                raise ChannelEmpty(self.name)
            item = self._items.popleft()
            self.mux.cond.notify_all()
            return item

    def get(self, timeout: float | None = None) -> T:
        """Pop the oldest item, waiting up to ``timeout`` seconds."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self.mux.cond:
            while not self._items:
                if deadline is None:
                    self.mux.cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise ChannelEmpty(self.name)
                self.mux.cond.wait(remaining)
            item = self._items.popleft()
            self.mux.cond.notify_all()
            return item

    def drain(self, limit: int | None = None) -> int:
        """Discard queued items (at most ``limit``), returning how many were dropped."""
        dropped = 0
        with self.mux.cond:
            while self._items and (limit is None or dropped < limit):
                self._items.popleft()
                dropped += 1
            if dropped:
                self.mux.cond.notify_all()
        return dropped


class Multiplexer:
    """Owns a set of channels and waits for the first ready one."""

    def __init__(self) -> None:
        self.cond = threading.Condition(threading.RLock())
        self._channels: list[Channel] = []
        self._next = 0

    def channel(self, name: str, capacity: int = 1) -> Channel:
        with self.cond:
            chan: Channel = Channel(self, name, capacity)
            self._channels.append(chan)
            return chan

    @property
    def channels(self) -> list[Channel]:
        return list(self._channels)

    def _pop_ready(self) -> tuple[Channel, object] | None:
        count = len(self._channels)
        for offset in range(count):
            idx = (self._next + offset) % count
            chan = self._channels[idx]
            if chan._items:
                item = chan._items.popleft()
                self._next = (idx + 1) % count
                self.cond.notify_all()
                return chan, item
        return None

    def select(self, timeout: float | None = None) -> tuple[Channel, object] | None:
        """Block until some channel has an item; pop and return it.

        Returns ``None`` only when ``timeout`` expires first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self.cond:
            while True:
                ready = self._pop_ready()
                if ready is not None:
                    return ready
                if deadline is None:
                    self.cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                self.cond.wait(remaining)


__all__ = ["Channel", "ChannelEmpty", "ChannelFull", "Multiplexer"]
