"""Dedicated terminal-input thread.

The poller is the only reader of the terminal. Each event goes through the
capacity-one events channel, so at most one event is ever in flight: the
poller blocks on the put until the router has taken the previous one.
"""

from __future__ import annotations

import threading
from typing import Protocol

from .channels import Channel


class PollableScreen(Protocol):
    def lock(self) -> None: ...

    def unlock(self) -> None: ...

    def poll_event(self) -> object | None: ...

    def wait_until_available(self) -> None: ...


class InputPoller:
    """Runs ``poll_event`` in a loop on a daemon thread; never joined."""

    def __init__(self, screen: PollableScreen, events: Channel) -> None:
        self.screen = screen
        self.events = events
        self.thread: threading.Thread | None = None

    def poll_once(self) -> object | None:
        self.screen.lock()
        try:
            event = self.screen.poll_event()
        finally:
            self.screen.unlock()
        if event is None:
            self.screen.wait_until_available()
            return None
        self.events.put(event)
        return event

    def _run(self) -> None:
        while True:
            self.poll_once()

    def start(self) -> threading.Thread:
        if self.thread is not None:
            return self.thread
        self.thread = threading.Thread(target=self._run, name="termedit-input-poller", daemon=True)
        self.thread.start()
        return self.thread


__all__ = ["InputPoller"]
