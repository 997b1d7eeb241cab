"""Periodic autosave ticks.

One daemon thread sleeps the configured interval and then blocks putting a
tick on the autosave channel, so ticks never pile up behind a busy router.
"""

from __future__ import annotations

import threading

from .channels import Channel


class AutosaveTimer:
    def __init__(self, channel: Channel) -> None:
        self.channel = channel
        self._lock = threading.Lock()
        self._interval = 0.0
        self._wakeup = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        with self._lock:
            return self._interval

    def set_interval(self, seconds: float) -> None:
        """Change the tick interval; ``seconds <= 0`` pauses ticking."""
        with self._lock:
            self._interval = float(seconds)
            start_thread = self._thread is None and self._interval > 0
        self._wakeup.set()
        if start_thread:
            self.start(seconds)

    def start(self, seconds: float) -> None:
        with self._lock:
            self._interval = float(seconds)
            if self._thread is not None:
                return
            self._thread = threading.Thread(target=self._run, name="termedit-autosave", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self.set_interval(0)

    def _run(self) -> None:
        while True:
            interval = self.interval
            if interval <= 0:
                self._wakeup.wait()
                self._wakeup.clear()
                continue
            if self._wakeup.wait(interval):
                # Interval changed mid-sleep; restart with the new value.
                self._wakeup.clear()
                continue
            self.channel.put(True)


__all__ = ["AutosaveTimer"]
