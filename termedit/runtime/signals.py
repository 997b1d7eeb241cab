"""OS signal wiring.

Handlers only enqueue; the router decides what happens. Interrupt, terminate,
quit, and abort are one class; hangup is the other.
"""

from __future__ import annotations

import signal
import threading

from .channels import Channel

TERMINATE_SIGNAL_NAMES = ("SIGTERM", "SIGINT", "SIGQUIT", "SIGABRT")
RELOAD_SIGNAL_NAMES = ("SIGHUP",)


def _available(names: tuple[str, ...]) -> list[signal.Signals]:
    return [getattr(signal, name) for name in names if hasattr(signal, name)]


def install_signal_handlers(terminate: Channel, reload: Channel) -> dict[int, object]:
    """Install handlers on the main thread; returns the previous handlers."""

    def on_terminate(signum, _frame) -> None:
        terminate.offer(signum)

    def on_reload(signum, _frame) -> None:
        reload.offer(signum)

    previous: dict[int, object] = {}
    for signum in _available(TERMINATE_SIGNAL_NAMES):
        previous[signum] = signal.signal(signum, on_terminate)
    for signum in _available(RELOAD_SIGNAL_NAMES):
        previous[signum] = signal.signal(signum, on_reload)
    return previous


def restore_signal_handlers(previous: dict[int, object]) -> None:
    """Reinstall ``previous``; only possible on the main thread."""
    if threading.current_thread() is not threading.main_thread():
        return
    for signum, handler in previous.items():
        signal.signal(signum, handler if handler is not None else signal.SIG_DFL)


__all__ = [
    "RELOAD_SIGNAL_NAMES",
    "TERMINATE_SIGNAL_NAMES",
    "install_signal_handlers",
    "restore_signal_handlers",
]
