"""Exit paths: clean, signaled, and crash.

Clean and signaled exits finalize only unmodified buffers; modified buffers
keep their backups. A crash backs up every open buffer regardless of state.
"""

from __future__ import annotations

import contextlib
import logging
import sys
import traceback
from typing import TextIO

from ..errors import ScriptError
from .session import Session
from .signals import restore_signal_handlers

log = logging.getLogger(__name__)

BUG_REPORT_HINT = "If you can reproduce this error, please report it."


class ShutdownCoordinator:
    def __init__(self, session: Session, stream: TextIO | None = None) -> None:
        self.session = session
        self.stream = stream

    def _out(self) -> TextIO:
        return self.stream if self.stream is not None else sys.stdout

    def finalize_unmodified(self) -> None:
        for buf in self.session.buffers.snapshot():
            if buf.modified():
                continue
            try:
                buf.fini()
            except Exception:
                log.exception("finalizing %s failed", buf.name)

    def release_background(self) -> None:
        """Stop the autosave timer and put the previous signal handlers back."""
        session = self.session
        if session.autosave is not None:
            session.autosave.stop()
        handlers, session.signal_handlers = session.signal_handlers, {}
        restore_signal_handlers(handlers)

    def teardown_screen(self) -> None:
        screen = self.session.screen
        if screen is not None:
            screen.fini()

    def exit_clean(self, *, teardown: bool = True) -> None:
        """Finalize unmodified buffers, optionally restore the terminal, exit 0."""
        self.release_background()
        self.finalize_unmodified()
        if teardown:
            self.teardown_screen()
        sys.exit(0)

    def backup_all(self) -> int:
        """Back up every open buffer once; returns how many succeeded."""
        saved = 0
        for buf in self.session.buffers.snapshot():
            try:
                buf.backup()
            except Exception as exc:
                log.error("backup of %s failed: %s", buf.name, exc)
                continue
            saved += 1
        return saved

    def crash(self, exc: BaseException) -> None:
        """Report an unhandled fault, preserve buffers, exit 1."""
        self.release_background()
        self.teardown_screen()
        out = self._out()
        if isinstance(exc, ScriptError):
            out.write(f"Plugin error: {exc}\n")
        else:
            stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            out.write(f"termedit encountered an error: {exc}\n{stack}\n{BUG_REPORT_HINT}\n")
        out.flush()
        log.critical("crash: %r", exc)
        self.backup_all()
        sys.exit(1)

    @contextlib.contextmanager
    def crash_boundary(self):
        """Route any uncaught ``Exception`` to ``crash``; ``SystemExit`` passes through."""
        try:
            yield
        except Exception as exc:
            self.crash(exc)


__all__ = ["BUG_REPORT_HINT", "ShutdownCoordinator"]
