"""Main event loop: render, wait for the first ready source, dispatch one.

Every state mutation happens here, on the main thread, under the session
lock. Feature logic lives in the views, bindings, and job callbacks; this
module only decides which of them runs next.
"""

from __future__ import annotations

import logging

from ..screen import ErrorEvent
from .channels import Channel
from .session import Session
from .shutdown import ShutdownCoordinator

log = logging.getLogger(__name__)

# Upper bound on redraw requests discarded per iteration, so a flood of
# requests cannot keep the loop draining forever.
REDRAW_DRAIN_LIMIT = 64
# ``select`` wakes at least this often so signal handlers get a chance to run.
WAIT_SLICE_SECONDS = 0.5


class EventRouter:
    def __init__(self, session: Session, shutdown: ShutdownCoordinator) -> None:
        self.session = session
        self.shutdown = shutdown
        self.renders = 0

    def render(self) -> None:
        session = self.session
        screen = session.screen
        if screen is None:
            return
        screen.fill(" ", session.colorscheme.default_style)
        screen.hide_cursor()
        if session.tabs is not None and session.tabs.tabs:
            session.tabs.display()
            tab = session.tabs.active_tab()
            for pane in tab.panes:
                pane.display()
            tab.display()
        if session.infobar is not None:
            session.infobar.display()
        screen.show()
        self.renders += 1

    def wait(self) -> tuple[Channel, object]:
        mux = self.session.channels.mux
        while True:
            ready = mux.select(timeout=WAIT_SLICE_SECONDS)
            if ready is not None:
                return ready

    def dispatch(self, chan: Channel, item: object) -> None:
        channels = self.session.channels
        if chan is channels.jobs:
            with self.session.lock:
                item.callback(item.output, item.args)
        elif chan is channels.autosave:
            with self.session.lock:
                self._save_all()
        elif chan is channels.close_terms:
            pass
        elif chan is channels.redraw:
            channels.redraw.drain(REDRAW_DRAIN_LIMIT)
        elif chan is channels.reload:
            log.info("reload signal received")
            self.shutdown.exit_clean(teardown=False)
        elif chan is channels.terminate:
            log.info("terminate signal received")
            self.shutdown.exit_clean()
        elif chan is channels.events:
            self._dispatch_event(item)
        else:
            log.warning("event from unknown channel %s dropped", chan.name)

    def _save_all(self) -> None:
        for buf in self.session.buffers.snapshot():
            try:
                buf.save()
            except Exception as exc:
                log.warning("autosave of %s failed: %s", buf.name, exc)

    def _dispatch_event(self, event: object) -> None:
        if isinstance(event, ErrorEvent):
            log.error("terminal event error: %s", event.message)
            if event.eof:
                self.shutdown.exit_clean()
            return
        with self.session.lock:
            infobar = self.session.infobar
            if infobar is not None and infobar.has_prompt:
                infobar.handle_event(event)
            elif self.session.tabs is not None:
                self.session.tabs.handle_event(event)

    def step(self) -> None:
        """One iteration: render, wait, dispatch exactly one source."""
        self.render()
        chan, item = self.wait()
        self.dispatch(chan, item)

    def run(self) -> None:
        while True:
            self.step()


def run_main_loop(session: Session, shutdown: ShutdownCoordinator) -> None:
    """Run the router until a dispatch branch exits the process."""
    EventRouter(session, shutdown).run()


__all__ = ["EventRouter", "REDRAW_DRAIN_LIMIT", "WAIT_SLICE_SECONDS", "run_main_loop"]
