"""Startup sequence from parsed command line to a running event loop.

Steps run in a fixed order and their failures are classified individually:
screen initialization is fatal, everything else is reported through the
warning surface and startup continues with whatever defaults remain.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TextIO

from ..bindings import init_bindings, init_commands
from ..clipboard import set_method
from ..config import init_config_dir, init_runtime_files, resolve_config_dir, runtime_files
from ..errors import ClipboardError, ColorschemeError, ConfigError, PluginError, ScreenError, SettingsError
from ..jobs import JobRunner
from ..plugins import set_current_session
from ..screen import Screen, term_message
from ..views import InfoBar, init_tabs
from .autosave import AutosaveTimer
from .channels import ChannelEmpty
from .loop import run_main_loop
from .poller import InputPoller
from .resolver import InputStreams, load_input
from .session import Session
from .shutdown import ShutdownCoordinator
from .signals import install_signal_handlers

log = logging.getLogger(__name__)

INITIAL_RESIZE_TIMEOUT_SECONDS = 0.01
FATAL_SCREEN_MESSAGE = "Fatal: termedit could not initialize a screen."


@dataclass(frozen=True)
class StartupOptions:
    """What the command line asked for."""

    args: list[str] = field(default_factory=list)
    config_dir: str | None = None
    option_overrides: dict[str, str] = field(default_factory=dict)


@dataclass
class BootstrapSequencer:
    """Runs startup steps; collaborators are injectable for tests."""

    screen_factory: Callable[[], Screen] = Screen
    warn: Callable[..., None] | None = None
    streams: InputStreams | None = None
    stdout: TextIO | None = None
    install_signals: Callable[..., object] = install_signal_handlers
    start_poller: bool = True
    run_loop: Callable[[Session, ShutdownCoordinator], None] = run_main_loop
    initial_resize_timeout: float = INITIAL_RESIZE_TIMEOUT_SECONDS

    def _warn(self, session: Session | None, *parts: object) -> None:
        if self.warn is not None:
            self.warn(*parts)
            return
        term_message(*parts, screen=session.screen if session is not None else None)

    def _out(self) -> TextIO:
        return self.stdout if self.stdout is not None else sys.stdout

    def configure(self, options: StartupOptions) -> Session:
        """Config directory, runtime files, settings, then command-line overrides."""
        config_dir = resolve_config_dir(options.config_dir)
        try:
            init_config_dir(config_dir)
        except ConfigError as exc:
            self._warn(None, exc)
        files = runtime_files(config_dir)
        try:
            init_runtime_files(config_dir)
        except ConfigError as exc:
            self._warn(None, exc)

        session = Session(backup_dir=files.backup_dir, config_dir=config_dir, plugin_dir=files.plugin_dir)
        try:
            session.settings.read_settings(config_dir)
        except SettingsError as exc:
            self._warn(session, exc)
        try:
            session.settings.init_global_settings()
        except SettingsError as exc:
            self._warn(session, exc)

        for option, text in options.option_overrides.items():
            try:
                session.settings.set_from_text(option, text)
            except SettingsError as exc:
                self._warn(session, exc)
        return session

    def init_screen(self, session: Session) -> None:
        screen = self.screen_factory()
        try:
            screen.init()
        except ScreenError as exc:
            out = self._out()
            out.write(f"{exc}\n{FATAL_SCREEN_MESSAGE}\n")
            out.flush()
            sys.exit(1)
        session.screen = screen

    def init_clipboard(self, session: Session) -> ClipboardError | None:
        method = set_method(str(session.settings.get("clipboard")))
        return session.clipboard.initialize(method)

    def run(self, options: StartupOptions) -> None:
        session = self.configure(options)
        self.init_screen(session)
        clip_err = self.init_clipboard(session)

        shutdown = ShutdownCoordinator(session, stream=self.stdout)
        session.shutdown = shutdown
        with shutdown.crash_boundary():
            self.start(session, shutdown, options, clip_err)

    def load_extensions(self, session: Session) -> None:
        """Plugins, bindings, commands, color scheme, and the ``preinit`` hook."""
        set_current_session(session)
        if session.plugin_dir is not None:
            try:
                session.plugins.load_all_plugins(session.plugin_dir)
            except PluginError as exc:
                self._warn(session, exc)

        try:
            init_bindings(session)
        except ConfigError as exc:
            self._warn(session, exc)
        init_commands(session)

        try:
            session.colorscheme.init(str(session.settings.get("colorscheme")))
        except ColorschemeError as exc:
            self._warn(session, exc)

        self._run_hook(session, "preinit")

    def _run_hook(self, session: Session, name: str) -> None:
        try:
            session.plugins.run_plugin_fn(name)
        except PluginError as exc:
            self._warn(session, exc)

    def start(
        self,
        session: Session,
        shutdown: ShutdownCoordinator,
        options: StartupOptions,
        clip_err: ClipboardError | None,
    ) -> None:
        self.load_extensions(session)

        session.infobar = InfoBar(session)
        buffers = load_input(
            options.args,
            lambda *parts: self._warn(session, *parts),
            streams=self.streams,
            output=session.output,
        )
        if not buffers:
            log.info("no documents to open")
            shutdown.teardown_screen()
            sys.exit(0)
        for buf in buffers:
            session.buffers.add(buf)
        init_tabs(session, buffers)

        self._run_hook(session, "init")
        self._run_hook(session, "postinit")

        if clip_err is not None:
            log.warning("%s or change 'clipboard' option", clip_err)
            session.infobar.error(f"{clip_err} or change 'clipboard' option")

        channels = session.channels
        session.jobs = JobRunner(channels.jobs, channels.close_terms)
        session.autosave = AutosaveTimer(channels.autosave)
        interval = float(session.settings.get("autosave"))
        if interval > 0:
            session.autosave.start(interval)

        session.signal_handlers = self.install_signals(channels.terminate, channels.reload)

        if self.start_poller and session.screen is not None:
            InputPoller(session.screen, channels.events).start()

        # Requests queued during startup are covered by the first render.
        channels.redraw.drain()

        try:
            event = channels.events.get(timeout=self.initial_resize_timeout)
        except ChannelEmpty:
            pass
        else:
            with session.lock:
                session.tabs.handle_event(event)

        self.run_loop(session, shutdown)


__all__ = [
    "BootstrapSequencer",
    "FATAL_SCREEN_MESSAGE",
    "INITIAL_RESIZE_TIMEOUT_SECONDS",
    "StartupOptions",
]
