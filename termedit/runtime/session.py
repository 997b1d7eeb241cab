"""The single editor session shared by the router, poller, and callbacks."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from ..buffer import BufferRegistry
from ..clipboard import Clipboard
from ..colorscheme import Colorscheme
from ..plugins import PluginManager
from ..settings import SettingsStore
from ..util import DEFERRED_STDOUT, DeferredOutput
from .channels import Channel, Multiplexer

if TYPE_CHECKING:
    from ..bindings import Bindings, CommandTable
    from ..jobs import JobRunner
    from ..screen import Screen
    from ..views import InfoBar, TabList
    from .autosave import AutosaveTimer
    from .shutdown import ShutdownCoordinator

# Redraw requests may arrive before the loop is armed; a handful is plenty
# since any number of them collapses into one render.
REDRAW_CHANNEL_CAPACITY = 8
JOB_CHANNEL_CAPACITY = 16


@dataclass
class Channels:
    """Event sources the router waits on, in round-robin order."""

    mux: Multiplexer
    jobs: Channel
    autosave: Channel
    close_terms: Channel
    events: Channel
    redraw: Channel
    reload: Channel
    terminate: Channel

    @classmethod
    def create(cls) -> Channels:
        mux = Multiplexer()
        return cls(
            mux=mux,
            jobs=mux.channel("jobs", JOB_CHANNEL_CAPACITY),
            autosave=mux.channel("autosave", 1),
            close_terms=mux.channel("close_terms", 1),
            events=mux.channel("events", 1),
            redraw=mux.channel("redraw", REDRAW_CHANNEL_CAPACITY),
            reload=mux.channel("reload", 1),
            terminate=mux.channel("terminate", 1),
        )


@dataclass
class Session:
    """Process-lifetime editor context.

    ``lock`` is the global mutation lock: every state-mutating dispatch and
    every entry into plugin code holds it.
    """

    backup_dir: Path
    config_dir: Path | None = None
    plugin_dir: Path | None = None
    lock: threading.RLock = field(default_factory=threading.RLock)
    channels: Channels = field(default_factory=Channels.create)
    settings: SettingsStore = field(default_factory=SettingsStore)
    colorscheme: Colorscheme = field(default_factory=Colorscheme)
    clipboard: Clipboard = field(default_factory=Clipboard)
    output: DeferredOutput = DEFERRED_STDOUT
    buffers: BufferRegistry = field(init=False)
    plugins: PluginManager = field(init=False)
    screen: Screen | None = None
    tabs: TabList | None = None
    infobar: InfoBar | None = None
    bindings: Bindings | None = None
    commands: CommandTable | None = None
    jobs: JobRunner | None = None
    autosave: AutosaveTimer | None = None
    shutdown: ShutdownCoordinator | None = None
    signal_handlers: dict[int, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.buffers = BufferRegistry(self.backup_dir)
        self.plugins = PluginManager(self.lock)

    def redraw(self) -> None:
        """Request a render pass from any thread.

        Dropped when enough requests are already queued; plugin threads reach
        this through ``termedit.plugins.redraw``.
        """
        self.channels.redraw.offer(True)


__all__ = ["Channels", "Session"]
