"""Exception types shared across the editor runtime.

Startup code classifies failures by type: ``ScreenError`` is fatal, every other
``TermeditError`` raised during bootstrap is reported and then ignored.
"""

from __future__ import annotations


class TermeditError(Exception):
    """Base class for expected editor failures."""


class ConfigError(TermeditError):
    """Configuration directory or config file could not be used."""


class SettingsError(TermeditError):
    """Settings file or option value could not be applied."""


class ColorschemeError(TermeditError):
    """Requested color scheme is unknown."""


class ClipboardError(TermeditError):
    """Clipboard backend is unavailable."""


class PluginError(TermeditError):
    """One or more plugins failed to load or run a hook."""

    def __init__(self, failures: list[tuple[str, BaseException]]) -> None:
        self.failures = list(failures)
        details = "; ".join(f"{name}: {exc}" for name, exc in self.failures)
        super().__init__(f"Plugin error: {details}")


class ScriptError(TermeditError):
    """Plugin code raised while invoked from the running editor."""

    def __init__(self, plugin: str, cause: BaseException) -> None:
        self.plugin = plugin
        self.cause = cause
        super().__init__(f"{plugin}: {cause!r}")


class BufferOpenError(TermeditError):
    """A document could not be opened."""


class BufferSaveError(TermeditError):
    """A buffer could not be written or backed up."""


class ScreenError(TermeditError):
    """The terminal screen could not be initialized."""


__all__ = [
    "BufferOpenError",
    "BufferSaveError",
    "ClipboardError",
    "ColorschemeError",
    "ConfigError",
    "PluginError",
    "ScreenError",
    "ScriptError",
    "SettingsError",
    "TermeditError",
]
