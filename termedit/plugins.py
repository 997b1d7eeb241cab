"""Python plugin loading and hook dispatch.

A plugin is a ``.py`` file under ``<config>/plug`` (directly, or one level down
in a per-plugin directory). Hooks are plain module-level functions looked up
by name: ``preinit``, ``init``, ``postinit``, plus any the editor calls later.

Plugin code is not safe for concurrent entry, so every call goes through the
session's mutation lock.
"""

from __future__ import annotations

import importlib.util
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType

from .errors import PluginError, ScriptError

log = logging.getLogger(__name__)

_CURRENT_SESSION: object | None = None


def current_session() -> object | None:
    """Return the running editor session for use inside plugin code."""
    return _CURRENT_SESSION


def set_current_session(session: object | None) -> None:
    global _CURRENT_SESSION
    _CURRENT_SESSION = session


def redraw() -> bool:
    """Ask the running editor to repaint; safe from plugin background threads.

    Returns ``False`` when no session is running.
    """
    session = _CURRENT_SESSION
    if session is None:
        return False
    session.redraw()
    return True


@dataclass
class Plugin:
    name: str
    path: Path
    module: ModuleType


def discover_plugin_files(plugin_dir: Path) -> list[Path]:
    """Return plugin source files in a stable order."""
    if not plugin_dir.is_dir():
        return []
    found: list[Path] = []
    for entry in sorted(plugin_dir.iterdir(), key=lambda p: p.name):
        if entry.is_file() and entry.suffix == ".py":
            found.append(entry)
        elif entry.is_dir():
            found.extend(sorted(p for p in entry.glob("*.py") if p.is_file()))
    return found


def _plugin_name(path: Path, plugin_dir: Path) -> str:
    relative = path.relative_to(plugin_dir)
    if len(relative.parts) > 1:
        return relative.parts[0] if relative.stem == relative.parts[0] else f"{relative.parts[0]}.{relative.stem}"
    return relative.stem


class PluginManager:
    """Owns loaded plugin modules and runs hooks under ``lock``."""

    def __init__(self, lock: threading.RLock) -> None:
        self.lock = lock
        self.plugins: list[Plugin] = []

    def load_all_plugins(self, plugin_dir: Path) -> None:
        """Import every plugin file, collecting failures into one ``PluginError``."""
        failures: list[tuple[str, BaseException]] = []
        for path in discover_plugin_files(plugin_dir):
            name = _plugin_name(path, plugin_dir)
            try:
                module = self._import(name, path)
            except Exception as exc:
                log.warning("plugin %s failed to load: %s", name, exc)
                failures.append((name, exc))
                continue
            self.plugins.append(Plugin(name=name, path=path, module=module))
            log.debug("loaded plugin %s from %s", name, path)
        if failures:
            raise PluginError(failures)

    def _import(self, name: str, path: Path) -> ModuleType:
        spec = importlib.util.spec_from_file_location(f"termedit_plugin_{name.replace('.', '_')}", path)
        if spec is None or spec.loader is None:
            raise ImportError(f"cannot load {path}")
        module = importlib.util.module_from_spec(spec)
        with self.lock:
            spec.loader.exec_module(module)
        return module

    def run_plugin_fn(self, fn_name: str, *args) -> None:
        """Call ``fn_name`` on every plugin that defines it.

        Every plugin gets its turn; failures are reported together afterwards.
        """
        failures: list[tuple[str, BaseException]] = []
        for plugin in self.plugins:
            fn = getattr(plugin.module, fn_name, None)
            if not callable(fn):
                continue
            try:
                with self.lock:
                    fn(*args)
            except Exception as exc:
                log.warning("plugin %s hook %s failed: %s", plugin.name, fn_name, exc)
                failures.append((plugin.name, exc))
        if failures:
            raise PluginError(failures)

    def call_plugin(self, plugin_name: str, fn: Callable[..., object], *args) -> object:
        """Invoke plugin code from the running editor.

        Failures become ``ScriptError`` and are left to the crash boundary.
        """
        try:
            with self.lock:
                return fn(*args)
        except Exception as exc:
            raise ScriptError(plugin_name, exc) from exc


__all__ = [
    "Plugin",
    "PluginManager",
    "current_session",
    "discover_plugin_files",
    "redraw",
    "set_current_session",
]
