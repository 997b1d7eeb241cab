"""Key bindings, pane actions, and the command table."""

from __future__ import annotations

import logging
import shlex
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from .config import load_json_object
from .clipboard import set_method
from .errors import BufferSaveError, ConfigError, SettingsError, TermeditError

if TYPE_CHECKING:
    from .runtime.session import Session
    from .views import BufPane

log = logging.getLogger(__name__)

BINDINGS_FILENAME = "bindings.json"

DEFAULT_BINDINGS: dict[str, str] = {
    "UP": "CursorUp",
    "DOWN": "CursorDown",
    "LEFT": "CursorLeft",
    "RIGHT": "CursorRight",
    "HOME": "StartOfLine",
    "END": "EndOfLine",
    "ENTER": "InsertNewline",
    "TAB": "InsertTab",
    "BACKSPACE": "Backspace",
    "CTRL_S": "Save",
    "CTRL_Q": "Quit",
    "CTRL_E": "CommandMode",
    "CTRL_C": "CopyLine",
    "CTRL_V": "Paste",
}


def _cursor(dx: int, dy: int) -> Callable[[Session, BufPane], None]:
    def action(_session: Session, pane: BufPane) -> None:
        pane.buf.move_cursor(dx, dy)

    return action


def _start_of_line(_session: Session, pane: BufPane) -> None:
    pane.buf.move_cursor(-pane.buf.cursor.x, 0)


def _end_of_line(_session: Session, pane: BufPane) -> None:
    pane.buf.move_cursor(len(pane.buf.lines[pane.buf.cursor.y]) - pane.buf.cursor.x, 0)


def _insert_newline(_session: Session, pane: BufPane) -> None:
    pane.buf.insert("\n")


def _insert_tab(session: Session, pane: BufPane) -> None:
    if session.settings.global_settings.get("tabstospaces"):
        pane.buf.insert(" " * int(session.settings.global_settings.get("tabsize", 4)))
    else:
        pane.buf.insert("\t")


def _backspace(_session: Session, pane: BufPane) -> None:
    pane.buf.backspace()


def copy_line(session: Session, pane: BufPane) -> None:
    """Copy the cursor line, newline included, to the clipboard."""
    buf = pane.buf
    if session.clipboard.write(buf.lines[buf.cursor.y] + "\n"):
        if session.infobar is not None:
            session.infobar.message("Copied line")
    elif session.infobar is not None:
        session.infobar.error("Clipboard tool failed; line kept in the internal register")


def paste(session: Session, pane: BufPane) -> None:
    for idx, part in enumerate(session.clipboard.read().split("\n")):
        if idx:
            pane.buf.insert("\n")
        if part:
            pane.buf.insert(part)


def save_pane(session: Session, pane: BufPane) -> None:
    try:
        pane.buf.save()
    except BufferSaveError as exc:
        if session.infobar is not None:
            session.infobar.error(exc)
        return
    if session.infobar is not None:
        session.infobar.message(f"Saved {pane.buf.name}")


def quit_pane(session: Session, pane: BufPane) -> None:
    """Close ``pane``; a modified buffer needs a second quit to discard changes."""
    if pane.buf.modified() and not pane.quit_armed:
        pane.quit_armed = True
        if session.infobar is not None:
            session.infobar.message(f"{pane.buf.name} has unsaved changes; quit again to discard them")
        return
    pane.buf.fini()
    if session.tabs is None or session.tabs.close_pane(pane):
        if session.shutdown is not None:
            session.shutdown.exit_clean()


def _command_mode(session: Session, _pane: BufPane) -> None:
    if session.infobar is None or session.commands is None:
        return
    session.infobar.prompt("> ", session.commands.execute)


ACTIONS: dict[str, Callable[[Session, BufPane], None]] = {
    "CursorUp": _cursor(0, -1),
    "CursorDown": _cursor(0, 1),
    "CursorLeft": _cursor(-1, 0),
    "CursorRight": _cursor(1, 0),
    "StartOfLine": _start_of_line,
    "EndOfLine": _end_of_line,
    "InsertNewline": _insert_newline,
    "InsertTab": _insert_tab,
    "Backspace": _backspace,
    "Save": save_pane,
    "Quit": quit_pane,
    "CommandMode": _command_mode,
    "CopyLine": copy_line,
    "Paste": paste,
}


class Bindings:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.keys: dict[str, str] = dict(DEFAULT_BINDINGS)

    def load(self, config_dir: Path | None) -> None:
        """Overlay ``bindings.json``; bad entries are reported after valid ones apply."""
        if config_dir is None:
            return
        data = load_json_object(config_dir / BINDINGS_FILENAME)
        invalid: list[str] = []
        for key, action in data.items():
            if not isinstance(action, str) or action not in ACTIONS:
                invalid.append(f"{key}: {action!r}")
                continue
            self.keys[key] = action
        if invalid:
            raise ConfigError("Invalid key bindings: " + ", ".join(invalid))

    def action_for(self, key: str) -> str | None:
        return self.keys.get(key)

    def run_action(self, name: str, pane: BufPane) -> None:
        ACTIONS[name](self.session, pane)


def init_bindings(session: Session) -> Bindings:
    bindings = Bindings(session)
    session.bindings = bindings
    bindings.load(session.config_dir)
    return bindings


class CommandTable:
    """Commands typed at the ``CommandMode`` prompt."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.commands: dict[str, Callable[[list[str]], None]] = {
            "save": self._save,
            "quit": self._quit,
            "set": self._set,
            "run": self._run,
            "term": self._term,
        }

    def register_plugin_commands(self) -> None:
        for plugin in self.session.plugins.plugins:
            table = getattr(plugin.module, "COMMANDS", None)
            if not isinstance(table, dict):
                continue
            for name, fn in table.items():
                if not callable(fn):
                    continue
                self.commands[str(name)] = self._plugin_command(plugin.name, fn)

    def _plugin_command(self, plugin_name: str, fn: Callable[..., object]) -> Callable[[list[str]], None]:
        def run(args: list[str]) -> None:
            self.session.plugins.call_plugin(plugin_name, fn, args)

        return run

    def _message(self, *parts: object) -> None:
        if self.session.infobar is not None:
            self.session.infobar.message(*parts)

    def _error(self, *parts: object) -> None:
        if self.session.infobar is not None:
            self.session.infobar.error(*parts)

    def execute(self, line: str) -> None:
        try:
            words = shlex.split(line)
        except ValueError as exc:
            self._error(f"Error parsing command: {exc}")
            return
        if not words:
            return
        command = self.commands.get(words[0])
        if command is None:
            self._error(f"Unknown command: {words[0]}")
            return
        command(words[1:])

    def _active_pane(self) -> BufPane | None:
        tabs = self.session.tabs
        return tabs.active_tab().active_pane() if tabs is not None and tabs.tabs else None

    def _save(self, args: list[str]) -> None:
        pane = self._active_pane()
        if pane is None:
            return
        if args:
            pane.buf.path = Path(args[0])
        save_pane(self.session, pane)

    def _quit(self, _args: list[str]) -> None:
        pane = self._active_pane()
        if pane is not None:
            quit_pane(self.session, pane)

    def _set(self, args: list[str]) -> None:
        if len(args) != 2:
            self._error("Usage: set <option> <value>")
            return
        option, text = args
        try:
            value = self.session.settings.set_from_text(option, text)
        except SettingsError as exc:
            self._error(exc)
            return
        try:
            apply_option(self.session, option, value)
        except TermeditError as exc:
            self._error(exc)
            return
        self._message(f"{option} = {text}")

    def _run(self, args: list[str]) -> None:
        if not args:
            self._error("Usage: run <command>")
            return
        if self.session.jobs is None:
            self._error("Background jobs are unavailable")
            return
        self.session.jobs.run_background(args, args, self._show_job_output)

    def _term(self, args: list[str]) -> None:
        if not args:
            self._error("Usage: term <command>")
            return
        screen = self.session.screen
        if screen is None or self.session.jobs is None:
            self._error("Interactive commands are unavailable")
            return
        try:
            status = self.session.jobs.run_interactive(screen, args)
        except OSError as exc:
            self._error(f"{args[0]}: {exc.strerror or exc}")
            return
        self._message(f"{' '.join(args)} exited with status {status}")

    def _show_job_output(self, output: str, args: list[str]) -> None:
        lines = output.strip().splitlines()
        summary = lines[-1] if lines else "(no output)"
        self._message(f"{' '.join(args)}: {summary}")


def apply_option(session: Session, option: str, value: object) -> None:
    """Propagate an option change to the subsystems that cache it."""
    if option == "autosave":
        if session.autosave is not None:
            session.autosave.set_interval(float(value))
    elif option == "colorscheme":
        session.colorscheme.init(str(value))
    elif option == "clipboard":
        err = session.clipboard.initialize(set_method(str(value)))
        if err is not None:
            log.warning("%s", err)


def init_commands(session: Session) -> CommandTable:
    table = CommandTable(session)
    table.register_plugin_commands()
    session.commands = table
    return table


__all__ = [
    "ACTIONS",
    "BINDINGS_FILENAME",
    "Bindings",
    "CommandTable",
    "DEFAULT_BINDINGS",
    "apply_option",
    "copy_line",
    "init_bindings",
    "init_commands",
    "paste",
    "quit_pane",
    "save_pane",
]
