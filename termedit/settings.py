"""Global option defaults, value conversion, and the settings store.

Numbers are stored as floats so values read from JSON, the command line, and
the ``set`` command compare equal regardless of where they came from.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .errors import SettingsError

log = logging.getLogger(__name__)

SETTINGS_FILENAME = "settings.json"

DEFAULT_ALL_SETTINGS: dict[str, object] = {
    "autosave": 0.0,
    "backup": True,
    "clipboard": "external",
    "colorscheme": "monokai",
    "eofnewline": True,
    "infobar": True,
    "ruler": True,
    "savecursor": False,
    "tabsize": 4.0,
    "tabstospaces": False,
}

_TRUE_WORDS = {"true", "on", "yes", "1"}
_FALSE_WORDS = {"false", "off", "no", "0"}


def default_all_settings() -> dict[str, object]:
    """Return a fresh copy of every option mapped to its default value."""
    return dict(DEFAULT_ALL_SETTINGS)


def get_native_value(option: str, default: object, text: str) -> object:
    """Convert textual ``text`` to the native type of ``default``.

    Used for command-line overrides and the ``set`` command so both follow the
    same rules as values loaded from the settings file.
    """
    if isinstance(default, bool):
        word = text.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise SettingsError(f"Invalid value for {option}: {text!r} (expected a boolean)")
    if isinstance(default, (int, float)):
        try:
            return float(text)
        except ValueError as exc:
            raise SettingsError(f"Invalid value for {option}: {text!r} (expected a number)") from exc
    if isinstance(default, str):
        return text
    raise SettingsError(f"Option {option} has no textual form")


def _coerce_parsed(option: str, default: object, value: object) -> object:
    """Validate a JSON-decoded value against the default's type."""
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
    elif isinstance(default, (int, float)):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif isinstance(default, str):
        if isinstance(value, str):
            return value
    raise SettingsError(f"{option}: {value!r}")


class SettingsStore:
    """Holds global option values for one editor session."""

    def __init__(self) -> None:
        self.defaults = default_all_settings()
        self.global_settings: dict[str, object] = default_all_settings()
        self.parsed: dict[str, object] = {}

    def get(self, option: str) -> object:
        if option not in self.global_settings:
            raise SettingsError(f"Unknown option: {option}")
        return self.global_settings[option]

    def set(self, option: str, value: object) -> None:
        if option not in self.defaults:
            raise SettingsError(f"Unknown option: {option}")
        self.global_settings[option] = _coerce_parsed(option, self.defaults[option], value)

    def set_from_text(self, option: str, text: str) -> object:
        """Convert ``text`` for ``option`` and store it, returning the native value."""
        if option not in self.defaults:
            raise SettingsError(f"Unknown option: {option}")
        native = get_native_value(option, self.defaults[option], text)
        self.global_settings[option] = native
        return native

    def read_settings(self, config_dir: Path | None) -> None:
        """Load ``settings.json`` from ``config_dir`` into ``parsed``.

        A missing file leaves ``parsed`` empty. Malformed JSON or a non-object
        top level raises ``SettingsError`` and also leaves ``parsed`` empty.
        """
        self.parsed = {}
        if config_dir is None:
            return
        path = config_dir / SETTINGS_FILENAME
        if not path.exists():
            return
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise SettingsError(f"Error reading settings.json file: {exc}") from exc
        if not isinstance(data, dict):
            raise SettingsError("Error reading settings.json file: top level must be an object")
        self.parsed = data

    def init_global_settings(self) -> None:
        """Apply parsed values on top of defaults.

        Unknown keys are kept in ``parsed`` (plugins may own them) but never
        reach ``global_settings``. Wrongly typed known keys keep their default
        and are reported together in one ``SettingsError``.
        """
        invalid: list[str] = []
        for option, value in self.parsed.items():
            default = self.defaults.get(option)
            if default is None:
                log.debug("ignoring unknown option %s in settings file", option)
                continue
            try:
                self.global_settings[option] = _coerce_parsed(option, default, value)
            except SettingsError as exc:
                invalid.append(str(exc))
        if invalid:
            raise SettingsError("Invalid settings values: " + ", ".join(invalid))

    def write_settings(self, config_dir: Path) -> None:
        """Persist options that differ from defaults to ``settings.json``."""
        changed = {
            option: value
            for option, value in self.global_settings.items()
            if value != self.defaults.get(option)
        }
        path = config_dir / SETTINGS_FILENAME
        try:
            path.write_text(json.dumps(changed, indent=4, sort_keys=True) + "\n", encoding="utf-8")
        except OSError as exc:
            raise SettingsError(f"Error writing settings.json file: {exc}") from exc


def format_option_help(settings: dict[str, object]) -> str:
    """Render the ``options`` subcommand listing."""
    out: list[str] = []
    for option in sorted(settings):
        value = settings[option]
        out.append(f"-{option} value\n")
        out.append(f"    \tDefault value: '{format_value(value)}'\n")
    return "".join(out)


def format_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


__all__ = [
    "DEFAULT_ALL_SETTINGS",
    "SETTINGS_FILENAME",
    "SettingsStore",
    "default_all_settings",
    "format_option_help",
    "format_value",
    "get_native_value",
]
