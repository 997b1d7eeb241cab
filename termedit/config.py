"""Configuration directory helpers.

Resolves where user configuration lives and registers the runtime
subdirectories (plugins, color schemes, backups) inside it.
"""

from __future__ import annotations

import json
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

from .errors import ConfigError
from .settings import SETTINGS_FILENAME, SettingsStore

APP_NAME = "termedit"
CONFIG_HOME_ENV = "TERMEDIT_CONFIG_HOME"
DEFAULT_CONFIG_DIR = Path(user_config_dir(APP_NAME, appauthor=False))


@dataclass(frozen=True)
class RuntimeFiles:
    """Runtime subdirectories registered under the configuration directory."""

    config_dir: Path
    plugin_dir: Path
    colorscheme_dir: Path
    backup_dir: Path


def resolve_config_dir(override: str | None = None) -> Path:
    """Pick the configuration directory: flag, then environment, then platform default."""
    if override:
        return Path(override).expanduser()
    from_env = os.environ.get(CONFIG_HOME_ENV, "").strip()
    if from_env:
        return Path(from_env).expanduser()
    return DEFAULT_CONFIG_DIR


def init_config_dir(config_dir: Path) -> Path:
    """Make sure ``config_dir`` exists, raising ``ConfigError`` when it cannot."""
    if config_dir.exists() and not config_dir.is_dir():
        raise ConfigError(f"Error: {config_dir} is not a directory")
    try:
        config_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigError(f"Error creating configuration directory {config_dir}: {exc}") from exc
    return config_dir


def runtime_files(config_dir: Path) -> RuntimeFiles:
    return RuntimeFiles(
        config_dir=config_dir,
        plugin_dir=config_dir / "plug",
        colorscheme_dir=config_dir / "colorschemes",
        backup_dir=config_dir / "backups",
    )


def init_runtime_files(config_dir: Path) -> RuntimeFiles:
    """Register runtime subdirectories, creating the backup directory eagerly."""
    files = runtime_files(config_dir)
    try:
        files.backup_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigError(f"Error creating backup directory {files.backup_dir}: {exc}") from exc
    return files


def clean_config_dir(config_dir: Path) -> list[str]:
    """Remove stale state from ``config_dir`` and normalize ``settings.json``.

    Drops the backup directory and rewrites the settings file keeping only
    known options whose values are valid and differ from the defaults.
    Returns a list of human-readable lines describing what was done.
    """
    report: list[str] = []
    backup_dir = config_dir / "backups"
    if backup_dir.is_dir():
        try:
            shutil.rmtree(backup_dir)
        except OSError as exc:
            raise ConfigError(f"Error removing {backup_dir}: {exc}") from exc
        report.append(f"Removed backups in {backup_dir}")

    settings_path = config_dir / SETTINGS_FILENAME
    if not settings_path.exists():
        return report

    store = SettingsStore()
    try:
        store.read_settings(config_dir)
    except Exception as exc:
        raise ConfigError(f"Cannot clean {settings_path}: {exc}") from exc

    removed = [option for option in store.parsed if option not in store.defaults]
    for option in removed:
        report.append(f"Removed unused option {option}")
    store.parsed = {option: value for option, value in store.parsed.items() if option in store.defaults}
    try:
        store.init_global_settings()
    except Exception as exc:
        report.append(f"Reset invalid options ({exc})")
    try:
        store.write_settings(config_dir)
    except Exception as exc:
        raise ConfigError(str(exc)) from exc
    report.append(f"Rewrote {settings_path}")
    return report


def load_json_object(path: Path) -> dict[str, object]:
    """Load a JSON object file; a missing file is an empty object.

    Malformed content raises ``ConfigError`` so the caller can warn.
    """
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Error reading {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Error reading {path.name}: top level must be an object")
    return data


__all__ = [
    "APP_NAME",
    "CONFIG_HOME_ENV",
    "DEFAULT_CONFIG_DIR",
    "RuntimeFiles",
    "clean_config_dir",
    "init_config_dir",
    "init_runtime_files",
    "load_json_object",
    "resolve_config_dir",
    "runtime_files",
]
