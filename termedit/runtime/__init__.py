"""Editor runtime: startup sequencing, the event router, and exit paths.

``run_editor`` is the entry point used by the CLI; the lower-level pieces
are importable from their submodules for tests and composition code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .bootstrap import BootstrapSequencer, StartupOptions


def run_editor(options, **kwargs):
    """Lazily import the bootstrap sequence and run it with ``options``."""
    from .bootstrap import BootstrapSequencer

    return BootstrapSequencer(**kwargs).run(options)


def run_main_loop(*args, **kwargs):
    """Lazily import loop runner to avoid package-import cycles."""
    from .loop import run_main_loop as _run_main_loop

    return _run_main_loop(*args, **kwargs)


def __getattr__(name: str):
    if name in {"BootstrapSequencer", "StartupOptions"}:
        from . import bootstrap as _bootstrap

        return getattr(_bootstrap, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "BootstrapSequencer",
    "StartupOptions",
    "run_editor",
    "run_main_loop",
]
