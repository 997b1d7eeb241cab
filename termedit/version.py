"""Build identity reported by ``termedit version``."""

from __future__ import annotations

__version__ = "0.1.0"
COMMIT_HASH = "unknown"
COMPILE_DATE = "unknown"


def version_report() -> str:
    return f"Version: {__version__}\nCommit hash: {COMMIT_HASH}\nCompiled on {COMPILE_DATE}\n"


__all__ = ["COMMIT_HASH", "COMPILE_DATE", "__version__", "version_report"]
