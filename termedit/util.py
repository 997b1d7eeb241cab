"""Small process-wide helpers.

``DEFERRED_STDOUT`` collects text meant for the real standard output while the
terminal is owned by the editor; ``cli.main`` flushes it once at exit. Piped
text is kept lossless: undecodable input bytes travel as surrogate escapes and
are written back as the same bytes.
"""

from __future__ import annotations

import io
import threading
from typing import TextIO

STREAM_ENCODING = "utf-8"


class DeferredOutput:
    """Thread-safe text accumulator flushed once at process exit."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._buf = io.StringIO()

    def write(self, text: str) -> None:
        with self._lock:
            self._buf.write(text)

    def getvalue(self) -> str:
        with self._lock:
            return self._buf.getvalue()

    def __len__(self) -> int:
        with self._lock:
            return self._buf.tell()

    def flush_to(self, stream: TextIO) -> None:
        """Write accumulated text to ``stream`` and reset."""
        with self._lock:
            text = self._buf.getvalue()
            self._buf = io.StringIO()
        if not text:
            return
        raw = getattr(stream, "buffer", None)
        if raw is None:
            stream.write(text)
            stream.flush()
            return
        stream.flush()
        raw.write(text.encode(STREAM_ENCODING, errors="surrogateescape"))
        raw.flush()


DEFERRED_STDOUT = DeferredOutput()

__all__ = ["DEFERRED_STDOUT", "DeferredOutput", "STREAM_ENCODING"]
