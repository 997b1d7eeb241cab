"""Open documents and the registry that tracks them.

The editing model here is intentionally small: a buffer is a list of lines, a
cursor, and a modified flag. What the runtime relies on is the lifecycle
contract: ``save``, ``backup``, and ``fini``.
"""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .errors import BufferOpenError, BufferSaveError
from .util import DEFERRED_STDOUT, STREAM_ENCODING, DeferredOutput

log = logging.getLogger(__name__)


class BufferType(enum.Enum):
    DEFAULT = "default"
    STDOUT = "stdout"


@dataclass(frozen=True)
class Loc:
    """Zero-indexed ``(x=column, y=line)`` position; negative means unset."""

    x: int
    y: int


UNSET_LOC = Loc(-1, -1)


def decode_document(data: bytes) -> tuple[str, str]:
    """Decode file bytes; returns the text and the encoding to save it back with."""
    try:
        return data.decode("utf-8"), "utf-8"
    except UnicodeDecodeError:
        return data.decode("latin-1"), "latin-1"


def read_document(path: Path) -> tuple[str, str]:
    return decode_document(path.read_bytes())


def detect_newline(text: str) -> str:
    """CRLF only when every line break is one; mixed endings stay as read."""
    breaks = text.count("\n")
    if breaks and text.count("\r\n") == breaks:
        return "\r\n"
    return "\n"


def _backup_name(path: Path | None, fallback: str) -> str:
    if path is None:
        return fallback
    return str(path.resolve()).replace(os.sep, "%")


class Buffer:
    """In-memory document with file backing."""

    def __init__(
        self,
        text: str,
        path: Path | None = None,
        btype: BufferType = BufferType.DEFAULT,
        start: Loc = UNSET_LOC,
        output: DeferredOutput | None = None,
        encoding: str = STREAM_ENCODING,
    ) -> None:
        self.path = path
        self.type = btype
        self.encoding = encoding
        self.newline = detect_newline(text)
        if self.newline != "\n":
            text = text.replace(self.newline, "\n")
        self.lines = text.split("\n")
        self.start = start
        self.cursor = self._clamp(start)
        self.registry: BufferRegistry | None = None
        self._modified = False
        self._output = output if output is not None else DEFERRED_STDOUT
        self._finalized = False

    @property
    def name(self) -> str:
        return str(self.path) if self.path is not None else "No name"

    def text(self) -> str:
        return "\n".join(self.lines)

    def contents(self) -> str:
        """Text with the line endings the document was read with."""
        return self.newline.join(self.lines)

    def encode(self) -> bytes:
        try:
            return self.contents().encode(self.encoding, errors="surrogateescape")
        except UnicodeEncodeError as exc:
            raise BufferSaveError(f"Cannot encode {self.name} as {self.encoding}: {exc.reason}") from exc

    def modified(self) -> bool:
        return self._modified

    def _clamp(self, loc: Loc) -> Loc:
        if loc.y < 0:
            return Loc(0, 0)
        y = min(loc.y, len(self.lines) - 1)
        x = max(0, min(loc.x, len(self.lines[y])))
        return Loc(x, y)

    def move_cursor(self, dx: int, dy: int) -> None:
        self.cursor = self._clamp(Loc(self.cursor.x + dx, self.cursor.y + dy))

    def insert(self, text: str) -> None:
        y, x = self.cursor.y, self.cursor.x
        line = self.lines[y]
        if text == "\n":
            self.lines[y : y + 1] = [line[:x], line[x:]]
            self.cursor = Loc(0, y + 1)
        else:
            self.lines[y] = line[:x] + text + line[x:]
            self.cursor = Loc(x + len(text), y)
        self._modified = True

    def backspace(self) -> None:
        y, x = self.cursor.y, self.cursor.x
        if x > 0:
            line = self.lines[y]
            self.lines[y] = line[: x - 1] + line[x:]
            self.cursor = Loc(x - 1, y)
        elif y > 0:
            prev_len = len(self.lines[y - 1])
            self.lines[y - 1 : y + 1] = [self.lines[y - 1] + self.lines[y]]
            self.cursor = Loc(prev_len, y - 1)
        else:
            return
        self._modified = True

    def save(self) -> None:
        """Write the buffer to its file; unnamed buffers cannot be saved."""
        if self.path is None:
            raise BufferSaveError("Cannot save a buffer with no name")
        data = self.encode()
        try:
            self.path.write_bytes(data)
        except OSError as exc:
            raise BufferSaveError(f"Error saving {self.path}: {exc}") from exc
        self._modified = False
        self.remove_backup()

    def backup_path(self) -> Path | None:
        if self.registry is None:
            return None
        return self.registry.backup_dir / _backup_name(self.path, f"unnamed-{id(self)}")

    def backup(self) -> None:
        """Write a recovery copy into the registry's backup directory."""
        target = self.backup_path()
        if target is None:
            raise BufferSaveError(f"No backup directory for {self.name}")
        data = self.encode()
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise BufferSaveError(f"Error backing up {self.name}: {exc}") from exc

    def remove_backup(self) -> None:
        target = self.backup_path()
        if target is None:
            return
        try:
            target.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            log.warning("could not remove backup %s: %s", target, exc)

    def fini(self) -> None:
        """Release the buffer: drop its backup, emit piped output, unregister."""
        if self._finalized:
            return
        self._finalized = True
        self.remove_backup()
        if self.type is BufferType.STDOUT:
            self._output.write(self.contents())
        if self.registry is not None:
            self.registry.remove(self)


class BufferRegistry:
    """Ordered set of open buffers for one session."""

    def __init__(self, backup_dir: Path) -> None:
        self.backup_dir = backup_dir
        self._buffers: list[Buffer] = []

    def add(self, buf: Buffer) -> Buffer:
        buf.registry = self
        if buf not in self._buffers:
            self._buffers.append(buf)
        return buf

    def remove(self, buf: Buffer) -> None:
        if buf in self._buffers:
            self._buffers.remove(buf)

    def snapshot(self) -> list[Buffer]:
        return list(self._buffers)

    def __iter__(self):
        return iter(list(self._buffers))

    def __len__(self) -> int:
        return len(self._buffers)


def new_buffer_from_file_at_loc(
    path: Path,
    btype: BufferType,
    start: Loc,
    output: DeferredOutput | None = None,
) -> Buffer:
    """Open ``path``; a missing file yields an empty buffer bound to it."""
    if path.is_dir():
        raise BufferOpenError(f"Error: {path} is a directory and cannot be opened")
    if not path.exists():
        return Buffer("", path=path, btype=btype, start=start, output=output)
    try:
        text, encoding = read_document(path)
    except OSError as exc:
        raise BufferOpenError(f"Error opening {path}: {exc.strerror or exc}") from exc
    return Buffer(text, path=path, btype=btype, start=start, output=output, encoding=encoding)


def new_buffer_from_string_at_loc(
    text: str,
    path: Path | None,
    btype: BufferType,
    start: Loc,
    output: DeferredOutput | None = None,
) -> Buffer:
    return Buffer(text, path=path, btype=btype, start=start, output=output)


__all__ = [
    "Buffer",
    "BufferRegistry",
    "BufferType",
    "Loc",
    "UNSET_LOC",
    "new_buffer_from_file_at_loc",
    "new_buffer_from_string_at_loc",
    "decode_document",
    "detect_newline",
    "read_document",
]
