"""Decide which documents to open from positional command-line input.

Three ways to start: open the named files; with no files and piped standard
input, open one buffer holding that input; otherwise open one empty buffer.
"""

from __future__ import annotations

import re
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, TextIO

from ..buffer import (
    UNSET_LOC,
    Buffer,
    BufferType,
    Loc,
    new_buffer_from_file_at_loc,
    new_buffer_from_string_at_loc,
)
from ..errors import BufferOpenError
from ..util import STREAM_ENCODING, DeferredOutput

START_POSITION_RE = re.compile(r"^\+(\d+)(?::(\d+))?$")


def parse_start_position(args: list[str]) -> tuple[list[str], Loc]:
    """Split ``+L``/``+L:C`` directives from file paths.

    The last directive wins. Lines and columns are 1-indexed on input and
    returned 0-indexed; ``+L`` puts the cursor at column 0.
    """
    files: list[str] = []
    start = UNSET_LOC
    for arg in args:
        match = START_POSITION_RE.match(arg)
        if match is None:
            files.append(arg)
            continue
        line = int(match.group(1))
        column = match.group(2)
        if column is None:
            start = Loc(0, line - 1)
        else:
            start = Loc(int(column) - 1, line - 1)
    return files, start


def _isatty(stream: object) -> bool:
    try:
        return bool(stream is not None and stream.isatty())
    except (AttributeError, ValueError):
        return False


@dataclass
class InputStreams:
    """Process streams consulted by ``load_input``; injectable for tests."""

    stdin: BinaryIO | TextIO | None
    stdout: TextIO | None

    @classmethod
    def from_process(cls) -> InputStreams:
        return cls(stdin=sys.stdin, stdout=sys.stdout)

    def stdin_is_terminal(self) -> bool:
        return _isatty(self.stdin)

    def stdout_is_terminal(self) -> bool:
        return _isatty(self.stdout)

    def read_stdin(self) -> str:
        stream = self.stdin
        if stream is None:
            return ""
        raw = getattr(stream, "buffer", stream)
        data = raw.read()
        if isinstance(data, bytes):
            return data.decode(STREAM_ENCODING, errors="surrogateescape")
        return data


def load_input(
    args: list[str],
    warn: Callable[..., None],
    streams: InputStreams | None = None,
    output: DeferredOutput | None = None,
) -> list[Buffer]:
    """Build the initial buffers for ``args``.

    ``warn`` is the synchronous warning surface; per-file open failures and a
    failed standard-input read go through it and never abort the others.
    """
    streams = streams if streams is not None else InputStreams.from_process()
    btype = BufferType.DEFAULT if streams.stdout_is_terminal() else BufferType.STDOUT
    files, start = parse_start_position(args)
    buffers: list[Buffer] = []

    if files:
        for name in files:
            try:
                buf = new_buffer_from_file_at_loc(Path(name), btype, start, output=output)
            except BufferOpenError as exc:
                warn(exc)
                continue
            buffers.append(buf)
    elif not streams.stdin_is_terminal():
        try:
            text = streams.read_stdin()
        except (OSError, ValueError) as exc:
            warn("Error reading from stdin: ", exc)
            text = ""
        buffers.append(new_buffer_from_string_at_loc(text, None, btype, start, output=output))
    else:
        buffers.append(new_buffer_from_string_at_loc("", None, btype, start, output=output))

    return buffers


__all__ = ["InputStreams", "START_POSITION_RE", "load_input", "parse_start_position"]
