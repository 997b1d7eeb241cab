"""Low-level terminal input decoding.

Reads raw bytes from the terminal and translates them into normalized key
tokens. Handles ESC-sequence timing and modifier combos.
"""

from __future__ import annotations

import os
import select

ESC_SEQUENCE_TIMEOUT_MS = 25

_CONTROL_KEYS = {
    b"\x01": "CTRL_A",
    b"\x05": "CTRL_E",
    b"\x11": "CTRL_Q",
    b"\x13": "CTRL_S",
    b"\x16": "CTRL_V",
    b"\x18": "CTRL_X",
    b"\x03": "CTRL_C",
    b"\t": "TAB",
    b"\x08": "BACKSPACE",
    b"\x7f": "BACKSPACE",
    b"\r": "ENTER",
    b"\n": "ENTER",
}

_CSI_FINAL = {
    b"A": "UP",
    b"B": "DOWN",
    b"C": "RIGHT",
    b"D": "LEFT",
    b"H": "HOME",
    b"F": "END",
}

_CSI_TILDE = {
    b"1": "HOME",
    b"3": "DELETE",
    b"4": "END",
    b"5": "PAGE_UP",
    b"6": "PAGE_DOWN",
}


class KeyReader:
    """Stateful decoder over one terminal file descriptor.

    Bytes read ahead while probing an escape sequence are kept and returned by
    the next ``read_key`` call.
    """

    def __init__(self, fd: int) -> None:
        self.fd = fd
        self._pending: list[bytes] = []

    def _read_ready_byte(self, timeout_ms: int) -> bytes | None:
        ready, _, _ = select.select([self.fd], [], [], max(0.0, timeout_ms / 1000.0))
        if not ready:
            return None
        ch = os.read(self.fd, 1)
        if not ch:
            return None
        return ch

    def _read_utf8_tail(self, first: bytes) -> str:
        lead = first[0]
        if lead >= 0xF0:
            extra = 3
        elif lead >= 0xE0:
            extra = 2
        elif lead >= 0xC0:
            extra = 1
        else:
            extra = 0
        data = first
        for _ in range(extra):
            nxt = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
            if nxt is None:
                break
            data += nxt
        return data.decode("utf-8", errors="replace")

    def read_key(self) -> str:
        """Read one key token; raises ``EOFError`` when the terminal is gone."""
        if self._pending:
            ch = self._pending.pop(0)
        else:
            ch = os.read(self.fd, 1)
            if not ch:
                raise EOFError("terminal input closed")

        named = _CONTROL_KEYS.get(ch)
        if named is not None:
            return named
        if ch != b"\x1b":
            if ch[0] >= 0x80:
                return self._read_utf8_tail(ch)
            return ch.decode("utf-8", errors="replace")

        seq = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
        if seq is None:
            return "ESC"
        if seq != b"[":
            self._pending.append(seq)
            return "ESC"
        seq = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
        if seq is None:
            return "ESC"
        final = _CSI_FINAL.get(seq)
        if final is not None:
            return final
        tilde = _CSI_TILDE.get(seq)
        if tilde is not None:
            closing = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
            if closing == b"~":
                return tilde
            if closing == b";" and seq == b"1":
                modifier = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
                direction = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
                base = _CSI_FINAL.get(direction or b"")
                if base is not None and modifier == b"5":
                    return f"CTRL_{base}"
                if base is not None and modifier == b"2":
                    return f"SHIFT_{base}"
                return base or "ESC"
        return "ESC"


__all__ = ["ESC_SEQUENCE_TIMEOUT_MS", "KeyReader"]
