from __future__ import annotations

import os
import unittest

from termedit.input import KeyReader


class KeyReaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.read_fd, self.write_fd = os.pipe()
        self.reader = KeyReader(self.read_fd)

    def tearDown(self) -> None:
        for fd in (self.read_fd, self.write_fd):
            try:
                os.close(fd)
            except OSError:
                pass

    def _keys(self, data: bytes, count: int) -> list[str]:
        os.write(self.write_fd, data)
        return [self.reader.read_key() for _ in range(count)]

    def test_control_and_printable_keys(self) -> None:
        self.assertEqual(self._keys(b"\x11a\r\x7f\t", 5), ["CTRL_Q", "a", "ENTER", "BACKSPACE", "TAB"])

    def test_csi_sequences(self) -> None:
        keys = self._keys(b"\x1b[A\x1b[3~\x1b[6~\x1b[H", 4)
        self.assertEqual(keys, ["UP", "DELETE", "PAGE_DOWN", "HOME"])

    def test_modified_arrows(self) -> None:
        self.assertEqual(self._keys(b"\x1b[1;5C\x1b[1;2D", 2), ["CTRL_RIGHT", "SHIFT_LEFT"])

    def test_lone_escape_and_alt_prefix(self) -> None:
        self.assertEqual(self._keys(b"\x1b", 1), ["ESC"])
        self.assertEqual(self._keys(b"\x1bx", 2), ["ESC", "x"])

    def test_utf8_character(self) -> None:
        self.assertEqual(self._keys("é".encode("utf-8"), 1), ["é"])

    def test_closed_input_raises_eof(self) -> None:
        os.close(self.write_fd)
        with self.assertRaises(EOFError):
            self.reader.read_key()


if __name__ == "__main__":
    unittest.main()
