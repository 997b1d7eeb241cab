from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from termedit.buffer import (
    UNSET_LOC,
    Buffer,
    BufferRegistry,
    BufferType,
    Loc,
    new_buffer_from_file_at_loc,
)
from termedit.errors import BufferOpenError, BufferSaveError
from termedit.util import DeferredOutput


class BufferEditingTests(unittest.TestCase):
    def test_cursor_start_is_clamped_but_requested_start_is_kept(self) -> None:
        buf = Buffer("ab\ncd", start=Loc(10, 40))
        self.assertEqual(buf.start, Loc(10, 40))
        self.assertEqual(buf.cursor, Loc(2, 1))
        self.assertEqual(Buffer("x", start=UNSET_LOC).cursor, Loc(0, 0))

    def test_insert_newline_and_backspace(self) -> None:
        buf = Buffer("ab")
        buf.move_cursor(1, 0)
        buf.insert("\n")
        self.assertEqual(buf.lines, ["a", "b"])
        self.assertEqual(buf.cursor, Loc(0, 1))
        buf.backspace()
        self.assertEqual(buf.text(), "ab")
        self.assertTrue(buf.modified())

    def test_backspace_at_origin_is_a_no_op(self) -> None:
        buf = Buffer("ab")
        buf.backspace()
        self.assertFalse(buf.modified())


class BufferLifecycleTests(unittest.TestCase):
    def test_save_writes_file_clears_modified_and_drops_backup(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            registry = BufferRegistry(root / "backups")
            buf = registry.add(Buffer("", path=root / "doc.txt"))
            buf.insert("hi")
            buf.backup()
            self.assertTrue(buf.backup_path().exists())

            buf.save()

            self.assertEqual((root / "doc.txt").read_text(encoding="utf-8"), "hi")
            self.assertFalse(buf.modified())
            self.assertFalse(buf.backup_path().exists())

    def test_unnamed_buffer_cannot_be_saved(self) -> None:
        with self.assertRaises(BufferSaveError):
            Buffer("text").save()

    def test_backup_name_encodes_full_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            registry = BufferRegistry(root / "backups")
            buf = registry.add(Buffer("x", path=root / "doc.txt"))
            name = buf.backup_path().name
            self.assertIn("%", name)
            self.assertTrue(name.endswith("doc.txt"))

    def test_fini_is_idempotent_and_emits_stdout_once(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            output = DeferredOutput()
            registry = BufferRegistry(Path(tmp))
            buf = registry.add(Buffer("piped", btype=BufferType.STDOUT, output=output))

            buf.fini()
            buf.fini()

            self.assertEqual(output.getvalue(), "piped")
            self.assertEqual(len(registry), 0)

    def test_registry_ignores_duplicates(self) -> None:
        registry = BufferRegistry(Path("."))
        buf = Buffer("x")
        registry.add(buf)
        registry.add(buf)
        self.assertEqual(registry.snapshot(), [buf])
        self.assertIs(buf.registry, registry)


class OpenBufferTests(unittest.TestCase):
    def test_missing_file_opens_empty_named_buffer(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "new.txt"
            buf = new_buffer_from_file_at_loc(path, BufferType.DEFAULT, UNSET_LOC)
            self.assertEqual(buf.text(), "")
            self.assertEqual(buf.path, path)

    def test_directory_cannot_be_opened(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(BufferOpenError):
                new_buffer_from_file_at_loc(Path(tmp), BufferType.DEFAULT, UNSET_LOC)

    def test_latin1_file_is_decoded(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "legacy.txt"
            path.write_bytes(b"caf\xe9")
            buf = new_buffer_from_file_at_loc(path, BufferType.DEFAULT, UNSET_LOC)
            self.assertEqual(buf.text(), "café")

    def test_crlf_file_is_edited_as_lines_and_saved_with_crlf(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "dos.txt"
            path.write_bytes(b"one\r\ntwo\r\n")
            buf = new_buffer_from_file_at_loc(path, BufferType.DEFAULT, UNSET_LOC)
            self.assertEqual(buf.lines, ["one", "two", ""])

            buf.save()
            self.assertEqual(path.read_bytes(), b"one\r\ntwo\r\n")

            buf.move_cursor(0, 2)
            buf.insert("three")
            buf.save()
            self.assertEqual(path.read_bytes(), b"one\r\ntwo\r\nthree")

    def test_mixed_line_endings_are_kept_as_read(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "mixed.txt"
            path.write_bytes(b"a\r\nb\nc")
            buf = new_buffer_from_file_at_loc(path, BufferType.DEFAULT, UNSET_LOC)
            self.assertEqual(buf.newline, "\n")
            buf.save()
            self.assertEqual(path.read_bytes(), b"a\r\nb\nc")

    def test_latin1_file_is_saved_back_as_latin1(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "legacy.txt"
            path.write_bytes(b"caf\xe9")
            buf = new_buffer_from_file_at_loc(path, BufferType.DEFAULT, UNSET_LOC)
            self.assertEqual(buf.encoding, "latin-1")

            buf.save()

            self.assertEqual(path.read_bytes(), b"caf\xe9")

    def test_text_outside_the_file_encoding_fails_to_save(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "legacy.txt"
            path.write_bytes(b"caf\xe9")
            buf = new_buffer_from_file_at_loc(path, BufferType.DEFAULT, UNSET_LOC)
            buf.insert("\u20ac")

            with self.assertRaises(BufferSaveError):
                buf.save()

            self.assertEqual(path.read_bytes(), b"caf\xe9")
            self.assertTrue(buf.modified())


class DeferredOutputTests(unittest.TestCase):
    def test_flush_to_writes_and_resets(self) -> None:
        import io

        output = DeferredOutput()
        output.write("a")
        output.write("b")
        self.assertEqual(len(output), 2)
        stream = io.StringIO()
        output.flush_to(stream)
        self.assertEqual(stream.getvalue(), "ab")
        self.assertEqual(output.getvalue(), "")

    def test_flush_to_binary_backed_stream_restores_escaped_bytes(self) -> None:
        import io

        output = DeferredOutput()
        output.write(b"\xff ok".decode("utf-8", errors="surrogateescape"))
        sink = io.TextIOWrapper(io.BytesIO(), encoding="utf-8")
        output.flush_to(sink)
        self.assertEqual(sink.buffer.getvalue(), b"\xff ok")


if __name__ == "__main__":
    unittest.main()
