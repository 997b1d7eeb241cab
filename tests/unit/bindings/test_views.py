from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from termedit.buffer import Buffer
from termedit.runtime.session import Session
from termedit.screen import KeyEvent
from termedit.views import InfoBar, init_tabs


class _FakeScreen:
    def __init__(self) -> None:
        self.cells: dict[tuple[int, int], str] = {}

    def size(self) -> tuple[int, int]:
        return 30, 10

    def set_content(self, x: int, y: int, text: str, _style) -> None:
        for offset, ch in enumerate(text):
            self.cells[(x + offset, y)] = ch

    def show_cursor(self, _x: int, _y: int) -> None:
        pass

    def row(self, y: int) -> str:
        return "".join(self.cells.get((x, y), " ") for x in range(30)).rstrip()


class InfoBarTests(unittest.TestCase):
    def _session(self, tmp: str) -> Session:
        session = Session(backup_dir=Path(tmp) / "backups")
        session.screen = _FakeScreen()
        return session

    def test_prompt_editing_and_cancel(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            infobar = InfoBar(self._session(tmp))
            submitted: list[str] = []
            infobar.prompt("> ", submitted.append)
            for key in ("a", "b", "BACKSPACE", "c"):
                infobar.handle_event(KeyEvent(key))
            self.assertEqual(infobar.prompt_text, "ac")

            infobar.handle_event(KeyEvent("ESC"))

            self.assertFalse(infobar.has_prompt)
            self.assertEqual(submitted, [])

    def test_display_shows_message_or_prompt(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            session = self._session(tmp)
            infobar = InfoBar(session)
            infobar.message("Saved ", "doc.txt")
            infobar.display()
            self.assertEqual(session.screen.row(9), "Saved doc.txt")

            infobar.prompt("> ", lambda _text: None)
            infobar.handle_event(KeyEvent("q"))
            infobar.display()
            self.assertTrue(session.screen.row(9).startswith("> q"))

    def test_infobar_option_hides_messages(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            session = self._session(tmp)
            session.settings.set_from_text("infobar", "off")
            infobar = InfoBar(session)
            infobar.error("hidden")
            infobar.display()
            self.assertEqual(session.screen.row(9), "")


class TabLayoutTests(unittest.TestCase):
    def test_multiple_tabs_show_tab_bar_and_shift_panes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            session = Session(backup_dir=root / "backups")
            session.screen = _FakeScreen()
            tabs = init_tabs(session, [Buffer("", path=root / "a.txt"), Buffer("", path=root / "b.txt")])

            tabs.display()

            self.assertIn("a.txt", session.screen.row(0))
            pane = tabs.active_tab().active_pane()
            self.assertEqual((pane.view.y, pane.view.height), (1, 8))

    def test_status_line_marks_modified_and_ruler(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            session = Session(backup_dir=root / "backups")
            session.screen = _FakeScreen()
            buf = Buffer("", path=root / "a.txt")
            tabs = init_tabs(session, [buf])
            buf.insert("x")

            status = tabs.active_tab().active_pane().status_line()

            self.assertTrue(status.endswith(" + (1,2)"))


if __name__ == "__main__":
    unittest.main()
