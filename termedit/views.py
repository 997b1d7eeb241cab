"""Tabs, panes, and the info bar.

Layout is deliberately plain: an optional one-row tab bar, panes side by side
with a one-column divider, a status row per pane, and the info bar on the last
terminal row. Views draw into the screen back buffer and never flush.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .buffer import Buffer
from .colorscheme import REVERSE_STYLE
from .screen import KeyEvent, ResizeEvent

if TYPE_CHECKING:
    from .runtime.session import Session


@dataclass
class View:
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0


class BufPane:
    """One buffer shown in a rectangle; the last row is its status line."""

    def __init__(self, session: Session, buf: Buffer) -> None:
        self.session = session
        self.buf = buf
        self.view = View()
        self.top = 0
        self.quit_armed = False

    def _text_rows(self) -> int:
        return max(1, self.view.height - 1)

    def _scroll_to_cursor(self) -> None:
        rows = self._text_rows()
        cy = self.buf.cursor.y
        if cy < self.top:
            self.top = cy
        elif cy >= self.top + rows:
            self.top = cy - rows + 1

    def display(self) -> None:
        screen = self.session.screen
        if screen is None:
            return
        style = self.session.colorscheme.default_style
        self._scroll_to_cursor()
        rows = self._text_rows()
        width = self.view.width
        for row in range(rows):
            line_no = self.top + row
            if line_no >= len(self.buf.lines):
                break
            screen.set_content(self.view.x, self.view.y + row, self.buf.lines[line_no][:width], style)
        status = self.status_line()
        screen.set_content(self.view.x, self.view.y + rows, status[:width].ljust(width), self.session.colorscheme.status_style)
        if self.is_active():
            screen.show_cursor(self.view.x + min(self.buf.cursor.x, width - 1), self.view.y + self.buf.cursor.y - self.top)

    def status_line(self) -> str:
        marker = " +" if self.buf.modified() else ""
        text = f"{self.buf.name}{marker}"
        if self.session.settings.global_settings.get("ruler", True):
            text += f" ({self.buf.cursor.y + 1},{self.buf.cursor.x + 1})"
        return text

    def is_active(self) -> bool:
        tabs = self.session.tabs
        return tabs is not None and tabs.active_tab().active_pane() is self

    def handle_event(self, event: object) -> None:
        if not isinstance(event, KeyEvent):
            return
        bindings = self.session.bindings
        action = bindings.action_for(event.key) if bindings is not None else None
        if action is not None:
            if action != "Quit":
                self.quit_armed = False
            bindings.run_action(action, self)
            return
        if len(event.key) == 1 and event.key.isprintable():
            self.quit_armed = False
            self.buf.insert(event.key)


class Tab:
    """A named collection of panes laid out side by side."""

    def __init__(self, session: Session, panes: list[BufPane]) -> None:
        self.session = session
        self.panes = panes
        self.active = 0
        self.view = View()

    @property
    def name(self) -> str:
        if not self.panes:
            return ""
        buf = self.active_pane().buf
        return buf.path.name if buf.path is not None else buf.name

    def active_pane(self) -> BufPane:
        return self.panes[self.active]

    def resize(self, x: int, y: int, width: int, height: int) -> None:
        self.view = View(x, y, width, height)
        count = max(1, len(self.panes))
        usable = max(count, width - (count - 1))
        base = usable // count
        col = x
        for idx, pane in enumerate(self.panes):
            pane_width = base if idx < count - 1 else usable - base * (count - 1)
            pane.view = View(col, y, pane_width, height)
            col += pane_width + 1

    def display(self) -> None:
        """Draw the dividers between panes."""
        screen = self.session.screen
        if screen is None:
            return
        for pane in self.panes[:-1]:
            divider_x = pane.view.x + pane.view.width
            for row in range(self.view.height):
                screen.set_content(divider_x, self.view.y + row, "|", REVERSE_STYLE)

    def close_pane(self, pane: BufPane) -> None:
        idx = self.panes.index(pane)
        del self.panes[idx]
        self.active = max(0, min(self.active, len(self.panes) - 1))


class TabList:
    def __init__(self, session: Session, tabs: list[Tab]) -> None:
        self.session = session
        self.tabs = tabs
        self.active = 0

    def active_tab(self) -> Tab:
        return self.tabs[self.active]

    def _tab_bar_rows(self) -> int:
        return 1 if len(self.tabs) > 1 else 0

    def resize(self) -> None:
        screen = self.session.screen
        if screen is None:
            return
        width, height = screen.size()
        top = self._tab_bar_rows()
        for tab in self.tabs:
            tab.resize(0, top, width, max(1, height - top - 1))

    def display(self) -> None:
        """Draw the tab bar when more than one tab is open."""
        screen = self.session.screen
        if screen is None or not self._tab_bar_rows():
            return
        col = 0
        for idx, tab in enumerate(self.tabs):
            label = f" {tab.name} "
            style = REVERSE_STYLE if idx == self.active else self.session.colorscheme.default_style
            screen.set_content(col, 0, label, style)
            col += len(label) + 1

    def handle_event(self, event: object) -> None:
        if isinstance(event, ResizeEvent):
            self.resize()
            return
        if isinstance(event, KeyEvent) and event.key == "CTRL_A" and len(self.tabs) > 1:
            self.active = (self.active + 1) % len(self.tabs)
            return
        self.active_tab().active_pane().handle_event(event)

    def close_pane(self, pane: BufPane) -> bool:
        """Remove ``pane``; returns ``True`` when no tabs remain."""
        for tab in list(self.tabs):
            if pane in tab.panes:
                tab.close_pane(pane)
                if not tab.panes:
                    self.tabs.remove(tab)
                break
        self.active = max(0, min(self.active, len(self.tabs) - 1))
        if self.tabs:
            self.resize()
        return not self.tabs


def init_tabs(session: Session, buffers: list[Buffer]) -> TabList:
    """One tab per buffer, each with a single pane."""
    tabs = [Tab(session, [BufPane(session, buf)]) for buf in buffers]
    tab_list = TabList(session, tabs)
    session.tabs = tab_list
    tab_list.resize()
    return tab_list


class InfoBar:
    """Bottom message line, doubling as a modal single-line prompt."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.msg = ""
        self.has_error = False
        self.has_prompt = False
        self.prompt_label = ""
        self.prompt_text = ""
        self._on_submit: Callable[[str], None] | None = None

    def message(self, *parts: object) -> None:
        self.msg = "".join(str(part) for part in parts)
        self.has_error = False

    def error(self, *parts: object) -> None:
        self.msg = "".join(str(part) for part in parts)
        self.has_error = True

    def prompt(self, label: str, on_submit: Callable[[str], None]) -> None:
        self.has_prompt = True
        self.prompt_label = label
        self.prompt_text = ""
        self._on_submit = on_submit

    def _close_prompt(self) -> Callable[[str], None] | None:
        callback = self._on_submit
        self.has_prompt = False
        self.prompt_label = ""
        self._on_submit = None
        return callback

    def handle_event(self, event: object) -> None:
        if isinstance(event, ResizeEvent):
            if self.session.tabs is not None:
                self.session.tabs.resize()
            return
        if not isinstance(event, KeyEvent):
            return
        key = event.key
        if key in {"ESC", "CTRL_C", "CTRL_Q"}:
            self._close_prompt()
            self.prompt_text = ""
        elif key == "ENTER":
            text = self.prompt_text
            self.prompt_text = ""
            callback = self._close_prompt()
            if callback is not None:
                callback(text)
        elif key == "BACKSPACE":
            self.prompt_text = self.prompt_text[:-1]
        elif len(key) == 1 and key.isprintable():
            self.prompt_text += key

    def display(self) -> None:
        screen = self.session.screen
        if screen is None:
            return
        width, height = screen.size()
        style = self.session.colorscheme.default_style
        if self.has_prompt:
            line = self.prompt_label + self.prompt_text
            screen.set_content(0, height - 1, line[:width], style)
            screen.show_cursor(min(len(line), width - 1), height - 1)
            return
        if self.session.settings.global_settings.get("infobar", True) and self.msg:
            screen.set_content(0, height - 1, self.msg[:width], REVERSE_STYLE if self.has_error else style)


__all__ = ["BufPane", "InfoBar", "Tab", "TabList", "View", "init_tabs"]
