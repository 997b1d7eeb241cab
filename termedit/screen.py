"""Terminal screen: raw-mode lifecycle, event polling, and a cell back buffer.

The screen talks to ``/dev/tty`` directly so standard input and output stay
free for piped documents. Resizes (and one synthetic resize at init) arrive
through a self-pipe so ``poll_event`` can block on a single ``select``.
"""

from __future__ import annotations

import errno
import logging
import os
import select
import signal
import sys
import termios
import threading
import tty
from dataclasses import dataclass

from .colorscheme import PLAIN_STYLE, TermStyle
from .errors import ScreenError
from .input import KeyReader

log = logging.getLogger(__name__)

TTY_PATH = "/dev/tty"


@dataclass(frozen=True)
class KeyEvent:
    key: str


@dataclass(frozen=True)
class ResizeEvent:
    width: int
    height: int


@dataclass(frozen=True)
class ErrorEvent:
    """Terminal read failure; ``eof`` means the terminal is gone for good."""

    message: str
    eof: bool = False


Event = KeyEvent | ResizeEvent | ErrorEvent


def _drain_pipe(fd: int) -> None:
    try:
        while True:
            ready, _, _ = select.select([fd], [], [], 0)
            if not ready or not os.read(fd, 512):
                return
    except OSError:
        return


class Screen:
    """Full-screen terminal surface.

    ``lock``/``unlock`` guard terminal reads: the input poller holds the lock
    for the duration of each blocking ``poll_event``. ``temp_fini`` wakes the
    poller before taking the lock so it never waits on a keypress.
    """

    def __init__(self, tty_path: str = TTY_PATH) -> None:
        self.tty_path = tty_path
        self.fd: int | None = None
        self.width = 80
        self.height = 24
        self._lock = threading.Lock()
        self._active = threading.Event()
        self._available = threading.Event()
        self._saved_tty_state: list | None = None
        self._reader: KeyReader | None = None
        self._resize_r, self._resize_w = os.pipe()
        self._wake_r, self._wake_w = os.pipe()
        for fd in (self._resize_r, self._resize_w, self._wake_r, self._wake_w):
            os.set_blocking(fd, False)
        self._prev_winch_handler: object = None
        self._cells: list[list[tuple[str, TermStyle]]] = []
        self._cursor: tuple[int, int] | None = None
        self._resize_cells()

    @property
    def initialized(self) -> bool:
        return self._active.is_set()

    def init(self) -> None:
        """Open the terminal, enter raw alternate-screen mode, post a resize."""
        try:
            fd = os.open(self.tty_path, os.O_RDWR | os.O_NOCTTY)
        except OSError as exc:
            raise ScreenError(f"Cannot open {self.tty_path}: {exc.strerror or exc}") from exc
        try:
            self._saved_tty_state = termios.tcgetattr(fd)
            tty.setraw(fd, termios.TCSAFLUSH)
            # Enter alternate screen and hide cursor.
            os.write(fd, b"\x1b[?1049h\x1b[?25l")
        except (OSError, termios.error) as exc:
            os.close(fd)
            raise ScreenError(f"Cannot configure {self.tty_path}: {exc}") from exc
        self.fd = fd
        self._reader = KeyReader(fd)
        self._update_size()
        self._install_winch_handler()
        _drain_pipe(self._wake_r)
        self.post_resize()
        self._active.set()
        self._available.set()

    def fini(self) -> None:
        """Restore the terminal; safe to call more than once."""
        if not self._active.is_set():
            return
        self._active.clear()
        self._available.clear()
        self._restore_winch_handler()
        fd = self.fd
        self.fd = None
        self._wake()
        if fd is None:
            return
        try:
            # Show cursor and restore the main screen buffer.
            os.write(fd, b"\x1b[0m\x1b[?25h\x1b[?1049l")
            if self._saved_tty_state is not None:
                termios.tcsetattr(fd, termios.TCSAFLUSH, self._saved_tty_state)
        except (OSError, termios.error) as exc:
            log.warning("terminal restore failed: %s", exc)
        finally:
            os.close(fd)

    def temp_fini(self) -> None:
        """Leave TUI mode temporarily and keep the poller off the terminal."""
        self._available.clear()
        self._wake()
        self._lock.acquire()
        self.fini()

    def temp_start(self) -> None:
        """Re-enter TUI mode after ``temp_fini``."""
        try:
            self.init()
        finally:
            self._lock.release()

    def wait_until_available(self) -> None:
        """Block until the screen can be polled again."""
        self._available.wait()

    def lock(self) -> None:
        self._lock.acquire()

    def unlock(self) -> None:
        self._lock.release()

    def _wake(self) -> None:
        try:
            os.write(self._wake_w, b"w")
        except BlockingIOError:
            pass

    def post_resize(self) -> None:
        try:
            os.write(self._resize_w, b"r")
        except BlockingIOError:
            pass

    def _on_winch(self, _signum, _frame) -> None:
        self.post_resize()

    def _install_winch_handler(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        self._prev_winch_handler = signal.signal(signal.SIGWINCH, self._on_winch)

    def _restore_winch_handler(self) -> None:
        if self._prev_winch_handler is None:
            return
        if threading.current_thread() is not threading.main_thread():
            return
        signal.signal(signal.SIGWINCH, self._prev_winch_handler)
        self._prev_winch_handler = None

    def _update_size(self) -> None:
        if self.fd is None:
            return
        try:
            size = os.get_terminal_size(self.fd)
        except OSError:
            return
        self.width = max(1, size.columns)
        self.height = max(1, size.lines)
        self._resize_cells()

    def _resize_cells(self) -> None:
        self._cells = [[(" ", PLAIN_STYLE)] * self.width for _ in range(self.height)]

    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def poll_event(self) -> Event | None:
        """Block for the next terminal event.

        Returns ``None`` without blocking while the screen is finalized or
        suspended, and when woken by ``fini``/``temp_fini``.
        """
        if not self._available.is_set():
            return None
        fd = self.fd
        reader = self._reader
        if fd is None or reader is None:
            return None
        try:
            ready, _, _ = select.select([fd, self._resize_r, self._wake_r], [], [])
        except (OSError, ValueError) as exc:
            if not self._active.is_set():
                return None
            return ErrorEvent(f"select failed: {exc}")
        if self._wake_r in ready:
            _drain_pipe(self._wake_r)
            return None
        if self._resize_r in ready:
            _drain_pipe(self._resize_r)
            self._update_size()
            return ResizeEvent(self.width, self.height)
        try:
            return KeyEvent(reader.read_key())
        except EOFError as exc:
            return ErrorEvent(str(exc), eof=True)
        except OSError as exc:
            if not self._active.is_set():
                return None
            return ErrorEvent(str(exc), eof=exc.errno in (errno.EIO, errno.EBADF))

    def fill(self, ch: str, style: TermStyle) -> None:
        self._cells = [[(ch, style)] * self.width for _ in range(self.height)]

    def set_content(self, x: int, y: int, text: str, style: TermStyle) -> None:
        if y < 0 or y >= self.height:
            return
        row = self._cells[y]
        for offset, ch in enumerate(text):
            col = x + offset
            if col >= self.width:
                break
            if col >= 0:
                row[col] = (ch, style)

    def hide_cursor(self) -> None:
        self._cursor = None

    def show_cursor(self, x: int, y: int) -> None:
        self._cursor = (x, y)

    def render_frame(self) -> str:
        """Serialize the back buffer into one terminal write."""
        out: list[str] = ["\x1b[?25l"]
        for y, row in enumerate(self._cells):
            out.append(f"\x1b[{y + 1};1H")
            current: TermStyle | None = None
            for ch, style in row:
                if style != current:
                    out.append(style.escape())
                    current = style
                out.append(ch)
        out.append("\x1b[0m")
        if self._cursor is not None:
            x, y = self._cursor
            out.append(f"\x1b[{y + 1};{x + 1}H\x1b[?25h")
        return "".join(out)

    def show(self) -> None:
        """Flush the back buffer to the terminal."""
        if self.fd is None:
            return
        os.write(self.fd, self.render_frame().encode("utf-8", errors="replace"))


def term_message(*parts: object, screen: Screen | None = None) -> None:
    """Synchronous warning surface.

    Prints the message on stderr outside TUI mode and waits for Enter when a
    terminal is attached. A live screen is suspended around the message.
    """
    message = " ".join(str(part) for part in parts)
    log.warning("%s", message)
    suspended = screen is not None and screen.initialized
    if suspended:
        screen.temp_fini()
    try:
        sys.stderr.write(message + "\n")
        if sys.stdin is not None and sys.stdin.isatty():
            sys.stderr.write("Press enter to continue\n")
            sys.stderr.flush()
            sys.stdin.readline()
        else:
            sys.stderr.flush()
    finally:
        if suspended:
            screen.temp_start()


__all__ = [
    "ErrorEvent",
    "Event",
    "KeyEvent",
    "ResizeEvent",
    "Screen",
    "TTY_PATH",
    "term_message",
]
