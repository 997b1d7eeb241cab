"""Color scheme resolution backed by Pygments styles.

Only the default foreground/background pair is derived here; per-token syntax
colors belong to the highlighter and are not the runtime's concern.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ColorschemeError


@dataclass(frozen=True)
class TermStyle:
    """ANSI style prefix used when drawing a screen cell."""

    sgr: str = ""
    reverse: bool = False

    def escape(self) -> str:
        codes = "\033[0m"
        if self.sgr:
            codes += self.sgr
        if self.reverse:
            codes += "\033[7m"
        return codes


PLAIN_STYLE = TermStyle()
REVERSE_STYLE = TermStyle(reverse=True)


def _hex_to_rgb(value: str | None) -> tuple[int, int, int] | None:
    if not value:
        return None
    text = value.lstrip("#")
    if len(text) == 3:
        text = "".join(ch * 2 for ch in text)
    if len(text) != 6:
        return None
    try:
        return int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16)
    except ValueError:
        return None


def style_from_pygments(name: str) -> TermStyle:
    """Build the default terminal style for Pygments style ``name``.

    Raises ``ColorschemeError`` when Pygments does not know the style.
    """
    from pygments.styles import get_style_by_name
    from pygments.token import Token
    from pygments.util import ClassNotFound

    try:
        style_cls = get_style_by_name(name)
    except ClassNotFound as exc:
        raise ColorschemeError(f"{name} is not a valid colorscheme") from exc

    parts: list[str] = []
    text_style = style_cls.style_for_token(Token.Text)
    fg = _hex_to_rgb(text_style.get("color"))
    if fg is not None:
        parts.append(f"\033[38;2;{fg[0]};{fg[1]};{fg[2]}m")
    bg = _hex_to_rgb(getattr(style_cls, "background_color", None))
    if bg is not None:
        parts.append(f"\033[48;2;{bg[0]};{bg[1]};{bg[2]}m")
    return TermStyle(sgr="".join(parts))


class Colorscheme:
    """Holds the active default style; falls back to plain on errors."""

    def __init__(self) -> None:
        self.name = ""
        self.default_style = PLAIN_STYLE

    def init(self, name: str) -> None:
        style = style_from_pygments(name)
        self.name = name
        self.default_style = style

    @property
    def status_style(self) -> TermStyle:
        return TermStyle(sgr=self.default_style.sgr, reverse=True)


__all__ = [
    "Colorscheme",
    "PLAIN_STYLE",
    "REVERSE_STYLE",
    "TermStyle",
    "style_from_pygments",
]
