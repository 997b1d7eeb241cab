from __future__ import annotations

import unittest

from termedit.colorscheme import PLAIN_STYLE, Colorscheme, TermStyle, style_from_pygments
from termedit.errors import ColorschemeError


class ColorschemeTests(unittest.TestCase):
    def test_known_pygments_style_sets_background(self) -> None:
        style = style_from_pygments("monokai")
        self.assertIn("\033[48;2;", style.sgr)

    def test_unknown_style_raises_and_keeps_previous(self) -> None:
        scheme = Colorscheme()
        with self.assertRaises(ColorschemeError):
            scheme.init("definitely-not-a-style")
        self.assertEqual(scheme.default_style, PLAIN_STYLE)
        self.assertEqual(scheme.name, "")

    def test_status_style_is_reversed_default(self) -> None:
        scheme = Colorscheme()
        scheme.init("monokai")
        self.assertTrue(scheme.status_style.reverse)
        self.assertEqual(scheme.status_style.sgr, scheme.default_style.sgr)

    def test_escape_sequence(self) -> None:
        self.assertEqual(TermStyle().escape(), "\033[0m")
        self.assertEqual(TermStyle(sgr="\033[1m", reverse=True).escape(), "\033[0m\033[1m\033[7m")


if __name__ == "__main__":
    unittest.main()
