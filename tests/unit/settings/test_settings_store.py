from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from termedit.errors import SettingsError
from termedit.settings import SettingsStore, format_option_help, format_value, get_native_value


class GetNativeValueTests(unittest.TestCase):
    def test_booleans_accept_common_words(self) -> None:
        for text in ("true", "On", "yes", "1"):
            self.assertIs(get_native_value("ruler", False, text), True)
        for text in ("false", "OFF", "no", "0"):
            self.assertIs(get_native_value("ruler", True, text), False)

    def test_numbers_become_floats(self) -> None:
        self.assertEqual(get_native_value("tabsize", 4.0, "8"), 8.0)
        self.assertIsInstance(get_native_value("tabsize", 4.0, "8"), float)

    def test_strings_pass_through(self) -> None:
        self.assertEqual(get_native_value("colorscheme", "monokai", "zenburn"), "zenburn")

    def test_bad_text_raises(self) -> None:
        with self.assertRaises(SettingsError):
            get_native_value("ruler", True, "maybe")
        with self.assertRaises(SettingsError):
            get_native_value("tabsize", 4.0, "wide")


class SettingsStoreTests(unittest.TestCase):
    def test_missing_file_keeps_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = SettingsStore()
            store.read_settings(Path(tmp))
            store.init_global_settings()
            self.assertEqual(store.get("tabsize"), 4.0)
            self.assertEqual(store.parsed, {})

    def test_valid_values_apply_and_wrong_types_are_reported_together(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "settings.json").write_text(
                json.dumps({"tabsize": 2, "ruler": "yes", "autosave": True, "pluginoption": 1}),
                encoding="utf-8",
            )
            store = SettingsStore()
            store.read_settings(root)

            with self.assertRaises(SettingsError) as ctx:
                store.init_global_settings()

            self.assertEqual(store.get("tabsize"), 2.0)
            self.assertTrue(store.get("ruler"))
            self.assertEqual(store.get("autosave"), 0.0)
            self.assertIn("ruler", str(ctx.exception))
            self.assertIn("autosave", str(ctx.exception))
            self.assertNotIn("pluginoption", store.global_settings)

    def test_malformed_file_raises_and_leaves_parsed_empty(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "settings.json").write_text("[1, 2]", encoding="utf-8")
            store = SettingsStore()
            with self.assertRaises(SettingsError):
                store.read_settings(root)
            self.assertEqual(store.parsed, {})

    def test_set_from_text_and_unknown_option(self) -> None:
        store = SettingsStore()
        self.assertEqual(store.set_from_text("tabstospaces", "on"), True)
        self.assertTrue(store.get("tabstospaces"))
        with self.assertRaises(SettingsError):
            store.set_from_text("nope", "1")
        with self.assertRaises(SettingsError):
            store.get("nope")

    def test_write_settings_keeps_only_changed_values(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            store = SettingsStore()
            store.set("tabsize", 8)
            store.write_settings(root)
            data = json.loads((root / "settings.json").read_text(encoding="utf-8"))
            self.assertEqual(data, {"tabsize": 8.0})


class OptionHelpTests(unittest.TestCase):
    def test_lists_each_option_with_default(self) -> None:
        text = format_option_help({"tabsize": 4.0, "ruler": True, "colorscheme": "monokai"})
        self.assertIn("-tabsize value\n    \tDefault value: '4'\n", text)
        self.assertIn("-ruler value\n    \tDefault value: 'true'\n", text)
        self.assertLess(text.index("-colorscheme"), text.index("-ruler"))

    def test_format_value(self) -> None:
        self.assertEqual(format_value(False), "false")
        self.assertEqual(format_value(2.5), "2.5")


if __name__ == "__main__":
    unittest.main()
