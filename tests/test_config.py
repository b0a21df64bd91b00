# -*- coding: utf-8 -*-
"""Tests for pattern_builder.config."""

import os
import sys
import shutil
import tempfile
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from pattern_builder.config import DEFAULT_SETTINGS_PATH, Settings, load_settings, save_settings
from pattern_builder.extensions import IMAGE_EXTENSIONS


class TestLoadSettings(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _write(self, text: str) -> str:
        path = os.path.join(self.tmpdir, "settings.yaml")
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path

    def test_default_file(self):
        self.assertTrue(os.path.isfile(DEFAULT_SETTINGS_PATH))
        settings = load_settings()
        self.assertEqual(settings.debounce_ms, 300)
        self.assertEqual(settings.sample_limit, 500)
        self.assertFalse(settings.extension_matching)
        self.assertEqual(settings.image_extensions, list(IMAGE_EXTENSIONS))

    def test_missing_file_returns_defaults(self):
        self.assertEqual(load_settings("/nonexistent/settings.yaml"), Settings())

    def test_values_override_defaults(self):
        path = self._write("debounce_ms: 150\nextension_matching: true\nimage_extensions: [.JPG, png]\n")
        settings = load_settings(path)
        self.assertEqual(settings.debounce_ms, 150)
        self.assertTrue(settings.extension_matching)
        self.assertEqual(settings.image_extensions, ["jpg", "png"])
        self.assertEqual(settings.sample_limit, 500)

    def test_invalid_entries_ignored(self):
        path = self._write("debounce_ms: fast\nsample_limit: -1\ncolour: red\nextension_matching: 1\n")
        with self.assertLogs("pattern_builder.config", level="WARNING") as logs:
            settings = load_settings(path)
        self.assertEqual(settings, Settings())
        self.assertEqual(len(logs.output), 4)

    def test_not_a_mapping(self):
        path = self._write("- a\n- b\n")
        self.assertEqual(load_settings(path), Settings())

    def test_empty_file(self):
        self.assertEqual(load_settings(self._write("")), Settings())


class TestSaveSettings(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_round_trip(self):
        settings = Settings(debounce_ms=50, sample_limit=20, extension_matching=True, image_extensions=["jpg"])
        path = os.path.join(self.tmpdir, "nested", "settings.yaml")
        save_settings(settings, path)
        self.assertTrue(os.path.isfile(path))
        self.assertEqual(load_settings(path), settings)


if __name__ == "__main__":
    unittest.main()
