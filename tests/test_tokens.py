# -*- coding: utf-8 -*-
"""Tests for pattern_builder.tokens."""

import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from pattern_builder.tokens import (
    OVERRIDE_CONFIDENCE,
    FilenameToken,
    ImageRole,
    TokenAnalysis,
    TokenType,
    check_exhaustive,
    display_name,
    role_for_camera_value,
    type_color,
    type_description,
)


def _analysis():
    tokens_by_file = {
        "car_001_front.jpg": (
            FilenameToken("car", 0, TokenType.PREFIX, 0.7),
            FilenameToken("001", 1, TokenType.GROUP_ID, 0.8),
            FilenameToken("front", 2, TokenType.CAMERA_SIDE, 0.95),
            FilenameToken("jpg", 3, TokenType.EXTENSION, 1.0),
        ),
        "car_002_rear.jpg": (
            FilenameToken("car", 0, TokenType.PREFIX, 0.7),
            FilenameToken("002", 1, TokenType.GROUP_ID, 0.8),
            FilenameToken("rear", 2, TokenType.CAMERA_SIDE, 0.95),
            FilenameToken("jpg", 3, TokenType.EXTENSION, 1.0),
        ),
    }
    return TokenAnalysis(
        filenames=tuple(tokens_by_file),
        tokens_by_file=tokens_by_file,
    )


class TestCameraSynonyms(unittest.TestCase):
    def test_known_values(self):
        self.assertEqual(role_for_camera_value("front"), ImageRole.FRONT)
        self.assertEqual(role_for_camera_value("RR"), ImageRole.REAR)
        self.assertEqual(role_for_camera_value("Scene"), ImageRole.OVERVIEW)

    def test_unknown_value(self):
        self.assertIsNone(role_for_camera_value("side"))
        self.assertIsNone(role_for_camera_value(""))


class TestPresentationLookups(unittest.TestCase):
    def test_every_type_has_entries(self):
        for token_type in TokenType:
            self.assertTrue(display_name(token_type))
            self.assertTrue(type_color(token_type).startswith("#"))
            self.assertTrue(type_description(token_type))

    def test_check_exhaustive_reports_missing(self):
        table = {TokenType.PREFIX: "x"}
        with self.assertRaises(RuntimeError) as ctx:
            check_exhaustive(table, "test table")
        self.assertIn("SUFFIX", str(ctx.exception))


class TestFilenameToken(unittest.TestCase):
    def test_equality_ignores_classification(self):
        a = FilenameToken("001", 1, TokenType.INDEX, 0.6)
        b = FilenameToken("001", 1, TokenType.GROUP_ID, 0.8)
        self.assertEqual(a, b)
        self.assertNotEqual(a, FilenameToken("001", 2, TokenType.INDEX, 0.6))

    def test_with_type_sets_override_confidence(self):
        token = FilenameToken("001", 1, TokenType.INDEX, 0.6)
        overridden = token.with_type(TokenType.GROUP_ID)
        self.assertEqual(overridden.suggested_type, TokenType.GROUP_ID)
        self.assertEqual(overridden.confidence, OVERRIDE_CONFIDENCE)
        self.assertEqual(token.suggested_type, TokenType.INDEX)


class TestTokenAnalysis(unittest.TestCase):
    def test_empty(self):
        analysis = TokenAnalysis()
        self.assertTrue(analysis.is_empty)
        self.assertEqual(analysis.all_tokens(), [])
        self.assertIsNone(analysis.dominant_type_at(0))

    def test_queries(self):
        analysis = _analysis()
        self.assertFalse(analysis.is_empty)
        self.assertEqual(len(analysis.all_tokens()), 8)
        self.assertEqual(analysis.positions(), [0, 1, 2, 3])
        self.assertEqual(analysis.positions_for(TokenType.GROUP_ID), [1])
        self.assertEqual(analysis.values_for(TokenType.CAMERA_SIDE), ["front", "rear"])
        self.assertTrue(analysis.has_type(TokenType.EXTENSION))
        self.assertFalse(analysis.has_type(TokenType.DATE))
        self.assertEqual(analysis.dominant_type_at(0), TokenType.PREFIX)
        self.assertEqual(
            analysis.types_present(),
            [TokenType.PREFIX, TokenType.GROUP_ID, TokenType.CAMERA_SIDE, TokenType.EXTENSION],
        )

    def test_with_override_returns_new_analysis(self):
        analysis = _analysis()
        changed = analysis.with_override(0, TokenType.UNKNOWN)
        self.assertEqual(changed.dominant_type_at(0), TokenType.UNKNOWN)
        self.assertEqual(analysis.dominant_type_at(0), TokenType.PREFIX)
        for token in changed.tokens_at(0):
            self.assertEqual(token.confidence, OVERRIDE_CONFIDENCE)
        self.assertEqual(changed.confidence_scores[TokenType.UNKNOWN], OVERRIDE_CONFIDENCE)


if __name__ == "__main__":
    unittest.main()
