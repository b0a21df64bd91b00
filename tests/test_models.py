# -*- coding: utf-8 -*-
"""Tests for pattern_builder.models."""

import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from pattern_builder.models import PatternConfiguration, RoleRule, RuleType
from pattern_builder.tokens import FilenameToken, ImageRole, TokenType


def _config():
    return PatternConfiguration(
        group_pattern=r"^car_(\d{3})",
        front_pattern="(?i:.*front.*)",
        role_rules=[
            RoleRule(ImageRole.FRONT, RuleType.CONTAINS, "front", priority=1),
            RoleRule(ImageRole.REAR, RuleType.REGEX_OVERRIDE, r"_r\b", case_sensitive=True),
        ],
        tokens=[
            FilenameToken("car", 0, TokenType.PREFIX, 0.7),
            FilenameToken("001", 1, TokenType.GROUP_ID, 0.8),
        ],
        group_id_token_type=TokenType.GROUP_ID,
        optional_token_types=[TokenType.CAMERA_SIDE],
        optional_custom_token_names={"lane"},
    )


class TestRoleRule(unittest.TestCase):
    def test_has_value(self):
        self.assertTrue(RoleRule(ImageRole.FRONT, RuleType.EQUALS, "f").has_value)
        self.assertFalse(RoleRule(ImageRole.FRONT, RuleType.EQUALS, "   ").has_value)
        self.assertFalse(RoleRule(ImageRole.FRONT, RuleType.EQUALS, "").has_value)


class TestPatternConfiguration(unittest.TestCase):
    def test_optional_sets_are_frozen(self):
        config = _config()
        self.assertIsInstance(config.optional_token_types, frozenset)
        self.assertIsInstance(config.optional_custom_token_names, frozenset)

    def test_role_lookups(self):
        config = _config()
        self.assertEqual(config.pattern_for(ImageRole.FRONT), "(?i:.*front.*)")
        self.assertEqual(config.pattern_for(ImageRole.OVERVIEW), "")
        self.assertEqual(len(config.rules_for(ImageRole.REAR)), 1)

    def test_is_valid(self):
        self.assertTrue(_config().is_valid())
        self.assertFalse(PatternConfiguration(group_pattern="(a)").is_valid())
        self.assertFalse(PatternConfiguration(front_pattern="a").is_valid())

    def test_builder_state(self):
        self.assertFalse(PatternConfiguration().has_valid_builder_state())
        self.assertTrue(PatternConfiguration(group_id_token_type=TokenType.INDEX).has_valid_builder_state())
        self.assertTrue(PatternConfiguration(rear_pattern="rear").has_valid_builder_state())

    def test_copy_is_independent(self):
        config = _config()
        clone = config.copy()
        clone.role_rules.append(RoleRule(ImageRole.OVERVIEW, RuleType.CONTAINS, "ov"))
        clone.group_pattern = ""
        self.assertEqual(len(config.role_rules), 2)
        self.assertEqual(config.group_pattern, r"^car_(\d{3})")

    def test_dict_round_trip(self):
        config = _config()
        data = config.to_dict()
        self.assertEqual(data["group_id_token_type"], "GROUP_ID")
        self.assertEqual(data["optional_token_types"], ["CAMERA_SIDE"])
        restored = PatternConfiguration.from_dict(data)
        self.assertEqual(restored, config)
        self.assertEqual([t.suggested_type for t in restored.tokens], [TokenType.PREFIX, TokenType.GROUP_ID])

    def test_from_dict_unknown_name(self):
        with self.assertRaises(ValueError):
            PatternConfiguration.from_dict({"group_id_token_type": "VIN"})
        with self.assertRaises(ValueError):
            PatternConfiguration.from_dict({"role_rules": [{"target_role": "SIDE", "rule_type": "EQUALS"}]})

    def test_str(self):
        text = str(_config())
        self.assertIn("group_id=GROUP_ID", text)
        self.assertIn("rules=2", text)


if __name__ == "__main__":
    unittest.main()
