# -*- coding: utf-8 -*-
"""Tests for pattern_builder.validator.

Tests coverage:
    - count_capturing_groups(): escapes, character classes, named and non-capturing groups
    - PatternValidator.validate(): structural errors, syntax errors, warnings
    - ValidationResult.summary()
"""

import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from pattern_builder.models import PatternConfiguration, RoleRule, RuleType
from pattern_builder.tasks import CancellationToken, OperationCancelled
from pattern_builder.tokens import FilenameToken, ImageRole, TokenType
from pattern_builder.validator import (
    PatternValidator,
    ValidationErrorType as E,
    ValidationResult,
    ValidationWarningType as W,
    count_capturing_groups,
    is_blocking,
)

STRUCTURAL = {
    E.NO_GROUP_ID_SELECTED,
    E.EMPTY_GROUP_PATTERN,
    E.GROUP_ID_TYPE_NOT_FOUND,
    E.NO_CAPTURING_GROUPS,
    E.MULTIPLE_CAPTURING_GROUPS,
    E.NO_ROLE_PATTERNS,
}


def _config(**kwargs) -> PatternConfiguration:
    values = dict(
        group_pattern=r"^car_(\d{3})_\w+\.jpg$",
        front_pattern="(?i:.*front.*)",
        rear_pattern="(?i:.*rear.*)",
        overview_pattern="(?i:.*overview.*)",
    )
    values.update(kwargs)
    return PatternConfiguration(**values)


class TestCountCapturingGroups(unittest.TestCase):
    def test_counts(self):
        cases = {
            "": 0,
            "abc": 0,
            "(a)": 1,
            "(a)(b)": 2,
            "((a)b)": 2,
            "(?:a)(b)": 1,
            "(?P<id>a)": 1,
            "(?i:a)": 0,
            "(?=a)(?!b)(?<=c)(?<!d)": 0,
            r"\(a\)": 0,
            r"[(](a)": 1,
            r"[^)(]+(x)": 1,
            r"[]()](x)": 1,
            r"[^]()](x)": 1,
            r"[\]()](x)": 1,
            r"\\(x)": 1,
        }
        for pattern, expected in cases.items():
            self.assertEqual(count_capturing_groups(pattern), expected, pattern)


class TestValidate(unittest.TestCase):
    def setUp(self):
        self.validator = PatternValidator()

    def test_none_config_raises(self):
        with self.assertRaises(ValueError):
            self.validator.validate(None)

    def test_valid_config(self):
        result = self.validator.validate(_config())
        self.assertTrue(result.valid)
        self.assertEqual(result.errors, ())
        self.assertEqual(result.warnings, ())
        self.assertFalse(is_blocking(result))

    def test_multiple_capturing_groups(self):
        result = self.validator.validate(_config(group_pattern="(.+)(.+)"))
        self.assertFalse(result.valid)
        self.assertIn(E.MULTIPLE_CAPTURING_GROUPS, result.error_kinds())
        others = [k for k in result.error_kinds() if k in STRUCTURAL and k != E.MULTIPLE_CAPTURING_GROUPS]
        self.assertEqual(others, [])

    def test_no_capturing_groups(self):
        result = self.validator.validate(_config(group_pattern=r"^car_\d+"))
        self.assertEqual(result.error_kinds(), [E.NO_CAPTURING_GROUPS])

    def test_no_group_selected(self):
        result = self.validator.validate(_config(group_pattern=""))
        self.assertEqual(result.error_kinds(), [E.NO_GROUP_ID_SELECTED])

    def test_empty_group_pattern_with_type(self):
        result = self.validator.validate(_config(group_pattern="  ", group_id_token_type=TokenType.GROUP_ID))
        self.assertEqual(result.error_kinds(), [E.EMPTY_GROUP_PATTERN])

    def test_group_type_not_in_tokens(self):
        tokens = [FilenameToken("car", 0, TokenType.PREFIX), FilenameToken("001", 1, TokenType.INDEX)]
        result = self.validator.validate(_config(tokens=tokens, group_id_token_type=TokenType.DATE))
        self.assertEqual(result.error_kinds(), [E.GROUP_ID_TYPE_NOT_FOUND])

    def test_no_role_patterns(self):
        result = self.validator.validate(_config(front_pattern="", rear_pattern="", overview_pattern=""))
        self.assertIn(E.NO_ROLE_PATTERNS, result.error_kinds())
        self.assertIn(W.NO_OVERVIEW_IMAGES, result.warning_kinds())

    def test_rules_count_as_role_coverage(self):
        rules = [RoleRule(ImageRole.FRONT, RuleType.CONTAINS, "front")]
        result = self.validator.validate(
            _config(front_pattern="", rear_pattern="", overview_pattern="", role_rules=rules)
        )
        self.assertNotIn(E.NO_ROLE_PATTERNS, result.error_kinds())

    def test_empty_rule_value(self):
        rules = [RoleRule(ImageRole.REAR, RuleType.EQUALS, " ")]
        result = self.validator.validate(_config(role_rules=rules))
        self.assertEqual(result.error_kinds(), [E.INVALID_RULE_VALUE])
        self.assertIn("REAR", result.errors[0].message)

    def test_syntax_error_names_pattern(self):
        result = self.validator.validate(_config(rear_pattern="(rear"))
        self.assertFalse(result.valid)
        syntax = [e for e in result.errors if e.kind == E.REGEX_SYNTAX_ERROR]
        self.assertEqual(len(syntax), 1)
        self.assertEqual(syntax[0].pattern_name, "Rear pattern")
        self.assertIn("Rear pattern", syntax[0].message)
        self.assertTrue(syntax[0].hint)

    def test_syntax_error_in_override_rule(self):
        rules = [RoleRule(ImageRole.FRONT, RuleType.REGEX_OVERRIDE, "[front")]
        result = self.validator.validate(_config(role_rules=rules))
        self.assertEqual(result.error_kinds(), [E.REGEX_SYNTAX_ERROR])
        self.assertEqual(result.errors[0].pattern_name, "Front regex rule")

    def test_all_errors_reported(self):
        result = self.validator.validate(_config(
            group_pattern="(a)(b",
            front_pattern="", rear_pattern="", overview_pattern="",
        ))
        kinds = result.error_kinds()
        self.assertIn(E.MULTIPLE_CAPTURING_GROUPS, kinds)
        self.assertIn(E.NO_ROLE_PATTERNS, kinds)
        self.assertIn(E.REGEX_SYNTAX_ERROR, kinds)

    def test_missing_overview_warning_only(self):
        result = self.validator.validate(_config(overview_pattern=""))
        self.assertTrue(result.valid)
        self.assertEqual(result.warning_kinds(), [W.NO_OVERVIEW_IMAGES])

    def test_overview_rule_satisfies_coverage(self):
        rules = [RoleRule(ImageRole.OVERVIEW, RuleType.CONTAINS, "scene")]
        result = self.validator.validate(_config(overview_pattern="", role_rules=rules))
        self.assertNotIn(W.NO_OVERVIEW_IMAGES, result.warning_kinds())

    def test_overlapping_rules(self):
        rules = [
            RoleRule(ImageRole.FRONT, RuleType.CONTAINS, "Front"),
            RoleRule(ImageRole.OVERVIEW, RuleType.CONTAINS, "frontview"),
            RoleRule(ImageRole.FRONT, RuleType.CONTAINS, "front_cam"),
            RoleRule(ImageRole.REAR, RuleType.CONTAINS, "rear"),
        ]
        result = self.validator.validate(_config(role_rules=rules))
        self.assertTrue(result.valid)
        overlaps = [w for w in result.warnings if w.kind == W.OVERLAPPING_RULES]
        self.assertEqual(len(overlaps), 1)
        self.assertIn("FRONT", overlaps[0].message)
        self.assertIn("OVERVIEW", overlaps[0].message)

    def test_group_type_at_multiple_positions(self):
        tokens = [
            FilenameToken("123", 0, TokenType.INDEX),
            FilenameToken("456", 1, TokenType.INDEX),
        ]
        result = self.validator.validate(_config(tokens=tokens, group_id_token_type=TokenType.INDEX))
        self.assertTrue(result.valid)
        self.assertIn(W.GROUP_ID_MULTIPLE_POSITIONS, result.warning_kinds())

    def test_unmatched_samples(self):
        samples = ["car_001_front.jpg", "bus_002_front.jpg"]
        result = self.validator.validate(_config(), samples)
        self.assertTrue(result.valid)
        self.assertIn(W.UNMATCHED_SAMPLE_FILES, result.warning_kinds())
        self.assertIn("1 of 2", result.warnings[-1].message)

        result = self.validator.validate(_config(), samples[:1])
        self.assertNotIn(W.UNMATCHED_SAMPLE_FILES, result.warning_kinds())

    def test_cancellation(self):
        token = CancellationToken()
        token.cancel()
        with self.assertRaises(OperationCancelled):
            self.validator.validate(_config(), cancel=token)


class TestValidationResult(unittest.TestCase):
    def test_summary(self):
        self.assertEqual(ValidationResult(valid=True).summary(), "Configuration is valid")

        validator = PatternValidator()
        result = validator.validate(_config(overview_pattern=""))
        self.assertEqual(result.summary(), "Configuration is valid (1 warning(s))")

        result = validator.validate(_config(group_pattern="(.+)(.+)", rear_pattern="("))
        self.assertTrue(result.summary().startswith("Cannot generate patterns: Group pattern contains 2"))
        self.assertTrue(result.summary().endswith("(+1 more)"))

    def test_is_blocking_none(self):
        self.assertTrue(is_blocking(None))


if __name__ == "__main__":
    unittest.main()
