# -*- coding: utf-8 -*-
"""Validation of pattern configurations.

Responsibilities:
    - Structural checks: group ID selection, exactly one capturing group in the
      group pattern, role coverage, non-empty rule values.
    - Regex syntax checks for every declared pattern and regex override rule.
    - Semantic warnings: missing overview coverage, overlapping CONTAINS rules,
      group ID type at several positions, sample files the group pattern misses.

Problems found in the configuration are collected into a ``ValidationResult``;
only a missing configuration is raised, since that is a caller bug.
"""

from __future__ import annotations

import re
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from pattern_builder.models import PatternConfiguration, RoleRule, RuleType
from pattern_builder.tasks import CancellationToken, check_cancelled
from pattern_builder.tokens import ImageRole, display_name

logger = logging.getLogger(__name__)


class ValidationErrorType(Enum):
    NO_GROUP_ID_SELECTED = "no_group_id_selected"
    EMPTY_GROUP_PATTERN = "empty_group_pattern"
    GROUP_ID_TYPE_NOT_FOUND = "group_id_type_not_found"
    NO_CAPTURING_GROUPS = "no_capturing_groups"
    MULTIPLE_CAPTURING_GROUPS = "multiple_capturing_groups"
    NO_ROLE_PATTERNS = "no_role_patterns"
    INVALID_RULE_VALUE = "invalid_rule_value"
    REGEX_SYNTAX_ERROR = "regex_syntax_error"


class ValidationWarningType(Enum):
    NO_OVERVIEW_IMAGES = "no_overview_images"
    OVERLAPPING_RULES = "overlapping_rules"
    GROUP_ID_MULTIPLE_POSITIONS = "group_id_multiple_positions"
    UNMATCHED_SAMPLE_FILES = "unmatched_sample_files"


@dataclass(frozen=True)
class ValidationError:
    """A blocking problem."""
    kind: ValidationErrorType
    message: str
    hint: str = ""
    pattern_name: str = ""
    """Set for ``REGEX_SYNTAX_ERROR``: which pattern failed to compile."""


@dataclass(frozen=True)
class ValidationWarning:
    """An informational problem; never affects validity."""
    kind: ValidationWarningType
    message: str
    hint: str = ""


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: tuple[ValidationError, ...] = ()
    warnings: tuple[ValidationWarning, ...] = ()

    @classmethod
    def from_problems(
        cls,
        errors: Iterable[ValidationError],
        warnings: Iterable[ValidationWarning] = (),
    ) -> ValidationResult:
        errors = tuple(errors)
        return cls(valid=not errors, errors=errors, warnings=tuple(warnings))

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def error_kinds(self) -> list[ValidationErrorType]:
        return [e.kind for e in self.errors]

    def warning_kinds(self) -> list[ValidationWarningType]:
        return [w.kind for w in self.warnings]

    def summary(self) -> str:
        """One-line status: the first blocker, or a success note with the warning count."""
        if not self.valid:
            first = self.errors[0].message
            if len(self.errors) == 1:
                return f"Cannot generate patterns: {first}"
            return f"Cannot generate patterns: {first} (+{len(self.errors) - 1} more)"
        if self.warnings:
            return f"Configuration is valid ({len(self.warnings)} warning(s))"
        return "Configuration is valid"


def count_capturing_groups(pattern: str) -> int:
    """Count capturing groups in *pattern* without compiling it.

    Scans character by character, skipping escaped characters and the inside
    of character classes. ``(?P<name>...)`` counts; every other ``(?`` form
    (non-capturing, flags, lookarounds) does not.
    """
    count = 0
    i = 0
    in_class = False
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "\\":
            i += 2
            continue
        if in_class:
            if c == "]":
                in_class = False
        elif c == "[":
            in_class = True
            # A leading "]" (after an optional "^") is a literal member
            j = i + 1
            if j < n and pattern[j] == "^":
                j += 1
            if j < n and pattern[j] == "]":
                i = j
        elif c == "(":
            if pattern.startswith("(?P<", i):
                count += 1
            elif not pattern.startswith("(?", i):
                count += 1
        i += 1
    return count


def _blank(pattern: Optional[str]) -> bool:
    return not (pattern and pattern.strip())


_PATTERN_NAMES = {
    ImageRole.FRONT: "Front pattern",
    ImageRole.REAR: "Rear pattern",
    ImageRole.OVERVIEW: "Overview pattern",
}

_SYNTAX_HINT = "Check for unescaped special characters or unmatched parentheses"


class PatternValidator:
    """Checks a ``PatternConfiguration``; every check runs, none short-circuits."""

    def validate(
        self,
        config: Optional[PatternConfiguration],
        sample_filenames: Optional[list[str]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> ValidationResult:
        """Validate *config*, optionally against *sample_filenames*.

        Raises:
            ValueError: If *config* is None.
            OperationCancelled: If *cancel* is triggered between checks.
        """
        if config is None:
            raise ValueError("Pattern configuration cannot be None")

        errors: list[ValidationError] = []
        warnings: list[ValidationWarning] = []

        self._check_group_selection(config, errors)
        self._check_capturing_groups(config, errors)
        check_cancelled(cancel)
        self._check_role_coverage(config, errors, cancel)
        self._check_syntax(config, errors, cancel)

        if _blank(config.overview_pattern) and not config.rules_for(ImageRole.OVERVIEW):
            warnings.append(ValidationWarning(
                ValidationWarningType.NO_OVERVIEW_IMAGES,
                "No overview pattern defined - some images may not be categorized",
            ))
        warnings.extend(self._overlap_warnings(config.role_rules, cancel))
        self._check_group_positions(config, warnings)
        if sample_filenames:
            self._check_samples(config, sample_filenames, warnings, cancel)

        result = ValidationResult.from_problems(errors, warnings)
        logger.debug(f"Validation: {len(errors)} error(s), {len(warnings)} warning(s)")
        return result

    # -- Structural ----------------------------------------------------------

    def _check_group_selection(self, config: PatternConfiguration, errors: list[ValidationError]) -> None:
        if _blank(config.group_pattern):
            if config.group_id_token_type is None:
                errors.append(ValidationError(
                    ValidationErrorType.NO_GROUP_ID_SELECTED,
                    "Please select a token to use as Group ID",
                ))
            else:
                errors.append(ValidationError(
                    ValidationErrorType.EMPTY_GROUP_PATTERN,
                    "Group pattern cannot be empty",
                    "Generate the patterns again after selecting the Group ID token",
                ))

        group_type = config.group_id_token_type
        if group_type is not None and config.tokens:
            if not any(t.suggested_type == group_type for t in config.tokens):
                errors.append(ValidationError(
                    ValidationErrorType.GROUP_ID_TYPE_NOT_FOUND,
                    f"No token is classified as {display_name(group_type)}",
                    "Mark one of the filename tokens as the Group ID",
                ))

    def _check_capturing_groups(self, config: PatternConfiguration, errors: list[ValidationError]) -> None:
        if _blank(config.group_pattern):
            return
        groups = count_capturing_groups(config.group_pattern)
        if groups == 0:
            errors.append(ValidationError(
                ValidationErrorType.NO_CAPTURING_GROUPS,
                "Group pattern must contain exactly one capturing group",
                "Ensure the Group ID token is properly selected",
            ))
        elif groups > 1:
            errors.append(ValidationError(
                ValidationErrorType.MULTIPLE_CAPTURING_GROUPS,
                f"Group pattern contains {groups} capturing groups, but exactly one is required",
                "Remove extra parentheses or use non-capturing groups (?:...)",
            ))

    def _check_role_coverage(
        self,
        config: PatternConfiguration,
        errors: list[ValidationError],
        cancel: Optional[CancellationToken],
    ) -> None:
        has_patterns = any(not _blank(p) for p in config.role_patterns().values())
        if not has_patterns and not config.role_rules:
            errors.append(ValidationError(
                ValidationErrorType.NO_ROLE_PATTERNS,
                "At least one role pattern must be defined",
                "Define rules for front, rear, or overview images",
            ))

        for rule in config.role_rules:
            check_cancelled(cancel)
            if not rule.has_value:
                errors.append(ValidationError(
                    ValidationErrorType.INVALID_RULE_VALUE,
                    f"Rule value cannot be empty for {rule.target_role.name} role",
                ))

    # -- Syntax --------------------------------------------------------------

    def _check_syntax(
        self,
        config: PatternConfiguration,
        errors: list[ValidationError],
        cancel: Optional[CancellationToken],
    ) -> None:
        named = [("Group pattern", config.group_pattern)]
        named.extend((_PATTERN_NAMES[role], config.pattern_for(role)) for role in ImageRole)
        for rule in config.role_rules:
            if rule.rule_type == RuleType.REGEX_OVERRIDE and rule.has_value:
                named.append((f"{rule.target_role.name.capitalize()} regex rule", rule.value.strip()))

        for name, pattern in named:
            check_cancelled(cancel)
            if _blank(pattern):
                continue
            try:
                re.compile(pattern)
            except re.error as e:
                errors.append(ValidationError(
                    ValidationErrorType.REGEX_SYNTAX_ERROR,
                    f"{name} has invalid regex syntax: {e}",
                    _SYNTAX_HINT,
                    pattern_name=name,
                ))

    # -- Semantic ------------------------------------------------------------

    def _overlap_warnings(
        self,
        rules: list[RoleRule],
        cancel: Optional[CancellationToken],
    ) -> list[ValidationWarning]:
        contains = [r for r in rules if r.rule_type == RuleType.CONTAINS and r.has_value]
        warnings = []
        for i, a in enumerate(contains):
            check_cancelled(cancel)
            for b in contains[i + 1:]:
                if a.target_role == b.target_role:
                    continue
                va, vb = a.value.strip().lower(), b.value.strip().lower()
                if va in vb or vb in va:
                    warnings.append(ValidationWarning(
                        ValidationWarningType.OVERLAPPING_RULES,
                        f"Rules for {a.target_role.name} ('{a.value}') and "
                        f"{b.target_role.name} ('{b.value}') may match the same files",
                        "Use more specific values or an equals/starts-with rule",
                    ))
        return warnings

    def _check_group_positions(self, config: PatternConfiguration, warnings: list[ValidationWarning]) -> None:
        group_type = config.group_id_token_type
        if group_type is None:
            return
        positions = sorted({t.position for t in config.tokens if t.suggested_type == group_type})
        if len(positions) > 1:
            warnings.append(ValidationWarning(
                ValidationWarningType.GROUP_ID_MULTIPLE_POSITIONS,
                f"{display_name(group_type)} tokens appear at positions "
                f"{', '.join(str(p) for p in positions)}; only position {positions[0]} is captured",
                "Reclassify the extra tokens if they are not part of the identifier",
            ))

    def _check_samples(
        self,
        config: PatternConfiguration,
        filenames: list[str],
        warnings: list[ValidationWarning],
        cancel: Optional[CancellationToken],
    ) -> None:
        if _blank(config.group_pattern):
            return
        try:
            compiled = re.compile(config.group_pattern)
        except re.error:
            return  # already reported as a syntax error

        missed = 0
        for name in filenames:
            check_cancelled(cancel)
            if not compiled.search(name):
                missed += 1
        if missed:
            warnings.append(ValidationWarning(
                ValidationWarningType.UNMATCHED_SAMPLE_FILES,
                f"Group pattern does not match {missed} of {len(filenames)} sample file(s)",
                "Mark differing tokens as optional or reclassify them",
            ))


def is_blocking(result: Optional[ValidationResult]) -> bool:
    """True if *result* is missing or has errors."""
    return result is None or not result.valid

