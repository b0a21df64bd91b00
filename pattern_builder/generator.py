# -*- coding: utf-8 -*-
"""Pattern generation from classified tokens and role rules.

This module converts a token analysis into a group pattern with exactly one
capturing group around the group identifier, and role rules into one
alternation pattern per image role.
"""

from __future__ import annotations

import re
import logging
from collections import Counter
from typing import Iterable, Optional

from pattern_builder.extensions import IMAGE_EXTENSIONS, apply_extension_matching
from pattern_builder.models import PatternConfiguration, RoleRule, RuleType
from pattern_builder.pattern_inference import PatternInferenceEngine
from pattern_builder.tokens import (
    FilenameToken,
    ImageRole,
    TokenAnalysis,
    TokenType,
    role_for_camera_value,
)

logger = logging.getLogger(__name__)

# Matches any run of delimiters between two tokens
DELIMITER_PATTERN = r"[_\-\.\s]+"


class InvalidGroupTypeError(ValueError):
    """The selected group ID type is missing or absent from the tokens."""


def _rule_branch(rule: RoleRule) -> str:
    """Regex branch for a single role rule; empty for a blank value."""
    if not rule.has_value:
        return ""

    value = rule.value.strip()
    if rule.rule_type == RuleType.REGEX_OVERRIDE:
        return value

    escaped = re.escape(value)
    if rule.rule_type == RuleType.EQUALS:
        branch = f"^{escaped}$"
    elif rule.rule_type == RuleType.CONTAINS:
        branch = f".*{escaped}.*"
    elif rule.rule_type == RuleType.STARTS_WITH:
        branch = f"^{escaped}.*"
    elif rule.rule_type == RuleType.ENDS_WITH:
        branch = f".*{escaped}$"
    else:
        raise ValueError(f"Unsupported rule type: {rule.rule_type}")

    return branch if rule.case_sensitive else f"(?i:{branch})"


class PatternGenerator:
    """Assembles group and role patterns for a ``PatternConfiguration``."""

    def __init__(self, engine: Optional[PatternInferenceEngine] = None) -> None:
        self._engine = engine or PatternInferenceEngine()

    def generate_group_pattern(
        self,
        tokens: list[FilenameToken],
        group_id_type: Optional[TokenType],
        optional_types: Iterable[TokenType] = (),
    ) -> str:
        """Build an anchored whole-filename pattern from *tokens*.

        Tokens sharing a position are merged into one alternation. The first
        position carrying *group_id_type* is captured; later ones are wrapped
        non-capturing. Positions whose type is optional become ``(?:...)?``
        together with their leading delimiter.

        Raises:
            InvalidGroupTypeError: If *group_id_type* is None or not present in *tokens*.
        """
        if not tokens:
            return ""
        if group_id_type is None:
            raise InvalidGroupTypeError("Group ID token type cannot be None")
        if not any(t.suggested_type == group_id_type for t in tokens):
            raise InvalidGroupTypeError(f"Group ID token type {group_id_type.name} not found in tokens")

        optional = frozenset(optional_types)
        type_patterns = self._engine.analyze_token_patterns(tokens)

        fragments: dict[int, dict[str, None]] = {}
        types_at: dict[int, set[TokenType]] = {}
        for token in sorted(tokens, key=lambda t: t.position):
            regex = self._engine.token_pattern(token, type_patterns)
            fragments.setdefault(token.position, {}).setdefault(regex, None)
            types_at.setdefault(token.position, set()).add(token.suggested_type)

        capture_position = min(t.position for t in tokens if t.suggested_type == group_id_type)

        parts = ["^"]
        for i, position in enumerate(sorted(fragments)):
            branches = list(fragments[position])
            body = branches[0] if len(branches) == 1 else f"(?:{'|'.join(branches)})"

            if group_id_type in types_at[position]:
                if position == capture_position:
                    body = f"({body})"
                elif len(branches) == 1:
                    body = f"(?:{body})"

            delimiter = DELIMITER_PATTERN if i > 0 else ""
            if types_at[position] & optional:
                parts.append(f"(?:{delimiter}{body})?")
            else:
                parts.append(delimiter + body)
        parts.append("$")

        pattern = "".join(parts)
        logger.debug(f"Group pattern for {group_id_type.name}: {pattern}")
        return pattern

    def generate_role_pattern(self, rules: list[RoleRule], role: ImageRole) -> str:
        """Combine the rules targeting *role* into one pattern (empty if none)."""
        if not rules:
            return ""

        selected = sorted((r for r in rules if r.target_role == role), key=lambda r: r.priority)
        branches = [b for b in (_rule_branch(r) for r in selected) if b]
        if not branches:
            return ""
        if len(branches) == 1:
            return branches[0]
        return f"(?:{'|'.join(branches)})"

    def generate_configuration(
        self,
        analysis: TokenAnalysis,
        group_id_type: Optional[TokenType],
        role_rules: list[RoleRule],
        optional_types: Iterable[TokenType] = (),
        extension_matching: bool = False,
        extensions: Iterable[str] = IMAGE_EXTENSIONS,
    ) -> PatternConfiguration:
        """Produce a configuration with all four pattern strings filled in.

        With *extension_matching* on, trailing extensions are widened to
        *extensions*.
        """
        extensions = tuple(extensions)
        optional = frozenset(optional_types)
        tokens = analysis.all_tokens()
        group_pattern = self.generate_group_pattern(tokens, group_id_type, optional)

        role_patterns = {
            role: apply_extension_matching(
                self.generate_role_pattern(role_rules, role), extension_matching, extensions
            )
            for role in ImageRole
        }
        config = PatternConfiguration(
            group_pattern=apply_extension_matching(group_pattern, extension_matching, extensions),
            front_pattern=role_patterns[ImageRole.FRONT],
            rear_pattern=role_patterns[ImageRole.REAR],
            overview_pattern=role_patterns[ImageRole.OVERVIEW],
            role_rules=list(role_rules),
            tokens=tokens,
            group_id_token_type=group_id_type,
            optional_token_types=optional,
        )
        logger.info(f"Generated configuration: {config}")
        return config

    def suggest_role_rules(self, analysis: TokenAnalysis) -> list[RoleRule]:
        """Starter role rules derived from the camera/side values seen in *analysis*.

        Values of three or more characters become case-insensitive CONTAINS
        rules; shorter ones (``f``, ``rr``) are matched as whole fragments so
        they do not fire inside longer words.
        """
        counts = Counter(
            t.value.lower() for t in analysis.all_tokens()
            if t.suggested_type == TokenType.CAMERA_SIDE
        )
        rules: list[RoleRule] = []
        for priority, (value, _) in enumerate(counts.most_common()):
            role = role_for_camera_value(value)
            if role is None:
                continue
            if len(value) >= 3:
                rules.append(RoleRule(role, RuleType.CONTAINS, value, False, priority))
            else:
                bounded = rf"(?i:(?:^|{DELIMITER_PATTERN}){re.escape(value)}(?={DELIMITER_PATTERN}|$))"
                rules.append(RoleRule(role, RuleType.REGEX_OVERRIDE, bounded, False, priority))
        return rules
