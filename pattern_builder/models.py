# -*- coding: utf-8 -*-
"""Role rules and the pattern configuration handed between components."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from pattern_builder.tokens import FilenameToken, ImageRole, TokenType


class RuleType(Enum):
    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    REGEX_OVERRIDE = "regex_override"


@dataclass(frozen=True)
class RoleRule:
    """A user-declared rule assigning matching filenames to an image role.

    ``priority`` only orders the branches of the generated alternation (lower
    first); any matching branch assigns the role.
    """

    target_role: ImageRole
    rule_type: RuleType
    value: str
    case_sensitive: bool = False
    priority: int = 0

    @property
    def has_value(self) -> bool:
        return bool(self.value and self.value.strip())


def _has_pattern(pattern: Optional[str]) -> bool:
    return bool(pattern and pattern.strip())


@dataclass
class PatternConfiguration:
    """The unit of work passed to the validator and the matcher.

    Owned by the caller. Optional-type membership is carried here as frozen
    sets so assemblers always receive a snapshot.

    ``optional_custom_token_names`` is carried for external builders that
    define their own token names; the built-in assemblers only read
    ``optional_token_types``.
    """

    group_pattern: str = ""
    front_pattern: str = ""
    rear_pattern: str = ""
    overview_pattern: str = ""
    role_rules: list[RoleRule] = field(default_factory=list)
    tokens: list[FilenameToken] = field(default_factory=list)
    group_id_token_type: Optional[TokenType] = None
    optional_token_types: frozenset[TokenType] = frozenset()
    optional_custom_token_names: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        self.optional_token_types = frozenset(self.optional_token_types)
        self.optional_custom_token_names = frozenset(self.optional_custom_token_names)

    def pattern_for(self, role: ImageRole) -> str:
        return {
            ImageRole.FRONT: self.front_pattern,
            ImageRole.REAR: self.rear_pattern,
            ImageRole.OVERVIEW: self.overview_pattern,
        }[role]

    def role_patterns(self) -> dict[ImageRole, str]:
        return {role: self.pattern_for(role) for role in ImageRole}

    def rules_for(self, role: ImageRole) -> list[RoleRule]:
        return [r for r in self.role_rules if r.target_role == role]

    def is_valid(self) -> bool:
        """Quick completeness check: group pattern plus at least one role pattern."""
        return _has_pattern(self.group_pattern) and any(
            _has_pattern(p) for p in self.role_patterns().values()
        )

    def has_valid_builder_state(self) -> bool:
        has_builder_state = bool(self.tokens or self.role_rules or self.group_id_token_type)
        has_patterns = _has_pattern(self.group_pattern) or any(
            _has_pattern(p) for p in self.role_patterns().values()
        )
        return has_builder_state or has_patterns

    def copy(self) -> PatternConfiguration:
        return replace(
            self,
            role_rules=list(self.role_rules),
            tokens=list(self.tokens),
        )

    # -- Plain-data form for external preset stores -------------------------

    def to_dict(self) -> dict:
        return {
            "group_pattern": self.group_pattern,
            "front_pattern": self.front_pattern,
            "rear_pattern": self.rear_pattern,
            "overview_pattern": self.overview_pattern,
            "role_rules": [
                {
                    "target_role": r.target_role.name,
                    "rule_type": r.rule_type.name,
                    "value": r.value,
                    "case_sensitive": r.case_sensitive,
                    "priority": r.priority,
                }
                for r in self.role_rules
            ],
            "tokens": [
                {
                    "value": t.value,
                    "position": t.position,
                    "suggested_type": t.suggested_type.name,
                    "confidence": t.confidence,
                }
                for t in self.tokens
            ],
            "group_id_token_type": self.group_id_token_type.name if self.group_id_token_type else None,
            "optional_token_types": sorted(t.name for t in self.optional_token_types),
            "optional_custom_token_names": sorted(self.optional_custom_token_names),
        }

    @classmethod
    def from_dict(cls, data: dict) -> PatternConfiguration:
        """Build a configuration from ``to_dict`` output.

        Raises:
            ValueError: If an enum name is not recognised.
        """
        try:
            rules = [
                RoleRule(
                    target_role=ImageRole[r["target_role"]],
                    rule_type=RuleType[r["rule_type"]],
                    value=r.get("value", ""),
                    case_sensitive=bool(r.get("case_sensitive", False)),
                    priority=int(r.get("priority", 0)),
                )
                for r in data.get("role_rules", [])
            ]
            tokens = [
                FilenameToken(
                    value=t["value"],
                    position=int(t["position"]),
                    suggested_type=TokenType[t.get("suggested_type", "UNKNOWN")],
                    confidence=float(t.get("confidence", 0.0)),
                )
                for t in data.get("tokens", [])
            ]
            group_type = data.get("group_id_token_type")
            group_id_type = TokenType[group_type] if group_type else None
            optional = frozenset(TokenType[n] for n in data.get("optional_token_types", []))
        except KeyError as exc:
            raise ValueError(f"Unknown name in pattern configuration: {exc}") from exc

        return cls(
            group_pattern=data.get("group_pattern", ""),
            front_pattern=data.get("front_pattern", ""),
            rear_pattern=data.get("rear_pattern", ""),
            overview_pattern=data.get("overview_pattern", ""),
            role_rules=rules,
            tokens=tokens,
            group_id_token_type=group_id_type,
            optional_token_types=optional,
            optional_custom_token_names=frozenset(data.get("optional_custom_token_names", [])),
        )

    def __str__(self) -> str:
        group_type = self.group_id_token_type.name if self.group_id_token_type else "None"
        return (
            f"PatternConfiguration(group={self.group_pattern!r}, front={self.front_pattern!r}, "
            f"rear={self.rear_pattern!r}, overview={self.overview_pattern!r}, "
            f"rules={len(self.role_rules)}, tokens={len(self.tokens)}, group_id={group_type})"
        )
