# -*- coding: utf-8 -*-
"""Regex fragment inference for filename tokens.

Given every value observed for a token type across the sample set, infer the
tightest character class and quantifier that still matches all of them. Types
with a fixed vocabulary (camera side, extension) or constant text (prefix,
suffix) get dedicated fragments instead.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, Optional

from pattern_builder.tokens import (
    CAMERA_SYNONYMS,
    FilenameToken,
    TokenType,
    check_exhaustive,
    role_for_camera_value,
)

# Returned when there is no evidence to build a tighter fragment
FALLBACK_PATTERN = r"\w+"

# Types whose fragment is inferred from the observed values
ANALYZED_TYPES = frozenset({
    TokenType.GROUP_ID,
    TokenType.INDEX,
    TokenType.DATE,
    TokenType.UNKNOWN,
})

_RE_DIGITS = re.compile(r"[0-9]+")
_RE_ALPHA = re.compile(r"[A-Za-z]+")
_RE_ALNUM = re.compile(r"[A-Za-z0-9]+")


def _quantifier(min_l: int, max_l: int) -> str:
    if min_l == max_l:
        return f"{{{min_l}}}"
    if max_l - min_l <= 2:
        return f"{{{min_l},{max_l}}}"
    if min_l > 1:
        return f"{{{min_l},}}"
    return "+"


def _character_class(values: list[str]) -> str:
    if all(_RE_DIGITS.fullmatch(v) for v in values):
        return r"\d"
    if all(_RE_ALPHA.fullmatch(v) for v in values):
        return "[A-Za-z]"
    if all(_RE_ALNUM.fullmatch(v) for v in values):
        return "[A-Za-z0-9]"

    all_text = "".join(values)
    parts = []
    if re.search(r"[A-Za-z]", all_text):
        parts.append("A-Za-z")
    if re.search(r"[0-9]", all_text):
        parts.append("0-9")
    if "-" in all_text:
        parts.append(r"\-")
    if "." in all_text:
        parts.append(r"\.")
    if re.search(r"\s", all_text):
        parts.append(r"\s")
    # Anything else actually observed, so the class still covers every value
    others = sorted({c for c in all_text if not (c.isascii() and c.isalnum()) and c not in "-." and not c.isspace()})
    parts.extend(re.escape(c) for c in others)
    return f"[{''.join(parts)}]"


def infer_pattern(values: Iterable[str]) -> str:
    """Infer a regex fragment matching every value in *values*.

    Quantifier policy: equal lengths give ``{n}``, a spread of at most two gives
    ``{min,max}``, a wider spread with ``min > 1`` gives ``{min,}``, otherwise
    ``+``. An empty value set yields ``\\w+``.
    """
    values = [v for v in dict.fromkeys(values) if v]
    if not values:
        return FALLBACK_PATTERN

    lengths = [len(v) for v in values]
    return _character_class(values) + _quantifier(min(lengths), max(lengths))


def date_pattern(value: str) -> str:
    """Fragment for a single date value, keyed on its layout."""
    if re.fullmatch(r"\d{4}-\d{2}-\d{2}", value):
        return r"\d{4}-\d{2}-\d{2}"
    if re.fullmatch(r"\d{2}-\d{2}-\d{4}", value):
        return r"\d{2}-\d{2}-\d{4}"
    if re.fullmatch(r"\d{8}", value):
        return r"\d{8}"
    return r"\d{2,4}[\-/]?\d{2}[\-/]?\d{2,4}"


def camera_side_pattern(value: str) -> str:
    """Case-insensitive alternation over the synonym family of *value*."""
    role = role_for_camera_value(value)
    if role is None:
        return f"(?i:{re.escape(value)})"
    return f"(?i:{'|'.join(CAMERA_SYNONYMS[role])})"


def _literal(token: FilenameToken) -> str:
    return re.escape(token.value)


def _extension(token: FilenameToken) -> str:
    return f"(?i:{re.escape(token.value)})"


def _camera(token: FilenameToken) -> str:
    return camera_side_pattern(token.value)


def _date(token: FilenameToken) -> str:
    return date_pattern(token.value)


_FALLBACK_BUILDERS: dict[TokenType, Callable[[FilenameToken], str]] = {
    TokenType.PREFIX: _literal,
    TokenType.SUFFIX: _literal,
    TokenType.GROUP_ID: lambda t: "[A-Za-z0-9]+",
    TokenType.CAMERA_SIDE: _camera,
    TokenType.DATE: _date,
    TokenType.INDEX: lambda t: r"\d+",
    TokenType.EXTENSION: _extension,
    TokenType.UNKNOWN: lambda t: r"[^_\-.\s]+",
}
check_exhaustive(_FALLBACK_BUILDERS, "fallback pattern table")


class PatternInferenceEngine:
    """Builds per-token regex fragments from a set of observed tokens."""

    def analyze_token_patterns(self, tokens: Iterable[FilenameToken]) -> dict[TokenType, str]:
        """Infer one fragment per analyzed type present in *tokens*."""
        values: dict[TokenType, list[str]] = {}
        for token in tokens:
            if token.suggested_type in ANALYZED_TYPES:
                values.setdefault(token.suggested_type, []).append(token.value)
        return {t: infer_pattern(v) for t, v in values.items()}

    def token_pattern(
        self,
        token: FilenameToken,
        type_patterns: Optional[dict[TokenType, str]] = None,
    ) -> str:
        """Fragment for *token*, preferring the analyzed pattern for its type."""
        if type_patterns and token.suggested_type in type_patterns:
            return type_patterns[token.suggested_type]
        return _FALLBACK_BUILDERS[token.suggested_type](token)


def extract_group_ids(pattern: str, examples: list[str]) -> list[str | None]:
    """Apply *pattern* to *examples* and return capture group 1 (or None) for each."""
    try:
        compiled = re.compile(pattern)
    except re.error:
        return [None] * len(examples)
    results = []
    for ex in examples:
        m = compiled.search(ex)
        results.append(m.group(1) if m and compiled.groups >= 1 else None)
    return results
