# -*- coding: utf-8 -*-
"""Filename token taxonomy and the values produced by tokenization.

Responsibilities:
    - Define the closed ``TokenType`` vocabulary and the image roles.
    - Represent a classified filename fragment (``FilenameToken``).
    - Aggregate a whole tokenization run into an immutable ``TokenAnalysis``.
    - Provide per-type presentation lookups (label, colour, description).
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional


class TokenType(Enum):
    PREFIX = "prefix"
    SUFFIX = "suffix"
    GROUP_ID = "group_id"
    CAMERA_SIDE = "camera_side"
    DATE = "date"
    INDEX = "index"
    EXTENSION = "extension"
    UNKNOWN = "unknown"


class ImageRole(Enum):
    FRONT = "front"
    REAR = "rear"
    OVERVIEW = "overview"


# Confidence given to a token whose type was set by hand
OVERRIDE_CONFIDENCE = 0.9

# Camera/side synonym families (lowercase)
FRONT_SYNONYMS = ("front", "f", "fr", "forward")
REAR_SYNONYMS = ("rear", "r", "rr", "back", "behind")
OVERVIEW_SYNONYMS = ("overview", "ov", "ovr", "ovw", "scene", "full")

CAMERA_SYNONYMS: dict[ImageRole, tuple[str, ...]] = {
    ImageRole.FRONT: FRONT_SYNONYMS,
    ImageRole.REAR: REAR_SYNONYMS,
    ImageRole.OVERVIEW: OVERVIEW_SYNONYMS,
}


def role_for_camera_value(value: str) -> Optional[ImageRole]:
    """Return the role whose synonym family contains *value* (case-insensitive)."""
    lowered = value.lower()
    for role, synonyms in CAMERA_SYNONYMS.items():
        if lowered in synonyms:
            return role
    return None


# -- Presentation lookups ----------------------------------------------------

_DISPLAY_NAMES = {
    TokenType.PREFIX: "Prefix",
    TokenType.SUFFIX: "Suffix",
    TokenType.GROUP_ID: "Group ID",
    TokenType.CAMERA_SIDE: "Camera/Side",
    TokenType.DATE: "Date",
    TokenType.INDEX: "Index",
    TokenType.EXTENSION: "Extension",
    TokenType.UNKNOWN: "Unknown",
}

_COLORS = {
    TokenType.PREFIX: "#6c757d",
    TokenType.SUFFIX: "#6c757d",
    TokenType.GROUP_ID: "#dc3545",
    TokenType.CAMERA_SIDE: "#fd7e14",
    TokenType.DATE: "#20c997",
    TokenType.INDEX: "#0d6efd",
    TokenType.EXTENSION: "#6f42c1",
    TokenType.UNKNOWN: "#adb5bd",
}

_DESCRIPTIONS = {
    TokenType.PREFIX: "Constant text at the start of every filename",
    TokenType.SUFFIX: "Constant text at the end of the filename, before the extension",
    TokenType.GROUP_ID: "Identifier shared by all images of one vehicle or event",
    TokenType.CAMERA_SIDE: "Camera position such as front, rear or overview",
    TokenType.DATE: "Capture date (YYYY-MM-DD, MM-DD-YYYY or YYYYMMDD)",
    TokenType.INDEX: "Running number such as a frame or sequence counter",
    TokenType.EXTENSION: "Image file extension",
    TokenType.UNKNOWN: "Fragment with no recognised meaning",
}


def check_exhaustive(table: dict, name: str) -> None:
    """Fail at import time if a per-type table misses a ``TokenType``."""
    missing = [t.name for t in TokenType if t not in table]
    if missing:
        raise RuntimeError(f"{name} has no entry for token type(s): {', '.join(missing)}")


check_exhaustive(_DISPLAY_NAMES, "display name table")
check_exhaustive(_COLORS, "colour table")
check_exhaustive(_DESCRIPTIONS, "description table")


def display_name(token_type: TokenType) -> str:
    return _DISPLAY_NAMES[token_type]


def type_color(token_type: TokenType) -> str:
    return _COLORS[token_type]


def type_description(token_type: TokenType) -> str:
    return _DESCRIPTIONS[token_type]


# -- Values --------------------------------------------------------------------

@dataclass(frozen=True)
class FilenameToken:
    """A delimiter-bounded fragment of one filename.

    Two tokens are equal when value and position match; the classification is
    not part of identity so an overridden token still lines up with the original.
    """

    value: str
    position: int
    """0-based index within the delimiter-split filename."""
    suggested_type: TokenType = field(default=TokenType.UNKNOWN, compare=False)
    confidence: float = field(default=0.0, compare=False)

    def with_type(self, token_type: TokenType) -> FilenameToken:
        """Return a copy classified by hand as *token_type*."""
        return replace(self, suggested_type=token_type, confidence=OVERRIDE_CONFIDENCE)


@dataclass(frozen=True)
class TokenSuggestion:
    """Why a position was classified the way it was."""

    token_type: TokenType
    position: int
    values: tuple[str, ...]
    confidence: float
    rationale: str


@dataclass(frozen=True)
class TokenAnalysis:
    """Result of one tokenization run over a sample set.

    Superseded by a fresh analysis rather than edited; see ``with_override``.
    """

    filenames: tuple[str, ...] = ()
    tokens_by_file: dict[str, tuple[FilenameToken, ...]] = field(default_factory=dict)
    suggestions: tuple[TokenSuggestion, ...] = ()
    confidence_scores: dict[TokenType, float] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.filenames

    def all_tokens(self) -> list[FilenameToken]:
        """Every token of every file, in filename order."""
        tokens: list[FilenameToken] = []
        for name in self.filenames:
            tokens.extend(self.tokens_by_file.get(name, ()))
        return tokens

    def tokens_at(self, position: int) -> list[FilenameToken]:
        return [t for t in self.all_tokens() if t.position == position]

    def positions(self) -> list[int]:
        return sorted({t.position for t in self.all_tokens()})

    def positions_for(self, token_type: TokenType) -> list[int]:
        return sorted({t.position for t in self.all_tokens() if t.suggested_type == token_type})

    def values_for(self, token_type: TokenType) -> list[str]:
        """Distinct values observed for *token_type*, in first-seen order."""
        seen: dict[str, None] = {}
        for token in self.all_tokens():
            if token.suggested_type == token_type:
                seen.setdefault(token.value, None)
        return list(seen)

    def types_present(self) -> list[TokenType]:
        present = {t.suggested_type for t in self.all_tokens()}
        return [t for t in TokenType if t in present]

    def has_type(self, token_type: TokenType) -> bool:
        return any(t.suggested_type == token_type for t in self.all_tokens())

    def dominant_type_at(self, position: int) -> Optional[TokenType]:
        counts = Counter(t.suggested_type for t in self.tokens_at(position))
        if not counts:
            return None
        return counts.most_common(1)[0][0]

    def with_override(self, position: int, token_type: TokenType) -> TokenAnalysis:
        """Return a new analysis with every token at *position* reclassified."""
        tokens_by_file = {
            name: tuple(
                t.with_type(token_type) if t.position == position else t
                for t in tokens
            )
            for name, tokens in self.tokens_by_file.items()
        }
        suggestions = tuple(
            replace(s, token_type=token_type, confidence=OVERRIDE_CONFIDENCE,
                    rationale="Set manually")
            if s.position == position else s
            for s in self.suggestions
        )
        scores = confidence_by_type(tokens_by_file.values())
        return TokenAnalysis(
            filenames=self.filenames,
            tokens_by_file=tokens_by_file,
            suggestions=suggestions,
            confidence_scores=scores,
        )


def confidence_by_type(token_lists) -> dict[TokenType, float]:
    """Mean confidence per token type across all token lists."""
    totals: dict[TokenType, list[float]] = {}
    for tokens in token_lists:
        for token in tokens:
            totals.setdefault(token.suggested_type, []).append(token.confidence)
    return {t: round(sum(v) / len(v), 3) for t, v in totals.items()}
