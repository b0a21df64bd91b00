# -*- coding: utf-8 -*-
"""Filename tokenization and token type suggestion.

Responsibilities:
    - Split each filename into delimiter-bounded fragments plus its extension.
    - Classify every fragment with ordered per-filename heuristics.
    - Reconcile classifications per position across the whole sample set and
      promote the most distinctive varying fragment to the group identifier.
"""

from __future__ import annotations

import re
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Optional

from pattern_builder.tasks import CancellationToken, check_cancelled
from pattern_builder.tokens import (
    FilenameToken,
    TokenAnalysis,
    TokenSuggestion,
    TokenType,
    confidence_by_type,
    role_for_camera_value,
)

logger = logging.getLogger(__name__)

# Dashed dates are kept whole even though "-" is a delimiter
_RE_FRAGMENT = re.compile(
    r"(?<![^_\-.\s])(?:\d{4}-\d{2}-\d{2}|\d{2}-\d{2}-\d{4})(?![^_\-.\s])|[^_\-.\s]+"
)
_RE_EXTENSION = re.compile(r"^(?P<stem>.*[^.])\.(?P<ext>[A-Za-z0-9]{1,5})$")
_RE_DASHED_DATE = re.compile(r"^(?:\d{4}-\d{2}-\d{2}|\d{2}-\d{2}-\d{4})$")
_RE_COMPACT_DATE = re.compile(r"^(?P<y>(?:19|20)\d{2})(?P<m>\d{2})(?P<d>\d{2})$")

# Heuristic confidences
CONF_EXTENSION = 1.0
CONF_CAMERA_SIDE = 0.95
CONF_DATE = 0.9
CONF_PREFIX = 0.7
CONF_INDEX = 0.6
CONF_SUFFIX = 0.6
CONF_UNKNOWN = 0.3
CONF_FALLBACK_MAX = 0.8

# Prefix/suffix positions with more distinct values than this are not constant text
LITERAL_MAX_VARIANTS = 3


def split_filename(filename: str) -> tuple[list[str], Optional[str]]:
    """Split *filename* into its fragments and its extension (``None`` if absent).

    Empty fragments produced by doubled delimiters are dropped.
    """
    m = _RE_EXTENSION.match(filename)
    if m:
        stem, ext = m.group("stem"), m.group("ext")
    else:
        stem, ext = filename, None
    return _RE_FRAGMENT.findall(stem), ext


def is_date_fragment(fragment: str) -> bool:
    if _RE_DASHED_DATE.match(fragment):
        return True
    m = _RE_COMPACT_DATE.match(fragment)
    if not m:
        return False
    return 1 <= int(m.group("m")) <= 12 and 1 <= int(m.group("d")) <= 31


def classify_fragment(fragment: str, index: int, count: int) -> tuple[TokenType, float, str]:
    """Classify one non-extension fragment from its text and position alone."""
    if role_for_camera_value(fragment) is not None:
        return TokenType.CAMERA_SIDE, CONF_CAMERA_SIDE, "Camera/side synonym"
    if is_date_fragment(fragment):
        return TokenType.DATE, CONF_DATE, "Date layout"
    if fragment.isdigit() and len(fragment) >= 3:
        return TokenType.INDEX, CONF_INDEX, "Numeric run of 3+ digits"
    if index == 0:
        return TokenType.PREFIX, CONF_PREFIX, "First fragment"
    if index == count - 1:
        return TokenType.SUFFIX, CONF_SUFFIX, "Last fragment before the extension"
    return TokenType.UNKNOWN, CONF_UNKNOWN, "No heuristic matched"


@dataclass
class _Draft:
    value: str
    position: int
    token_type: TokenType
    confidence: float
    rationale: str

    def freeze(self) -> FilenameToken:
        return FilenameToken(self.value, self.position, self.token_type, self.confidence)


class FilenameTokenizer:
    """Turns a sample set of filenames into a ``TokenAnalysis``."""

    def tokenize(self, filename: str) -> list[FilenameToken]:
        """Per-filename classification, without cross-file reconciliation."""
        return [d.freeze() for d in self._draft_file(filename)]

    def analyze(
        self,
        filenames: Iterable[str],
        cancel: Optional[CancellationToken] = None,
    ) -> TokenAnalysis:
        """Tokenize and classify *filenames*; an empty input gives an empty analysis."""
        names = [n for n in dict.fromkeys(filenames) if n]
        if not names:
            return TokenAnalysis()

        drafts: dict[str, list[_Draft]] = {}
        for name in names:
            check_cancelled(cancel)
            drafts[name] = self._draft_file(name)

        fragment_counts = [sum(1 for d in ds if d.token_type != TokenType.EXTENSION) for ds in drafts.values()]
        width = max(fragment_counts, default=0)

        suggestions: list[TokenSuggestion] = []
        by_position: dict[int, list[_Draft]] = {}
        for ds in drafts.values():
            for d in ds:
                if d.token_type == TokenType.EXTENSION:
                    # Extensions share one trailing position whatever the fragment count
                    d.position = width
                else:
                    by_position.setdefault(d.position, []).append(d)

        for position in sorted(by_position):
            check_cancelled(cancel)
            suggestions.append(self._reconcile_position(position, by_position[position]))

        promoted = self._promote_group_id(by_position, len(names))
        if promoted is not None:
            suggestions = [promoted if s.position == promoted.position else s for s in suggestions]

        ext_drafts = [d for ds in drafts.values() for d in ds if d.token_type == TokenType.EXTENSION]
        if ext_drafts:
            suggestions.append(TokenSuggestion(
                token_type=TokenType.EXTENSION,
                position=width,
                values=tuple(dict.fromkeys(d.value for d in ext_drafts)),
                confidence=CONF_EXTENSION,
                rationale="File extension",
            ))

        tokens_by_file = {name: tuple(d.freeze() for d in ds) for name, ds in drafts.items()}
        analysis = TokenAnalysis(
            filenames=tuple(names),
            tokens_by_file=tokens_by_file,
            suggestions=tuple(suggestions),
            confidence_scores=confidence_by_type(tokens_by_file.values()),
        )
        logger.info(
            f"Tokenized {len(names)} filename(s): {width} position(s), "
            f"{len(suggestions)} suggestion(s)"
        )
        return analysis

    # -- Internals -------------------------------------------------------------

    def _draft_file(self, filename: str) -> list[_Draft]:
        fragments, ext = split_filename(filename)
        drafts = []
        for i, fragment in enumerate(fragments):
            ttype, conf, why = classify_fragment(fragment, i, len(fragments))
            drafts.append(_Draft(fragment, i, ttype, conf, why))
        if ext is not None:
            drafts.append(_Draft(ext, len(fragments), TokenType.EXTENSION, CONF_EXTENSION, "File extension"))
        return drafts

    def _reconcile_position(self, position: int, drafts: list[_Draft]) -> TokenSuggestion:
        """Apply the majority type at *position* to every draft there."""
        counts = Counter(d.token_type for d in drafts)
        weight = Counter()
        for d in drafts:
            weight[d.token_type] += d.confidence
        winner = max(counts, key=lambda t: (counts[t], weight[t]))
        share = counts[winner] / len(drafts)
        rationale = next(d.rationale for d in drafts if d.token_type == winner)

        distinct = list(dict.fromkeys(d.value for d in drafts))
        if winner in (TokenType.PREFIX, TokenType.SUFFIX) and len(distinct) > LITERAL_MAX_VARIANTS:
            winner = TokenType.UNKNOWN
            share = min(share, 0.5)
            rationale = f"Text varies across files ({len(distinct)} values)"

        adopted_conf = round(min(CONF_FALLBACK_MAX, share * CONF_FALLBACK_MAX), 2)
        for d in drafts:
            if d.token_type != winner:
                d.token_type = winner
                d.confidence = adopted_conf
                d.rationale = rationale

        if share < 1.0:
            rationale = f"{rationale} (majority {counts.most_common(1)[0][1]}/{len(drafts)})"
            logger.debug(f"Position {position}: {winner.name} wins with share {share:.2f}")

        mean_conf = sum(d.confidence for d in drafts) / len(drafts)
        return TokenSuggestion(
            token_type=winner,
            position=position,
            values=tuple(distinct),
            confidence=round(mean_conf, 3),
            rationale=rationale,
        )

    def _promote_group_id(self, by_position: dict[int, list[_Draft]], file_count: int) -> Optional[TokenSuggestion]:
        """Promote the most distinctive varying UNKNOWN/INDEX position to GROUP_ID."""
        best: Optional[tuple[int, int, float]] = None  # (distinct, -position, ratio)
        best_position = None
        for position in sorted(by_position):
            drafts = by_position[position]
            if drafts[0].token_type not in (TokenType.UNKNOWN, TokenType.INDEX):
                continue
            if len(drafts) * 2 <= file_count:
                continue  # not shared by most files
            distinct = len({d.value for d in drafts})
            if distinct < min(2, file_count):
                continue  # constant text is not an identifier
            key = (distinct, -position, distinct / len(drafts))
            if best is None or key[:2] > best[:2]:
                best, best_position = key, position

        if best_position is None:
            return None

        ratio = best[2]
        conf = round(min(CONF_FALLBACK_MAX, 0.5 + 0.3 * ratio), 2)
        drafts = by_position[best_position]
        for d in drafts:
            d.token_type = TokenType.GROUP_ID
            d.confidence = conf
            d.rationale = "Most distinctive varying fragment"
        logger.debug(f"Position {best_position} promoted to GROUP_ID ({best[0]} distinct values)")
        return TokenSuggestion(
            token_type=TokenType.GROUP_ID,
            position=best_position,
            values=tuple(dict.fromkeys(d.value for d in drafts)),
            confidence=conf,
            rationale=f"Varies across files ({best[0]} distinct values); suggested group identifier",
        )
