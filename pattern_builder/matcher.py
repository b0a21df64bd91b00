# -*- coding: utf-8 -*-
"""Applying a finished configuration to a set of filenames.

Responsibilities:
    - Extract the group ID from each filename with the group pattern.
    - Bucket matching files by the exact captured group ID.
    - Assign image roles inside each bucket and flag ambiguous files.
    - Report non-matching files with a reason.
"""

from __future__ import annotations

import re
import functools
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from pattern_builder.generator import PatternGenerator
from pattern_builder.models import PatternConfiguration
from pattern_builder.tasks import CancellationToken, check_cancelled
from pattern_builder.tokens import ImageRole

logger = logging.getLogger(__name__)

# Most compiled patterns kept across calls
PATTERN_CACHE_SIZE = 128

REASON_NO_GROUP_MATCH = "no group match"
REASON_EMPTY_GROUP_ID = "empty group id"


@functools.lru_cache(maxsize=PATTERN_CACHE_SIZE)
def _cached_compile(pattern: str) -> re.Pattern:
    return re.compile(pattern)


def _compile(pattern: str, name: str) -> re.Pattern:
    """Compile *pattern* through the cache.

    Raises:
        ValueError: If *pattern* is not a valid regex.
    """
    try:
        return _cached_compile(pattern)
    except re.error as e:
        raise ValueError(f"{name} does not compile: {e}") from e


@dataclass
class FileMatch:
    """One grouped file and the roles its name matched."""

    filename: str
    roles: list[ImageRole] = field(default_factory=list)

    @property
    def role(self) -> Optional[ImageRole]:
        """The single matched role, or None when unmatched or ambiguous."""
        return self.roles[0] if len(self.roles) == 1 else None

    @property
    def ambiguous(self) -> bool:
        return len(self.roles) > 1


@dataclass
class UnmatchedFile:
    filename: str
    reason: str


@dataclass
class GroupingReport:
    """Result of grouping a file set; groups keep first-seen order."""

    groups: dict[str, list[FileMatch]] = field(default_factory=dict)
    unmatched: list[UnmatchedFile] = field(default_factory=list)

    @property
    def matched_count(self) -> int:
        return sum(len(files) for files in self.groups.values())

    def roles_in(self, group_id: str) -> set[ImageRole]:
        return {r for f in self.groups.get(group_id, []) for r in f.roles}

    def ambiguous_files(self) -> list[FileMatch]:
        return [f for files in self.groups.values() for f in files if f.ambiguous]

    def groups_without_roles(self) -> list[str]:
        return [gid for gid, files in self.groups.items() if not any(f.roles for f in files)]


def _role_matchers(config: PatternConfiguration) -> list[tuple[ImageRole, re.Pattern]]:
    generator = PatternGenerator()
    matchers = []
    for role in ImageRole:
        pattern = config.pattern_for(role)
        if not (pattern and pattern.strip()):
            pattern = generator.generate_role_pattern(config.role_rules, role)
        if pattern:
            matchers.append((role, _compile(pattern, f"{role.name.capitalize()} pattern")))
    return matchers


def group_files(
    config: PatternConfiguration,
    filenames: Iterable[str],
    cancel: Optional[CancellationToken] = None,
    limit: Optional[int] = None,
) -> GroupingReport:
    """Partition *filenames* into groups and assign roles with *config*.

    A role pattern left blank is generated from the configuration's rules.
    At most *limit* filenames are processed when given.

    Raises:
        ValueError: If the group pattern is blank or any pattern does not compile.
        OperationCancelled: If *cancel* is triggered mid-scan.
    """
    if not (config.group_pattern and config.group_pattern.strip()):
        raise ValueError("Group pattern is empty")

    group_re = _compile(config.group_pattern, "Group pattern")
    if group_re.groups < 1:
        raise ValueError("Group pattern has no capturing group")
    role_res = _role_matchers(config)

    report = GroupingReport()
    for i, name in enumerate(filenames):
        if limit is not None and i >= limit:
            logger.info(f"Grouping stopped at limit of {limit} file(s)")
            break
        check_cancelled(cancel)

        m = group_re.search(name)
        if not m:
            report.unmatched.append(UnmatchedFile(name, REASON_NO_GROUP_MATCH))
            continue
        group_id = m.group(1)
        if not group_id:
            report.unmatched.append(UnmatchedFile(name, REASON_EMPTY_GROUP_ID))
            continue

        roles = [role for role, regex in role_res if regex.search(name)]
        if len(roles) > 1:
            logger.debug(f"{name} matches several roles: {', '.join(r.name for r in roles)}")
        report.groups.setdefault(group_id, []).append(FileMatch(name, roles))

    logger.info(
        f"Grouped {report.matched_count} file(s) into {len(report.groups)} group(s), "
        f"{len(report.unmatched)} unmatched"
    )
    return report
