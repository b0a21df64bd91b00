# -*- coding: utf-8 -*-
"""Directory listing for pattern analysis.

Responsibilities:
    - List the image files of one folder (non-recursive), sorted by name.
    - Cap the listing at a sample limit to keep analysis responsive.
    - Report unreadable folders as ``AnalysisFailure``.
"""

from __future__ import annotations

import os
import logging
from pathlib import Path
from typing import Optional

from pattern_builder.extensions import IMAGE_EXTENSIONS, has_image_extension
from pattern_builder.tasks import CancellationToken, check_cancelled

logger = logging.getLogger(__name__)

# Maximum number of files considered for analysis and preview grouping
DEFAULT_SAMPLE_LIMIT = 500


class AnalysisFailure(RuntimeError):
    """A directory could not be listed for analysis."""

    def __init__(self, directory: str | Path, cause: Exception) -> None:
        super().__init__(f"Cannot read directory '{directory}': {cause}")
        self.directory = str(directory)
        self.cause = cause


def list_image_files(
    directory: str | Path,
    limit: int | None = DEFAULT_SAMPLE_LIMIT,
    extensions=IMAGE_EXTENSIONS,
    cancel: Optional[CancellationToken] = None,
) -> list[str]:
    """Return up to *limit* image filenames found directly inside *directory*.

    Raises:
        AnalysisFailure: If *directory* is missing or cannot be read.
        OperationCancelled: If *cancel* is triggered during the listing.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise AnalysisFailure(directory, FileNotFoundError(f"Not a directory: {directory}"))

    names: list[str] = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                check_cancelled(cancel)
                try:
                    if not entry.is_file():
                        continue
                except OSError as e:
                    logger.warning(f"Skipping unreadable entry {entry.name}: {e}")
                    continue
                if has_image_extension(entry.name, extensions):
                    names.append(entry.name)
    except OSError as e:
        raise AnalysisFailure(directory, e) from e

    names.sort()
    if limit is not None and len(names) > limit:
        logger.info(f"Limiting analysis of {directory} to {limit} of {len(names)} images")
        names = names[:limit]
    return names
