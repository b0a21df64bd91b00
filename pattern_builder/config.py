# -*- coding: utf-8 -*-
"""YAML settings loading and persistence for the pattern builder."""

from __future__ import annotations

import os
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path

from pattern_builder.extensions import IMAGE_EXTENSIONS
from pattern_builder.scanner import DEFAULT_SAMPLE_LIMIT

logger = logging.getLogger(__name__)

# Live validation debounce window
DEFAULT_DEBOUNCE_MS = 300

# Default settings file shipped with the tool
DEFAULT_SETTINGS_PATH = os.path.join(
    os.path.dirname(os.path.dirname(__file__)), "config", "default_settings.yaml"
)


@dataclass
class Settings:
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    """Live validation debounce window."""
    sample_limit: int = DEFAULT_SAMPLE_LIMIT
    """Maximum number of files listed for analysis and grouping."""
    extension_matching: bool = False
    image_extensions: list[str] = field(default_factory=lambda: list(IMAGE_EXTENSIONS))


_FIELD_TYPES = {
    "debounce_ms": int,
    "sample_limit": int,
    "extension_matching": bool,
    "image_extensions": list,
}


def _coerce(key: str, value, path: str):
    """Return *value* checked against the type of setting *key*, or None if unusable."""
    expected = _FIELD_TYPES[key]
    if expected is int:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            logger.warning(f"Setting '{key}' in '{path}' must be a non-negative integer - ignoring {value!r}")
            return None
        return value
    if expected is bool:
        if not isinstance(value, bool):
            logger.warning(f"Setting '{key}' in '{path}' must be true or false - ignoring {value!r}")
            return None
        return value
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        logger.warning(f"Setting '{key}' in '{path}' must be a list of extensions - ignoring {value!r}")
        return None
    return [v.lower().lstrip(".") for v in value]


def load_settings(path: str | Path | None = None) -> Settings:
    """Parse a YAML settings file; a missing file gives the defaults.

    Unknown keys and wrongly-typed values are logged and ignored.
    """
    if path is None:
        path = DEFAULT_SETTINGS_PATH

    path = str(path)
    settings = Settings()
    if not os.path.isfile(path):
        return settings

    import yaml

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return settings
    if not isinstance(data, dict):
        logger.warning(f"Settings file '{path}' is not a valid YAML dictionary")
        return settings

    for key, value in data.items():
        if key not in _FIELD_TYPES:
            logger.warning(f"Unknown setting '{key}' in '{path}' - skipping")
            continue
        value = _coerce(key, value, path)
        if value is not None:
            setattr(settings, key, value)

    return settings


def save_settings(settings: Settings, path: str | Path) -> None:
    """Persist *settings* to a YAML file, creating parent directories."""
    import yaml

    parent = os.path.dirname(str(path))
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(str(path), "w", encoding="utf-8") as f:
        yaml.dump(asdict(settings), f, default_flow_style=False, sort_keys=False)
