# -*- coding: utf-8 -*-
"""Image extension handling.

Responsibilities:
    - Recognise image files by extension.
    - Rewrite the trailing extension of a pattern into a case-insensitive
      alternation over the configured image extensions.
"""

from __future__ import annotations

import re

# Supported image extensions (lowercase)
IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "bmp", "gif", "tif", "tiff", "webp")

# Replacement fragment emitted by apply_extension_matching
EXTENSION_ALTERNATION = "(?i:jpe?g|png|bmp|gif|tiff?|webp)"

# Trailing extension in one of the forms the generator or a user produces:
#   \.jpg$   \.jpg   (?i:jpg)$   \.(?i:JPG)$
_RE_TRAILING_EXTENSION = re.compile(
    r"(?:\(\?i:(?P<scoped>[A-Za-z0-9]{2,5})\)|(?<=\\\.)(?P<literal>[A-Za-z0-9]{2,5}))(?P<end>\$?)$"
)

# Alternation of scoped extensions emitted when the samples mix extensions:
#   (?:(?i:jpg)|(?i:png))$
_RE_TRAILING_ALTERNATION = re.compile(
    r"\(\?:(?P<alts>\(\?i:[A-Za-z0-9]{2,5}\)(?:\|\(\?i:[A-Za-z0-9]{2,5}\))+)\)(?P<end>\$?)$"
)


def has_image_extension(filename: str, extensions=IMAGE_EXTENSIONS) -> bool:
    """True if *filename* ends with one of *extensions* (case-insensitive)."""
    if "." not in filename:
        return False
    return filename.rsplit(".", 1)[1].lower() in extensions


def extension_alternation(extensions=IMAGE_EXTENSIONS) -> str:
    """Case-insensitive alternation over *extensions*.

    The built-in set gives ``EXTENSION_ALTERNATION``. Other sets list each
    extension, longest first, so ``tiff`` is tried before ``tif``.
    """
    exts = list(dict.fromkeys(e.lower().lstrip(".") for e in extensions if e))
    if not exts:
        raise ValueError("At least one image extension is required")
    if set(exts) == set(IMAGE_EXTENSIONS):
        return EXTENSION_ALTERNATION
    exts.sort(key=len, reverse=True)
    return "(?i:" + "|".join(re.escape(e) for e in exts) + ")"


def apply_extension_matching(pattern: str, enabled: bool, extensions=IMAGE_EXTENSIONS) -> str:
    """Replace a trailing literal image extension with an alternation over *extensions*.

    Patterns without a trailing extension from *extensions* are returned
    as-is, which also makes the rewrite idempotent.
    """
    if not enabled or not pattern:
        return pattern

    m = _RE_TRAILING_ALTERNATION.search(pattern)
    if m:
        exts = re.findall(r"\(\?i:([A-Za-z0-9]+)\)", m.group("alts"))
    else:
        m = _RE_TRAILING_EXTENSION.search(pattern)
        if not m:
            return pattern
        exts = [m.group("scoped") or m.group("literal")]

    accepted = {e.lower().lstrip(".") for e in extensions}
    if any(ext.lower() not in accepted for ext in exts):
        return pattern

    return pattern[:m.start()] + extension_alternation(extensions) + m.group("end")
