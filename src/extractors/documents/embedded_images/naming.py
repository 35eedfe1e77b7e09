"""
File names for extracted pictures.

Records that carry a name hint keep its basename; records without one are
numbered ``image_0``, ``image_1``, ... in emission order. Names are unique
within a parent document's directory, compared case-insensitively so the
layout is safe on Windows file systems.
"""

from __future__ import annotations

import re
from typing import Optional, Set

from .parsers.base import PictureRecord

UNKNOWN_NAME_PREFIX = "image_"
DEFAULT_EXTENSION = "bin"

_UNSAFE_CHARS = re.compile(r'[\x00-\x1f<>:"|?*]')
_EXTENSION_CHARS = re.compile(r"[^A-Za-z0-9]")


def sanitize_name_hint(hint: Optional[str]) -> Optional[str]:
    """Reduce a container-supplied name to a safe basename, None if nothing usable remains."""
    if not hint:
        return None
    basename = re.split(r"[\\/]", hint)[-1]
    basename = _UNSAFE_CHARS.sub("_", basename).strip().rstrip(".")
    if not basename or basename in (".", ".."):
        return None
    return basename


def sanitize_extension(extension: Optional[str]) -> str:
    cleaned = _EXTENSION_CHARS.sub("", (extension or "").lstrip(".")).lower()
    return cleaned or DEFAULT_EXTENSION


class FileNamer:
    """Assigns unique file names to one document's pictures."""

    def __init__(self):
        self._taken: Set[str] = set()
        self._next_index = 0

    def name_for(self, record: PictureRecord) -> str:
        name = sanitize_name_hint(record.name_hint)
        if name is None:
            name = f"{UNKNOWN_NAME_PREFIX}{self._next_index}.{sanitize_extension(record.extension)}"
            self._next_index += 1
        return self._claim(name)

    def _claim(self, name: str) -> str:
        candidate = name
        stem, dot, suffix = name.rpartition(".")
        if not dot or not stem:
            stem, suffix = name, ""
        counter = 1
        while candidate.lower() in self._taken:
            candidate = f"{stem}_{counter}.{suffix}" if suffix else f"{stem}_{counter}"
            counter += 1
        self._taken.add(candidate.lower())
        return candidate
