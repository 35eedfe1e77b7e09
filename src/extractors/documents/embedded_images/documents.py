"""
Input document helpers.

Hosts normally pass their own case file objects; these two implementations
cover documents already in memory and loose files on disk.
"""

from __future__ import annotations

import io
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO

from extractors.callbacks import InputDocument

_SEPARATORS = re.compile(r"[\\/]")


def unique_name(document: InputDocument) -> str:
    """Return ``<name>_<id>``, the per-document output directory name."""
    name = _SEPARATORS.sub("_", document.name or "")
    return f"{name}_{document.id}"


@dataclass(frozen=True, slots=True)
class InMemoryDocument:
    """Document whose bytes are already held by the caller."""

    id: Any
    name: str
    content: bytes

    def open(self) -> BinaryIO:
        return io.BytesIO(self.content)


@dataclass(frozen=True, slots=True)
class LocalFileDocument:
    """Document backed by a file on the local file system."""

    id: Any
    name: str
    path: Path

    def open(self) -> BinaryIO:
        return open(self.path, "rb")
