"""Version stamped on derived files as the extracting tool's version."""

from __future__ import annotations

import re
from functools import lru_cache
from importlib import metadata
from pathlib import Path
from typing import Optional

DISTRIBUTION_NAME = "embedsifter"
UNKNOWN_VERSION = "0.0.0"
PYPROJECT_PATH = Path(__file__).resolve().parents[2] / "pyproject.toml"

_VERSION_LINE = re.compile(r'^\s*version\s*=\s*"([^"]+)"\s*$', re.MULTILINE)


def version_from_pyproject(path: Path) -> Optional[str]:
    """Read ``version = "..."`` from a pyproject file, None when absent or unreadable."""
    try:
        match = _VERSION_LINE.search(path.read_text(encoding="utf-8"))
    except OSError:
        return None
    return match.group(1) if match else None


@lru_cache(maxsize=1)
def get_app_version() -> str:
    """Installed distribution version, falling back to a source checkout's pyproject."""
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return version_from_pyproject(PYPROJECT_PATH) or UNKNOWN_VERSION
