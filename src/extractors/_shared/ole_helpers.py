"""
OLE compound file helpers for the legacy Office parsers.

Wraps olefile so that every failure to open the structure or read a stream
surfaces as a ContainerOpenError the parsers can report uniformly.
"""

from __future__ import annotations

from typing import BinaryIO, Optional

import olefile

from core.logging import get_logger
from extractors.exceptions import ContainerOpenError

LOGGER = get_logger("extractors._shared.ole_helpers")


def open_compound_file(stream: BinaryIO) -> olefile.OleFileIO:
    """
    Open a seekable byte stream as an OLE2 compound file.

    Raises:
        ContainerOpenError: If the stream is not a readable compound file
    """
    try:
        return olefile.OleFileIO(stream)
    except Exception as exc:
        # olefile signals malformed headers, FAT loops and short files with
        # OSError, struct.error and assorted others
        raise ContainerOpenError(f"not a readable OLE compound file: {exc}") from exc


def read_stream(
    ole: olefile.OleFileIO,
    name: str,
    max_bytes: int,
    required: bool = True,
) -> Optional[bytes]:
    """
    Read a whole stream from ``ole``.

    Args:
        ole: Open compound file
        name: Stream path ("WordDocument", "ObjectPool/_123/CONTENTS")
        max_bytes: Largest stream size accepted
        required: Raise when the stream is absent instead of returning None

    Returns:
        Stream bytes, or None when the stream is absent and not required

    Raises:
        ContainerOpenError: If a required stream is missing, the entry is not a
            stream, the stream exceeds ``max_bytes`` or its sector chain is broken
    """
    if not ole.exists(name):
        if required:
            raise ContainerOpenError(f"missing '{name}' stream")
        return None
    if ole.get_type(name) != olefile.STGTY_STREAM:
        raise ContainerOpenError(f"'{name}' is not a stream")

    size = ole.get_size(name)
    if size > max_bytes:
        raise ContainerOpenError(f"stream '{name}' is {size} bytes, above the {max_bytes} byte limit")

    try:
        with ole.openstream(name) as handle:
            data = handle.read()
    except Exception as exc:
        raise ContainerOpenError(f"cannot read stream '{name}': {exc}") from exc

    LOGGER.debug("Read %d bytes from OLE stream %s", len(data), name)
    return data
