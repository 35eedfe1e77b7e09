"""
XOR1 container encoding for derived files.

Extracted artifacts are written through a single-byte XOR with a fixed key,
behind a plaintext signature header, so antivirus and desktop indexers do not
act on carved content. This is an obfuscation, not a confidentiality control.

Layout of an encoded file:
    0x00  32-byte ASCII header ``TSK_CONTAINER_XOR1_xxxxxxxxxxxxx``
    0x20  payload, every byte XOR 0xCA
"""

from __future__ import annotations

from pathlib import Path
from types import TracebackType
from typing import BinaryIO, Optional, Type

from .enums import EncodingType

XOR1_KEY = 0xCA
XOR1_HEADER = b"TSK_CONTAINER_XOR1_xxxxxxxxxxxxx"
HEADER_LENGTH = len(XOR1_HEADER)

_XOR1_TABLE = bytes(b ^ XOR1_KEY for b in range(256))


def encode_bytes(data: bytes) -> bytes:
    """Apply the XOR1 byte transform (no header)."""
    return data.translate(_XOR1_TABLE)


def decode_bytes(data: bytes) -> bytes:
    """Invert the XOR1 byte transform (no header)."""
    # XOR with a constant is its own inverse
    return data.translate(_XOR1_TABLE)


def is_encoded(data: bytes) -> bool:
    """Return True if ``data`` starts with the XOR1 container header."""
    return data[:HEADER_LENGTH] == XOR1_HEADER


class EncodedFileWriter:
    """
    Binary writer that emits the XOR1 header then encodes everything written.

    Usage:
        with EncodedFileWriter(path) as writer:
            writer.write(payload)
    """

    encoding = EncodingType.XOR1

    def __init__(self, path: Path) -> None:
        self.path = path
        self._handle: Optional[BinaryIO] = None
        self.bytes_written = 0

    def __enter__(self) -> EncodedFileWriter:
        self._handle = self.path.open("wb")
        self._handle.write(XOR1_HEADER)
        return self

    def write(self, data: bytes) -> int:
        if self._handle is None:
            raise ValueError("EncodedFileWriter used outside of a with block")
        self._handle.write(encode_bytes(data))
        self.bytes_written += len(data)
        return len(data)

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None


def read_encoded_file(path: Path) -> bytes:
    """Read an XOR1-encoded file and return the decoded payload."""
    raw = path.read_bytes()
    if not is_encoded(raw):
        raise ValueError(f"{path} is not an XOR1 encoded file")
    return decode_bytes(raw[HEADER_LENGTH:])
