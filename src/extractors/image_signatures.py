"""
Image Signature Detection

Magic-byte detection for picture payloads pulled out of document containers.
Used when a container record carries no usable type tag of its own.

Supported formats:
- JPEG (all variants: JFIF, EXIF, ICC, SPIFF, Adobe, raw)
- PNG
- GIF (87a, 89a)
- BMP
- TIFF (little-endian and big-endian)
- WMF (placeable/Aldus and standard headers)
- EMF (ENHMETAHEADER with " EMF" signature)
- ICO
"""

from __future__ import annotations

import struct
from typing import Optional, Tuple

from core.logging import get_logger

LOGGER = get_logger("extractors.image_signatures")

# Maps signature bytes to (format_name, extension); checked longest first
IMAGE_SIGNATURES = {
    b'\xff\xd8\xff\xe0': ('jpeg', '.jpg'),  # JFIF
    b'\xff\xd8\xff\xe1': ('jpeg', '.jpg'),  # EXIF
    b'\xff\xd8\xff\xe2': ('jpeg', '.jpg'),  # ICC
    b'\xff\xd8\xff\xe8': ('jpeg', '.jpg'),  # SPIFF
    b'\xff\xd8\xff\xdb': ('jpeg', '.jpg'),  # Raw
    b'\xff\xd8\xff\xee': ('jpeg', '.jpg'),  # Adobe
    b'\xff\xd8\xff': ('jpeg', '.jpg'),      # Generic JPEG (3-byte prefix)

    b'\x89PNG\r\n\x1a\n': ('png', '.png'),

    b'GIF87a': ('gif', '.gif'),
    b'GIF89a': ('gif', '.gif'),

    b'II*\x00': ('tiff', '.tiff'),
    b'MM\x00*': ('tiff', '.tiff'),

    # Aldus placeable metafile key 0x9AC6CDD7
    b'\xd7\xcd\xc6\x9a': ('wmf', '.wmf'),

    b'\x00\x00\x01\x00': ('ico', '.ico'),
}

_SORTED_SIGNATURES = sorted(IMAGE_SIGNATURES.items(), key=lambda item: len(item[0]), reverse=True)

EMF_SIGNATURE = b' EMF'
EMF_SIGNATURE_OFFSET = 40


def detect_image_type(data: bytes) -> Optional[Tuple[str, str]]:
    """
    Detect image format using magic byte signatures.

    Args:
        data: Raw bytes to check (at least the first 48 bytes recommended)

    Returns:
        Tuple of (format_name, extension) or None if not a known picture

    Examples:
        >>> detect_image_type(b'\\x89PNG\\r\\n\\x1a\\n...')
        ('png', '.png')
        >>> detect_image_type(b'not an image')
        None
    """
    if not data or len(data) < 2:
        return None

    for signature, format_info in _SORTED_SIGNATURES:
        if data.startswith(signature):
            return format_info

    # EMF: record type EMR_HEADER (1) then " EMF" inside the header
    if (
        len(data) >= EMF_SIGNATURE_OFFSET + 4
        and struct.unpack_from('<I', data, 0)[0] == 1
        and data[EMF_SIGNATURE_OFFSET:EMF_SIGNATURE_OFFSET + 4] == EMF_SIGNATURE
    ):
        return ('emf', '.emf')

    # Standard (non-placeable) WMF: mtType 1|2, mtHeaderSize 9 words
    if len(data) >= 18:
        mt_type, header_words, version = struct.unpack_from('<HHH', data, 0)
        if mt_type in (1, 2) and header_words == 9 and version in (0x0100, 0x0300):
            return ('wmf', '.wmf')

    # BMP last: the two-byte prefix is weak, so require a sane file size field
    if data[:2] == b'BM' and len(data) >= 14:
        declared = struct.unpack_from('<I', data, 2)[0]
        if 14 < declared <= len(data) + 1024:
            return ('bmp', '.bmp')

    return None


def suggest_extension(data: bytes, default: str = "bin") -> str:
    """
    Return an extension (without dot) for ``data`` from its magic bytes.

    Args:
        data: Picture payload
        default: Extension used when nothing matches

    Returns:
        Lower-case extension such as ``"png"``
    """
    detected = detect_image_type(data)
    if detected is None:
        LOGGER.debug("No picture signature matched %d bytes; using .%s", len(data), default)
        return default
    return detected[1].lstrip('.')
