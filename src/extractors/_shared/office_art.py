"""
OfficeArt (Escher) record parsing shared by the legacy binary Office parsers.

Word, PowerPoint and Excel 97-2003 files all store pictures as OfficeArt BLIP
records ([MS-ODRAW] 2.2.23 - 2.2.32), either loose (PowerPoint "Pictures"
stream), inside a BLIP store of FBSE entries (Excel drawing group, Word
DggInfo), or behind a PICF header (Word inline pictures).

Record header (8 bytes, little-endian):
    u16  recVer (low 4 bits) | recInstance (high 12 bits)
    u16  recType
    u32  recLen (payload length, header excluded)

Bitmap BLIPs (JPEG/PNG/DIB/TIFF):  rgbUid1 [rgbUid2] tag(1) data
Metafile BLIPs (EMF/WMF/PICT):     rgbUid1 [rgbUid2] OfficeArtMetafileHeader(34) data
"""

from __future__ import annotations

import struct
import zlib
from dataclasses import dataclass
from enum import StrEnum
from typing import Iterator, Optional, Tuple

from extractors.exceptions import ContainerOpenError, RecordReadError
from extractors.image_signatures import suggest_extension

RECORD_HEADER = struct.Struct("<HHI")
HEADER_SIZE = RECORD_HEADER.size
CONTAINER_VERSION = 0xF

RT_DGG_CONTAINER = 0xF000
RT_BSTORE_CONTAINER = 0xF001
RT_FBSE = 0xF007

RT_BLIP_FIRST = 0xF018
RT_BLIP_LAST = 0xF117
RT_BLIP_EMF = 0xF01A
RT_BLIP_WMF = 0xF01B
RT_BLIP_PICT = 0xF01C
RT_BLIP_JPEG = 0xF01D
RT_BLIP_PNG = 0xF01E
RT_BLIP_DIB = 0xF01F
RT_BLIP_TIFF = 0xF029
RT_BLIP_JPEG_CMYK = 0xF02A

UID_SIZE = 16
# recInstance values that announce a second UID (odd member of each pair)
TWO_UID_INSTANCES = frozenset({0x3D5, 0x217, 0x543, 0x46B, 0x6E3, 0x6E1, 0x7A9, 0x6E5})

# cbSize, rcBounds(left, top, right, bottom), ptSize(x, y), cbSave, compression, filter
METAFILE_HEADER = struct.Struct("<I4i2iIBB")
COMPRESSION_DEFLATE = 0x00
COMPRESSION_NONE = 0xFE

# btWin32, btMacOS, rgbUid, tag, size, cRef, foDelay, unused1, cbName, unused2, unused3
FBSE_HEADER = struct.Struct("<BB16sHIIIBBBB")
NO_DELAY_OFFSET = 0xFFFFFFFF

ALDUS_KEY = 0x9AC6CDD7
ALDUS_INCH = 72
PICT_PREAMBLE = b"\x00" * 512
BITMAP_FILE_HEADER_SIZE = 14


class PictureType(StrEnum):
    """Picture kinds a BLIP record can hold."""

    EMF = "emf"
    WMF = "wmf"
    PICT = "pict"
    JPEG = "jpeg"
    PNG = "png"
    DIB = "dib"
    TIFF = "tiff"
    UNKNOWN = "unknown"


BLIP_TYPES = {
    RT_BLIP_EMF: PictureType.EMF,
    RT_BLIP_WMF: PictureType.WMF,
    RT_BLIP_PICT: PictureType.PICT,
    RT_BLIP_JPEG: PictureType.JPEG,
    RT_BLIP_PNG: PictureType.PNG,
    RT_BLIP_DIB: PictureType.DIB,
    RT_BLIP_TIFF: PictureType.TIFF,
    RT_BLIP_JPEG_CMYK: PictureType.JPEG,
}

PICTURE_EXTENSIONS = {
    PictureType.JPEG: "jpg",
    PictureType.PNG: "png",
    PictureType.WMF: "wmf",
    PictureType.EMF: "emf",
    PictureType.PICT: "pict",
    PictureType.DIB: "dib",
    PictureType.TIFF: "tiff",
}

METAFILE_TYPES = frozenset({PictureType.EMF, PictureType.WMF, PictureType.PICT})


@dataclass(frozen=True, slots=True)
class RecordHeader:
    """Position and identity of one OfficeArt record inside a buffer."""

    version: int
    instance: int
    rec_type: int
    length: int
    offset: int

    @property
    def body_start(self) -> int:
        return self.offset + HEADER_SIZE

    @property
    def body_end(self) -> int:
        return self.body_start + self.length

    @property
    def is_container(self) -> bool:
        return self.version == CONTAINER_VERSION


@dataclass(frozen=True, slots=True)
class BlipStoreEntry:
    """One FBSE (OfficeArtFBSE) entry of a BLIP store."""

    blip_type: int
    size: int
    ref_count: int
    delay_offset: int
    name: str
    offset: int
    blip: Optional[RecordHeader]


@dataclass(frozen=True, slots=True)
class DecodedPicture:
    """A BLIP turned into a standalone picture file."""

    picture_type: PictureType
    data: bytes

    @property
    def extension(self) -> Optional[str]:
        return PICTURE_EXTENSIONS.get(self.picture_type)

    def suggest_extension(self) -> str:
        """Extension from the BLIP type, else from the payload's magic bytes."""
        return self.extension or suggest_extension(self.data)


def is_blip_type(rec_type: int) -> bool:
    return RT_BLIP_FIRST <= rec_type <= RT_BLIP_LAST


def blip_picture_type(rec_type: int) -> PictureType:
    return BLIP_TYPES.get(rec_type, PictureType.UNKNOWN)


def read_header(data: bytes, offset: int, end: Optional[int] = None) -> RecordHeader:
    """
    Read the record header at ``offset``.

    Raises:
        ContainerOpenError: If the header is truncated or the record overruns ``end``
    """
    end = len(data) if end is None else end
    if offset < 0 or offset + HEADER_SIZE > end:
        raise ContainerOpenError(f"truncated OfficeArt record header at 0x{offset:x}")
    ver_inst, rec_type, length = RECORD_HEADER.unpack_from(data, offset)
    header = RecordHeader(
        version=ver_inst & 0x000F,
        instance=ver_inst >> 4,
        rec_type=rec_type,
        length=length,
        offset=offset,
    )
    if header.body_end > end:
        raise ContainerOpenError(
            f"OfficeArt record 0x{rec_type:04x} at 0x{offset:x} overruns its parent "
            f"({length} bytes declared, {end - header.body_start} available)"
        )
    return header


def iter_records(data: bytes, start: int, end: int) -> Iterator[RecordHeader]:
    """Yield sibling records in ``data[start:end]``; trailing slack under 8 bytes is ignored."""
    pos = start
    while pos + HEADER_SIZE <= end:
        header = read_header(data, pos, end)
        yield header
        pos = header.body_end


def parse_fbse(data: bytes, header: RecordHeader) -> BlipStoreEntry:
    """Parse an FBSE record, locating its embedded BLIP when one follows the name."""
    if header.length < FBSE_HEADER.size:
        raise ContainerOpenError(f"FBSE at 0x{header.offset:x} is shorter than its fixed header")

    (bt_win32, _bt_mac, _uid, _tag, size, ref_count, delay_offset,
     _unused1, cb_name, _unused2, _unused3) = FBSE_HEADER.unpack_from(data, header.body_start)

    pos = header.body_start + FBSE_HEADER.size
    name = ""
    if cb_name:
        name = data[pos:min(pos + cb_name, header.body_end)].decode("utf-16-le", errors="replace")
        name = name.rstrip("\x00")
        pos += cb_name

    blip = None
    if pos + HEADER_SIZE <= header.body_end:
        candidate = read_header(data, pos, header.body_end)
        if is_blip_type(candidate.rec_type):
            blip = candidate

    return BlipStoreEntry(
        blip_type=bt_win32,
        size=size,
        ref_count=ref_count,
        delay_offset=delay_offset,
        name=name,
        offset=header.offset,
        blip=blip,
    )


def iter_blip_store(data: bytes, start: int = 0, end: Optional[int] = None) -> Iterator[BlipStoreEntry]:
    """
    Yield the FBSE entries of the OfficeArtDggContainer at ``data[start]``.

    Only the leading DggContainer is read; drawing containers that follow it in
    Word's DggInfo are prefixed by a label byte and are not record-aligned.
    """
    end = len(data) if end is None else end
    dgg = read_header(data, start, end)
    if dgg.rec_type != RT_DGG_CONTAINER:
        raise ContainerOpenError(
            f"expected OfficeArtDggContainer at 0x{start:x}, found record 0x{dgg.rec_type:04x}"
        )
    for child in iter_records(data, dgg.body_start, dgg.body_end):
        if child.rec_type != RT_BSTORE_CONTAINER:
            continue
        for entry in iter_records(data, child.body_start, child.body_end):
            if entry.rec_type == RT_FBSE:
                yield parse_fbse(data, entry)


def decode_blip(data: bytes, header: RecordHeader, max_bytes: int) -> DecodedPicture:
    """
    Decode the BLIP record described by ``header`` into picture file bytes.

    Raises:
        RecordReadError: If the BLIP is truncated, corrupt, or larger than ``max_bytes``
    """
    picture_type = blip_picture_type(header.rec_type)
    uid_bytes = UID_SIZE * (2 if header.instance in TWO_UID_INSTANCES else 1)
    pos = header.body_start + uid_bytes
    end = header.body_end

    if picture_type in METAFILE_TYPES:
        payload = _decode_metafile(data, pos, end, picture_type, max_bytes, header.offset)
    else:
        pos += 1  # tag byte
        if pos > end:
            raise RecordReadError("bitmap BLIP shorter than its header", header.offset)
        payload = bytes(data[pos:end])
        if picture_type is PictureType.DIB:
            payload = add_bitmap_file_header(payload, header.offset)

    if len(payload) > max_bytes:
        raise RecordReadError(f"picture of {len(payload)} bytes exceeds the {max_bytes} byte limit", header.offset)
    return DecodedPicture(picture_type, payload)


def _decode_metafile(
    data: bytes,
    pos: int,
    end: int,
    picture_type: PictureType,
    max_bytes: int,
    record_offset: int,
) -> bytes:
    if pos + METAFILE_HEADER.size > end:
        raise RecordReadError("metafile BLIP header truncated", record_offset)
    (_cb_size, left, top, right, bottom, _width, _height,
     cb_save, compression, _filter) = METAFILE_HEADER.unpack_from(data, pos)
    pos += METAFILE_HEADER.size

    if cb_save > end - pos:
        raise RecordReadError(
            f"metafile BLIP declares {cb_save} bytes but only {end - pos} remain", record_offset
        )
    blob = bytes(data[pos:pos + cb_save])

    if compression == COMPRESSION_DEFLATE:
        payload = inflate(blob, max_bytes, record_offset)
    elif compression == COMPRESSION_NONE:
        payload = blob
    else:
        raise RecordReadError(f"unknown metafile compression 0x{compression:02x}", record_offset)

    if picture_type is PictureType.WMF:
        return add_placeable_header(payload, (left, top, right, bottom))
    if picture_type is PictureType.PICT:
        return PICT_PREAMBLE + payload
    return payload


def inflate(blob: bytes, max_bytes: int, record_offset: int = 0) -> bytes:
    """Inflate a zlib stream, refusing output larger than ``max_bytes``."""
    decompressor = zlib.decompressobj()
    try:
        payload = decompressor.decompress(blob, max_bytes + 1)
    except zlib.error as exc:
        raise RecordReadError(f"corrupt deflate stream: {exc}", record_offset) from exc
    if len(payload) > max_bytes:
        raise RecordReadError(f"inflated picture exceeds the {max_bytes} byte limit", record_offset)
    if not decompressor.eof:
        raise RecordReadError("truncated deflate stream", record_offset)
    return payload


def add_placeable_header(wmf: bytes, bounds: Tuple[int, int, int, int]) -> bytes:
    """Prefix a WMF with an Aldus placeable header unless it already has one."""
    if len(wmf) >= 4 and struct.unpack_from("<I", wmf, 0)[0] == ALDUS_KEY:
        return wmf
    left, top, right, bottom = (_clamp_int16(value) for value in bounds)
    header = struct.pack("<IHhhhhHI", ALDUS_KEY, 0, left, top, right, bottom, ALDUS_INCH, 0)
    checksum = 0
    for (word,) in struct.iter_unpack("<H", header):
        checksum ^= word
    return header + struct.pack("<H", checksum) + wmf


def add_bitmap_file_header(dib: bytes, record_offset: int = 0) -> bytes:
    """Prefix a packed DIB with the BITMAPFILEHEADER that makes it a .bmp file."""
    if len(dib) < 12:
        raise RecordReadError("DIB shorter than a bitmap header", record_offset)
    header_size = struct.unpack_from("<I", dib, 0)[0]

    if header_size == 12:
        # BITMAPCOREHEADER: 3-byte palette entries
        bit_count = struct.unpack_from("<H", dib, 10)[0]
        palette = (1 << bit_count) * 3 if bit_count <= 8 else 0
        masks = 0
    else:
        if header_size < 16 or len(dib) < 16:
            raise RecordReadError(f"DIB header size {header_size} is invalid", record_offset)
        bit_count = struct.unpack_from("<H", dib, 14)[0]
        compression = struct.unpack_from("<I", dib, 16)[0] if len(dib) >= 20 else 0
        colors_used = struct.unpack_from("<I", dib, 32)[0] if header_size >= 36 and len(dib) >= 36 else 0
        colors = colors_used or ((1 << bit_count) if bit_count <= 8 else 0)
        palette = colors * 4
        # BI_BITFIELDS masks follow a plain BITMAPINFOHEADER
        masks = 12 if compression == 3 and header_size == 40 else 0

    bits_offset = BITMAP_FILE_HEADER_SIZE + header_size + masks + palette
    file_header = struct.pack("<2sIHHI", b"BM", BITMAP_FILE_HEADER_SIZE + len(dib), 0, 0, bits_offset)
    return file_header + dib


def _clamp_int16(value: int) -> int:
    return max(-32768, min(32767, value))
