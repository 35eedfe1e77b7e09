"""
Word 97-2003 (.doc) picture parser.

Pictures reach a binary Word document two ways:

Inline pictures
    A character run carrying sprmCPicLocation points at a PICF structure in
    the "Data" stream. The PICF header (0x44 bytes) is followed by an
    OfficeArtInlineSpContainer: a shape container plus the FBSE/BLIP records
    holding the picture bytes. Runs are found by walking the CHPX FKP pages
    listed in PlcfBteChpx.

Floating pictures
    The DggInfo block in the table stream starts with an OfficeArtDggContainer
    whose BLIP store lists every shape picture. An FBSE either embeds its BLIP
    or points at it inside the "WordDocument" stream (foDelay).

Each picture is named after its offset in hex, like Word's own picture table
does ("1a40.png").
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import BinaryIO, Iterator, List, Tuple

from core.enums import ContainerFormat
from extractors._shared.office_art import (
    NO_DELAY_OFFSET,
    RT_FBSE,
    DecodedPicture,
    decode_blip,
    is_blip_type,
    iter_blip_store,
    iter_records,
    parse_fbse,
    read_header,
)
from extractors._shared.ole_helpers import open_compound_file, read_stream
from extractors.exceptions import ContainerOpenError, RecordReadError

from .base import ContainerParser, PictureRecord

WORD_DOCUMENT_STREAM = "WordDocument"
DATA_STREAM = "Data"

WORD_IDENT = 0xA5EC
# Word 6.0/95 files use nFib 101-105 and an incompatible FIB
MIN_SUPPORTED_NFIB = 106
FIB_BASE_SIZE = 32
FIB_FLAGS_OFFSET = 0x0A
FIB_FLAG_ENCRYPTED = 0x0100
FIB_FLAG_WHICH_TABLE = 0x0200
FIB_FLAG_OBFUSCATED = 0x8000

# Indexes into FibRgFcLcb97
FC_PLCF_BTE_CHPX = 12
FC_DGG_INFO = 50

FKP_PAGE_SIZE = 512
PN_MASK = 0x003FFFFF

SPRM_C_PIC_LOCATION = 0x6A03
SPRM_C_F_DATA = 0x0806
SPRM_C_F_OLE2 = 0x080A
SPRM_T_DEF_TABLE = 0xD608
SPRM_P_CHG_TABS = 0xC615
# Operand sizes by spra (bits 13-15 of the sprm); spra 6 is length-prefixed
SPRM_OPERAND_SIZES = {0: 1, 1: 1, 2: 2, 3: 4, 4: 2, 5: 2, 7: 3}

PICF_HEADER_SIZE = 0x44
PICF_PREFIX = struct.Struct("<IHh")  # lcb, cbHeader, mfpf.mm
MM_SHAPE = 0x0064
MM_SHAPEFILE = 0x0066


@dataclass(frozen=True, slots=True)
class FileInformationBlock:
    """The parts of the Word FIB the picture parser needs."""

    n_fib: int
    flags: int
    fc_lcb: Tuple[Tuple[int, int], ...]

    @property
    def table_stream_name(self) -> str:
        return "1Table" if self.flags & FIB_FLAG_WHICH_TABLE else "0Table"

    @property
    def encrypted(self) -> bool:
        return bool(self.flags & (FIB_FLAG_ENCRYPTED | FIB_FLAG_OBFUSCATED))

    def pair(self, index: int) -> Tuple[int, int]:
        """Return (fc, lcb) for FibRgFcLcb entry ``index``, (0, 0) when absent."""
        if index < len(self.fc_lcb):
            return self.fc_lcb[index]
        return (0, 0)


def read_fib(word: bytes) -> FileInformationBlock:
    """
    Parse the FIB at the start of the WordDocument stream.

    Raises:
        ContainerOpenError: For a bad identifier, a pre-Word 97 file or a truncated FIB
    """
    if len(word) < FIB_BASE_SIZE + 2:
        raise ContainerOpenError("WordDocument stream is too short for a FIB")
    ident, n_fib = struct.unpack_from("<HH", word, 0)
    if ident != WORD_IDENT:
        raise ContainerOpenError(f"bad FIB identifier 0x{ident:04x}")
    if n_fib < MIN_SUPPORTED_NFIB:
        raise ContainerOpenError(f"nFib {n_fib} is a Word 95 or older document")
    flags = struct.unpack_from("<H", word, FIB_FLAGS_OFFSET)[0]

    try:
        pos = FIB_BASE_SIZE
        csw = struct.unpack_from("<H", word, pos)[0]
        pos += 2 + csw * 2
        cslw = struct.unpack_from("<H", word, pos)[0]
        pos += 2 + cslw * 4
        cb_rg_fc_lcb = struct.unpack_from("<H", word, pos)[0]
        pos += 2
        values = struct.unpack_from(f"<{cb_rg_fc_lcb * 2}I", word, pos)
    except struct.error as exc:
        raise ContainerOpenError(f"truncated FIB: {exc}") from exc

    return FileInformationBlock(
        n_fib=n_fib,
        flags=flags,
        fc_lcb=tuple(zip(values[0::2], values[1::2])),
    )


def iter_sprms(grpprl: bytes) -> Iterator[Tuple[int, bytes]]:
    """Yield (sprm, operand) pairs from a property modifier list; stops at truncation."""
    pos = 0
    end = len(grpprl)
    while pos + 2 <= end:
        sprm = struct.unpack_from("<H", grpprl, pos)[0]
        pos += 2
        spra = sprm >> 13
        if spra == 6:
            if sprm == SPRM_T_DEF_TABLE:
                if pos + 2 > end:
                    return
                size = struct.unpack_from("<H", grpprl, pos)[0] - 1
                pos += 2
            else:
                if pos >= end:
                    return
                size = grpprl[pos]
                pos += 1
                if sprm == SPRM_P_CHG_TABS and size == 255:
                    # Extended tab operand; its real size needs the tab counts
                    return
        else:
            size = SPRM_OPERAND_SIZES[spra]
        if size < 0 or pos + size > end:
            return
        yield sprm, grpprl[pos:pos + size]
        pos += size


def picture_location(grpprl: bytes) -> int | None:
    """Return the Data stream offset a run's sprmCPicLocation names, if it is a picture."""
    location = None
    is_data = False
    is_ole2 = False
    for sprm, operand in iter_sprms(grpprl):
        if sprm == SPRM_C_PIC_LOCATION and len(operand) == 4:
            location = struct.unpack("<I", operand)[0]
        elif sprm == SPRM_C_F_DATA:
            is_data = operand != b"\x00"
        elif sprm == SPRM_C_F_OLE2:
            is_ole2 = operand != b"\x00"
    if location is None or is_data or is_ole2:
        return None
    return location


def iter_chpx(page: bytes, page_number: int) -> Iterator[bytes]:
    """Yield the grpprl of each run in a 512-byte CHPX FKP page."""
    run_count = page[FKP_PAGE_SIZE - 1]
    offsets_start = (run_count + 1) * 4
    if offsets_start + run_count > FKP_PAGE_SIZE - 1:
        raise ContainerOpenError(f"CHPX FKP page {page_number} declares {run_count} runs")
    for run in range(run_count):
        word_offset = page[offsets_start + run]
        if word_offset == 0:
            continue  # run uses default character properties
        start = word_offset * 2
        if start >= FKP_PAGE_SIZE - 1:
            raise ContainerOpenError(f"CHPX offset 0x{start:x} outside FKP page {page_number}")
        size = page[start]
        yield page[start + 1:min(start + 1 + size, FKP_PAGE_SIZE - 1)]


def _table_slice(table: bytes, fc: int, lcb: int, label: str) -> bytes:
    if fc + lcb > len(table):
        raise ContainerOpenError(f"{label} (0x{fc:x}+{lcb}) lies outside the table stream")
    return table[fc:fc + lcb]


class WordDocumentParser(ContainerParser):
    """Pictures from inline PICF structures and the floating-shape BLIP store."""

    container_format = ContainerFormat.DOC

    def _read_pictures(self, stream: BinaryIO) -> List[PictureRecord]:
        ole = open_compound_file(stream)
        try:
            word = read_stream(ole, WORD_DOCUMENT_STREAM, self.max_record_bytes)
            fib = read_fib(word)
            if fib.encrypted:
                raise ContainerOpenError("document is encrypted")
            table = read_stream(ole, fib.table_stream_name, self.max_record_bytes)
            data = read_stream(ole, DATA_STREAM, self.max_record_bytes, required=False) or b""
        finally:
            ole.close()

        pictures: List[PictureRecord] = []
        for location in self._picture_locations(word, table, fib):
            pictures.extend(self._read_inline_picture(data, location))
        pictures.extend(self._read_floating_pictures(word, table, fib))
        return pictures

    def _picture_locations(self, word: bytes, table: bytes, fib: FileInformationBlock) -> List[int]:
        fc, lcb = fib.pair(FC_PLCF_BTE_CHPX)
        if lcb < 12:
            return []
        plc = _table_slice(table, fc, lcb, "PlcfBteChpx")
        count = (lcb - 4) // 8

        locations: List[int] = []
        seen = set()
        for index in range(count):
            page_number = struct.unpack_from("<I", plc, (count + 1) * 4 + index * 4)[0] & PN_MASK
            page_start = page_number * FKP_PAGE_SIZE
            page = word[page_start:page_start + FKP_PAGE_SIZE]
            if len(page) < FKP_PAGE_SIZE:
                raise ContainerOpenError(f"CHPX FKP page {page_number} lies outside the WordDocument stream")
            for grpprl in iter_chpx(page, page_number):
                location = picture_location(grpprl)
                if location is not None and location not in seen:
                    seen.add(location)
                    locations.append(location)
        return locations

    def _read_inline_picture(self, data: bytes, location: int) -> List[PictureRecord]:
        if location + PICF_HEADER_SIZE > len(data):
            self.logger.debug("Picture location 0x%x is outside the Data stream", location)
            return []
        lcb, cb_header, mm = PICF_PREFIX.unpack_from(data, location)
        if cb_header != PICF_HEADER_SIZE or lcb < cb_header or location + lcb > len(data):
            self.logger.debug("No PICF structure at Data offset 0x%x", location)
            return []
        if mm not in (MM_SHAPE, MM_SHAPEFILE):
            self.logger.debug("Skipping pre-OfficeArt picture (mm=%d) at 0x%x", mm, location)
            return []

        pos = location + cb_header
        end = location + lcb
        if mm == MM_SHAPEFILE and pos < end:
            pos += 1 + data[pos]  # cchPicName + stPicName

        pictures: List[PictureRecord] = []
        try:
            for header in iter_records(data, pos, end):
                if header.rec_type == RT_FBSE:
                    blip = parse_fbse(data, header).blip
                    if blip is None:
                        continue
                elif is_blip_type(header.rec_type):
                    blip = header
                else:
                    continue  # the shape container
                pictures.append(self._record(decode_blip(data, blip, self.max_record_bytes), location))
        except ContainerOpenError as exc:
            raise RecordReadError(f"corrupt inline picture: {exc}", location) from exc
        return pictures

    def _read_floating_pictures(self, word: bytes, table: bytes, fib: FileInformationBlock) -> List[PictureRecord]:
        fc, lcb = fib.pair(FC_DGG_INFO)
        if lcb == 0:
            return []
        drawing = _table_slice(table, fc, lcb, "DggInfo")

        pictures: List[PictureRecord] = []
        for entry in iter_blip_store(drawing):
            if entry.blip is not None:
                decoded = decode_blip(drawing, entry.blip, self.max_record_bytes)
                offset = fc + entry.blip.offset
            elif entry.delay_offset != NO_DELAY_OFFSET and entry.size > 0:
                try:
                    header = read_header(word, entry.delay_offset)
                except ContainerOpenError as exc:
                    raise RecordReadError(f"BLIP store entry points past the stream: {exc}", entry.delay_offset) from exc
                if not is_blip_type(header.rec_type):
                    raise RecordReadError(
                        f"BLIP store entry points at record 0x{header.rec_type:04x}", entry.delay_offset
                    )
                decoded = decode_blip(word, header, self.max_record_bytes)
                offset = entry.delay_offset
            else:
                continue
            pictures.append(self._record(decoded, offset))
        return pictures

    @staticmethod
    def _record(decoded: DecodedPicture, offset: int) -> PictureRecord:
        extension = decoded.suggest_extension()
        return PictureRecord(decoded.data, f"{offset:x}.{extension}", extension)
