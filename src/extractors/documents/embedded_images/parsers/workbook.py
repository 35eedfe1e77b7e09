"""
Excel 97-2003 (.xls) picture parser.

Workbook pictures are kept once, in the drawing group of the workbook
globals: an MSODRAWINGGROUP record (plus CONTINUE records when it exceeds
the BIFF record limit) holding an OfficeArtDggContainer whose BLIP store
embeds every picture.
"""

from __future__ import annotations

import struct
from typing import BinaryIO, Iterator, List, Tuple

from core.enums import ContainerFormat
from extractors._shared.office_art import decode_blip, iter_blip_store
from extractors._shared.ole_helpers import open_compound_file, read_stream
from extractors.exceptions import ContainerOpenError

from .base import ContainerParser, PictureRecord

WORKBOOK_STREAM = "Workbook"
BIFF5_STREAM = "Book"

BIFF_HEADER = struct.Struct("<HH")
RT_BOF = 0x0809
RT_EOF = 0x000A
RT_FILEPASS = 0x002F
RT_CONTINUE = 0x003C
RT_MSODRAWINGGROUP = 0x00EB
BIFF8_VERSION = 0x0600


def iter_biff_records(stream: bytes) -> Iterator[Tuple[int, int, bytes]]:
    """
    Yield (offset, record type, payload) for each BIFF record.

    Raises:
        ContainerOpenError: If a record runs past the end of the stream
    """
    pos = 0
    end = len(stream)
    while pos + BIFF_HEADER.size <= end:
        rec_type, length = BIFF_HEADER.unpack_from(stream, pos)
        body = pos + BIFF_HEADER.size
        if body + length > end:
            raise ContainerOpenError(f"BIFF record 0x{rec_type:04x} at 0x{pos:x} runs past the stream end")
        yield pos, rec_type, stream[body:body + length]
        pos = body + length


def read_drawing_group(stream: bytes) -> bytes:
    """
    Return the concatenated drawing group data of the workbook globals.

    Raises:
        ContainerOpenError: For a non-BIFF8 stream or an encrypted workbook
    """
    records = iter_biff_records(stream)
    first = next(records, None)
    if first is None or first[1] != RT_BOF:
        raise ContainerOpenError("Workbook stream does not start with a BOF record")
    bof = first[2]
    if len(bof) < 2 or struct.unpack_from("<H", bof, 0)[0] != BIFF8_VERSION:
        raise ContainerOpenError("Workbook stream is not BIFF8")

    chunks: List[bytes] = []
    in_group = False
    for _offset, rec_type, payload in records:
        if rec_type == RT_EOF:
            break
        if rec_type == RT_FILEPASS:
            raise ContainerOpenError("workbook is encrypted")
        if rec_type == RT_MSODRAWINGGROUP:
            chunks.append(payload)
            in_group = True
        elif rec_type == RT_CONTINUE and in_group:
            chunks.append(payload)
        else:
            in_group = False
    return b"".join(chunks)


class WorkbookParser(ContainerParser):
    """Pictures from the workbook's drawing group BLIP store."""

    container_format = ContainerFormat.XLS

    def _read_pictures(self, stream: BinaryIO) -> List[PictureRecord]:
        ole = open_compound_file(stream)
        try:
            if not ole.exists(WORKBOOK_STREAM):
                if ole.exists(BIFF5_STREAM):
                    raise ContainerOpenError("Excel 5.0/95 workbooks are not supported")
                raise ContainerOpenError(f"missing '{WORKBOOK_STREAM}' stream")
            workbook = read_stream(ole, WORKBOOK_STREAM, self.max_record_bytes)
        finally:
            ole.close()

        drawing = read_drawing_group(workbook)
        if not drawing:
            return []

        pictures: List[PictureRecord] = []
        for entry in iter_blip_store(drawing):
            if entry.blip is None:
                continue
            decoded = decode_blip(drawing, entry.blip, self.max_record_bytes)
            pictures.append(PictureRecord(decoded.data, None, decoded.suggest_extension()))
        return pictures
