"""
PowerPoint 97-2003 (.ppt) picture parser.

Slide pictures live back to back as BLIP records in the "Pictures" stream.
Only JPEG, PNG, WMF, EMF and PICT pictures are emitted; DIB and TIFF
entries are skipped without affecting the others, and so are stray BLIP
store entries (FBSE) between pictures.
"""

from __future__ import annotations

import struct
from typing import BinaryIO, List

import olefile

from core.enums import ContainerFormat
from extractors._shared.office_art import (
    HEADER_SIZE,
    RT_FBSE,
    PictureType,
    blip_picture_type,
    decode_blip,
    is_blip_type,
    read_header,
)
from extractors._shared.ole_helpers import open_compound_file, read_stream
from extractors.exceptions import ContainerOpenError, RecordReadError

from .base import ContainerParser, PictureRecord

DOCUMENT_STREAM = "PowerPoint Document"
CURRENT_USER_STREAM = "Current User"
PICTURES_STREAM = "Pictures"
# PowerPoint 95 dual-storage marker
OLD_FORMAT_STREAM = "PP97_DUALSTORAGE"

RT_CURRENT_USER_ATOM = 0x0FF6
ENCRYPTED_HEADER_TOKEN = 0xF3D1C4DF
HEADER_TOKEN_OFFSET = 12

SUPPORTED_TYPES = frozenset({
    PictureType.JPEG,
    PictureType.PNG,
    PictureType.WMF,
    PictureType.EMF,
    PictureType.PICT,
})


def is_encrypted(current_user: bytes) -> bool:
    """True when the CurrentUserAtom carries the encrypted-document header token."""
    if len(current_user) < HEADER_TOKEN_OFFSET + 4:
        return False
    rec_type = struct.unpack_from("<H", current_user, 2)[0]
    if rec_type != RT_CURRENT_USER_ATOM:
        return False
    token = struct.unpack_from("<I", current_user, HEADER_TOKEN_OFFSET)[0]
    return token == ENCRYPTED_HEADER_TOKEN


class SlideshowParser(ContainerParser):
    container_format = ContainerFormat.PPT

    def _read_pictures(self, stream: BinaryIO) -> List[PictureRecord]:
        ole = open_compound_file(stream)
        try:
            if ole.exists(OLD_FORMAT_STREAM):
                raise ContainerOpenError("PowerPoint 95 presentations are not supported")
            if not ole.exists(DOCUMENT_STREAM) or ole.get_type(DOCUMENT_STREAM) != olefile.STGTY_STREAM:
                raise ContainerOpenError(f"missing '{DOCUMENT_STREAM}' stream")
            current_user = read_stream(ole, CURRENT_USER_STREAM, self.max_record_bytes, required=False)
            if current_user and is_encrypted(current_user):
                raise ContainerOpenError("presentation is encrypted")
            pictures = read_stream(ole, PICTURES_STREAM, self.max_record_bytes, required=False)
        finally:
            ole.close()

        if not pictures:
            return []
        return self._read_blips(pictures)

    def _read_blips(self, data: bytes) -> List[PictureRecord]:
        records: List[PictureRecord] = []
        pos = 0
        # Fewer than 8 trailing bytes cannot hold a record and are slack
        while pos + HEADER_SIZE <= len(data):
            try:
                header = read_header(data, pos)
            except ContainerOpenError as exc:
                raise RecordReadError(str(exc)) from exc

            if header.rec_type == RT_FBSE:
                self.logger.debug("Skipping BLIP store entry inside Pictures stream at 0x%x", pos)
            elif not is_blip_type(header.rec_type):
                self.logger.debug("Pictures stream ends at non-picture record 0x%04x (0x%x)", header.rec_type, pos)
                break
            elif blip_picture_type(header.rec_type) in SUPPORTED_TYPES:
                decoded = decode_blip(data, header, self.max_record_bytes)
                records.append(PictureRecord(decoded.data, None, decoded.extension))
            else:
                self.logger.debug("Skipping %s picture at 0x%x", blip_picture_type(header.rec_type), pos)
            pos = header.body_end
        return records
