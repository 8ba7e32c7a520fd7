"""
Just enough of the tar format to write our archive and read it back.

Every entry is a regular file: a 512 bytes header followed by the content,
zero padded to a multiple of 512 bytes. Two empty blocks end the archive.
See <https://en.wikipedia.org/wiki/Tar_(computing)#File_format>
"""
from __future__ import annotations

import logging
from typing import Iterable

from wa_dump_tools.lib.constants import C
from wa_dump_tools.lib.errors import ArchiveError, ArchiveNameTooLongError

log = logging.getLogger(__name__)

BLOCK = C.TAR_BLOCK_SIZE

# Header field offsets
NAME_OFFSET = 0
MODE_OFFSET, MODE_SIZE = 100, 8
SIZE_OFFSET, SIZE_SIZE = 124, 12
CHECKSUM_OFFSET, CHECKSUM_SIZE = 148, 8
TYPE_OFFSET = 156
REGULAR_FILE = b'0'


def padded_size(size: int) -> int:
    """The size rounded up to a whole number of blocks."""
    return -(-size // BLOCK) * BLOCK


def _write_number(header: bytearray, offset: int, size: int, number: int):
    # Zero padded octal, the last byte of the field stays NUL
    digits = "{:o}".format(number).rjust(size - 1, "0")
    if len(digits) > size - 1:
        raise ValueError("{} does not fit in a {} bytes tar field".format(number, size))
    header[offset:offset + len(digits)] = digits.encode('ascii')


def header_checksum(header: bytes) -> int:
    """Unsigned sum of the header bytes, with the checksum field counted as spaces."""
    return sum(header[:CHECKSUM_OFFSET]) + 0x20 * CHECKSUM_SIZE + sum(header[CHECKSUM_OFFSET + CHECKSUM_SIZE:BLOCK])


def make_header(name: bytes, size: int) -> bytearray:
    header = bytearray(BLOCK)
    header[NAME_OFFSET:NAME_OFFSET + len(name)] = name
    _write_number(header, MODE_OFFSET, MODE_SIZE, C.TAR_FILE_MODE)
    _write_number(header, SIZE_OFFSET, SIZE_SIZE, size)
    header[TYPE_OFFSET:TYPE_OFFSET + 1] = REGULAR_FILE
    # Six octal digits, a NUL and a space
    checksum = header_checksum(header)
    header[CHECKSUM_OFFSET:CHECKSUM_OFFSET + CHECKSUM_SIZE] = "{:06o}".format(checksum).encode('ascii') + b'\x00 '
    return header


def write_tar(entries: Iterable[tuple[str, bytes]]) -> bytes:
    """Packs (name, content) pairs into a tar archive. Names can contain "/" for directories."""
    files = []
    tar_size = 2 * BLOCK  # the final zero blocks
    for name, content in entries:
        name_bytes = name.encode('utf-8')
        if len(name_bytes) > C.TAR_NAME_SIZE:
            raise ArchiveNameTooLongError(name, len(name_bytes))
        if not name_bytes or b'\x00' in name_bytes:
            raise ArchiveError("Invalid tar name {!r}".format(name), document=name)
        content = bytes(content)
        tar_size += BLOCK + padded_size(len(content))
        files.append((name_bytes, content))

    tar = bytearray(tar_size)
    cursor = 0
    for name_bytes, content in files:
        tar[cursor:cursor + BLOCK] = make_header(name_bytes, len(content))
        tar[cursor + BLOCK:cursor + BLOCK + len(content)] = content
        cursor += BLOCK + padded_size(len(content))
    log.debug("Packed {} files in {} bytes".format(len(files), tar_size))
    return bytes(tar)


def read_tar(data: bytes) -> list[tuple[str, bytes]]:
    """Unpacks an archive written by write_tar, in order. Checksums are not checked."""
    data = memoryview(data)
    entries = []
    cursor = 0
    while cursor < len(data):
        if data[cursor] == 0:
            # empty sector
            cursor += BLOCK
            continue
        if cursor + BLOCK > len(data):
            raise ArchiveError("Truncated tar header at offset {}".format(cursor))
        header = bytes(data[cursor:cursor + BLOCK])
        raw_name = header[NAME_OFFSET:NAME_OFFSET + C.TAR_NAME_SIZE].split(b'\x00', 1)[0]
        try:
            name = raw_name.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ArchiveError("Invalid tar name at offset {}: {}".format(cursor, e)) from e
        size_field = header[SIZE_OFFSET:SIZE_OFFSET + SIZE_SIZE - 1]
        try:
            size = int(size_field.rstrip(b'\x00 ').decode('ascii') or "0", 8)
        except (UnicodeDecodeError, ValueError) as e:
            raise ArchiveError("Invalid size for {} at offset {}".format(name, cursor), document=name) from e
        start = cursor + BLOCK
        if start + size > len(data):
            raise ArchiveError("File {} is truncated".format(name), document=name)
        entries.append((name, bytes(data[start:start + size])))
        cursor = start + padded_size(size)
    return entries


def untar(data: bytes) -> dict:
    """Unpacks an archive into nested dicts: directories map to dicts, files to their bytes."""
    files = {}
    for name, content in read_tar(data):
        *directories, file_name = name.split("/")
        current = files
        for segment in directories:
            current = current.setdefault(segment, {})
            if not isinstance(current, dict):
                raise ArchiveError("{} is both a file and a directory".format(segment), document=name)
        current[file_name] = content
    return files
