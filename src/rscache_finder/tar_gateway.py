"""Hand-written ustar archive writer.

Header layout (offset, width) as written by encode_ustar_header:

    name      0   100   logical path as filesystem bytes, NUL padded
    mode      100   8   fixed "0000644"
    uid       108   8   fixed "0001750"
    gid       116   8   fixed "0001750"
    size      124  12   11 octal digits + NUL
    mtime     136  12   11 octal digits + NUL
    chksum    148   8   7 octal digits + NUL
    typeflag  156   1   "0" (regular file)
    magic     257   6   "ustar" + NUL
    version   263   2   "00" (not NUL terminated)
    uname     265  32   fixed "user"
    gname     297  32   fixed "user"

Only size and mtime come from the source file; ownership and permissions are
synthetic.
"""

from __future__ import annotations

import gzip
import io
import os
from pathlib import Path
from typing import BinaryIO

from .constants import BLOCK_SIZE, END_OF_ARCHIVE_BLOCKS
from .errors import (
    ArchiveNameError,
    ArchiveReadError,
    ArchiveSizeError,
    ArchiveWriteError,
    FilesystemError,
    OutputCreateError,
    OutputExistsError,
)
from .models import ArchiveEntry

NAME_OFFSET, NAME_WIDTH = 0, 100
MODE_OFFSET = 100
UID_OFFSET = 108
GID_OFFSET = 116
SIZE_OFFSET, SIZE_WIDTH = 124, 12
MTIME_OFFSET, MTIME_WIDTH = 136, 12
CHKSUM_OFFSET, CHKSUM_WIDTH = 148, 8
TYPEFLAG_OFFSET = 156
MAGIC_OFFSET = 257
VERSION_OFFSET = 263
UNAME_OFFSET = 265
GNAME_OFFSET = 297

_FIXED_FIELDS = (
    (MODE_OFFSET, b"0000644\0"),
    (UID_OFFSET, b"0001750\0"),
    (GID_OFFSET, b"0001750\0"),
    (TYPEFLAG_OFFSET, b"0"),
    (MAGIC_OFFSET, b"ustar\0"),
    (VERSION_OFFSET, b"00"),
    (UNAME_OFFSET, b"user\0"),
    (GNAME_OFFSET, b"user\0"),
)

MAX_OCTAL_FIELD_VALUE = 8**11 - 1
_ZERO_BLOCK = bytes(BLOCK_SIZE)


def encode_ustar_header(*, name: str, size: int, mtime: int) -> bytes:
    # Names carry the raw on-disk bytes, undecodable ones included.
    try:
        name_bytes = os.fsencode(name)
    except UnicodeEncodeError as exc:
        raise ArchiveNameError(f"Archive name is not encodable: {name!r}", name) from exc
    if len(name_bytes) > NAME_WIDTH:
        raise ArchiveNameError(
            f"Archive name exceeds {NAME_WIDTH} bytes: {name}", name
        )
    if size < 0 or size > MAX_OCTAL_FIELD_VALUE:
        raise ArchiveSizeError(f"File size does not fit a ustar header: {size}", name)

    header = bytearray(BLOCK_SIZE)
    header[NAME_OFFSET : NAME_OFFSET + len(name_bytes)] = name_bytes
    for offset, value in _FIXED_FIELDS:
        header[offset : offset + len(value)] = value
    header[SIZE_OFFSET : SIZE_OFFSET + SIZE_WIDTH] = _octal_field(size, SIZE_WIDTH)
    clamped_mtime = min(max(mtime, 0), MAX_OCTAL_FIELD_VALUE)
    header[MTIME_OFFSET : MTIME_OFFSET + MTIME_WIDTH] = _octal_field(
        clamped_mtime, MTIME_WIDTH
    )

    header[CHKSUM_OFFSET : CHKSUM_OFFSET + CHKSUM_WIDTH] = b" " * CHKSUM_WIDTH
    checksum = sum(header)
    header[CHKSUM_OFFSET : CHKSUM_OFFSET + CHKSUM_WIDTH] = _octal_field(
        checksum, CHKSUM_WIDTH
    )
    return bytes(header)


def block_count(size: int) -> int:
    return (size + BLOCK_SIZE - 1) // BLOCK_SIZE


def write_archive_entry(
    *,
    source_path: Path,
    prefix: str,
    stream: BinaryIO,
) -> ArchiveEntry:
    archive_name = f"{prefix}/{source_path.name}"
    try:
        stat_result = source_path.stat()
    except OSError as exc:
        raise FilesystemError(
            f"Stat error for {source_path}: {_describe(exc)}", source_path
        ) from exc

    size = stat_result.st_size
    mtime = int(stat_result.st_mtime)
    try:
        header = encode_ustar_header(name=archive_name, size=size, mtime=mtime)
    except (ArchiveNameError, ArchiveSizeError) as exc:
        exc.path = source_path
        raise

    try:
        source_file = source_path.open("rb")
    except OSError as exc:
        raise FilesystemError(
            f"Open error for {source_path}: {_describe(exc)}", source_path
        ) from exc

    with source_file:
        _write_block(stream, header)
        try:
            _copy_body(
                source_file=source_file,
                source_path=source_path,
                size=size,
                stream=stream,
            )
        finally:
            flush_archive_stream(stream)

    return ArchiveEntry(
        source_path=source_path,
        archive_name=archive_name,
        size=size,
        mtime=mtime,
    )


def write_end_of_archive(stream: BinaryIO) -> None:
    for _ in range(END_OF_ARCHIVE_BLOCKS):
        _write_block(stream, _ZERO_BLOCK)
    flush_archive_stream(stream)


def flush_archive_stream(stream: BinaryIO) -> None:
    fileno = _fileno_or_none(stream)
    try:
        stream.flush()
        if fileno is not None:
            os.fsync(fileno)
    except OSError as exc:
        raise ArchiveWriteError(f"Error flushing archive: {_describe(exc)}") from exc


def open_output_archive(output_path_abs: Path, *, compress: bool = False) -> BinaryIO:
    if output_path_abs.exists() or output_path_abs.is_symlink():
        raise OutputExistsError(f"Output path already exists: {output_path_abs}")

    try:
        if compress:
            return gzip.GzipFile(filename=output_path_abs, mode="xb")
        return output_path_abs.open("xb")
    except FileExistsError as exc:
        raise OutputExistsError(
            f"Output path already exists: {output_path_abs}"
        ) from exc
    except OSError as exc:
        raise OutputCreateError(
            f"Error opening output file {output_path_abs}: {_describe(exc)}"
        ) from exc


def _copy_body(
    *,
    source_file: BinaryIO,
    source_path: Path,
    size: int,
    stream: BinaryIO,
) -> None:
    # Exactly block_count(size) blocks follow the header, whatever happens to
    # the source file, so the next header stays aligned.
    total_blocks = block_count(size)
    remaining = size
    blocks_written = 0
    failure: str | None = None
    cause: OSError | None = None

    while remaining > 0:
        wanted = min(BLOCK_SIZE, remaining)
        try:
            chunk = _read_fully(source_file, wanted)
        except OSError as exc:
            failure = f"Read error for {source_path}: {_describe(exc)}"
            cause = exc
            break

        if chunk:
            _write_block(stream, chunk.ljust(BLOCK_SIZE, b"\0"))
            blocks_written += 1
            remaining -= len(chunk)
        if len(chunk) < wanted:
            failure = f"File shrank while archiving: {source_path}"
            break

    if failure is None:
        return

    for _ in range(total_blocks - blocks_written):
        _write_block(stream, _ZERO_BLOCK)
    raise ArchiveReadError(failure, source_path) from cause


def _read_fully(source_file: BinaryIO, wanted: int) -> bytes:
    buffer = bytearray()
    while len(buffer) < wanted:
        chunk = source_file.read(wanted - len(buffer))
        if not chunk:
            break
        buffer += chunk
    return bytes(buffer)


def _write_block(stream: BinaryIO, block: bytes) -> None:
    try:
        stream.write(block)
    except OSError as exc:
        raise ArchiveWriteError(
            f"Write error when adding to archive: {_describe(exc)}"
        ) from exc


def _octal_field(value: int, width: int) -> bytes:
    return f"{value:0{width - 1}o}".encode("ascii") + b"\0"


def _fileno_or_none(stream: BinaryIO) -> int | None:
    try:
        return stream.fileno()
    except (AttributeError, io.UnsupportedOperation):
        return None


def _describe(exc: OSError) -> str:
    return exc.strerror or str(exc)
