"""
Table of Contents Parser
========================

Decodes the archive directory into ``Entry`` objects.

Record layout (integers big-endian):
- 4 bytes: record size, including this field
- 4 bytes: payload offset, relative to the overlay
- 4 bytes: compressed size
- 4 bytes: uncompressed size
- 1 byte:  compression flag
- 1 byte:  type code
- (record size - 18) bytes: NUL-padded name

Corrupt records are skipped, not fatal. Each record decodes to either an
``Entry`` or a ``SkipRecord``, and the cursor always advances by the
declared record size, so one bad record cannot take the rest of the
directory down with it.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from .byteorder import RECORD_FIELDS_BE, U32_BE, read_u32_be
from .names import NameSanitizer

logger = logging.getLogger(__name__)

LENGTH_FIELD_SIZE = U32_BE.size                                # 4
ENTRY_HEADER_SIZE = LENGTH_FIELD_SIZE + RECORD_FIELDS_BE.size  # 18


class EntryKind(Enum):
    """Known directory type codes."""
    BINARY = 'b'
    DEPENDENCY = 'd'
    SPLASH = 'l'
    MODULE = 'm'
    PACKAGE = 'M'
    SYMLINK = 'n'
    OPTION = 'o'
    SCRIPT = 's'
    DATA = 'x'
    PYZ = 'z'
    ZIPFILE = 'Z'

    @classmethod
    def describe(cls, code: str) -> str:
        """Human-readable kind for a type code, ``unknown`` if unrecognized."""
        try:
            return cls(code).name.lower()
        except ValueError:
            return "unknown"


@dataclass(frozen=True)
class Entry:
    """A packed file described by one directory record."""
    payload_position: int       # absolute offset in the host file
    compressed_size: int
    uncompressed_size: int
    is_compressed: bool
    kind: str
    name: str
    record_offset: int = 0
    record_size: int = 0
    raw_name: str = ""

    @property
    def kind_name(self) -> str:
        return EntryKind.describe(self.kind)

    @property
    def payload_end(self) -> int:
        return self.payload_position + self.compressed_size


@dataclass(frozen=True)
class SkipRecord:
    """A directory record that could not be decoded."""
    record_offset: int
    record_size: int
    reason: str


RecordResult = Union[Entry, SkipRecord]


@dataclass
class DirectoryListing:
    """Result of parsing a whole directory."""
    entries: List[Entry] = field(default_factory=list)
    skipped: List[SkipRecord] = field(default_factory=list)
    consumed: int = 0
    directory_length: int = 0

    @property
    def complete(self) -> bool:
        """True when every declared byte was walked and nothing was skipped."""
        return self.consumed == self.directory_length and not self.skipped

    def duplicate_names(self) -> List[str]:
        """Names that occur more than once (later entries overwrite earlier)."""
        counts = Counter(e.name for e in self.entries)
        return sorted(name for name, n in counts.items() if n > 1)


def decode_record(
    data: bytes,
    offset: int,
    overlay_position: int,
    sanitizer: NameSanitizer,
    directory_length: Optional[int] = None
) -> RecordResult:
    """
    Decode the record starting at ``offset`` in ``data``.

    Never raises for malformed input: every problem becomes a SkipRecord.
    The caller must already have checked that the 4-byte size field fits.
    """
    if directory_length is None:
        directory_length = len(data)

    entry_size = read_u32_be(data, offset)

    if entry_size < ENTRY_HEADER_SIZE or entry_size > directory_length:
        return SkipRecord(
            offset, entry_size,
            f"invalid record size {entry_size} (min {ENTRY_HEADER_SIZE}, max {directory_length})"
        )

    if offset + entry_size > len(data):
        return SkipRecord(
            offset, entry_size,
            f"record runs past end of directory ({offset + entry_size} > {len(data)})"
        )

    payload_offset, csize, usize, flag, kind = RECORD_FIELDS_BE.unpack_from(
        data, offset + LENGTH_FIELD_SIZE
    )

    raw_name = data[offset + ENTRY_HEADER_SIZE:offset + entry_size]
    kind_code = kind.decode('latin-1')
    name = sanitizer.sanitize(raw_name, offset, kind_code)

    return Entry(
        payload_position=overlay_position + payload_offset,
        compressed_size=csize,
        uncompressed_size=usize,
        is_compressed=flag != 0,
        kind=kind_code,
        name=name,
        record_offset=offset,
        record_size=entry_size,
        raw_name=raw_name.decode('utf-8', errors='replace').rstrip('\x00'),
    )


def parse_directory(
    data: bytes,
    overlay_position: int,
    directory_length: Optional[int] = None,
    sanitizer: Optional[NameSanitizer] = None
) -> DirectoryListing:
    """
    Walk the directory records in ``data``.

    Args:
        data: Raw directory bytes
        overlay_position: Absolute overlay start, added to payload offsets
        directory_length: Declared directory length (defaults to len(data))
        sanitizer: Name sanitizer for this run (a fresh one if omitted)

    Returns:
        DirectoryListing with entries in on-disk order plus skipped records
    """
    if directory_length is None:
        directory_length = len(data)
    if sanitizer is None:
        sanitizer = NameSanitizer()

    listing = DirectoryListing(directory_length=directory_length)
    parsed_len = 0

    while parsed_len < directory_length:
        if parsed_len + LENGTH_FIELD_SIZE > len(data):
            logger.warning(f"Directory ends inside a record size field at {parsed_len}")
            break

        result = decode_record(data, parsed_len, overlay_position, sanitizer, directory_length)

        if isinstance(result, Entry):
            listing.entries.append(result)
            logger.debug(
                f"TOC entry: {result.name} pos={result.payload_position} "
                f"csize={result.compressed_size} usize={result.uncompressed_size} "
                f"flag={int(result.is_compressed)} kind={result.kind!r}"
            )
        else:
            listing.skipped.append(result)
            logger.warning(f"Skipping TOC record at {parsed_len}: {result.reason}")
            if result.record_size < LENGTH_FIELD_SIZE:
                # Cursor cannot move past this record's own size field
                logger.warning(f"Cannot advance past record at {parsed_len}, stopping")
                break

        parsed_len += result.record_size

    listing.consumed = parsed_len

    if parsed_len != directory_length:
        logger.warning(f"Parsed {parsed_len} bytes, expected {directory_length}")

    duplicates = listing.duplicate_names()
    if duplicates:
        logger.warning(
            f"{len(duplicates)} duplicate entry name(s); later entries overwrite earlier: "
            f"{duplicates[:5]}"
        )

    logger.info(
        f"Found {len(listing.entries)} files in CArchive"
        + (f" ({len(listing.skipped)} corrupt record(s) skipped)" if listing.skipped else "")
    )
    return listing
