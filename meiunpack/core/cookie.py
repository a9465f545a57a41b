"""
Cookie Decoder
==============

Decodes the fixed-size metadata record ("cookie") that sits at the marker.

Cookie layout (all integers big-endian):
- 8 bytes: marker
- 4 bytes: length of the whole package
- 4 bytes: offset of the table of contents
- 4 bytes: length of the table of contents
- 4 bytes: Python version code (e.g. 39, 311)
- R2 only: 64 bytes holding the Python library name

The revision is not stored anywhere; it is sniffed from the 64 bytes that
follow the R1-sized record.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Tuple

from .byteorder import COOKIE_FIELDS_BE
from .errors import FormatError, FormatErrorReason
from .magic_locator import MARKER

logger = logging.getLogger(__name__)

R1_COOKIE_SIZE = 24
R2_COOKIE_SIZE = 24 + 64
PROBE_SIZE = 64
PROBE_TOKEN = b'python'


class Revision(Enum):
    """Recognized cookie layouts."""
    R1 = "2.0"    # 24-byte cookie
    R2 = "2.1+"   # 24-byte cookie + 64-byte library name

    @property
    def record_size(self) -> int:
        return R1_COOKIE_SIZE if self is Revision.R1 else R2_COOKIE_SIZE


@dataclass(frozen=True)
class Cookie:
    """Decoded cookie. Immutable once read."""
    revision: Revision
    marker_offset: int
    package_length: int
    directory_offset: int
    directory_length: int
    python_version_code: int
    python_library: str = ""

    @property
    def record_size(self) -> int:
        """Bytes occupied by the cookie on disk."""
        return self.revision.record_size

    @property
    def python_version(self) -> Tuple[int, int]:
        """(major, minor) of the bundled interpreter."""
        code = self.python_version_code
        if code >= 100:
            return code // 100, code % 100
        return code // 10, code % 10

    @property
    def python_version_str(self) -> str:
        major, minor = self.python_version
        return f"{major}.{minor}"


def detect_revision(probe: bytes) -> Revision:
    """R2 if the bytes after the R1 record mention python (any case)."""
    if PROBE_TOKEN in probe.lower():
        return Revision.R2
    return Revision.R1


def decode_cookie(record: bytes, marker_offset: int, revision: Revision) -> Cookie:
    """
    Decode a cookie record already read into memory.

    Raises:
        FormatError: TRUNCATED_COOKIE if ``record`` is shorter than the
            revision's record size, BAD_MAGIC if it does not start with
            the marker
    """
    size = revision.record_size
    if len(record) < size:
        raise FormatError(
            FormatErrorReason.TRUNCATED_COOKIE,
            f"Incomplete cookie at {marker_offset}: expected {size} bytes, got {len(record)}"
        )

    if record[:len(MARKER)] != MARKER:
        raise FormatError(
            FormatErrorReason.BAD_MAGIC,
            f"Invalid magic in cookie at {marker_offset}"
        )

    package_length, directory_offset, directory_length, pyver = \
        COOKIE_FIELDS_BE.unpack_from(record, len(MARKER))

    python_library = ""
    if revision is Revision.R2:
        lib = record[R1_COOKIE_SIZE:R2_COOKIE_SIZE]
        python_library = lib.split(b'\x00', 1)[0].decode('ascii', errors='replace')

    return Cookie(
        revision=revision,
        marker_offset=marker_offset,
        package_length=package_length,
        directory_offset=directory_offset,
        directory_length=directory_length,
        python_version_code=pyver,
        python_library=python_library,
    )


def read_cookie(fp: BinaryIO, file_size: int, marker_offset: int) -> Cookie:
    """
    Read and decode the cookie located at ``marker_offset``.

    Args:
        fp: Host file (readable, seekable)
        file_size: Exact size of the host file
        marker_offset: Offset returned by the marker locator

    Returns:
        Decoded Cookie
    """
    fp.seek(marker_offset + R1_COOKIE_SIZE, os.SEEK_SET)
    probe = fp.read(PROBE_SIZE)
    revision = detect_revision(probe)
    logger.info(f"Freezer cookie revision: {revision.name} ({revision.value})")

    available = file_size - marker_offset
    if available < revision.record_size:
        raise FormatError(
            FormatErrorReason.TRUNCATED_COOKIE,
            f"Cookie at {marker_offset} truncated: {available} of "
            f"{revision.record_size} bytes present"
        )

    fp.seek(marker_offset, os.SEEK_SET)
    record = fp.read(revision.record_size)
    cookie = decode_cookie(record, marker_offset, revision)

    logger.debug(
        f"Cookie: package={cookie.package_length}, toc={cookie.directory_offset}, "
        f"toc_len={cookie.directory_length}, pyver={cookie.python_version_code}"
    )
    logger.info(f"Python version: {cookie.python_version_str}")
    return cookie
