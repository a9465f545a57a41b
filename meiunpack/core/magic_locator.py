"""
Cookie Marker Locator
=====================

Finds the trailing ``MEI\\x0c\\x0b\\x0a\\x0b\\x0e`` marker in a host file of
arbitrary size without loading it into memory.

The file is scanned backward in fixed windows. Consecutive windows share
``len(MARKER) - 1`` bytes so a marker split across a window boundary is still
seen, and each window is searched right-to-left so the last marker in the
file wins over earlier incidental copies of the same byte sequence.
"""

from __future__ import annotations

import logging
import os
from typing import BinaryIO

from .errors import FormatError, FormatErrorReason

logger = logging.getLogger(__name__)

MARKER = b'MEI\x0c\x0b\x0a\x0b\x0e'
SEARCH_CHUNK_SIZE = 8192


def find_marker(
    fp: BinaryIO,
    file_size: int,
    chunk_size: int = SEARCH_CHUNK_SIZE,
    marker: bytes = MARKER
) -> int:
    """
    Return the absolute offset of the last marker in ``fp``.

    Args:
        fp: Readable, seekable binary file
        file_size: Exact size of ``fp`` in bytes
        chunk_size: Window size for the backward scan
        marker: Byte sequence to look for

    Returns:
        Offset of the first byte of the last marker occurrence

    Raises:
        FormatError: MARKER_NOT_FOUND if the file is shorter than the marker
            or no window contains it
    """
    marker_len = len(marker)
    if chunk_size < marker_len:
        raise ValueError(f"chunk_size ({chunk_size}) smaller than marker ({marker_len})")

    if file_size < marker_len:
        raise FormatError(
            FormatErrorReason.MARKER_NOT_FOUND,
            f"File too short ({file_size} bytes) to hold the archive marker"
        )

    end_pos = file_size
    windows = 0

    while end_pos >= marker_len:
        start_pos = end_pos - chunk_size if end_pos >= chunk_size else 0

        fp.seek(start_pos, os.SEEK_SET)
        window = fp.read(end_pos - start_pos)
        windows += 1

        offs = window.rfind(marker)
        if offs != -1:
            cookie_pos = start_pos + offs
            logger.debug(f"Marker found at {cookie_pos} after {windows} window(s)")
            return cookie_pos

        if start_pos == 0:
            break

        # Keep marker_len - 1 bytes of overlap with the window just searched
        end_pos = start_pos + marker_len - 1

    raise FormatError(
        FormatErrorReason.MARKER_NOT_FOUND,
        "Missing cookie: unsupported freezer revision or not a CArchive"
    )
