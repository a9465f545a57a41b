"""
Entry Name Sanitizer
====================

Directory names come straight from an untrusted file and end up as paths
under the output directory. A name is rejected when it:
- is empty or only whitespace
- is absolute (leading ``/`` or ``\\``, or a drive prefix like ``C:``)
- contains control or otherwise non-printable characters
- has a ``.`` or ``..`` path component

Rejected names are replaced by ``unnamed_<offset>_<n>``, where ``n`` is a
per-sanitizer counter, so two bad records never map to the same file.
"""

from __future__ import annotations

import logging
import re
import threading
from pathlib import PurePosixPath

logger = logging.getLogger(__name__)

# Kind codes stored without a bytecode suffix
BYTECODE_KINDS = frozenset({'s', 'm'})
BYTECODE_SUFFIX = '.pyc'

_DRIVE_PREFIX = re.compile(r'^[A-Za-z]:')


def decode_name(raw: bytes) -> str:
    """Decode raw name bytes and drop the trailing NUL padding."""
    return raw.decode('utf-8', errors='replace').rstrip('\x00')


def is_safe_name(name: str) -> bool:
    """Check a decoded, separator-normalized name against the rejection rules."""
    if not name or not name.strip():
        return False
    if name.startswith(('/', '\\')) or _DRIVE_PREFIX.match(name):
        return False
    if name.endswith('/'):
        return False
    # U+FFFD marks bytes that were not valid UTF-8
    if not name.isprintable() or '\ufffd' in name:
        return False
    parts = name.split('/')
    if any(part in ('.', '..') for part in parts):
        return False
    return True


def add_bytecode_suffix(name: str, kind: str) -> str:
    """Append ``.pyc`` to script/module entries stored without an extension."""
    if kind in BYTECODE_KINDS and not PurePosixPath(name).suffix:
        return name + BYTECODE_SUFFIX
    return name


class NameSanitizer:
    """
    Per-run name sanitizer.

    Holds the counter used for synthesized names; one instance is used for
    one directory parse.
    """

    def __init__(self) -> None:
        self._counter = 0
        self._lock = threading.Lock()

    def _synthesize(self, record_offset: int) -> str:
        with self._lock:
            n = self._counter
            self._counter += 1
        return f"unnamed_{record_offset}_{n}"

    def sanitize(self, raw: bytes, record_offset: int, kind: str = '') -> str:
        """
        Produce a safe relative output name for a directory record.

        Args:
            raw: Name bytes as stored in the record
            record_offset: Offset of the record inside the directory
            kind: One-character entry type code

        Returns:
            Sanitized name using single ``/`` separators
        """
        name = decode_name(raw).replace('\\', '/')

        if not is_safe_name(name):
            fallback = self._synthesize(record_offset)
            logger.warning(f"Invalid or unsafe entry name {name!r}, using {fallback}")
            name = fallback
        else:
            # "a//b" and "a/b" name the same output file
            name = '/'.join(part for part in name.split('/') if part)

        return add_bytecode_suffix(name, kind)
