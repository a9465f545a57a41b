"""Builders for synthetic CArchive host files."""

from __future__ import annotations

import struct
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import pytest

MARKER = b'MEI\x0c\x0b\x0a\x0b\x0e'
STUB = b'MZ' + b'\x90' * 126


@dataclass
class Packed:
    """One file to pack into a test archive."""
    name: str
    data: bytes
    compress: bool = True
    kind: bytes = b'x'
    raw_name: Optional[bytes] = None
    stored: Optional[bytes] = None     # overrides the bytes written to the overlay
    usize: Optional[int] = None        # overrides the declared uncompressed size


def toc_record(raw_name: bytes, payload_offset: int, csize: int, usize: int,
               flag: int, kind: bytes, record_size: Optional[int] = None) -> bytes:
    """One directory record; the name is NUL-padded to a 16-byte boundary."""
    name = raw_name + b'\x00'
    name += b'\x00' * (-(18 + len(name)) % 16)
    size = 18 + len(name) if record_size is None else record_size
    return struct.pack('>IIIIBc', size, payload_offset, csize, usize, flag, kind) + name


def make_cookie(package_length: int, toc_offset: int, toc_length: int,
                pyver: int = 311, library: Optional[bytes] = b'python311.dll') -> bytes:
    """R2 cookie when ``library`` is given, otherwise R1."""
    cookie = MARKER + struct.pack('>IIII', package_length, toc_offset, toc_length, pyver)
    if library is not None:
        cookie += library.ljust(64, b'\x00')
    return cookie


def build_archive(files: List[Packed], stub: bytes = STUB, tail: bytes = b'',
                  pyver: int = 311, library: Optional[bytes] = b'python311.dll',
                  extra_records: bytes = b'') -> bytes:
    """
    Host file bytes: stub, payloads, directory, cookie, tail.

    ``extra_records`` are raw directory bytes appended after the records
    built for ``files``.
    """
    payloads = b''
    toc = b''
    for f in files:
        stored = f.stored
        if stored is None:
            stored = zlib.compress(f.data) if f.compress else f.data
        usize = len(f.data) if f.usize is None else f.usize
        raw_name = f.raw_name if f.raw_name is not None else f.name.encode('utf-8')
        toc += toc_record(raw_name, len(payloads), len(stored), usize,
                          1 if f.compress else 0, f.kind)
        payloads += stored

    toc += extra_records
    cookie_size = 24 if library is None else 88
    package_length = len(payloads) + len(toc) + cookie_size
    cookie = make_cookie(package_length, len(payloads), len(toc), pyver, library)
    return stub + payloads + toc + cookie + tail


@pytest.fixture
def sample_files() -> List[Packed]:
    return [
        Packed("main", b"print('hello')\n" * 20, kind=b's'),
        Packed("lib/helper.py", b"def f():\n    return 42\n" * 10),
        Packed("data/blob.bin", bytes(range(256)) * 4, compress=False, kind=b'b'),
        Packed("PYZ-00.pyz", b"PYZ\x00" + b"\x01" * 500, kind=b'z'),
    ]


@pytest.fixture
def write_archive(tmp_path: Path):
    """Factory fixture: write host-file bytes and return the path."""
    counter = [0]

    def _write(content: bytes, name: Optional[str] = None) -> Path:
        counter[0] += 1
        path = tmp_path / (name or f"app{counter[0]}.exe")
        path.write_bytes(content)
        return path

    return _write
