"""
CArchive Reader
===============

Ties the recovery stages together for one host file:

    find_marker -> read_cookie -> resolve_layout -> parse_directory
                -> ExtractionEngine

Everything up to the directory listing runs once, single-threaded, in
open(). Extraction fans out to the worker pool.

Usage:
    with CArchive("app.exe") as archive:
        for name, size in archive.list_entries():
            print(name, size)
        report = archive.extract("unpacked")
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import BinaryIO, Dict, Iterable, List, Optional, Tuple, Union

from .cookie import Cookie, read_cookie
from .directory import DirectoryListing, Entry, parse_directory
from .errors import FormatError, FormatErrorReason
from .extractor import ExtractionEngine, ExtractionReport, ProgressCallback
from .layout import Layout, resolve_layout
from .magic_locator import SEARCH_CHUNK_SIZE, find_marker
from .names import NameSanitizer

logger = logging.getLogger(__name__)


class CArchive:
    """
    A PyInstaller CArchive embedded in a host file.

    The host file is opened once and stays open until close(); its size is
    read once at open time.
    """

    def __init__(self, path: Union[str, Path], search_chunk_size: int = SEARCH_CHUNK_SIZE) -> None:
        self.path = Path(path)
        self.search_chunk_size = search_chunk_size

        self._fp: Optional[BinaryIO] = None
        self._file_size = 0
        self._file_lock = threading.Lock()

        self._cookie: Optional[Cookie] = None
        self._layout: Optional[Layout] = None
        self._listing: Optional[DirectoryListing] = None

    @property
    def file_size(self) -> int:
        return self._file_size

    @property
    def cookie(self) -> Cookie:
        self._require_open()
        return self._cookie

    @property
    def layout(self) -> Layout:
        self._require_open()
        return self._layout

    @property
    def listing(self) -> DirectoryListing:
        self._require_open()
        return self._listing

    @property
    def entries(self) -> List[Entry]:
        return self.listing.entries

    @property
    def is_open(self) -> bool:
        return self._fp is not None

    def _require_open(self) -> None:
        if self._fp is None or self._listing is None:
            raise RuntimeError(f"Archive not open: {self.path}")

    def open(self) -> CArchive:
        """
        Open the host file and parse everything up to the entry list.

        Raises:
            OSError: If the host file cannot be opened
            FormatError: If the file is not a readable CArchive
        """
        if self._fp is not None:
            return self

        logger.info(f"[+] Processing {self.path}")
        fp = open(self.path, 'rb')
        try:
            self._file_size = os.fstat(fp.fileno()).st_size
            self._fp = fp
            self._parse()
        except BaseException:
            self._fp = None
            fp.close()
            raise

        return self

    def _parse(self) -> None:
        marker_offset = find_marker(self._fp, self._file_size, self.search_chunk_size)
        self._cookie = read_cookie(self._fp, self._file_size, marker_offset)
        self._layout = resolve_layout(self._cookie, self._file_size)

        data = self._read_directory(self._layout)
        self._listing = parse_directory(
            data,
            self._layout.overlay_position,
            self._layout.directory_length,
            NameSanitizer()
        )

    def _read_directory(self, layout: Layout) -> bytes:
        self._fp.seek(layout.directory_position, os.SEEK_SET)
        data = self._fp.read(layout.directory_length)
        if len(data) < layout.directory_length:
            raise FormatError(
                FormatErrorReason.TRUNCATED_DIRECTORY,
                f"Directory read returned {len(data)} of {layout.directory_length} bytes"
            )
        return data

    def info(self) -> Dict[str, object]:
        """Summary of the cookie, layout and directory."""
        cookie = self.cookie
        layout = self.layout
        listing = self.listing

        return {
            "path": str(self.path),
            "file_size": self._file_size,
            "revision": cookie.revision.value,
            "python_version": cookie.python_version_str,
            "python_library": cookie.python_library,
            "marker_offset": cookie.marker_offset,
            "package_length": cookie.package_length,
            "overlay_position": layout.overlay_position,
            "overlay_size": layout.overlay_size,
            "directory_position": layout.directory_position,
            "directory_length": layout.directory_length,
            "directory_anchor": layout.anchor,
            "entries": len(listing.entries),
            "skipped_records": len(listing.skipped),
            "duplicate_names": listing.duplicate_names(),
        }

    def list_entries(self) -> List[Tuple[str, int]]:
        """(name, uncompressed size) for every entry, in directory order."""
        return [(e.name, e.uncompressed_size) for e in self.entries]

    def extract(
        self,
        output_dir: Union[str, Path] = "unpacked",
        workers: Optional[int] = None,
        names: Optional[Iterable[str]] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> ExtractionReport:
        """Extract all entries (or only ``names``) into ``output_dir``."""
        self._require_open()
        engine = ExtractionEngine(self._fp, self._file_size, self._file_lock)
        return engine.extract(
            self.entries,
            Path(output_dir),
            workers=workers,
            names=set(names) if names is not None else None,
            on_progress=on_progress
        )

    def close(self) -> None:
        if self._fp is not None:
            self._fp.close()
            self._fp = None
            logger.debug(f"Closed {self.path}")

    def __enter__(self) -> CArchive:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
