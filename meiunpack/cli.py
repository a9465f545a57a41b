"""
MEIUnpack Command Line
======================

    meiunpack [-c N] (-i | -u) ARCHIVE [OUTPUT_DIR] [--only NAME ...] [-v]

-i prints the cookie summary and the entry listing, -u extracts.

Exit codes:
    0  every entry extracted
    1  fatal archive error, or nothing recovered
    2  partial success (some entries skipped)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .core.archive import CArchive
from .core.errors import FormatError
from .core.magic_locator import MARKER, SEARCH_CHUNK_SIZE
from .utils.config import Config, load_config
from .utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_PARTIAL = 2


def build_parser(config: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="meiunpack",
        description="Recover the files packed into a PyInstaller executable"
    )
    parser.add_argument(
        "-c", "-cores", "--cores", type=int, default=config.extract.workers,
        help="Worker threads (0 = all physical cores)"
    )
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("-i", "--info", action="store_true", help="Show archive info and entries")
    mode.add_argument("-u", "--unpack", action="store_true", help="Extract entries")
    parser.add_argument("archive", type=Path, help="Executable or CArchive file")
    parser.add_argument(
        "output_dir", nargs="?", type=Path, default=Path(config.extract.output_dir),
        help=f"Output directory (default: {config.extract.output_dir})"
    )
    parser.add_argument(
        "--only", nargs="+", metavar="NAME",
        help="Extract only these entries"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def print_info(archive: CArchive) -> None:
    info = archive.info()

    print(f"Archive:        {info['path']} ({info['file_size']} bytes)")
    print(f"Revision:       PyInstaller {info['revision']}")
    print(f"Python:         {info['python_version']}"
          + (f" ({info['python_library']})" if info['python_library'] else ""))
    print(f"Cookie offset:  {info['marker_offset']}")
    print(f"Overlay:        {info['overlay_position']} (+{info['overlay_size']})")
    print(f"Directory:      {info['directory_position']} (+{info['directory_length']}, "
          f"{info['directory_anchor']} anchor)")
    print(f"Entries:        {info['entries']}")
    if info['skipped_records']:
        print(f"Corrupt:        {info['skipped_records']} record(s) skipped")

    print(f"\n{'='*60}")
    for entry in archive.entries:
        flag = "z" if entry.is_compressed else "-"
        print(f"{entry.uncompressed_size:>12}  {flag} {entry.kind}  {entry.name}")


def _print_progress(completed: int, total: int) -> None:
    percent = completed * 100.0 / total if total else 100.0
    end = "\n" if completed >= total else ""
    print(f"\r[{percent:5.1f}%] {completed}/{total}", end=end, flush=True)


def main(argv: Optional[List[str]] = None) -> int:
    config = load_config()
    parser = build_parser(config)
    args = parser.parse_args(argv)

    level = "DEBUG" if args.verbose else config.logging.level
    log_dir = Path(config.logging.log_dir) if config.logging.log_to_file else None
    setup_logging(level, log_dir=log_dir, console=True)

    for problem in config.validate():
        logger.warning(f"Config: {problem}")

    chunk_size = config.extract.search_chunk_size
    if chunk_size < len(MARKER):
        logger.warning(f"Config: search chunk size {chunk_size} too small, using {SEARCH_CHUNK_SIZE}")
        chunk_size = SEARCH_CHUNK_SIZE

    try:
        with CArchive(args.archive, chunk_size) as archive:
            if args.info:
                print_info(archive)
                return EXIT_OK

            report = archive.extract(
                args.output_dir,
                workers=args.cores,
                names=args.only,
                on_progress=_print_progress
            )

    except (FormatError, OSError) as e:
        logger.error(f"[!] Error: {e}")
        return EXIT_FAILURE

    print(f"[+] {report.summary()}")
    if report.is_success:
        print(f"[+] Successfully extracted to {args.output_dir}")
        return EXIT_OK

    for r in report.skipped:
        print(f"[!] Skipped {r.name}: {r.reason}")

    if report.is_partial:
        return EXIT_PARTIAL
    return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
