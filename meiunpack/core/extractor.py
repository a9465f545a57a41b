"""
Parallel Entry Extractor
========================

Writes every directory entry to the output directory using a bounded pool
of worker threads.

Per entry:
1. Read the payload from the shared host file (the only locked step)
2. Inflate it if flagged compressed, bounded to the declared size
3. Create parent directories and write ``output_dir/name``

A failing entry is recorded as SKIPPED with a reason; the run carries on.
Entries that share a name are written in directory order by a single task,
so the last one wins deterministically.

Usage:
    engine = ExtractionEngine(fp, file_size)
    report = engine.extract(entries, Path("unpacked"), workers=4)
    print(report.summary())
"""

from __future__ import annotations

import logging
import os
import threading
import time
import zlib
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Iterable, List, Optional, Set

from .directory import Entry
from .errors import EntryError
from .worker_pool import WorkerPool
from ..utils.hardware import resolve_worker_count

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class ExtractionStatus(Enum):
    """Outcome of one entry."""
    EXTRACTED = "extracted"
    SKIPPED = "skipped"


@dataclass
class ExtractionResult:
    """Result of extracting a single entry."""
    name: str
    status: ExtractionStatus
    reason: Optional[str] = None
    bytes_written: int = 0
    output_path: Optional[Path] = None
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == ExtractionStatus.EXTRACTED


@dataclass
class ExtractionReport:
    """Aggregated outcome of one extraction run."""
    results: List[ExtractionResult] = field(default_factory=list)
    duration_seconds: float = 0.0
    workers: int = 0

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def extracted(self) -> List[ExtractionResult]:
        return [r for r in self.results if r.success]

    @property
    def skipped(self) -> List[ExtractionResult]:
        return [r for r in self.results if not r.success]

    @property
    def bytes_written(self) -> int:
        return sum(r.bytes_written for r in self.results)

    @property
    def is_success(self) -> bool:
        """Every entry recovered (and there was at least one)."""
        return self.total > 0 and not self.skipped

    @property
    def is_partial(self) -> bool:
        return bool(self.extracted) and bool(self.skipped)

    @property
    def is_failure(self) -> bool:
        """Nothing recovered, even if no fatal error occurred."""
        return not self.extracted

    def summary(self) -> str:
        return (
            f"{len(self.extracted)}/{self.total} entries extracted, "
            f"{len(self.skipped)} skipped, {self.bytes_written} bytes "
            f"in {self.duration_seconds:.2f}s"
        )


def inflate_payload(name: str, data: bytes, expected_size: int) -> bytes:
    """
    Inflate a zlib stream into at most ``expected_size`` bytes.

    The stream must end cleanly and consume all input. Output shorter than
    declared is returned with a warning.

    Raises:
        EntryError: On corrupt, truncated or oversized streams
    """
    inflater = zlib.decompressobj()
    try:
        # +1 so an oversized stream is detectable (max_length=0 means unbounded)
        out = inflater.decompress(data, expected_size + 1)
    except zlib.error as e:
        raise EntryError(name, f"decompression failed: {e}") from e

    if len(out) > expected_size:
        raise EntryError(name, f"inflated data exceeds declared size {expected_size}")
    if not inflater.eof:
        raise EntryError(name, "decompression failed: stream truncated")
    if inflater.unused_data or inflater.unconsumed_tail:
        raise EntryError(name, "decompression failed: trailing data after stream end")

    if len(out) < expected_size:
        logger.warning(f"{name}: inflated {len(out)} bytes, declared {expected_size}")
    return out


class ExtractionEngine:
    """
    Extracts entries from one open host file.

    Thread Safety:
        The host file handle is shared by all workers; every seek+read pair
        runs under ``_file_lock``. Status logging and progress callbacks run
        under ``_status_lock``.
    """

    def __init__(
        self,
        fp: BinaryIO,
        file_size: int,
        file_lock: Optional[threading.Lock] = None
    ) -> None:
        self._fp = fp
        self._file_size = file_size
        self._file_lock = file_lock or threading.Lock()
        self._status_lock = threading.Lock()
        self._completed = 0
        self._total = 0
        self._on_progress: Optional[ProgressCallback] = None

    def read_payload(self, entry: Entry) -> bytes:
        """Read the stored bytes of ``entry`` from the host file."""
        if entry.payload_end > self._file_size:
            raise EntryError(
                entry.name,
                f"payload [{entry.payload_position}, {entry.payload_end}) "
                f"beyond end of file ({self._file_size})"
            )

        with self._file_lock:
            self._fp.seek(entry.payload_position, os.SEEK_SET)
            data = self._fp.read(entry.compressed_size)

        if len(data) < entry.compressed_size:
            raise EntryError(
                entry.name,
                f"short read: {len(data)} of {entry.compressed_size} bytes"
            )
        return data

    @staticmethod
    def output_path_for(entry: Entry, output_dir: Path) -> Path:
        """Resolve the output path, refusing anything outside ``output_dir``."""
        base = output_dir.resolve()
        target = (base / entry.name).resolve()
        if target == base or base not in target.parents:
            raise EntryError(entry.name, f"unsafe output path {target}")
        return target

    def extract_entry(self, entry: Entry, output_dir: Path) -> ExtractionResult:
        """Extract one entry. Failures are returned, not raised."""
        start_time = time.time()

        try:
            data = self.read_payload(entry)
            if entry.is_compressed:
                data = inflate_payload(entry.name, data, entry.uncompressed_size)

            out_path = self.output_path_for(entry, output_dir)
            out_path.parent.mkdir(parents=True, exist_ok=True)
            with open(out_path, 'wb') as f:
                f.write(data)

            result = ExtractionResult(
                name=entry.name,
                status=ExtractionStatus.EXTRACTED,
                bytes_written=len(data),
                output_path=out_path,
                duration=time.time() - start_time
            )

        except EntryError as e:
            result = self._skipped(entry, e.reason, start_time)
        except OSError as e:
            result = self._skipped(entry, f"could not write output file: {e}", start_time)
        except Exception as e:
            logger.exception(f"Unexpected error extracting {entry.name}")
            result = self._skipped(entry, f"unexpected error: {e}", start_time)

        self._report(result)
        return result

    @staticmethod
    def _skipped(entry: Entry, reason: str, start_time: float) -> ExtractionResult:
        return ExtractionResult(
            name=entry.name,
            status=ExtractionStatus.SKIPPED,
            reason=reason,
            duration=time.time() - start_time
        )

    def _report(self, result: ExtractionResult) -> None:
        with self._status_lock:
            self._completed += 1
            if result.success:
                logger.info(f"[+] Extracted: {result.name} ({result.bytes_written} bytes)")
            else:
                logger.error(f"[!] Skipped: {result.name}: {result.reason}")

            if self._on_progress:
                try:
                    self._on_progress(self._completed, self._total)
                except Exception as e:
                    logger.debug(f"Progress callback error: {e}")

    def _extract_group(self, group: List[Entry], output_dir: Path) -> List[ExtractionResult]:
        # Same-name entries: written in directory order, last one wins
        return [self.extract_entry(entry, output_dir) for entry in group]

    def extract(
        self,
        entries: Iterable[Entry],
        output_dir: Path,
        workers: Optional[int] = None,
        names: Optional[Set[str]] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> ExtractionReport:
        """
        Extract ``entries`` into ``output_dir`` in parallel.

        Args:
            entries: Entries from the directory parser
            output_dir: Destination directory (created if missing)
            workers: Worker override (None/0 = physical cores, clamped)
            names: If given, only entries with these names are extracted
            on_progress: Callback (completed, total) after each entry

        Returns:
            ExtractionReport with one result per selected entry
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        selected = [e for e in entries if names is None or e.name in names]
        if names is not None:
            missing = names - {e.name for e in selected}
            for name in sorted(missing):
                logger.warning(f"Requested entry not found in archive: {name}")

        groups: Dict[str, List[Entry]] = OrderedDict()
        for entry in selected:
            groups.setdefault(entry.name, []).append(entry)

        num_workers = resolve_worker_count(workers)
        num_workers = min(num_workers, max(1, len(groups)))

        self._completed = 0
        self._total = len(selected)
        self._on_progress = on_progress

        start_time = time.time()
        logger.info(
            f"Extracting {len(selected)} entries to {output_dir} "
            f"with {num_workers} worker(s)"
        )

        futures = []
        with WorkerPool(num_workers, name_prefix="Extractor") as pool:
            for group in groups.values():
                futures.append(pool.submit(self._extract_group, group, output_dir))

        results: List[ExtractionResult] = []
        for future, group in zip(futures, groups.values()):
            try:
                results.extend(future.result())
            except Exception as e:
                logger.error(f"Extraction worker error: {e}")
                results.extend(
                    ExtractionResult(entry.name, ExtractionStatus.SKIPPED, reason=str(e))
                    for entry in group
                )

        report = ExtractionReport(
            results=results,
            duration_seconds=time.time() - start_time,
            workers=num_workers
        )
        self._on_progress = None

        logger.info(f"Extraction complete: {report.summary()}")
        for r in report.skipped:
            logger.warning(f"  skipped {r.name}: {r.reason}")

        return report
