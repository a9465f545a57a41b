"""
Hardware Detection
==================

Worker sizing for the extraction pool.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import psutil

logger = logging.getLogger(__name__)


def physical_core_count() -> int:
    """
    Number of physical CPU cores, at least 1.

    psutil returns None on platforms where it cannot tell physical from
    logical cores; the logical count is used then.
    """
    cores = psutil.cpu_count(logical=False)
    if not cores:
        cores = os.cpu_count() or 1
        logger.debug(f"Physical core count unavailable, using logical count {cores}")
    return max(1, cores)


def resolve_worker_count(requested: Optional[int] = None) -> int:
    """
    Apply the worker-count policy.

    Args:
        requested: User override (None or <= 0 = all physical cores)

    Returns:
        Worker count clamped to [1, physical cores]
    """
    max_cores = physical_core_count()

    if not requested or requested <= 0:
        logger.info(f"Using all available physical cores: {max_cores}")
        return max_cores

    if requested > max_cores:
        logger.warning(
            f"Requested {requested} workers exceeds available physical cores "
            f"({max_cores}). Using maximum available cores."
        )
        return max_cores

    logger.info(f"Using user-specified number of cores: {requested}")
    return requested
