"""
Layout Resolver
===============

Turns cookie fields into absolute file positions:

    tail_bytes         = file_size - marker_offset - cookie_size
    overlay_size       = package_length + tail_bytes
    overlay_position   = file_size - overlay_size
    directory_position = <first candidate anchor that fits the file>

Producers disagree on what the table-of-contents offset is relative to, so
the directory position is resolved from an ordered list of anchors, each
checked against the file bounds before it is accepted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Tuple

from .cookie import Cookie
from .errors import FormatError, FormatErrorReason

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Layout:
    """Absolute positions of the overlay and the directory."""
    overlay_position: int
    overlay_size: int
    directory_position: int
    directory_length: int
    anchor: str = "overlay"

    @property
    def directory_end(self) -> int:
        return self.directory_position + self.directory_length


# (name, formula(cookie, overlay_position) -> directory_position)
DirectoryAnchor = Tuple[str, Callable[[Cookie, int], int]]

DIRECTORY_ANCHORS: Tuple[DirectoryAnchor, ...] = (
    ("overlay", lambda cookie, overlay_pos: overlay_pos + cookie.directory_offset),
    ("cookie", lambda cookie, overlay_pos: (
        cookie.marker_offset + cookie.record_size + cookie.directory_offset
    )),
)


def _directory_fits(position: int, length: int, file_size: int) -> bool:
    return 0 <= position < file_size and position + length <= file_size


def resolve_layout(
    cookie: Cookie,
    file_size: int,
    anchors: Tuple[DirectoryAnchor, ...] = DIRECTORY_ANCHORS
) -> Layout:
    """
    Compute the overlay and directory positions for ``cookie``.

    Raises:
        FormatError: OVERLAY_OUT_OF_BOUNDS if the package claims to be
            larger than the file, DIRECTORY_OUT_OF_BOUNDS if no anchor
            places the directory inside the file
    """
    tail_bytes = file_size - cookie.marker_offset - cookie.record_size
    overlay_size = cookie.package_length + tail_bytes
    overlay_position = file_size - overlay_size

    if tail_bytes < 0 or overlay_position < 0:
        raise FormatError(
            FormatErrorReason.OVERLAY_OUT_OF_BOUNDS,
            f"Overlay size {overlay_size} exceeds file size {file_size}"
        )

    directory_length = cookie.directory_length

    for name, formula in anchors:
        position = formula(cookie, overlay_position)
        if _directory_fits(position, directory_length, file_size):
            if name != anchors[0][0]:
                logger.info(f"Using alternative directory anchor '{name}' at {position}")
            layout = Layout(
                overlay_position=overlay_position,
                overlay_size=overlay_size,
                directory_position=position,
                directory_length=directory_length,
                anchor=name,
            )
            logger.debug(
                f"Overlay: pos={overlay_position}, size={overlay_size}; "
                f"TOC: pos={position}, size={directory_length}"
            )
            return layout

        logger.warning(
            f"Directory anchor '{name}' out of bounds: pos={position}, "
            f"len={directory_length}, file_size={file_size}"
        )

    raise FormatError(
        FormatErrorReason.DIRECTORY_OUT_OF_BOUNDS,
        f"Table of contents out of bounds (offset={cookie.directory_offset}, "
        f"length={directory_length}, file_size={file_size})"
    )
