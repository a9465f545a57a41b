"""
Error Types
===========

Fatal archive errors abort the whole run: no later stage has a valid anchor
to work from. Per-record and per-entry problems are never raised; they are
reported as skip results by the directory parser and extraction engine.
"""

from __future__ import annotations

from enum import Enum


class FormatErrorReason(Enum):
    """Why an archive could not be opened."""
    MARKER_NOT_FOUND = "marker_not_found"
    TRUNCATED_COOKIE = "truncated_cookie"
    BAD_MAGIC = "bad_magic"
    OVERLAY_OUT_OF_BOUNDS = "overlay_out_of_bounds"
    DIRECTORY_OUT_OF_BOUNDS = "directory_out_of_bounds"
    TRUNCATED_DIRECTORY = "truncated_directory"


class MEIUnpackError(Exception):
    """Base class for all errors raised by meiunpack."""


class FormatError(MEIUnpackError, ValueError):
    """The host file is not a readable CArchive."""

    def __init__(self, reason: FormatErrorReason, message: str = "") -> None:
        self.reason = reason
        self.message = message or reason.value.replace('_', ' ')
        super().__init__(f"{self.message} [{reason.name}]")


class EntryError(MEIUnpackError):
    """A single entry could not be recovered. Never aborts the run."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"{name}: {reason}")
