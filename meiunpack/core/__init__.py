"""Core recovery stages for MEIUnpack."""

# Lazy imports so the parsing stages load without psutil

__all__ = [
    "CArchive",
    "Cookie",
    "Layout",
    "Entry",
    "SkipRecord",
    "DirectoryListing",
    "ExtractionEngine",
    "ExtractionReport",
    "ExtractionResult",
    "WorkerPool",
    "find_marker",
    "read_cookie",
    "resolve_layout",
    "parse_directory",
]


def __getattr__(name):
    """Lazy import of the stage modules."""
    if name == 'CArchive':
        from .archive import CArchive
        return CArchive
    elif name in ('Cookie', 'read_cookie'):
        from . import cookie
        return getattr(cookie, name)
    elif name in ('Layout', 'resolve_layout'):
        from . import layout
        return getattr(layout, name)
    elif name in ('Entry', 'SkipRecord', 'DirectoryListing', 'parse_directory'):
        from . import directory
        return getattr(directory, name)
    elif name in ('ExtractionEngine', 'ExtractionReport', 'ExtractionResult'):
        from . import extractor
        return getattr(extractor, name)
    elif name == 'WorkerPool':
        from .worker_pool import WorkerPool
        return WorkerPool
    elif name == 'find_marker':
        from .magic_locator import find_marker
        return find_marker
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
