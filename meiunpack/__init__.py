"""
MEIUnpack
=========

Recovers the files packed into a PyInstaller CArchive without running the
executable that carries it.
"""

__version__ = "1.0.0"

__all__ = [
    "CArchive",
    "FormatError",
    "FormatErrorReason",
    "MEIUnpackError",
    "__version__",
]


def __getattr__(name):
    if name == 'CArchive':
        from .core.archive import CArchive
        return CArchive
    elif name in ('FormatError', 'FormatErrorReason', 'MEIUnpackError'):
        from .core import errors
        return getattr(errors, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
