"""
Byte-Order Helpers
==================

Every multi-byte integer in the cookie and the directory is stored
big-endian. All field decoding goes through the ``>`` layouts below, so
the swap to host order happens in ``struct`` whatever the host is.
"""

from __future__ import annotations

import struct

# Precompiled layouts (network order)
U32_BE = struct.Struct('>I')
COOKIE_FIELDS_BE = struct.Struct('>IIII')   # package, toc offset, toc length, pyver
RECORD_FIELDS_BE = struct.Struct('>IIIBc')  # payload offset, csize, usize, flag, kind


def read_u32_be(data: bytes, offset: int = 0) -> int:
    """
    Decode a big-endian u32 at ``offset``.

    Raises:
        struct.error: If fewer than 4 bytes are available at ``offset``
    """
    return U32_BE.unpack_from(data, offset)[0]
