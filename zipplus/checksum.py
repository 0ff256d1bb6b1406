"""
Entry payload checksums.

Current archives store a CRC-32 of the uncompressed bytes. Archives written
by the original zip++ tool (format version 20) store a plain additive sum of
the bytes, which is kept here only so those archives still verify.
"""

import zlib

from .constants import VERSION_LEGACY, VERSION_CRC32
from .errors import UnsupportedVersionError


def crc32(data: bytes, crc: int = 0) -> int:
    return zlib.crc32(data, crc) & 0xFFFFFFFF


def byte_sum(data: bytes, total: int = 0) -> int:
    return (total + sum(data)) & 0xFFFFFFFF


def checksum_for_version(version: int):
    """Return the checksum function that matches a header's format version."""
    if version == VERSION_CRC32:
        return crc32
    if version == VERSION_LEGACY:
        return byte_sum
    raise UnsupportedVersionError(f"Unsupported format version: {version}")


def compute(data: bytes, version: int = VERSION_CRC32) -> int:
    return checksum_for_version(version)(data)
