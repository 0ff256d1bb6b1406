from __future__ import annotations

import lzma
import zlib
from typing import Optional

from .constants import (
    METHOD_STORE,
    METHOD_DEFLATE,
    METHOD_LZMA,
    METHOD_NAMES,
    DEFAULT_DEFLATE_LEVEL,
    DEFAULT_LZMA_PRESET,
)
from .errors import CodecError, SizeMismatchError, UnsupportedMethodError


def method_name(method: int) -> str:
    return METHOD_NAMES.get(method, f"method-{method}")


def method_from_name(name: str) -> int:
    for code, n in METHOD_NAMES.items():
        if n == name.lower():
            return code
    raise UnsupportedMethodError(f"unknown compression method: {name}")


class Codec:
    """Compression bridge for one method code.

    ``decompress`` never produces more than ``expected_size + 1`` bytes, so a
    payload that inflates beyond its recorded size is caught without
    materializing the whole output.
    """

    def __init__(self, method: int, level: Optional[int] = None):
        if method not in METHOD_NAMES:
            raise UnsupportedMethodError(f"unsupported compression method: {method}")
        self.method = method
        self.level = level

    @property
    def name(self) -> str:
        return method_name(self.method)

    def compress(self, data: bytes) -> bytes:
        if self.method == METHOD_STORE:
            return data
        if self.method == METHOD_DEFLATE:
            try:
                return zlib.compress(data, self.level if self.level is not None else DEFAULT_DEFLATE_LEVEL)
            except zlib.error as e:
                raise CodecError(f"deflate compression failed: {e}") from e
        try:
            return lzma.compress(
                data,
                format=lzma.FORMAT_XZ,
                check=lzma.CHECK_CRC64,
                preset=self.level if self.level is not None else DEFAULT_LZMA_PRESET,
            )
        except lzma.LZMAError as e:
            raise CodecError(f"lzma compression failed: {e}") from e

    def decompress(self, data: bytes, expected_size: int) -> bytes:
        if self.method == METHOD_STORE:
            raw = data
        elif self.method == METHOD_DEFLATE:
            raw = self._inflate(data, expected_size)
        else:
            raw = self._unxz(data, expected_size)
        if len(raw) != expected_size:
            raise SizeMismatchError(
                f"{self.name} payload produced {len(raw)} bytes, expected {expected_size}"
            )
        return raw

    @staticmethod
    def _inflate(data: bytes, expected_size: int) -> bytes:
        d = zlib.decompressobj()
        try:
            raw = d.decompress(data, expected_size + 1)
        except zlib.error as e:
            raise CodecError(f"deflate decompression failed: {e}") from e
        if len(raw) > expected_size:
            raise SizeMismatchError(f"deflate payload exceeds recorded size {expected_size}")
        if not d.eof:
            raise CodecError("deflate stream is truncated")
        if d.unused_data:
            raise CodecError("trailing bytes after deflate stream")
        return raw

    @staticmethod
    def _unxz(data: bytes, expected_size: int) -> bytes:
        d = lzma.LZMADecompressor(format=lzma.FORMAT_XZ)
        try:
            raw = d.decompress(data, max_length=expected_size + 1)
        except lzma.LZMAError as e:
            raise CodecError(f"lzma decompression failed: {e}") from e
        if len(raw) > expected_size:
            raise SizeMismatchError(f"lzma payload exceeds recorded size {expected_size}")
        if not d.eof:
            raise CodecError("lzma stream is truncated")
        if d.unused_data:
            raise CodecError("trailing bytes after lzma stream")
        return raw
