from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .constants import METHOD_STORE, METHOD_DEFLATE, METHOD_LZMA
from .codec import Codec
from .errors import ConfigError


@dataclass(frozen=True)
class ArchiveOptions:
    """Settings for one archive operation, passed to the writer/reader explicitly."""

    method: int = METHOD_STORE
    level: Optional[int] = None
    verbose: bool = False

    @classmethod
    def from_flags(
        cls,
        *,
        deflate: bool = False,
        lzma: bool = False,
        verbose: bool = False,
        level: Optional[int] = None,
    ) -> "ArchiveOptions":
        if deflate and lzma:
            raise ConfigError("Cannot use both deflate (-z) and lzma (-l)")
        if deflate:
            method = METHOD_DEFLATE
        elif lzma:
            method = METHOD_LZMA
        else:
            method = METHOD_STORE
        return cls(method=method, level=level, verbose=verbose)

    def codec(self) -> Codec:
        return Codec(self.method, self.level)
