"""
zipplus — a small ZIP-inspired archive container.

Features:

- ZIP1 container: entry headers with payloads, a directory section, and a
  fixed 22-byte terminator at the very end of the file.
- Per-archive compression: store, deflate (zlib) or lzma (xz, CRC-64 check).
- CRC-32 payload checksums, with read support for the additive checksum of
  version 20 archives.
- Extraction confined to the output directory ('..' and absolute names refused).

The on-disk layout is its own format and is not readable by ZIP tools.
"""

__version__ = "1.0.0"

__all__ = [
    "constants",
    "errors",
    "checksum",
    "records",
    "codec",
    "options",
    "pathutil",
    "writer",
    "reader",
    "cli",
]

# Importable programmatic API is available via zipplus.writer/zipplus.reader and
# the CLI functions in zipplus.cli (cmd_create/cmd_list/cmd_extract).
