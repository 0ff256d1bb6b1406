# Magic and version
ARCHIVE_MAGIC = b"ZIP1"             # 4 bytes at offset 0
ENTRY_HEADER_MAGIC = 0x04034B50
DIRECTORY_ENTRY_MAGIC = 0x02014B50
TERMINATOR_MAGIC = 0x06054B50

# Format versions stored in every header. Version 20 archives (the original
# zip++ tool) carry an additive byte sum; version 21 carries CRC-32.
VERSION_LEGACY = 20
VERSION_CRC32 = 21
VERSION_CURRENT = VERSION_CRC32
SUPPORTED_VERSIONS = (VERSION_LEGACY, VERSION_CRC32)


# Fixed record sizes
ENTRY_HEADER_SIZE = 30
DIRECTORY_ENTRY_SIZE = 46
TERMINATOR_SIZE = 22


# Method codes (0=store, 8=deflate/zlib, 14=lzma/xz)
METHOD_STORE = 0
METHOD_DEFLATE = 8
METHOD_LZMA = 14

METHOD_NAMES = {
    METHOD_STORE: "store",
    METHOD_DEFLATE: "deflate",
    METHOD_LZMA: "lzma",
}

DEFAULT_DEFLATE_LEVEL = 9
DEFAULT_LZMA_PRESET = 6


# Field limits
MAX_U16 = 0xFFFF
MAX_U32 = 0xFFFFFFFF
MAX_NAME_LEN = MAX_U16
MAX_ENTRIES = MAX_U16
