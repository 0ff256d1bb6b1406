class ZipPlusError(Exception):
    """Base class for zipplus-specific errors."""


class ConfigError(ZipPlusError):
    """Conflicting options; raised before any I/O happens."""


# Container structure
class FormatError(ZipPlusError):
    pass


class BadMagicError(FormatError):
    pass


class TruncatedRecordError(FormatError):
    pass


class DirectoryBoundsError(FormatError):
    pass


class EntryMismatchError(FormatError):
    pass


class UnsupportedVersionError(FormatError):
    pass


class ArchiveLimitError(FormatError):
    pass


# Compression and integrity
class CodecError(ZipPlusError):
    pass


class UnsupportedMethodError(CodecError):
    pass


class SizeMismatchError(CodecError):
    pass


class ChecksumMismatch(CodecError):
    pass


# Per-entry refusals
class EntryTooLargeError(ZipPlusError):
    pass


class UnsafePathError(ZipPlusError):
    pass
