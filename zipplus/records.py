from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import BinaryIO

from .constants import (
    ENTRY_HEADER_MAGIC,
    DIRECTORY_ENTRY_MAGIC,
    TERMINATOR_MAGIC,
    VERSION_CURRENT,
    MAX_NAME_LEN,
)
from .errors import BadMagicError, TruncatedRecordError, EntryTooLargeError


# Entry header (fixed 30 bytes), followed by name, extra and payload
# struct: <I H H H H H I I I H H
#  - magic u32
#  - version u16
#  - flags u16 (always 0)
#  - method u16
#  - mod_time u16, mod_date u16 (always 0)
#  - checksum u32
#  - compressed_size u32
#  - uncompressed_size u32
#  - name_len u16
#  - extra_len u16
_ENTRY_HDR_STRUCT = struct.Struct("<IHHHHHIIIHH")

# Directory entry (fixed 46 bytes), followed by name, extra and comment
# struct: <I HHHHHH III HHHHH II
#  - magic u32
#  - version_made_by u16, version_needed u16, flags u16, method u16,
#    mod_time u16, mod_date u16
#  - checksum u32, compressed_size u32, uncompressed_size u32
#  - name_len u16, extra_len u16, comment_len u16, disk_number u16,
#    internal_attr u16
#  - external_attr u32
#  - local_offset u32
_DIR_ENTRY_STRUCT = struct.Struct("<IHHHHHHIIIHHHHHII")

# Directory terminator (fixed 22 bytes, always the last bytes of the archive)
# struct: <I H H H H I I H
_TERMINATOR_STRUCT = struct.Struct("<IHHHHIIH")


def encode_name(name: str) -> bytes:
    raw = name.encode("utf-8", "surrogateescape")
    if len(raw) > MAX_NAME_LEN:
        raise EntryTooLargeError(f"Name exceeds {MAX_NAME_LEN} bytes: {name[:64]}...")
    return raw


def decode_name(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


def read_exact(f: BinaryIO, n: int, what: str = "record") -> bytes:
    b = f.read(n)
    if len(b) != n:
        raise TruncatedRecordError(f"Unexpected EOF reading {what} ({len(b)} of {n} bytes)")
    return b


@dataclass
class EntryHeader:
    name: str
    method: int
    checksum: int
    compressed_size: int
    uncompressed_size: int
    version: int = VERSION_CURRENT
    flags: int = 0
    mod_time: int = 0
    mod_date: int = 0
    extra: bytes = b""

    def pack(self) -> bytes:
        name = encode_name(self.name)
        return _ENTRY_HDR_STRUCT.pack(
            ENTRY_HEADER_MAGIC,
            self.version,
            self.flags,
            self.method,
            self.mod_time,
            self.mod_date,
            self.checksum,
            self.compressed_size,
            self.uncompressed_size,
            len(name),
            len(self.extra),
        ) + name + self.extra

    @classmethod
    def read(cls, f: BinaryIO) -> "EntryHeader":
        """Read the fixed header, its name and extra field; leaves ``f`` at the payload."""
        fixed = read_exact(f, _ENTRY_HDR_STRUCT.size, "entry header")
        (magic, version, flags, method, mtime, mdate, checksum, csize, usize, name_len, extra_len) = _ENTRY_HDR_STRUCT.unpack(fixed)
        if magic != ENTRY_HEADER_MAGIC:
            raise BadMagicError(f"Bad entry header magic: 0x{magic:08x}")
        name = decode_name(read_exact(f, name_len, "entry name"))
        extra = read_exact(f, extra_len, "entry extra field") if extra_len else b""
        return cls(
            name=name,
            method=method,
            checksum=checksum,
            compressed_size=csize,
            uncompressed_size=usize,
            version=version,
            flags=flags,
            mod_time=mtime,
            mod_date=mdate,
            extra=extra,
        )


@dataclass
class DirectoryEntry:
    name: str
    method: int
    checksum: int
    compressed_size: int
    uncompressed_size: int
    local_offset: int
    version_made_by: int = VERSION_CURRENT
    version_needed: int = VERSION_CURRENT
    flags: int = 0
    mod_time: int = 0
    mod_date: int = 0
    disk_number: int = 0
    internal_attr: int = 0
    external_attr: int = 0
    extra: bytes = b""
    comment: bytes = b""

    def pack(self) -> bytes:
        name = encode_name(self.name)
        return _DIR_ENTRY_STRUCT.pack(
            DIRECTORY_ENTRY_MAGIC,
            self.version_made_by,
            self.version_needed,
            self.flags,
            self.method,
            self.mod_time,
            self.mod_date,
            self.checksum,
            self.compressed_size,
            self.uncompressed_size,
            len(name),
            len(self.extra),
            len(self.comment),
            self.disk_number,
            self.internal_attr,
            self.external_attr,
            self.local_offset,
        ) + name + self.extra + self.comment

    @classmethod
    def read(cls, f: BinaryIO) -> "DirectoryEntry":
        fixed = read_exact(f, _DIR_ENTRY_STRUCT.size, "directory entry")
        (
            magic,
            made_by,
            needed,
            flags,
            method,
            mtime,
            mdate,
            checksum,
            csize,
            usize,
            name_len,
            extra_len,
            comment_len,
            disk,
            iattr,
            eattr,
            offset,
        ) = _DIR_ENTRY_STRUCT.unpack(fixed)
        if magic != DIRECTORY_ENTRY_MAGIC:
            raise BadMagicError(f"Bad directory entry magic: 0x{magic:08x}")
        name = decode_name(read_exact(f, name_len, "directory entry name"))
        extra = read_exact(f, extra_len, "directory entry extra field") if extra_len else b""
        comment = read_exact(f, comment_len, "directory entry comment") if comment_len else b""
        return cls(
            name=name,
            method=method,
            checksum=checksum,
            compressed_size=csize,
            uncompressed_size=usize,
            local_offset=offset,
            version_made_by=made_by,
            version_needed=needed,
            flags=flags,
            mod_time=mtime,
            mod_date=mdate,
            disk_number=disk,
            internal_attr=iattr,
            external_attr=eattr,
            extra=extra,
            comment=comment,
        )


@dataclass
class DirectoryTerminator:
    entries_this_disk: int
    entries_total: int
    directory_size: int
    directory_offset: int
    disk_number: int = 0
    start_disk: int = 0
    comment_len: int = 0

    def pack(self) -> bytes:
        return _TERMINATOR_STRUCT.pack(
            TERMINATOR_MAGIC,
            self.disk_number,
            self.start_disk,
            self.entries_this_disk,
            self.entries_total,
            self.directory_size,
            self.directory_offset,
            self.comment_len,
        )

    @classmethod
    def unpack(cls, raw: bytes) -> "DirectoryTerminator":
        if len(raw) != _TERMINATOR_STRUCT.size:
            raise TruncatedRecordError("Directory terminator too short")
        magic, disk, start, this_disk, total, dsize, doff, clen = _TERMINATOR_STRUCT.unpack(raw)
        if magic != TERMINATOR_MAGIC:
            raise BadMagicError(f"Bad directory terminator magic: 0x{magic:08x}")
        return cls(
            entries_this_disk=this_disk,
            entries_total=total,
            directory_size=dsize,
            directory_offset=doff,
            disk_number=disk,
            start_disk=start,
            comment_len=clen,
        )


@dataclass
class EntryRecord:
    """One logical entry; both on-disk headers are views generated from it."""

    name: str
    method: int
    checksum: int
    compressed_size: int
    uncompressed_size: int
    offset: int = 0
    version: int = VERSION_CURRENT

    def local_header(self) -> EntryHeader:
        return EntryHeader(
            name=self.name,
            method=self.method,
            checksum=self.checksum,
            compressed_size=self.compressed_size,
            uncompressed_size=self.uncompressed_size,
            version=self.version,
        )

    def directory_entry(self) -> DirectoryEntry:
        return DirectoryEntry(
            name=self.name,
            method=self.method,
            checksum=self.checksum,
            compressed_size=self.compressed_size,
            uncompressed_size=self.uncompressed_size,
            local_offset=self.offset,
            version_made_by=self.version,
            version_needed=self.version,
        )
