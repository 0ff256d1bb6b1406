from __future__ import annotations

import os
from typing import BinaryIO, Callable, Iterator, List, Optional, Tuple

from .constants import ARCHIVE_MAGIC, TERMINATOR_SIZE, ENTRY_HEADER_SIZE
from .checksum import checksum_for_version
from .codec import Codec
from .errors import (
    ZipPlusError,
    FormatError,
    CodecError,
    BadMagicError,
    TruncatedRecordError,
    DirectoryBoundsError,
    EntryMismatchError,
    ChecksumMismatch,
    UnsafePathError,
)
from .options import ArchiveOptions
from .pathutil import confine
from .records import DirectoryEntry, DirectoryTerminator, EntryHeader, read_exact


# Failures confined to a single entry; extraction moves on to the next one
ENTRY_ERRORS = (FormatError, CodecError, UnsafePathError, OSError)


class ArchiveReader:
    """Random access to the entries of a ZIP1 archive.

    The directory is located through the terminator in the last 22 bytes and
    walked sequentially. Each directory entry is resolved to the entry header
    at its recorded offset; that header (not the directory copy) supplies the
    method, sizes and checksum used to recover the payload.
    """

    def __init__(self, path: str, options: Optional[ArchiveOptions] = None):
        self.path = path
        self.options = options or ArchiveOptions()
        self.f: Optional[BinaryIO] = None
        self.size: int = 0
        self.terminator: Optional[DirectoryTerminator] = None
        self._directory: Optional[List[DirectoryEntry]] = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        self.f = open(self.path, "rb")
        try:
            self._load_terminator()
        except (ZipPlusError, OSError, ValueError) as exc:
            # Ensure file handle is closed on failure to avoid leaks
            self.close()
            raise exc

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None

    @property
    def directory_end(self) -> int:
        return self.size - TERMINATOR_SIZE

    # directory
    def iter_directory(self) -> Iterator[DirectoryEntry]:
        """Yield directory entries in archive order without touching payloads."""
        if self.f is None or self.terminator is None:
            raise RuntimeError("Archive not open")
        pos = self.terminator.directory_offset
        end = self.directory_end
        for i in range(self.terminator.entries_total):
            # Seek on every step so payload reads between yields cannot
            # disturb the walk.
            self.f.seek(pos)
            try:
                entry = DirectoryEntry.read(self.f)
            except TruncatedRecordError as exc:
                raise DirectoryBoundsError(f"Directory entry {i} is truncated: {exc}") from exc
            pos = self.f.tell()
            if pos > end:
                raise DirectoryBoundsError(f"Directory entry {i} overruns the directory section")
            yield entry
        if pos != end:
            raise DirectoryBoundsError("Directory size does not match its entries")

    def read_directory(self) -> List[DirectoryEntry]:
        if self._directory is None:
            self._directory = list(self.iter_directory())
        return self._directory

    def list(self) -> List[str]:
        return [e.name for e in self.read_directory()]

    # entries
    def read_local_header(self, entry: DirectoryEntry) -> EntryHeader:
        """Read the entry header a directory entry points at; leaves the handle at its payload."""
        if self.f is None or self.terminator is None:
            raise RuntimeError("Archive not open")
        off = entry.local_offset
        if off < len(ARCHIVE_MAGIC) or off + ENTRY_HEADER_SIZE > self.terminator.directory_offset:
            raise DirectoryBoundsError(f"entry offset {off} out of range")
        self.f.seek(off)
        hdr = EntryHeader.read(self.f)
        if hdr.name != entry.name:
            raise EntryMismatchError(
                f"Directory entry {entry.name!r} resolves to entry header {hdr.name!r} at offset {off}"
            )
        if self.f.tell() + hdr.compressed_size > self.terminator.directory_offset:
            raise DirectoryBoundsError("payload overruns the directory section")
        return hdr

    def _read_payload(self, hdr: EntryHeader) -> bytes:
        # Handle must be positioned right after the header (see read_local_header)
        payload = read_exact(self.f, hdr.compressed_size, "entry payload")
        check = checksum_for_version(hdr.version)
        raw = Codec(hdr.method).decompress(payload, hdr.uncompressed_size)
        if check(raw) != hdr.checksum:
            raise ChecksumMismatch("checksum mismatch; data corrupted")
        return raw

    def read_entry(self, entry: DirectoryEntry) -> Tuple[EntryHeader, bytes]:
        hdr = self.read_local_header(entry)
        return hdr, self._read_payload(hdr)

    def read_entry_payload(self, entry: DirectoryEntry) -> bytes:
        return self.read_entry(entry)[1]

    def extract(self, entry: DirectoryEntry, outdir: str) -> str:
        """Write one entry under ``outdir`` using the entry header's name; returns the path."""
        hdr = self.read_local_header(entry)
        dest = confine(outdir, hdr.name)
        raw = self._read_payload(hdr)
        os.makedirs(os.path.dirname(dest) or ".", exist_ok=True)
        with open(dest, "wb") as wf:
            wf.write(raw)
        return dest

    def extract_all(
        self,
        outdir: str,
        on_entry: Optional[Callable[[str], None]] = None,
    ) -> List[Tuple[str, Exception]]:
        """Extract every entry; per-entry failures are collected, not raised."""
        entries = self.read_directory()
        os.makedirs(outdir, exist_ok=True)
        failed: List[Tuple[str, Exception]] = []
        for e in entries:
            try:
                self.extract(e, outdir)
            except ENTRY_ERRORS as exc:
                failed.append((e.name, exc))
                continue
            if on_entry is not None:
                on_entry(e.name)
        return failed

    def verify(self) -> List[Tuple[str, Exception]]:
        """Decode and checksum every entry without writing anything."""
        failed: List[Tuple[str, Exception]] = []
        for e in self.read_directory():
            try:
                self.read_entry(e)
            except (FormatError, CodecError) as exc:
                failed.append((e.name, exc))
        return failed

    # internals
    def _load_terminator(self):
        if self.f is None:
            raise RuntimeError("Archive not open")
        magic = self.f.read(len(ARCHIVE_MAGIC))
        if magic != ARCHIVE_MAGIC:
            raise BadMagicError("not a ZIP1 archive (bad magic)")
        self.size = os.fstat(self.f.fileno()).st_size
        if self.size < len(ARCHIVE_MAGIC) + TERMINATOR_SIZE:
            raise TruncatedRecordError("archive too short for a directory terminator")
        self.f.seek(self.directory_end)
        term = DirectoryTerminator.unpack(read_exact(self.f, TERMINATOR_SIZE, "directory terminator"))
        if term.entries_this_disk != term.entries_total:
            raise DirectoryBoundsError("Terminator entry counts disagree")
        if term.disk_number != 0 or term.start_disk != 0:
            raise FormatError("Multi-disk archives are not supported")
        if term.comment_len != 0:
            raise FormatError("Archive comments are not supported")
        if term.directory_offset < len(ARCHIVE_MAGIC):
            raise DirectoryBoundsError("Directory offset points into the archive magic")
        if term.directory_offset + term.directory_size != self.directory_end:
            raise DirectoryBoundsError("Directory does not end at the terminator")
        self.terminator = term
