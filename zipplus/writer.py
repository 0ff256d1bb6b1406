from __future__ import annotations

import os
from typing import BinaryIO, Callable, Iterable, List, Optional, Tuple

from .constants import (
    ARCHIVE_MAGIC,
    VERSION_CURRENT,
    MAX_ENTRIES,
    MAX_U32,
)
from .checksum import compute as compute_checksum
from .errors import ArchiveLimitError, EntryTooLargeError, UnsafePathError
from .options import ArchiveOptions
from .pathutil import archive_name
from .records import DirectoryTerminator, EntryRecord, encode_name


# Per-input failures that skip the input instead of aborting the archive
SKIPPABLE_ERRORS = (OSError, EntryTooLargeError, UnsafePathError)


class ArchiveWriter:
    """Writer that serializes files into a ZIP1 container.

    Layout: magic, then one entry header + name + payload per file, then the
    directory (one entry per written file) and the fixed-size terminator.
    Nothing is rolled back on failure; an archive is only well-formed once
    ``finalize`` has returned.
    """

    def __init__(self, out_path: str, options: Optional[ArchiveOptions] = None):
        self.out_path = out_path
        self.options = options or ArchiveOptions()
        self.codec = self.options.codec()
        self.f: Optional[BinaryIO] = None
        self.entries: List[EntryRecord] = []
        self.finalized = False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        self.f = open(self.out_path, "wb")
        self.f.write(ARCHIVE_MAGIC)

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None

    def add_file(self, fs_path: str, arc_name: Optional[str] = None) -> EntryRecord:
        """Read, checksum and compress one file, then append its entry."""
        name, data = self._read_input(fs_path, arc_name)
        return self._write_entry(fs_path, name, data)

    def _read_input(self, fs_path: str, arc_name: Optional[str]) -> Tuple[str, bytes]:
        # Only input-side failures may surface here; nothing touches the archive.
        if self.f is None:
            raise RuntimeError("Archive not open")
        if self.finalized:
            raise RuntimeError("Archive already finalized")
        if len(self.entries) >= MAX_ENTRIES:
            raise ArchiveLimitError(f"Archive cannot hold more than {MAX_ENTRIES} entries")
        name = arc_name if arc_name is not None else archive_name(fs_path)
        encode_name(name)
        with open(fs_path, "rb") as src:
            data = src.read()
        if len(data) > MAX_U32:
            raise EntryTooLargeError(f"{fs_path}: {len(data)} bytes exceeds the 4 GiB entry limit")
        return name, data

    def _write_entry(self, fs_path: str, name: str, data: bytes) -> EntryRecord:
        checksum = compute_checksum(data, VERSION_CURRENT)
        payload = self.codec.compress(data)
        if len(payload) > MAX_U32:
            raise EntryTooLargeError(f"{fs_path}: compressed payload exceeds the 4 GiB entry limit")
        offset = self.f.tell()
        if offset > MAX_U32:
            raise ArchiveLimitError("Archive exceeds the 4 GiB offset limit")
        rec = EntryRecord(
            name=name,
            method=self.codec.method,
            checksum=checksum,
            compressed_size=len(payload),
            uncompressed_size=len(data),
            offset=offset,
            version=VERSION_CURRENT,
        )
        self.f.write(rec.local_header().pack())
        self.f.write(payload)
        self.entries.append(rec)
        return rec

    def add_files(
        self,
        paths: Iterable[str],
        on_entry: Optional[Callable[[str], None]] = None,
    ) -> List[Tuple[str, Exception]]:
        """Add each path in order; missing or unfit inputs are skipped and returned.

        Errors writing the archive itself propagate and end the run.
        """
        skipped: List[Tuple[str, Exception]] = []
        for p in paths:
            if on_entry is not None:
                on_entry(p)
            try:
                name, data = self._read_input(p, None)
            except SKIPPABLE_ERRORS as exc:
                skipped.append((p, exc))
                continue
            try:
                self._write_entry(p, name, data)
            except EntryTooLargeError as exc:
                # Raised before any header bytes are written
                skipped.append((p, exc))
        return skipped

    def finalize(self):
        """Write the directory and the terminator."""
        if self.f is None:
            raise RuntimeError("Archive not open")
        if self.finalized:
            return
        dir_offset = self.f.tell()
        if dir_offset > MAX_U32:
            raise ArchiveLimitError("Directory offset exceeds the 4 GiB limit")
        for rec in self.entries:
            self.f.write(rec.directory_entry().pack())
        dir_size = self.f.tell() - dir_offset
        if dir_size > MAX_U32:
            raise ArchiveLimitError("Directory size exceeds the 4 GiB limit")
        count = len(self.entries)
        term = DirectoryTerminator(
            entries_this_disk=count,
            entries_total=count,
            directory_size=dir_size,
            directory_offset=dir_offset,
        )
        self.f.write(term.pack())
        self.f.flush()
        os.fsync(self.f.fileno())
        self.finalized = True


def create_archive(
    out_path: str,
    inputs: Iterable[str],
    options: Optional[ArchiveOptions] = None,
    on_entry: Optional[Callable[[str], None]] = None,
) -> Tuple[List[EntryRecord], List[Tuple[str, Exception]]]:
    """Write a complete archive; returns (written entries, skipped inputs)."""
    with ArchiveWriter(out_path, options) as w:
        skipped = w.add_files(inputs, on_entry=on_entry)
        w.finalize()
        return list(w.entries), skipped
