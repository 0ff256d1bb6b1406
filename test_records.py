from __future__ import annotations

import io
import lzma
import os
import struct
import tempfile
import unittest
import zlib
from pathlib import Path

from zipplus.checksum import byte_sum, checksum_for_version, crc32
from zipplus.codec import Codec, method_from_name, method_name
from zipplus.constants import (
    ARCHIVE_MAGIC,
    DIRECTORY_ENTRY_SIZE,
    ENTRY_HEADER_SIZE,
    METHOD_DEFLATE,
    METHOD_LZMA,
    METHOD_STORE,
    TERMINATOR_SIZE,
    VERSION_CURRENT,
    VERSION_LEGACY,
)
from zipplus.errors import (
    BadMagicError,
    CodecError,
    EntryTooLargeError,
    SizeMismatchError,
    TruncatedRecordError,
    UnsafePathError,
    UnsupportedMethodError,
    UnsupportedVersionError,
)
from zipplus.pathutil import archive_name, confine
from zipplus.records import (
    DirectoryEntry,
    DirectoryTerminator,
    EntryHeader,
    EntryRecord,
    _DIR_ENTRY_STRUCT,
    _ENTRY_HDR_STRUCT,
    _TERMINATOR_STRUCT,
)
from zipplus.writer import ArchiveWriter


class RecordLayoutTests(unittest.TestCase):
    def test_fixed_sizes(self):
        self.assertEqual(_ENTRY_HDR_STRUCT.size, ENTRY_HEADER_SIZE)
        self.assertEqual(_DIR_ENTRY_STRUCT.size, DIRECTORY_ENTRY_SIZE)
        self.assertEqual(_TERMINATOR_STRUCT.size, TERMINATOR_SIZE)
        self.assertEqual((ENTRY_HEADER_SIZE, DIRECTORY_ENTRY_SIZE, TERMINATOR_SIZE), (30, 46, 22))

    def test_entry_header_bytes(self):
        hdr = EntryHeader(name="a.txt", method=METHOD_DEFLATE, checksum=0x11223344, compressed_size=7, uncompressed_size=9)
        raw = hdr.pack()
        self.assertEqual(len(raw), 30 + 5)
        self.assertEqual(raw[:4], b"\x50\x4b\x03\x04")
        self.assertEqual(raw[4:6], struct.pack("<H", VERSION_CURRENT))
        self.assertEqual(raw[8:10], b"\x08\x00")
        self.assertEqual(raw[14:18], b"\x44\x33\x22\x11")
        self.assertEqual(raw[18:22], b"\x07\x00\x00\x00")
        self.assertEqual(raw[22:26], b"\x09\x00\x00\x00")
        self.assertEqual(raw[26:28], b"\x05\x00")
        self.assertEqual(raw[28:30], b"\x00\x00")
        self.assertEqual(raw[30:], b"a.txt")

    def test_directory_entry_offset_field(self):
        de = DirectoryEntry(name="x", method=METHOD_LZMA, checksum=1, compressed_size=2, uncompressed_size=3, local_offset=0x01020304)
        raw = de.pack()
        self.assertEqual(len(raw), 47)
        self.assertEqual(raw[:4], b"\x50\x4b\x01\x02")
        self.assertEqual(raw[42:46], b"\x04\x03\x02\x01")
        parsed = DirectoryEntry.read(io.BytesIO(raw))
        self.assertEqual(parsed, de)

    def test_terminator_bytes(self):
        term = DirectoryTerminator(entries_this_disk=3, entries_total=3, directory_size=0x100, directory_offset=0x200)
        raw = term.pack()
        self.assertEqual(
            raw,
            b"\x50\x4b\x05\x06" + b"\x00\x00" * 2 + b"\x03\x00" * 2 + b"\x00\x01\x00\x00" + b"\x00\x02\x00\x00" + b"\x00\x00",
        )
        self.assertEqual(DirectoryTerminator.unpack(raw), term)

    def test_record_views_share_fields(self):
        rec = EntryRecord(name="dir/file.bin", method=METHOD_LZMA, checksum=99, compressed_size=10, uncompressed_size=20, offset=4)
        hdr = rec.local_header()
        de = rec.directory_entry()
        for attr in ("name", "method", "checksum", "compressed_size", "uncompressed_size"):
            self.assertEqual(getattr(hdr, attr), getattr(de, attr))
        self.assertEqual(de.local_offset, 4)
        self.assertEqual(hdr.version, de.version_needed)

    def test_read_rejects_bad_magic_and_truncation(self):
        raw = EntryHeader(name="n", method=METHOD_STORE, checksum=0, compressed_size=0, uncompressed_size=0).pack()
        with self.assertRaises(BadMagicError):
            EntryHeader.read(io.BytesIO(b"\x00" + raw[1:]))
        with self.assertRaises(TruncatedRecordError):
            EntryHeader.read(io.BytesIO(raw[:20]))
        with self.assertRaises(TruncatedRecordError):
            EntryHeader.read(io.BytesIO(raw[:-1]))
        with self.assertRaises(BadMagicError):
            DirectoryTerminator.unpack(b"\x00" * 22)

    def test_entry_header_skips_extra_field(self):
        hdr = EntryHeader(name="e", method=METHOD_STORE, checksum=0, compressed_size=3, uncompressed_size=3, extra=b"\xaa\xbb")
        buf = io.BytesIO(hdr.pack() + b"abc")
        parsed = EntryHeader.read(buf)
        self.assertEqual(parsed.extra, b"\xaa\xbb")
        self.assertEqual(buf.read(), b"abc")

    def test_overlong_name_refused(self):
        hdr = EntryHeader(name="a" * 70000, method=METHOD_STORE, checksum=0, compressed_size=0, uncompressed_size=0)
        with self.assertRaises(EntryTooLargeError):
            hdr.pack()

    def test_exact_single_entry_archive(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            src = base / "a.txt"
            src.write_bytes(b"hello")
            arc = base / "one.zp"
            with ArchiveWriter(str(arc)) as w:
                w.add_file(str(src), arc_name="a.txt")
                w.finalize()
            crc = zlib.crc32(b"hello")
            local = struct.pack("<IHHHHHIIIHH", 0x04034B50, 21, 0, 0, 0, 0, crc, 5, 5, 5, 0) + b"a.txt" + b"hello"
            directory = struct.pack(
                "<IHHHHHHIIIHHHHHII", 0x02014B50, 21, 21, 0, 0, 0, 0, crc, 5, 5, 5, 0, 0, 0, 0, 0, 4
            ) + b"a.txt"
            dir_offset = 4 + len(local)
            term = struct.pack("<IHHHHIIH", 0x06054B50, 0, 0, 1, 1, len(directory), dir_offset, 0)
            self.assertEqual(arc.read_bytes(), ARCHIVE_MAGIC + local + directory + term)


class ChecksumTests(unittest.TestCase):
    def test_crc32_matches_zlib(self):
        data = os.urandom(1000)
        self.assertEqual(crc32(data), zlib.crc32(data) & 0xFFFFFFFF)

    def test_legacy_byte_sum(self):
        self.assertEqual(byte_sum(b"\x01\x02\xff"), 258)
        self.assertEqual(byte_sum(b""), 0)

    def test_version_selection(self):
        self.assertIs(checksum_for_version(VERSION_CURRENT), crc32)
        self.assertIs(checksum_for_version(VERSION_LEGACY), byte_sum)
        with self.assertRaises(UnsupportedVersionError):
            checksum_for_version(45)


class CodecTests(unittest.TestCase):
    def test_all_methods_restore_input(self):
        for method in (METHOD_STORE, METHOD_DEFLATE, METHOD_LZMA):
            for data in (b"", b"abc" * 1000, os.urandom(3000)):
                codec = Codec(method)
                self.assertEqual(codec.decompress(codec.compress(data), len(data)), data)

    def test_lzma_uses_xz_container(self):
        out = Codec(METHOD_LZMA).compress(b"payload")
        self.assertTrue(out.startswith(b"\xfd7zXZ\x00"))
        self.assertEqual(lzma.decompress(out), b"payload")

    def test_deflate_is_zlib_stream(self):
        out = Codec(METHOD_DEFLATE).compress(b"payload" * 10)
        self.assertEqual(zlib.decompress(out), b"payload" * 10)

    def test_size_mismatch(self):
        data = b"x" * 100
        for method in (METHOD_STORE, METHOD_DEFLATE, METHOD_LZMA):
            codec = Codec(method)
            packed = codec.compress(data)
            with self.assertRaises(SizeMismatchError):
                codec.decompress(packed, 50)
            with self.assertRaises(SizeMismatchError):
                codec.decompress(packed, 200)

    def test_garbage_and_truncated_streams(self):
        for method in (METHOD_DEFLATE, METHOD_LZMA):
            codec = Codec(method)
            with self.assertRaises(CodecError):
                codec.decompress(b"not a stream at all", 10)
            packed = codec.compress(os.urandom(500))
            with self.assertRaises(CodecError):
                codec.decompress(packed[:-5], 500)
            with self.assertRaises(CodecError):
                codec.decompress(packed + b"\x00junk", 500)

    def test_unknown_method(self):
        with self.assertRaises(UnsupportedMethodError):
            Codec(99)
        self.assertEqual(method_name(99), "method-99")
        self.assertEqual(method_from_name("LZMA"), METHOD_LZMA)
        with self.assertRaises(UnsupportedMethodError):
            method_from_name("bzip2")


class PathTests(unittest.TestCase):
    def test_archive_name(self):
        self.assertEqual(archive_name("docs/a.txt"), "docs/a.txt")
        self.assertEqual(archive_name("/tmp/x/a.txt"), "tmp/x/a.txt")
        self.assertEqual(archive_name("../../a.txt"), "a.txt")
        self.assertEqual(archive_name("./d/../b.txt"), "b.txt")
        with self.assertRaises(UnsafePathError):
            archive_name("..")

    def test_confine(self):
        with tempfile.TemporaryDirectory() as tmp:
            self.assertEqual(confine(tmp, "a/b.txt"), os.path.join(tmp, "a", "b.txt"))
            for bad in ("../x", "a/../../x", "/etc/passwd", "C:/x", "a\\..\\x", "", "a\x00b", "./"):
                with self.assertRaises(UnsafePathError, msg=bad):
                    confine(tmp, bad)

    def test_confine_refuses_symlink_escape(self):
        if not hasattr(os, "symlink"):
            self.skipTest("symlinks unavailable")
        with tempfile.TemporaryDirectory() as tmp, tempfile.TemporaryDirectory() as other:
            try:
                os.symlink(other, os.path.join(tmp, "link"))
            except OSError:
                self.skipTest("symlinks unavailable")
            with self.assertRaises(UnsafePathError):
                confine(tmp, "link/x.txt")


if __name__ == "__main__":
    unittest.main()
