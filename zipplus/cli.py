from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from zipplus import __version__
from zipplus.codec import method_name
from zipplus.errors import (
    ZipPlusError,
    ConfigError,
    FormatError,
    CodecError,
    ArchiveLimitError,
)
from zipplus.options import ArchiveOptions
from zipplus.reader import ArchiveReader
from zipplus.writer import create_archive


EXIT_OK = 0
EXIT_USAGE = 1
EXIT_FAILURE = 2


def _describe(exc: Exception) -> str:
    """Short human-readable reason for a per-file failure."""
    if isinstance(exc, OSError) and exc.strerror:
        return exc.strerror
    return str(exc)


def cmd_create(archive: str, inputs: List[str], options: ArchiveOptions) -> bool:
    """Create ``archive`` from ``inputs``.

    Missing or unreadable inputs are skipped with a warning. A codec failure
    aborts the run and leaves a partial archive, which is reported as unreliable.

    Returns:
        True when every input was written.
    """
    on_entry = print if options.verbose else None
    try:
        _entries, skipped = create_archive(archive, inputs, options, on_entry=on_entry)
    except (CodecError, ArchiveLimitError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        print(f"Error: {archive} is incomplete and must not be relied upon", file=sys.stderr)
        return False
    for path, exc in skipped:
        print(f"Warning: skipped {path}: {_describe(exc)}", file=sys.stderr)
    return not skipped


def cmd_list(archive: str, options: ArchiveOptions) -> bool:
    """List archive entries; verbose adds method and sizes."""
    with ArchiveReader(archive, options) as r:
        entries = r.read_directory()
    for e in entries:
        if options.verbose:
            print(f"{method_name(e.method)}\t{e.compressed_size}\t{e.uncompressed_size}\t{e.name}")
        else:
            print(e.name)
    return True


def cmd_extract(archive: str, outdir: str, options: ArchiveOptions) -> bool:
    """Extract every entry under ``outdir``; failed entries are reported and skipped."""
    on_entry = print if options.verbose else None
    with ArchiveReader(archive, options) as r:
        failed = r.extract_all(outdir, on_entry=on_entry)
    for name, exc in failed:
        print(f"Error: {name}: {_describe(exc)}", file=sys.stderr)
    return not failed


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    ap = _ArgumentParser(
        prog="zipplus",
        description="Pack files into a ZIP1 container, list it, or extract it.",
        usage="%(prog)s [-c|-t|-x] [-v] [-z|-l] -f archive [-C dir] [file ...]",
    )
    ap.add_argument("-c", dest="create", action="store_true", help="Create an archive from the given files")
    ap.add_argument("-t", dest="list", action="store_true", help="List archive contents")
    ap.add_argument("-x", dest="extract", action="store_true", help="Extract archive contents")
    ap.add_argument("-v", dest="verbose", action="store_true", help="Print names as they are processed")
    ap.add_argument("-z", dest="deflate", action="store_true", help="Compress with deflate (create only)")
    ap.add_argument("-l", dest="lzma", action="store_true", help="Compress with lzma (create only)")
    ap.add_argument("-f", dest="archive", metavar="archive", help="Archive path")
    ap.add_argument("-C", dest="outdir", metavar="dir", default=".", help="Extraction directory (default: .)")
    ap.add_argument("-V", action="version", version=f"%(prog)s {__version__}")
    ap.add_argument("inputs", nargs="*", metavar="file", help="Input files (create only)")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_intermixed_args(argv)

    modes = [m for m in (args.create, args.list, args.extract) if m]
    if len(modes) != 1:
        ap.error("exactly one of -c, -t or -x is required")
    if not args.archive:
        ap.error("-f archive is required")
    if args.create and not args.inputs:
        ap.error("-c needs at least one input file")

    try:
        if args.create:
            options = ArchiveOptions.from_flags(deflate=args.deflate, lzma=args.lzma, verbose=args.verbose)
            ok = cmd_create(args.archive, args.inputs, options)
        elif args.list:
            ok = cmd_list(args.archive, ArchiveOptions(verbose=args.verbose))
        else:
            ok = cmd_extract(args.archive, args.outdir, ArchiveOptions(verbose=args.verbose))
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE
    except FormatError as e:
        print(f"Error: {args.archive}: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except FileNotFoundError as e:
        print(f"Error: {e.filename or args.archive}: {_describe(e)}", file=sys.stderr)
        return EXIT_FAILURE
    except (ZipPlusError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    return EXIT_OK if ok else EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
