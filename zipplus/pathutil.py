from __future__ import annotations

import os
import re

from .errors import UnsafePathError

_DRIVE_RE = re.compile(r"^[A-Za-z]:")


def archive_name(fs_path: str) -> str:
    """Derive the name stored in the archive for a filesystem path.

    Rules:
    - Normalize the path lexically and convert separators to slashes
    - Drop any drive prefix and leading slashes
    - Drop leading '..' segments (like tar's "Removing leading '../'")
    """
    p = os.path.normpath(fs_path).replace("\\", "/")
    p = _DRIVE_RE.sub("", p)
    parts = [q for q in p.split("/") if q not in ("", ".")]
    while parts and parts[0] == "..":
        parts.pop(0)
    if not parts:
        raise UnsafePathError(f"Cannot derive an archive name from {fs_path!r}")
    return "/".join(parts)


def confine(outdir: str, name: str) -> str:
    """Resolve an archive name to a destination path inside ``outdir``.

    Absolute names, drive prefixes, NUL bytes and '..' segments are refused,
    as is any name that resolves (through existing symlinks) outside ``outdir``.
    """
    if not name or "\x00" in name:
        raise UnsafePathError(f"Invalid entry name: {name!r}")
    p = name.replace("\\", "/")
    if p.startswith("/") or _DRIVE_RE.match(p):
        raise UnsafePathError(f"Refusing absolute entry name: {name}")
    parts = p.split("/")
    if ".." in parts:
        raise UnsafePathError(f"Refusing entry name with '..': {name}")
    parts = [q for q in parts if q not in ("", ".")]
    if not parts:
        raise UnsafePathError(f"Invalid entry name: {name!r}")
    dest = os.path.join(outdir, *parts)
    root = os.path.realpath(outdir)
    if os.path.commonpath([root, os.path.realpath(dest)]) != root:
        raise UnsafePathError(f"Entry name escapes output directory: {name}")
    return dest
