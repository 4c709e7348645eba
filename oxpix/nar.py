"""NAR (Nix Archive) serialization and hashing.

NAR is the canonical byte stream Nix hashes when it imports a path
(``./script.sh`` in an expression, ``builtins.path``) or verifies a
recursive fixed-output fetch such as fetchFromGitHub. It keeps only
what affects content: file bytes, the executable bit, symlink targets
and sorted directory entries. No timestamps, owners or other mode bits.

Every token is framed the same way:

    uint64_le(len) + bytes + zero padding to a multiple of 8

and a path serializes as:

    "nix-archive-1" node
    node := "(" "type" ( "regular" ["executable" ""] "contents" <data>
                       | "symlink" "target" <target>
                       | "directory" { "entry" "(" "name" <n> "node" node ")" } )
            ")"

See: nix/src/libutil/archive.cc: dump()
"""

import hashlib
import os
import struct
from collections.abc import Iterator
from pathlib import Path

NAR_MAGIC = "nix-archive-1"


def _token(s: str | bytes) -> bytes:
    if isinstance(s, str):
        s = s.encode()
    return struct.pack("<Q", len(s)) + s + b"\0" * (-len(s) % 8)


def _node(path: Path) -> Iterator[bytes]:
    yield _token("(")
    yield _token("type")
    if path.is_symlink():
        yield _token("symlink")
        yield _token("target")
        yield _token(os.readlink(path))
    elif path.is_file():
        yield _token("regular")
        if os.access(path, os.X_OK):
            yield _token("executable")
            yield _token("")
        yield _token("contents")
        yield _token(path.read_bytes())
    elif path.is_dir():
        yield _token("directory")
        # Byte order of names, regardless of what the filesystem returns.
        for name in sorted(os.listdir(path)):
            yield _token("entry")
            yield _token("(")
            yield _token("name")
            yield _token(name)
            yield _token("node")
            yield from _node(path / name)
            yield _token(")")
    else:
        raise ValueError(f"unsupported file type: {path}")
    yield _token(")")


def nar_chunks(path: str | Path) -> Iterator[bytes]:
    """Yield the NAR serialization of `path` piece by piece."""
    yield _token(NAR_MAGIC)
    yield from _node(Path(path))


def nar_serialize(path: str | Path) -> bytes:
    return b"".join(nar_chunks(path))


def nar_hash(path: str | Path) -> bytes:
    """SHA-256 of the NAR serialization (what `nix hash path` prints)."""
    h = hashlib.sha256()
    for chunk in nar_chunks(path):
        h.update(chunk)
    return h.digest()
