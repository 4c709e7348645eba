"""Store path computation.

Every store object lives at /nix/store/<hash>-<name>, where <hash> is
32 nix32 characters (160 bits). The hash is derived from a fingerprint:

    "<type>:sha256:<hex(inner_hash)>:/nix/store:<name>"

sha256'd, XOR-folded to 20 bytes and nix32-encoded. What varies between
kinds of store object is the type and the inner hash:

    type              inner hash                      used for
    ----------------  ------------------------------  ------------------------
    text[:refs]       sha256(content)                 .drv files, writeText
    source[:refs]     sha256(NAR)                     ./file imports, recursive
                                                      sha256 fetches (fetchFromGitHub)
    output:out        sha256("fixed:out:...")         flat fixed-output fetches
    output:<name>     hashDerivationModulo            regular derivation outputs

References are appended to the type with ':' and sorted; with no
references there is no trailing colon.

See: nix/src/libstore/store-api.cc: makeStorePath(), makeFixedOutputPath()
"""

from pathlib import Path

from oxpix.base32 import encode as b32encode
from oxpix.digest import compress_hash, sha256
from oxpix.nar import nar_hash

STORE_DIR = "/nix/store"
HASH_BYTES = 20


def make_store_path(type_prefix: str, inner_hash: bytes, name: str) -> str:
    fingerprint = f"{type_prefix}:sha256:{inner_hash.hex()}:{STORE_DIR}:{name}"
    digest = compress_hash(sha256(fingerprint.encode()), HASH_BYTES)
    return f"{STORE_DIR}/{b32encode(digest)}-{name}"


def _with_refs(base: str, refs: list[str] | None) -> str:
    return ":".join([base, *sorted(refs or [])])


def make_text_store_path(name: str, content: bytes, references: list[str] | None = None) -> str:
    """Store path of a text object; the inner hash is over the raw bytes."""
    return make_store_path(_with_refs("text", references), sha256(content), name)


def make_source_store_path(name: str, nar_digest: bytes, references: list[str] | None = None) -> str:
    return make_store_path(_with_refs("source", references), nar_digest, name)


def make_fixed_output_path(name: str, hash_algo: str, content_hash: bytes,
                           recursive: bool = False) -> str:
    """Output path of a fixed-output derivation.

    Recursive sha256 is the one combination that does not go through an
    intermediate "fixed:out:" hash: the NAR hash of the result is already
    what a source import would use, so the path is a source path. That
    is why fetchFromGitHub outputs and ``./dir`` imports of the same
    tree share a store path.
    """
    if recursive and hash_algo == "sha256":
        return make_store_path("source", content_hash, name)
    method = "r:" if recursive else ""
    inner = sha256(f"fixed:out:{method}{hash_algo}:{content_hash.hex()}:".encode())
    return make_store_path("output:out", inner, name)


def make_output_path(drv_hash: bytes, output_name: str, name: str) -> str:
    """Store path of a regular derivation output.

    `drv_hash` comes from hash_derivation_modulo(). Outputs other than
    "out" get their name appended: "rust-1.31.0" / "rust-1.31.0-doc".
    """
    path_name = name if output_name == "out" else f"{name}-{output_name}"
    return make_store_path(f"output:{output_name}", drv_hash, path_name)


def path_to_store_path(path: str | Path, name: str | None = None) -> str:
    """Store path a local file or directory would get if imported.

    Like ``nix-store --add`` without a daemon: NAR-hash the path, then
    compute the source path. `name` defaults to the basename.
    """
    p = Path(path)
    return make_source_store_path(name or p.name, nar_hash(p))
