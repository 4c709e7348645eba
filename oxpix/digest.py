"""SHA-256 helpers and the hash spellings Nix accepts.

A sha256 in a Nix expression may be written three ways, and fetchers
accept all of them (nix/src/libutil/hash.cc: Hash::parseAny):

    "1shz56l19kgk05p2xvhb7jg1whhfjix6njx1q4rvrc5p1lvyvizd"   nix32, 52 chars
    "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73..."   hex, 64 chars
    "sha256-LPJNul+wow4m6DsqxbninhsWHlwfp0JecwQzYpOLmCQ="     SRI

Store paths only ever see the raw 32 bytes, so the spelling does not
change where a fetched output lands, only what ends up in the .drv env.
"""

import base64
import binascii
import hashlib

from oxpix import base32

SHA256_SIZE = 32
SHA256_HEX_LEN = 2 * SHA256_SIZE
SHA256_NIX32_LEN = base32.encoded_len(SHA256_SIZE)  # 52
SRI_PREFIX = "sha256-"


def compress_hash(hash_bytes: bytes, size: int) -> bytes:
    """XOR-fold a hash down to `size` bytes.

    Byte i of the input lands in position i % size, so a 32-byte SHA-256
    folded to 20 bytes keeps every input byte in play:

        result[0]  = hash[0]  ^ hash[20]
        ...
        result[11] = hash[11] ^ hash[31]
        result[12] = hash[12]
        ...

    See: nix/src/libutil/hash.cc: compressHash()
    """
    result = bytearray(size)
    for i, b in enumerate(hash_bytes):
        result[i % size] ^= b
    return bytes(result)


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def to_sri(digest: bytes) -> str:
    return SRI_PREFIX + base64.b64encode(digest).decode()


def parse_sha256(s: str) -> bytes:
    """Decode a sha256 written as SRI, hex, or nix32. Raises ValueError."""
    if s.startswith(SRI_PREFIX):
        try:
            digest = base64.b64decode(s[len(SRI_PREFIX):], validate=True)
        except binascii.Error as e:
            raise ValueError(f"invalid SRI hash {s!r}: {e}") from None
    elif len(s) == SHA256_HEX_LEN:
        try:
            digest = bytes.fromhex(s)
        except ValueError:
            raise ValueError(f"invalid hex sha256 {s!r}") from None
    elif len(s) == SHA256_NIX32_LEN:
        digest = base32.decode(s)
    else:
        raise ValueError(
            f"hash {s!r} has wrong length for sha256 "
            f"(expected {SHA256_NIX32_LEN} nix32 or {SHA256_HEX_LEN} hex "
            f"characters, or an SRI string)"
        )
    if len(digest) != SHA256_SIZE:
        raise ValueError(f"hash {s!r} decodes to {len(digest)} bytes, not {SHA256_SIZE}")
    return digest
