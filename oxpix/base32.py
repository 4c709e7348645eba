"""Nix base32.

Nix prints hashes in its own base32 flavour, which differs from RFC 4648
in two ways:

1. The alphabet is "0123456789abcdfghijklmnpqrsvwxyz" (no e, o, t, u).

2. Digits are taken from the *end* of the little-endian bit stream.
   Reading the input as one little-endian integer N, the i-th character
   from the right is simply ``(N >> 5*i) & 31``.

   See: nix/src/libutil/hash.cc: printHash32()

Lengths: ceil(n*8/5) characters for n bytes, so a 20-byte store path
hash is 32 characters and a SHA-256 digest is 52.
"""

CHARS = "0123456789abcdfghijklmnpqrsvwxyz"
_DIGITS = {c: i for i, c in enumerate(CHARS)}


def encoded_len(n: int) -> int:
    return (n * 8 + 4) // 5


def encode(data: bytes) -> str:
    """Encode bytes as Nix base32."""
    n = int.from_bytes(data, "little")
    return "".join(
        CHARS[(n >> (5 * i)) & 0x1F]
        for i in reversed(range(encoded_len(len(data))))
    )


def decode(s: str) -> bytes:
    """Decode a Nix base32 string.

    Raises ValueError on characters outside the alphabet, and on strings
    whose leading digit carries bits past the decoded length (Nix rejects
    these as well, so every byte string has exactly one spelling).
    """
    size = len(s) * 5 // 8
    n = 0
    for i, ch in enumerate(reversed(s)):
        digit = _DIGITS.get(ch)
        if digit is None:
            raise ValueError(f"invalid nix base32 character: {ch!r}")
        n |= digit << (5 * i)
    if n >> (size * 8):
        raise ValueError(f"invalid nix base32 string {s!r}: non-zero padding bits")
    return n.to_bytes(size, "little")
