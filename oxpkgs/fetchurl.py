"""Fixed-output fetchurl derivation. Python equivalent of <nix/fetchurl.nix>.

Every fetch here uses ``builtin:fetchurl``, the downloader built into
the Nix daemon. It needs no shell or coreutils, so it is the one fetcher
available before anything has been built, and with ``unpack`` it also
covers archive sources such as GitHub tarballs.

How the hash was written matters for the .drv bytes but not for the
output path:

1. ``hash="sha256-<base64>"`` → outputHash=SRI, outputHashAlgo=""
2. ``sha256="<any spelling>"`` → outputHash verbatim, outputHashAlgo="sha256"

Both decode to the same 32 bytes, which is all the output path sees.
"""

from oxpix.digest import parse_sha256
from oxpkgs.drv import Package, drv

FETCHURL_ENV_BASE = {
    "impureEnvVars": "http_proxy https_proxy ftp_proxy all_proxy no_proxy",
    "preferLocalBuild": "1",
}


def fetchurl(name: str, url: str, *, hash: str | None = None, sha256: str | None = None,
             recursive: bool = False, executable: bool = False, unpack: bool = False,
             passthru: dict | None = None) -> Package:
    """Declare a download of `url` whose content must match the given hash.

    Exactly one of `hash` (SRI) or `sha256` (nix32, hex or SRI) is required.
    ``unpack=True`` extracts the archive and implies a recursive hash.
    """
    if (hash is None) == (sha256 is None):
        raise ValueError(f"fetchurl {name!r}: pass exactly one of hash= or sha256=")
    if hash is not None:
        env_hash, env_algo = hash, ""
    else:
        env_hash, env_algo = sha256, "sha256"

    mode = "recursive" if (recursive or unpack) else "flat"
    return drv(
        name=name,
        builder="builtin:fetchurl",
        system="builtin",
        output_hash=parse_sha256(env_hash).hex(),
        output_hash_algo="sha256",
        output_hash_mode=mode,
        env={
            **FETCHURL_ENV_BASE,
            "executable": "1" if executable else "",
            "outputHash": env_hash,
            "outputHashAlgo": env_algo,
            "outputHashMode": mode,
            "unpack": "1" if unpack else "",
            "url": url,
            "urls": url,
        },
        passthru=passthru,
    )
