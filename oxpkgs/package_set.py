"""The base package set and callPackage.

``import_pkgs()`` is the Python counterpart of ``import <nixpkgs>``: it
returns a lazily evaluated attribute set, optionally extended with
overlays,

    pkgs = import_pkgs(overlays=[rust_overlay, toolchain_overlay])
    pkgs.rust.cargo

and evaluating it twice with the same arguments gives identical
derivations.

The base layer only carries what the Rust toolchain needs: the fetchers,
a bootstrap shell to run install scripts with, and the platform helpers.
"""

import functools
import inspect

from oxpix.digest import to_sri
from oxpkgs.drv import DEFAULT_SYSTEM, Package
from oxpkgs.fetch_from_github import fetch_from_github
from oxpkgs.fetchurl import fetchurl
from oxpkgs.lazy import compose_overlays, fix, recurse_into_attrs
from oxpkgs.rust.platform import make_rust_platform

# Same seed nixpkgs' x86_64-linux stdenv bootstrap starts from.
TARBALLS_BASE = (
    "http://tarballs.nixos.org/stdenv/x86_64-unknown-linux-gnu/"
    "82b583ba2ba2e5706b35dbe23f31362e62be2a9d"
)
BUSYBOX_SHA256 = "42b4c49d04c133563fa95f6876af22ad9910483f6e38c6ecd90e4d802bca08d4"

# Nix system → Rust host triple.
HOST_TRIPLES = {
    "x86_64-linux": "x86_64-unknown-linux-gnu",
    "i686-linux": "i686-unknown-linux-gnu",
    "aarch64-linux": "aarch64-unknown-linux-gnu",
    "armv7l-linux": "armv7-unknown-linux-gnueabihf",
    "x86_64-darwin": "x86_64-apple-darwin",
    "aarch64-darwin": "aarch64-apple-darwin",
}


def call_package(attrs, fn, **overrides):
    """Call fn with its parameters looked up by name in `attrs`.

    Like Nix's callPackage: explicit `overrides` win, parameters with a
    default may be missing from the set, anything else must be there.

        call_package(pkgs, lambda busybox, fetchurl: ...)
    """
    kwargs = {}
    for name, param in inspect.signature(fn).parameters.items():
        if name in overrides:
            kwargs[name] = overrides[name]
        elif name in attrs:
            kwargs[name] = getattr(attrs, name)
        elif param.default is inspect.Parameter.empty:
            raise AttributeError(
                f"package set has no attribute {name!r} "
                f"(required by {getattr(fn, '__qualname__', fn)!r})"
            )
    return fn(**kwargs)


def _busybox(system: str) -> Package:
    """Statically-linked busybox, the shell our install scripts run under."""
    if system != "x86_64-linux":
        raise ValueError(f"no bootstrap busybox for system {system!r}")
    return fetchurl(
        "busybox",
        f"{TARBALLS_BASE}/busybox",
        hash=to_sri(bytes.fromhex(BUSYBOX_SHA256)),
        recursive=True,
        executable=True,
    )


def _host_triple(system: str) -> str:
    try:
        return HOST_TRIPLES[system]
    except KeyError:
        raise ValueError(f"unsupported system {system!r}") from None


def base_layer(system: str = DEFAULT_SYSTEM):
    """The attributes every package set starts with, as a function for fix()."""
    def layer(final):
        return {
            "system": lambda: system,
            "host_triple": lambda: _host_triple(system),
            "fetchurl": lambda: fetchurl,
            "fetch_from_github": lambda: fetch_from_github,
            "busybox": lambda: _busybox(system),
            "call_package": lambda: functools.partial(call_package, final),
            "recurse_into_attrs": lambda: recurse_into_attrs,
            "make_rust_platform": lambda: functools.partial(
                make_rust_platform, busybox=final.busybox, system=system,
            ),
        }
    return layer


def import_pkgs(overlays=(), system: str = DEFAULT_SYSTEM):
    """Instantiate the package set for `system` with `overlays` applied in order."""
    return fix(compose_overlays(base_layer(system), overlays))
