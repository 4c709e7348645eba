"""The package set with a pinned Rust toolchain.

This is the whole configuration: fetch a pinned nixpkgs-mozilla, apply
its Rust overlay, then bind the compiler and build tool from one of its
release channels:

    rust          = { rustc = nightly.rust; cargo = nightly.cargo; }
    rust_platform = recurse_into_attrs(make_rust_platform(rust))

Everything else in the package set is left exactly as it was.

    pkgs = default_pkgs()
    pkgs.rust.rustc           # /nix/store/...-rust-1.31.0-nightly
    pkgs.rust_platform.build_rust_package(...)
"""

from oxpix.pin import SourcePin
from oxpkgs.drv import DEFAULT_SYSTEM, Package
from oxpkgs.lazy import LazyAttrSet
from oxpkgs.package_set import import_pkgs
from oxpkgs.rust.overlay import RustOverlay

RUST_OVERLAY_PIN = SourcePin(
    owner="mozilla",
    repo="nixpkgs-mozilla",
    rev="7e54fb37cd177e6d83e4e2b7d3e3b03bd6de0e0f",
    sha256="1shz56l19kgk05p2xvhb7jg1whhfjix6njx1q4rvrc5p1lvyvizd",
)

TOOLCHAIN_ATTRS = ("rust", "rust_platform")


def rust_overlay_source(system: str = DEFAULT_SYSTEM) -> Package:
    """The pinned overlay tree, fetched with a plain package set's fetcher."""
    return import_pkgs(system=system).fetch_from_github(**RUST_OVERLAY_PIN.as_fetch_args())


def make_toolchain_overlay(channel: str = "nightly", date: str | None = None):
    """Overlay binding `rust` and `rust_platform` from one release channel."""
    def overlay(final, prev):
        def rust():
            if date is None and channel in prev.rust_channels:
                selected = getattr(prev.rust_channels, channel)
            else:
                selected = prev.rust_channel_of(channel, date)
            return LazyAttrSet({
                "rustc": lambda: selected.rust,
                "cargo": lambda: selected.cargo,
            })

        return {
            "rust": rust,
            "rust_platform": lambda: prev.recurse_into_attrs(prev.make_rust_platform(final.rust)),
        }
    return overlay


toolchain_overlay = make_toolchain_overlay()


def default_pkgs(loader=None, system: str = DEFAULT_SYSTEM, channel: str = "nightly",
                 date: str | None = None):
    """The customized package set: base + Rust overlay + toolchain bindings."""
    rust_overlay = RustOverlay(loader, source=rust_overlay_source(system))
    return import_pkgs(
        overlays=[rust_overlay, make_toolchain_overlay(channel, date)],
        system=system,
    )
