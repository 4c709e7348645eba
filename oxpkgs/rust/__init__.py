"""Rust toolchains from the upstream release channels.

A Python rendition of the rust-overlay.nix that nixpkgs-mozilla ships:
channel manifests from static.rust-lang.org become attribute sets of
fixed-output fetches and install derivations.

    Manifest / ManifestLoader   read and cache channel-rust-*.toml
    make_rust_channel           one channel as an attribute set
    RustOverlay                 adds rust_channel_of / rust_channels
    make_rust_platform          rustc + cargo + build_rust_package
"""

from oxpkgs.rust.channel import make_rust_channel, select_components
from oxpkgs.rust.manifest import DIST_ROOT, Manifest, ManifestError, ManifestLoader, manifest_url
from oxpkgs.rust.overlay import CHANNELS, RustOverlay
from oxpkgs.rust.platform import make_rust_platform

__all__ = [
    "DIST_ROOT", "Manifest", "ManifestError", "ManifestLoader", "manifest_url",
    "make_rust_channel", "select_components",
    "CHANNELS", "RustOverlay",
    "make_rust_platform",
]
