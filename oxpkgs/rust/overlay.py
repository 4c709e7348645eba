"""The Rust overlay: release channels as package-set attributes.

Python counterpart of nixpkgs-mozilla's rust-overlay.nix. Applied to a
package set it adds

    rust_channel_of(channel, date=None)   any channel, optionally pinned to a date
    rust_channels.{nightly,beta,stable}   the current releases

Channels are attribute sets built by make_rust_channel(); the manifest
behind one is only loaded when the channel is first used.

The overlay records the pinned source it stands for (``source``), the
fetched nixpkgs-mozilla tree a Nix evaluation would import
rust-overlay.nix from.
"""

import functools

from oxpkgs.drv import Package
from oxpkgs.lazy import LazyAttrSet
from oxpkgs.rust.channel import make_rust_channel
from oxpkgs.rust.manifest import ManifestLoader

CHANNELS = ("nightly", "beta", "stable")


class RustOverlay:
    """Overlay callable: ``RustOverlay(loader)(final, prev) -> thunks``."""

    def __init__(self, loader=None, source: Package | None = None):
        self.loader = loader if loader is not None else ManifestLoader()
        self.source = source

    def rust_channel_of(self, final, channel: str, date: str | None = None) -> LazyAttrSet:
        manifest = self.loader.load(channel, date)
        return make_rust_channel(
            manifest,
            fetchurl=final.fetchurl,
            busybox=lambda: final.busybox,
            triple=final.host_triple,
            system=final.system,
        )

    def __call__(self, final, prev):
        channel_of = functools.lru_cache(maxsize=None)(
            functools.partial(self.rust_channel_of, final)
        )
        return {
            "rust_channel_of": lambda: channel_of,
            "rust_channels": lambda: LazyAttrSet(
                {name: (lambda n=name: final.rust_channel_of(n)) for name in CHANNELS}
            ),
        }
