"""makeRustPlatform: a compiler and build tool packaged for builds.

    platform = make_rust_platform(rust, busybox=pkgs.busybox)
    platform.rustc, platform.cargo
    platform.build_rust_package(pname="fvm", version="0.1.0", src=src)

`rust` is any attribute set with `rustc` and `cargo` packages, such as
the one the toolchain overlay binds.
"""

from oxpkgs.drv import DEFAULT_SYSTEM, Package, drv, make_overridable
from oxpkgs.lazy import LazyAttrSet
from oxpkgs.vendor import CARGO_BUILD_SH


@make_overridable
def build_rust_package(pname: str, version: str, src: Package, *, rustc: Package,
                       cargo: Package, busybox: Package, cargo_build_flags=(),
                       system: str = DEFAULT_SYSTEM) -> Package:
    """Declare a `cargo build --release` of `src`, binaries into $out/bin."""
    return drv(
        name=f"{pname}-{version}",
        builder=str(busybox),
        system=system,
        args=["ash", "-e", CARGO_BUILD_SH],
        deps=[busybox, rustc, cargo, src],
        srcs=[CARGO_BUILD_SH],
        env={
            "busybox": str(busybox),
            "cargo": str(cargo),
            "cargoBuildFlags": " ".join(cargo_build_flags),
            "pname": pname,
            "rustc": str(rustc),
            "src": str(src),
            "version": version,
        },
    )


def make_rust_platform(rust, *, busybox, system: str = DEFAULT_SYSTEM) -> LazyAttrSet:
    def build(pname, version, src, **kw):
        return build_rust_package(
            pname, version, src,
            rustc=rust.rustc, cargo=rust.cargo, busybox=busybox, system=system, **kw,
        )

    return LazyAttrSet({
        "rust": lambda: rust,
        "rustc": lambda: rust.rustc,
        "cargo": lambda: rust.cargo,
        "build_rust_package": lambda: build,
    })
