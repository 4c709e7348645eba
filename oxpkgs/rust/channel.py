"""One release channel as an attribute set of packages.

    nightly = make_rust_channel(manifest, fetchurl=..., busybox=..., triple=...)
    nightly.cargo      # just cargo
    nightly.rust_std   # just the standard library for the host
    nightly.rust       # the whole toolchain the `rust` meta-package describes
    nightly.rust.override(extensions=["rust-src"], targets=["wasm32-unknown-unknown"])

Every component tarball is a fixed-output fetch pinned by the
manifest's sha256; installing is one derivation per package that runs
install-components.sh over the fetched tarballs.
"""

import posixpath

from oxpkgs.drv import DEFAULT_SYSTEM, Package, drv, make_overridable
from oxpkgs.lazy import LazyAttrSet
from oxpkgs.rust.manifest import ComponentRef, Manifest, ManifestError
from oxpkgs.vendor import INSTALL_COMPONENTS_SH


def select_components(manifest: Manifest, triple: str, extensions=(), targets=()) -> list[ComponentRef]:
    """The components a toolchain for `triple` is made of.

    The `rust` meta-package's own components, then each requested
    extension (e.g. "rust-src", or "rls" through the manifest's
    renames), then rust-std for each extra cross target. Everything
    selected must be available, or ManifestError lists what is not.
    """
    rust = manifest.target("rust", triple)
    if rust is None or not rust.available:
        raise ManifestError(f"rust is not available for {triple} in the {manifest.date} manifest")

    refs = list(rust.components)
    for ext in extensions:
        name = manifest.resolve_name(ext)
        matching = [r for r in rust.extensions if r.pkg == name and r.target in (triple, "*")]
        if not matching:
            raise ManifestError(f"extension {ext!r} is not offered for {triple}")
        refs.extend(matching)
    for target in targets:
        if target == triple:
            continue
        ref = ComponentRef("rust-std", target)
        if ref not in rust.extensions:
            raise ManifestError(f"no rust-std for target {target!r} in the {manifest.date} manifest")
        refs.append(ref)

    refs = list(dict.fromkeys(refs))
    missing = [f"{r.pkg} ({r.target})" for r in refs if not manifest.is_available(r.pkg, r.target)]
    if missing:
        raise ManifestError(
            f"unavailable in the {manifest.date} manifest: {', '.join(missing)}"
        )
    return refs


def fetch_component(manifest: Manifest, ref: ComponentRef, fetchurl) -> Package:
    """The tarball of one component, as a fetch pinned by the manifest hash."""
    target = manifest.target(ref.pkg, ref.target)
    if target is None or not target.available:
        raise ManifestError(f"{ref.pkg} is not available for {ref.target}")
    return fetchurl(posixpath.basename(target.url), target.url, sha256=target.hash)


def install_components(name: str, srcs: list[Package], *, busybox: Package,
                       system: str = DEFAULT_SYSTEM, passthru: dict | None = None) -> Package:
    return drv(
        name=name,
        builder=str(busybox),
        system=system,
        args=["ash", "-e", INSTALL_COMPONENTS_SH],
        deps=[busybox, *srcs],
        srcs=[INSTALL_COMPONENTS_SH],
        env={
            "busybox": str(busybox),
            "components": " ".join(str(s) for s in srcs),
        },
        passthru=passthru,
    )


@make_overridable
def rust_toolchain(manifest: Manifest, triple: str, extensions=(), targets=(), *,
                   fetchurl, busybox: Package, system: str = DEFAULT_SYSTEM) -> Package:
    """The combined toolchain: every selected component in one prefix."""
    refs = select_components(manifest, triple, extensions, targets)
    version = manifest.package("rust").short_version
    return install_components(
        f"rust-{version}",
        [fetch_component(manifest, ref, fetchurl) for ref in refs],
        busybox=busybox,
        system=system,
        passthru={"version": version, "date": manifest.date, "components": refs},
    )


def _component_package(manifest: Manifest, name: str, triple: str, fetchurl,
                       busybox: Package, system: str) -> Package:
    pkg = manifest.package(name)
    ref = ComponentRef(name, triple)
    return install_components(
        f"{name}-{pkg.short_version}",
        [fetch_component(manifest, ref, fetchurl)],
        busybox=busybox,
        system=system,
        passthru={"version": pkg.short_version, "date": manifest.date},
    )


def attr_name(pkg_name: str) -> str:
    """Manifest package name → attribute name ("rust-std" → "rust_std")."""
    return pkg_name.replace("-", "_")


def make_rust_channel(manifest: Manifest, *, fetchurl, busybox, triple: str,
                      system: str = DEFAULT_SYSTEM) -> LazyAttrSet:
    """Attribute set of every package `manifest` offers for `triple`.

    `busybox` may be a Package or a zero-arg callable returning one, so
    the bootstrap shell is only resolved when something is installed.
    """
    def shell() -> Package:
        return busybox() if callable(busybox) else busybox

    thunks = {}
    for name in manifest.packages:
        if name == "rust" or not manifest.is_available(name, triple):
            continue
        thunks[attr_name(name)] = (
            lambda n=name: _component_package(manifest, n, triple, fetchurl, shell(), system)
        )
    thunks["rust"] = lambda: rust_toolchain(
        manifest, triple, fetchurl=fetchurl, busybox=shell(), system=system,
    )
    thunks["manifest"] = lambda: manifest
    return LazyAttrSet(thunks)
