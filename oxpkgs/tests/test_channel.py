import pytest

from oxpix.store_path import make_fixed_output_path
from oxpkgs.fetchurl import fetchurl
from oxpkgs.package_set import import_pkgs
from oxpkgs.rust.channel import (
    attr_name,
    fetch_component,
    make_rust_channel,
    select_components,
)
from oxpkgs.rust.manifest import ComponentRef, ManifestError

TRIPLE = "x86_64-unknown-linux-gnu"


@pytest.fixture
def busybox():
    return import_pkgs().busybox


@pytest.fixture
def channel(manifest, busybox):
    return make_rust_channel(manifest, fetchurl=fetchurl, busybox=busybox, triple=TRIPLE)


class TestSelectComponents:
    def test_default_components(self, manifest):
        refs = select_components(manifest, TRIPLE)
        assert [r.pkg for r in refs] == ["rustc", "rust-std", "cargo", "rust-docs"]

    def test_wildcard_extension(self, manifest):
        refs = select_components(manifest, TRIPLE, extensions=["rust-src"])
        assert refs[-1] == ComponentRef("rust-src", "*")

    def test_cross_target(self, manifest):
        refs = select_components(manifest, TRIPLE, targets=["wasm32-unknown-unknown"])
        assert refs[-1] == ComponentRef("rust-std", "wasm32-unknown-unknown")

    def test_host_target_not_duplicated(self, manifest):
        assert select_components(manifest, TRIPLE, targets=[TRIPLE]) == select_components(manifest, TRIPLE)

    def test_renamed_extension_unavailable(self, manifest):
        with pytest.raises(ManifestError, match="rls-preview"):
            select_components(manifest, TRIPLE, extensions=["rls"])

    def test_unknown_extension(self, manifest):
        with pytest.raises(ManifestError, match="'clippy' is not offered"):
            select_components(manifest, TRIPLE, extensions=["clippy"])

    def test_unavailable_target(self, manifest):
        with pytest.raises(ManifestError, match="aarch64-unknown-linux-gnu"):
            select_components(manifest, TRIPLE, targets=["aarch64-unknown-linux-gnu"])

    def test_unknown_target(self, manifest):
        with pytest.raises(ManifestError, match="no rust-std for target"):
            select_components(manifest, TRIPLE, targets=["riscv64gc-unknown-none-elf"])

    def test_host_without_rust(self, manifest):
        with pytest.raises(ManifestError, match="rust is not available"):
            select_components(manifest, "x86_64-apple-darwin")


def test_fetch_component_is_flat_fixed_output(manifest):
    src = fetch_component(manifest, ComponentRef("cargo", TRIPLE), fetchurl)
    assert src.name == "cargo-nightly-x86_64-unknown-linux-gnu.tar.gz"
    assert src.out == make_fixed_output_path(src.name, "sha256", bytes.fromhex("4" * 64))
    assert src.drv.env["outputHashMode"] == "flat"


def test_fetch_component_unavailable(manifest):
    with pytest.raises(ManifestError):
        fetch_component(manifest, ComponentRef("rls-preview", TRIPLE), fetchurl)


def test_attr_name():
    assert attr_name("rust-std") == "rust_std"
    assert attr_name("cargo") == "cargo"


class TestChannel:
    def test_attrs(self, channel):
        assert channel.attr_names() == [
            "cargo", "manifest", "rust", "rust_docs", "rust_src", "rust_std", "rustc",
        ]
        assert "rls_preview" not in channel

    def test_names_use_short_versions(self, channel):
        assert channel.rust.name == "rust-1.31.0-nightly"
        assert channel.cargo.name == "cargo-0.32.0-nightly"
        assert channel.rust_std.name == "rust-std-1.31.0-nightly"

    def test_component_installs_its_tarball(self, channel, busybox):
        cargo = channel.cargo
        (src,) = [d for d in cargo.deps if d != busybox]
        assert cargo.drv.env["components"] == src.out
        assert cargo.drv.builder == busybox.out
        assert src.drv_path in cargo.drv.input_drvs

    def test_rust_combines_components(self, channel):
        rust = channel.rust
        assert len(rust.drv.env["components"].split()) == 4
        assert rust.passthru["version"] == "1.31.0-nightly"
        assert rust.passthru["date"] == "2018-10-01"

    def test_override_extensions_and_targets(self, channel):
        full = channel.rust.override(
            extensions=["rust-src"], targets=["wasm32-unknown-unknown"],
        )
        assert len(full.drv.env["components"].split()) == 6
        assert full.out != channel.rust.out
        assert full.name == channel.rust.name

    def test_override_rejects_unavailable(self, channel):
        with pytest.raises(ManifestError):
            channel.rust.override(extensions=["rls"])

    def test_busybox_resolved_lazily(self, manifest):
        def no_busybox():
            raise ValueError("no bootstrap busybox")

        channel = make_rust_channel(manifest, fetchurl=fetchurl, busybox=no_busybox, triple=TRIPLE)
        assert channel.manifest is manifest
        with pytest.raises(ValueError):
            channel.cargo

    def test_pure(self, manifest, busybox):
        a = make_rust_channel(manifest, fetchurl=fetchurl, busybox=busybox, triple=TRIPLE)
        b = make_rust_channel(manifest, fetchurl=fetchurl, busybox=busybox, triple=TRIPLE)
        assert a.rust == b.rust
        assert a.rust.drv_path == b.rust.drv_path
