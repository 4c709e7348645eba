"""Tests for channel manifest parsing, URLs and the caching loader."""

import os

import httpx
import pytest

from oxpkgs.rust.manifest import (
    ComponentRef,
    Manifest,
    ManifestError,
    ManifestLoader,
    manifest_url,
)

TRIPLE = "x86_64-unknown-linux-gnu"


class TestParse:
    def test_date_and_packages(self, manifest):
        assert manifest.date == "2018-10-01"
        assert {"rust", "rustc", "cargo", "rust-std", "rust-docs", "rust-src", "rls-preview"} <= set(manifest.packages)

    def test_short_version(self, manifest):
        assert manifest.package("cargo").short_version == "0.32.0-nightly"
        assert manifest.package("rust").version == "1.31.0-nightly (5597ee8a6 2018-09-30)"

    def test_target_fields(self, manifest):
        t = manifest.target("rustc", TRIPLE)
        assert t.available
        assert t.url.endswith("/rustc-nightly-x86_64-unknown-linux-gnu.tar.gz")
        assert t.hash == "2" * 64
        assert t.xz_hash == "3" * 64

    def test_components_and_extensions(self, manifest):
        rust = manifest.target("rust", TRIPLE)
        assert [c.pkg for c in rust.components] == ["rustc", "rust-std", "cargo", "rust-docs"]
        assert ComponentRef("rust-src", "*") in rust.extensions

    def test_wildcard_target_fallback(self, manifest):
        assert manifest.target("rust-src", TRIPLE) == manifest.target("rust-src", "*")
        assert manifest.is_available("rust-src", "wasm32-unknown-unknown")

    def test_renames(self, manifest):
        assert manifest.resolve_name("rls") == "rls-preview"
        assert manifest.package("rls").name == "rls-preview"
        assert not manifest.is_available("rls", TRIPLE)

    def test_unknown_package(self, manifest):
        assert manifest.target("miri", TRIPLE) is None
        with pytest.raises(ManifestError, match="no package 'miri'"):
            manifest.package("miri")

    def test_unsupported_version(self, manifest_text):
        with pytest.raises(ManifestError, match="unsupported manifest version"):
            Manifest.parse(manifest_text.replace('manifest-version = "2"', 'manifest-version = "1"'))

    def test_not_toml(self):
        with pytest.raises(ManifestError, match="not valid TOML"):
            Manifest.parse("this is [not toml")

    def test_missing_packages(self):
        with pytest.raises(ManifestError):
            Manifest.parse('manifest-version = "2"\ndate = "2018-10-01"\n')


class TestManifestUrl:
    def test_latest(self):
        assert manifest_url("nightly") == "https://static.rust-lang.org/dist/channel-rust-nightly.toml"

    def test_dated(self):
        assert manifest_url("nightly", "2018-10-01") == \
            "https://static.rust-lang.org/dist/2018-10-01/channel-rust-nightly.toml"

    def test_version_channel(self):
        assert manifest_url("1.30.0").endswith("/channel-rust-1.30.0.toml")

    @pytest.mark.parametrize("channel,date", [
        ("unstable", None), ("../etc", None), ("nightly", "2018-1-1"), ("nightly", "yesterday"),
    ])
    def test_invalid(self, channel, date):
        with pytest.raises(ValueError):
            manifest_url(channel, date)


def _client(text, requests, status=200):
    def handler(request):
        requests.append(str(request.url))
        return httpx.Response(status, text=text)
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestLoader:
    def test_downloads_and_caches(self, tmp_path, manifest_text):
        requests = []
        loader = ManifestLoader(tmp_path, client=_client(manifest_text, requests))
        m = loader.load("nightly", "2018-10-01")
        assert m.date == "2018-10-01"
        assert requests == ["https://static.rust-lang.org/dist/2018-10-01/channel-rust-nightly.toml"]
        assert loader.cache_path("nightly", "2018-10-01").read_text() == manifest_text

    def test_dated_cache_never_expires(self, tmp_path, manifest_text):
        ManifestLoader(tmp_path, client=_client(manifest_text, [])).load("nightly", "2018-10-01")
        path = ManifestLoader(tmp_path).cache_path("nightly", "2018-10-01")
        os.utime(path, (0, 0))

        requests = []
        loader = ManifestLoader(tmp_path, client=_client(manifest_text, requests), ttl=1)
        assert loader.load("nightly", "2018-10-01").date == "2018-10-01"
        assert requests == []

    def test_latest_expires_after_ttl(self, tmp_path, manifest_text):
        ManifestLoader(tmp_path, client=_client(manifest_text, [])).load("nightly")
        requests = []
        ManifestLoader(tmp_path, client=_client(manifest_text, requests), ttl=0).load("nightly")
        assert requests == ["https://static.rust-lang.org/dist/channel-rust-nightly.toml"]

    def test_memoized_per_loader(self, tmp_path, manifest_text):
        requests = []
        loader = ManifestLoader(tmp_path, client=_client(manifest_text, requests), ttl=0)
        assert loader.load("nightly") is loader.load("nightly")
        assert len(requests) == 1

    def test_http_error(self, tmp_path):
        loader = ManifestLoader(tmp_path, client=_client("gone", [], status=404))
        with pytest.raises(ManifestError, match="HTTP 404"):
            loader.load("nightly", "1999-01-01")
        assert not loader.cache_path("nightly", "1999-01-01").exists()

    def test_transport_error(self, tmp_path):
        def handler(request):
            raise httpx.ConnectError("no route", request=request)
        loader = ManifestLoader(tmp_path, client=httpx.Client(transport=httpx.MockTransport(handler)))
        with pytest.raises(ManifestError, match="cannot fetch"):
            loader.load("beta")

    def test_broken_download_not_cached(self, tmp_path):
        loader = ManifestLoader(tmp_path, client=_client("<html>", []))
        with pytest.raises(ManifestError):
            loader.load("stable")
        assert not loader.cache_path("stable").exists()

    def test_offline_miss(self, tmp_path):
        with pytest.raises(ManifestError, match="not cached"):
            ManifestLoader(tmp_path, offline=True).load("nightly")

    def test_offline_uses_stale_copy(self, tmp_path, manifest_text):
        ManifestLoader(tmp_path, client=_client(manifest_text, [])).load("nightly")
        loader = ManifestLoader(tmp_path, offline=True, ttl=0)
        assert loader.load("nightly").date == "2018-10-01"
