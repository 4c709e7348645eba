"""Tests for store path computation."""

from oxpix.digest import sha256
from oxpix.store_path import (
    STORE_DIR,
    make_fixed_output_path,
    make_output_path,
    make_source_store_path,
    make_text_store_path,
    path_to_store_path,
)
from oxpix.nar import nar_hash


def _split(path: str) -> tuple[str, str]:
    assert path.startswith(STORE_DIR + "/")
    hash_part, name = path[len(STORE_DIR) + 1:].split("-", 1)
    return hash_part, name


def test_text_store_path_format():
    hash_part, name = _split(make_text_store_path("hello.txt", b"hello world"))
    assert len(hash_part) == 32
    assert name == "hello.txt"


def test_text_store_path_deterministic():
    assert make_text_store_path("test", b"content") == make_text_store_path("test", b"content")


def test_text_store_path_sensitive_to_content_name_refs():
    base = make_text_store_path("test", b"aaa")
    assert base != make_text_store_path("test", b"bbb")
    assert base != make_text_store_path("other", b"aaa")
    assert base != make_text_store_path("test", b"aaa", ["/nix/store/x"])


def test_reference_order_does_not_matter():
    a = make_text_store_path("t", b"x", ["/nix/store/a", "/nix/store/b"])
    b = make_text_store_path("t", b"x", ["/nix/store/b", "/nix/store/a"])
    assert a == b


def test_recursive_sha256_fixed_output_is_source_path():
    digest = sha256(b"some nar")
    assert make_fixed_output_path("source", "sha256", digest, recursive=True) == \
        make_source_store_path("source", digest)


def test_flat_fixed_output_differs_from_recursive():
    digest = sha256(b"tarball")
    flat = make_fixed_output_path("x.tar.gz", "sha256", digest)
    rec = make_fixed_output_path("x.tar.gz", "sha256", digest, recursive=True)
    assert flat != rec
    assert _split(flat)[1] == "x.tar.gz"


def test_output_path_names():
    h = sha256(b"drv")
    assert make_output_path(h, "out", "rust-1.31.0").endswith("-rust-1.31.0")
    assert make_output_path(h, "doc", "rust-1.31.0").endswith("-rust-1.31.0-doc")


def test_path_to_store_path(tmp_path):
    f = tmp_path / "script.sh"
    f.write_text("echo hi\n")
    assert path_to_store_path(f) == make_source_store_path("script.sh", nar_hash(f))
    assert path_to_store_path(f, "renamed").endswith("-renamed")
