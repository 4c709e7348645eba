"""Tests for the oxpix command line."""

import pytest

from oxpix.main import main
from oxpix.store_path import make_source_store_path
from oxpix.pin import SourcePin

REV = "7e54fb37cd177e6d83e4e2b7d3e3b03bd6de0e0f"
SHA256 = "1shz56l19kgk05p2xvhb7jg1whhfjix6njx1q4rvrc5p1lvyvizd"


def test_pin(capsys):
    main(["pin", "mozilla", "nixpkgs-mozilla", REV, SHA256])
    out = capsys.readouterr().out.splitlines()
    digest = SourcePin("mozilla", "nixpkgs-mozilla", REV, SHA256).digest
    assert out == [
        f"url: https://github.com/mozilla/nixpkgs-mozilla/archive/{REV}.tar.gz",
        f"sha256: {SHA256}",
        f"path: {make_source_store_path('source', digest)}",
    ]


def test_pin_rejects_bad_rev(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["pin", "mozilla", "nixpkgs-mozilla", "master", SHA256])
    assert exc.value.code == 1
    assert "invalid rev" in capsys.readouterr().err


def test_hash_file(tmp_path, capsys):
    f = tmp_path / "hello"
    f.write_text("hello")
    main(["hash-file", "--base32", str(f)])
    assert capsys.readouterr().out.strip() == "sha256:094qif9n4cq4fdg459qzbhg1c6wywawwaaivx0k0x8xhbyx4vwic"


def test_store_path(tmp_path, capsys):
    f = tmp_path / "hello"
    f.write_text("hello")
    main(["store-path", "--name", "greeting", str(f)])
    assert capsys.readouterr().out.strip().endswith("-greeting")


def test_no_command():
    with pytest.raises(SystemExit):
        main([])
