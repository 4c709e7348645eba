#!/usr/bin/env python3
"""oxpix: store-level helpers for writing pinned sources."""

import argparse
import hashlib
import sys
from pathlib import Path

from oxpix import base32, nar, store_path
from oxpix.pin import InvalidPinError, SourcePin


def _print_hash(h: bytes, use_base32: bool) -> None:
    print(f"sha256:{base32.encode(h) if use_base32 else h.hex()}")


def cmd_hash_path(args):
    _print_hash(nar.nar_hash(args.path), args.base32)


def cmd_hash_file(args):
    _print_hash(hashlib.sha256(Path(args.path).read_bytes()).digest(), args.base32)


def cmd_store_path(args):
    name = args.name or Path(args.path).resolve().name
    print(store_path.path_to_store_path(args.path, name))


def cmd_pin(args):
    pin = SourcePin(owner=args.owner, repo=args.repo, rev=args.rev, sha256=args.sha256)
    print(f"url: {pin.url}")
    print(f"sha256: {base32.encode(pin.digest)}")
    print(f"path: {store_path.make_fixed_output_path(args.name, 'sha256', pin.digest, recursive=True)}")


def main(argv=None):
    parser = argparse.ArgumentParser(prog="oxpix", description="Store-level helpers for pinned sources")
    sub = parser.add_subparsers(dest="command")

    # hash-path
    p = sub.add_parser("hash-path", help="Hash a path in NAR format (what sha256 = ... pins)")
    p.add_argument("path")
    p.add_argument("--base32", action="store_true", help="Print nix32 instead of hex")
    p.set_defaults(func=cmd_hash_path)

    # hash-file
    p = sub.add_parser("hash-file", help="Hash a file's bytes (flat hash, what fetchurl pins)")
    p.add_argument("path")
    p.add_argument("--base32", action="store_true", help="Print nix32 instead of hex")
    p.set_defaults(func=cmd_hash_file)

    # store-path
    p = sub.add_parser("store-path", help="Store path a local path would be added at")
    p.add_argument("path")
    p.add_argument("--name", help="Store name (default: the basename)")
    p.set_defaults(func=cmd_store_path)

    # pin
    p = sub.add_parser("pin", help="Validate a GitHub source pin and show where it lands")
    p.add_argument("owner")
    p.add_argument("repo")
    p.add_argument("rev")
    p.add_argument("sha256")
    p.add_argument("--name", default="source", help="Store name (default: source)")
    p.set_defaults(func=cmd_pin)

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)
    try:
        args.func(args)
    except (InvalidPinError, OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
