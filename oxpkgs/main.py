#!/usr/bin/env python3
"""oxpkgs: evaluate the pinned Rust toolchain package set."""

import argparse
import json
import logging
import sys

from oxpkgs.drv import DEFAULT_SYSTEM, Package
from oxpkgs.lazy import LazyAttrSet, collect_derivations, get_attr_path
from oxpkgs.rust.manifest import ManifestError, ManifestLoader
from oxpkgs.toolchain import RUST_OVERLAY_PIN, default_pkgs, rust_overlay_source

log = logging.getLogger("oxpkgs")


def _pkgs(args):
    loader = ManifestLoader(args.cache_dir, offline=args.offline)
    return default_pkgs(loader, system=args.system, channel=args.channel, date=args.date)


def _package(args) -> Package:
    value = get_attr_path(_pkgs(args), args.attr)
    if not isinstance(value, Package):
        raise ValueError(f"'{args.attr}' is not a derivation")
    return value


def cmd_source(args):
    src = rust_overlay_source(args.system)
    for key, value in RUST_OVERLAY_PIN.as_fetch_args().items():
        print(f"{key}: {value}")
    print(f"url: {RUST_OVERLAY_PIN.url}")
    print(f"drv: {src.drv_path}")
    print(f"out: {src.out}")


def cmd_show(args):
    value = get_attr_path(_pkgs(args), args.attr)
    if isinstance(value, LazyAttrSet):
        shown = {name: str(getattr(value, name)) for name in value.attr_names()
                 if isinstance(getattr(value, name), Package)}
    elif isinstance(value, Package):
        shown = {"drv": value.drv_path, **value.outputs}
    else:
        shown = {"value": repr(value)}
    if args.json:
        json.dump(shown, sys.stdout, indent=2)
        print()
    else:
        for key, path in shown.items():
            print(f"{key}: {path}")


def cmd_drv_show(args):
    pkg = _package(args)
    d = pkg.drv
    info = {
        pkg.drv_path: {
            "outputs": {k: {"path": o.path, "hashAlgo": o.hash_algo, "hash": o.hash_value}
                        for k, o in d.outputs.items()},
            "inputDrvs": d.input_drvs,
            "inputSrcs": d.input_srcs,
            "platform": d.platform,
            "builder": d.builder,
            "args": d.args,
            "env": d.env,
        }
    }
    json.dump(info, sys.stdout, indent=2)
    print()


def cmd_list(args):
    pkgs = _pkgs(args)
    found = collect_derivations(pkgs.rust_platform, "rust_platform.")
    for path, pkg in sorted(found.items()):
        print(f"{path}\t{pkg.name}\t{pkg.out}")


def main(argv=None):
    parser = argparse.ArgumentParser(prog="oxpkgs", description="Evaluate the pinned Rust toolchain package set")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log manifest fetching")
    parser.add_argument("--system", default=DEFAULT_SYSTEM)
    parser.add_argument("--channel", default="nightly", help="Rust release channel (default: nightly)")
    parser.add_argument("--date", help="Pin the channel to a release date (YYYY-MM-DD)")
    parser.add_argument("--cache-dir", help="Manifest cache directory")
    parser.add_argument("--offline", action="store_true", help="Only use cached manifests")
    sub = parser.add_subparsers(dest="command")

    # source
    p = sub.add_parser("source", help="Show the pinned Rust overlay source")
    p.set_defaults(func=cmd_source)

    # show
    p = sub.add_parser("show", help="Show store paths of an attribute")
    p.add_argument("attr", help="Attribute path, e.g. rust.cargo")
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_show)

    # drv-show
    p = sub.add_parser("drv-show", help="Show a derivation as JSON")
    p.add_argument("attr")
    p.set_defaults(func=cmd_drv_show)

    # list
    p = sub.add_parser("list", help="List derivations under rust_platform")
    p.set_defaults(func=cmd_list)

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except (ManifestError, AttributeError, ValueError) as e:
        log.debug("evaluation failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
