"""High-level derivation constructor.

Wraps oxpix's Derivation/store_path/hash primitives into a single drv()
call that handles the full pipeline:

    drv(name="hello", builder="/bin/sh", args=["-c", "echo hi > $out"])

and returns a Package with its output paths and .drv store path
computed exactly as Nix would compute them. Passing ``output_hash``
makes it a fixed-output derivation (what every fetcher is).
"""

from __future__ import annotations

import dataclasses
import functools
import inspect
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from oxpix.derivation import (
    Derivation,
    DerivationOutput,
    hash_derivation_modulo,
    serialize,
)
from oxpix.store_path import make_fixed_output_path, make_output_path, make_text_store_path

DEFAULT_SYSTEM = "x86_64-linux"


def _collect_input_hashes(deps: list[Package], drv_hashes: dict[str, bytes]) -> None:
    """Fill drv_hashes with the modular hash of every transitive dependency.

    Inputs are hashed with mask_outputs=False: their output paths are
    already fixed and are part of what the dependent derivation sees.
    """
    for dep in deps:
        if dep.drv_path in drv_hashes:
            continue
        _collect_input_hashes(dep.deps, drv_hashes)
        drv_hashes[dep.drv_path] = hash_derivation_modulo(
            dep.drv, drv_hashes, mask_outputs=False,
        )


@dataclass(frozen=True)
class Package:
    """A derivation with computed output paths.

    str(pkg) / f"{pkg}" is the default output path, which is how one
    package refers to another in env vars and builder arguments.
    """

    name: str
    drv: Derivation
    drv_path: str
    outputs: dict[str, str]
    deps: list[Package] = field(default_factory=list, compare=False, repr=False)
    passthru: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)
    _args: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)
    _make: Callable[..., Package] | None = field(default=None, compare=False, repr=False)

    @property
    def out(self) -> str:
        return self.outputs["out"]

    def __str__(self) -> str:
        return self.out

    def __hash__(self) -> int:
        return hash(self.drv_path)

    def override(self, **kw) -> Package:
        """Re-run the constructor that made this package with changed arguments.

        Like pkg.override in Nix. For plain drv() packages the arguments are
        drv()'s own; for packages built by a make_overridable function they
        are that function's.
        """
        make = self._make or drv
        return make(**{**self._args, **kw})


def make_overridable(fn: Callable[..., Package]) -> Callable[..., Package]:
    """Like lib.makeOverridable: remember fn's arguments on the result."""
    sig = inspect.signature(fn)

    @functools.wraps(fn)
    def wrapper(*args, **kwargs) -> Package:
        bound = sig.bind(*args, **kwargs)
        pkg = fn(*bound.args, **bound.kwargs)
        return dataclasses.replace(pkg, _args=dict(bound.arguments), _make=wrapper)

    return wrapper


def drv(
    name: str,
    builder: str,
    system: str = DEFAULT_SYSTEM,
    args: list[str] | None = None,
    env: dict[str, str] | None = None,
    output_names: list[str] | None = None,
    deps: list[Package] | None = None,
    srcs: list[str] | None = None,
    output_hash: str | None = None,
    output_hash_algo: str = "sha256",
    output_hash_mode: str = "flat",
    passthru: dict[str, Any] | None = None,
) -> Package:
    """Create a Package with computed output paths and .drv store path.

    Args:
        name:             Package name (becomes the store path suffix).
        builder:          Path to the builder executable.
        system:           Build platform.
        args:             Arguments to the builder.
        env:              Extra environment variables.
        output_names:     Output names (default: ["out"]).
        deps:             Package dependencies (input derivations).
        srcs:             Input source store paths.
        output_hash:      Hex digest; makes this a fixed-output derivation.
        output_hash_algo: Hash algorithm of output_hash.
        output_hash_mode: "flat" (hash of the file) or "recursive" (of its NAR).
        passthru:         Extra values carried on the Package, not in the .drv.
    """
    args = args or []
    env = dict(env or {})
    output_names = output_names or ["out"]
    deps = deps or []
    srcs = srcs or []

    orig_args = dict(
        name=name, builder=builder, system=system, args=args, env=dict(env),
        output_names=output_names, deps=deps, srcs=srcs,
        output_hash=output_hash, output_hash_algo=output_hash_algo,
        output_hash_mode=output_hash_mode, passthru=passthru,
    )

    input_drvs = {dep.drv_path: list(dep.outputs) for dep in deps}

    drv_obj = Derivation(
        outputs={},
        input_drvs=input_drvs,
        input_srcs=sorted(srcs),
        platform=system,
        builder=builder,
        args=args,
        env=env,
    )
    drv_obj.env.setdefault("name", name)
    drv_obj.env.setdefault("builder", builder)
    drv_obj.env.setdefault("system", system)

    if output_hash is not None:
        if output_names != ["out"]:
            raise ValueError(f"fixed-output derivation {name!r} must have exactly one output 'out'")
        if output_hash_mode not in ("flat", "recursive"):
            raise ValueError(f"unknown output hash mode {output_hash_mode!r}")
        recursive = output_hash_mode == "recursive"
        path = make_fixed_output_path(name, output_hash_algo, bytes.fromhex(output_hash), recursive)
        method = "r:" if recursive else ""
        drv_obj.outputs["out"] = DerivationOutput(path, method + output_hash_algo, output_hash)
        drv_obj.env["out"] = path
        computed_outputs = {"out": path}
    else:
        # Blank outputs first; the paths depend on the hash of this very text.
        for n in output_names:
            drv_obj.outputs[n] = DerivationOutput("", "", "")
            drv_obj.env[n] = ""

        drv_hashes: dict[str, bytes] = {}
        _collect_input_hashes(deps, drv_hashes)
        drv_hash = hash_derivation_modulo(drv_obj, drv_hashes)

        computed_outputs = {n: make_output_path(drv_hash, n, name) for n in output_names}
        for n, path in computed_outputs.items():
            drv_obj.outputs[n] = DerivationOutput(path, "", "")
            drv_obj.env[n] = path

    drv_text = serialize(drv_obj)
    refs = sorted(input_drvs) + sorted(srcs)
    drv_store_path = make_text_store_path(name + ".drv", drv_text.encode(), refs)

    return Package(
        name=name,
        drv=drv_obj,
        drv_path=drv_store_path,
        outputs=computed_outputs,
        deps=list(deps),
        passthru=dict(passthru or {}),
        _args=orig_args,
        _make=drv,
    )
