"""Lazy attribute sets, fixed points and overlays.

Direct translation of Nix's lib.fix and lib.extends:

    Nix:    fix (self: { a = 1; b = self.a + 1; })
    Python: fix(lambda self: {"a": lambda: 1, "b": lambda: self.a + 1})

    Nix:    pkgs { overlays = [ o1 o2 ]; }
    Python: fix(compose_overlays(base, [o1, o2]))

Attributes are thunks (zero-arg callables), forced on first access and
memoized, so a package set can refer to itself (open recursion) and
nothing is computed that is never asked for.

An overlay is ``overlay(final, prev) -> dict of thunks``:
    final: the finished set, after every overlay (Nix `self`)
    prev:  the set as it stood before this overlay (Nix `super`)

Attributes an overlay does not mention are inherited untouched; the
only way to hide an earlier attribute is to define one with the same
name.
"""

import functools

from oxpkgs.drv import Package


class LazyAttrSet:
    """Immutable attribute set with memoized thunk evaluation."""

    def __init__(self, thunks=None, *, recurse_for_derivations: bool = False):
        object.__setattr__(self, '_thunks', dict(thunks or {}))
        object.__setattr__(self, '_cache', {})
        object.__setattr__(self, '_evaluating', set())
        object.__setattr__(self, '_recurse', recurse_for_derivations)

    def __getattr__(self, name):
        if name.startswith('_'):
            raise AttributeError(name)
        if name in self._cache:
            return self._cache[name]
        if name not in self._thunks:
            raise AttributeError(f"attribute '{name}' missing")
        if name in self._evaluating:
            raise RecursionError(f"infinite recursion encountered evaluating '{name}'")
        self._evaluating.add(name)
        try:
            result = self._thunks[name]()
        finally:
            self._evaluating.discard(name)
        self._cache[name] = result
        return result

    def __setattr__(self, name, value):
        raise AttributeError(f"cannot set '{name}': attribute sets are immutable")

    def __contains__(self, name) -> bool:
        return name in self._thunks

    def __iter__(self):
        return iter(self.attr_names())

    def __len__(self) -> int:
        return len(self._thunks)

    def __dir__(self):
        return sorted(set(super().__dir__()) | set(self._thunks))

    def __repr__(self) -> str:
        return "{ " + "".join(f"{n} = ...; " for n in self.attr_names()) + "}"

    def attr_names(self) -> list[str]:
        return sorted(self._thunks)

    @property
    def recurse_for_derivations(self) -> bool:
        return self._recurse


def attrset(**values) -> LazyAttrSet:
    """A LazyAttrSet of already-computed values."""
    return LazyAttrSet({k: (lambda v=v: v) for k, v in values.items()})


def fix(f) -> LazyAttrSet:
    """Fixed point of f: (final) -> dict of thunks.

    `result` is handed to f before any thunk runs, so thunks may read
    any attribute of the finished set.
    """
    result = LazyAttrSet()
    object.__setattr__(result, '_thunks', dict(f(result)))
    return result


def extends(overlay, f):
    """Layer `overlay` on top of f, like Nix's lib.extends.

    Inherited attributes delegate to the `prev` view, so an attribute
    the overlay leaves alone is evaluated once and is the same object
    whether reached through final or prev.
    """
    def extended(final):
        prev_thunks = f(final)
        prev = LazyAttrSet(prev_thunks)
        inherited = {name: functools.partial(getattr, prev, name) for name in prev_thunks}
        return {**inherited, **overlay(final, prev)}
    return extended


def compose_overlays(base, overlays):
    """Fold overlays onto base left to right. Returns a function for fix()."""
    f = base
    for overlay in overlays:
        f = extends(overlay, f)
    return f


def recurse_into_attrs(attrs) -> LazyAttrSet:
    """Mark a set so tools descend into it when looking for derivations.

    Like ``recurseIntoAttrs``; accepts a LazyAttrSet or a plain dict of
    values. The result shares the original's evaluated attributes.
    """
    if isinstance(attrs, LazyAttrSet):
        thunks = {name: functools.partial(getattr, attrs, name) for name in attrs.attr_names()}
    else:
        thunks = {k: (lambda v=v: v) for k, v in attrs.items()}
    return LazyAttrSet(thunks, recurse_for_derivations=True)


def collect_derivations(attrs: LazyAttrSet, prefix: str = "") -> dict[str, Package]:
    """Every Package reachable from `attrs`, keyed by attribute path.

    Top-level attributes are always inspected; nested sets only when
    they are marked with recurse_into_attrs, as ``nix-env -qa`` does.
    """
    found = {}
    for name in attrs.attr_names():
        path = f"{prefix}{name}"
        value = getattr(attrs, name)
        if isinstance(value, Package):
            found[path] = value
        elif isinstance(value, LazyAttrSet) and value.recurse_for_derivations:
            found.update(collect_derivations(value, path + "."))
    return found


def get_attr_path(attrs, path: str):
    """Resolve a dotted attribute path such as "rust_channels.nightly.cargo"."""
    value = attrs
    for part in path.split("."):
        value = getattr(value, part)
    return value
