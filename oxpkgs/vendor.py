"""Builder scripts shipped with oxpkgs, as store paths.

Derivations refer to their builder scripts by store path, exactly as a
Nix expression referring to ``./install-components.sh`` would. The path
is computed from the file's NAR hash and name with
``path_to_store_path()``; nothing is added to a store here.

    vendor/
      rust/    install-components.sh, cargo-build.sh
"""

from pathlib import Path

from oxpix.store_path import path_to_store_path

_VENDOR = Path(__file__).parent / "vendor"


def _src(subdir: str, filename: str) -> str:
    """Compute the nix store path for a vendored source file."""
    return path_to_store_path(_VENDOR / subdir / filename, filename)


INSTALL_COMPONENTS_SH = _src("rust", "install-components.sh")
CARGO_BUILD_SH = _src("rust", "cargo-build.sh")
