"""fetchFromGitHub: a pinned GitHub commit as a store path.

    fetch_from_github(owner="mozilla", repo="nixpkgs-mozilla",
                      rev="7e54fb37...", sha256="1shz56l1...")

The coordinate is checked as a SourcePin, then turned into an unpacking
fetch of GitHub's archive tarball for that commit. The sha256 is the NAR
hash of the unpacked tree, so the output is a plain source path named
"source", the same path ``nix-prefetch-url --unpack`` reports.
"""

from oxpix.pin import SourcePin
from oxpkgs.drv import Package, make_overridable
from oxpkgs.fetchurl import fetchurl


@make_overridable
def fetch_from_github(owner: str, repo: str, rev: str, sha256: str,
                      name: str = "source") -> Package:
    pin = SourcePin(owner=owner, repo=repo, rev=rev, sha256=sha256)
    return fetchurl(
        name,
        pin.url,
        sha256=pin.sha256,
        unpack=True,
        passthru={"owner": owner, "repo": repo, "rev": rev, "pin": pin},
    )
