"""Pinned GitHub source coordinates.

A pin is the four literals a fetchFromGitHub call is made of:

    owner  = "mozilla";
    repo   = "nixpkgs-mozilla";
    rev    = "7e54fb37cd177e6d83e4e2b7d3e3b03bd6de0e0f";
    sha256 = "1shz56l19kgk05p2xvhb7jg1whhfjix6njx1q4rvrc5p1lvyvizd";

The revision fixes *which* tree is fetched, the hash fixes *what bytes*
that tree must unpack to. Only well-formedness is checked here; whether
the bytes actually match is for whoever performs the fetch.
"""

import re
from dataclasses import dataclass

from oxpix.digest import parse_sha256

GITHUB_ARCHIVE_URL = "https://github.com/{owner}/{repo}/archive/{rev}.tar.gz"

_OWNER_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9-]*")
_REPO_RE = re.compile(r"[A-Za-z0-9._-]+")
_REV_RE = re.compile(r"[0-9a-f]{40}")


class InvalidPinError(ValueError):
    pass


@dataclass(frozen=True)
class SourcePin:
    owner: str
    repo: str
    rev: str
    sha256: str

    def __post_init__(self):
        if not _OWNER_RE.fullmatch(self.owner):
            raise InvalidPinError(f"invalid owner {self.owner!r}")
        if not _REPO_RE.fullmatch(self.repo) or self.repo in (".", ".."):
            raise InvalidPinError(f"invalid repo {self.repo!r}")
        if not _REV_RE.fullmatch(self.rev):
            raise InvalidPinError(
                f"invalid rev {self.rev!r}: expected a 40-character lowercase hex commit id"
            )
        try:
            parse_sha256(self.sha256)
        except ValueError as e:
            raise InvalidPinError(f"invalid sha256: {e}") from None

    @property
    def digest(self) -> bytes:
        return parse_sha256(self.sha256)

    @property
    def url(self) -> str:
        return GITHUB_ARCHIVE_URL.format(owner=self.owner, repo=self.repo, rev=self.rev)

    def as_fetch_args(self) -> dict[str, str]:
        return {"owner": self.owner, "repo": self.repo, "rev": self.rev, "sha256": self.sha256}
