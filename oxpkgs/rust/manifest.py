"""Rust channel manifests (v2).

Each release channel publishes a TOML manifest listing every package of
the release, per target triple, with a download URL and its sha256:

    manifest-version = "2"
    date = "2018-10-01"

    [pkg.cargo]
    version = "0.32.0-nightly (ad6e5c003 2018-09-28)"
    [pkg.cargo.target.x86_64-unknown-linux-gnu]
    available = true
    url = "https://static.rust-lang.org/dist/2018-10-01/cargo-nightly-x86_64-unknown-linux-gnu.tar.gz"
    hash = "<hex sha256>"

    [[pkg.rust.target.x86_64-unknown-linux-gnu.components]]
    pkg = "rustc"
    target = "x86_64-unknown-linux-gnu"

    [renames.rls]
    to = "rls-preview"

``pkg.rust`` is the meta-package: its components and extensions say
which packages make up a toolchain. Target-independent packages such as
rust-src live under the ``*`` target.

Manifests are the one piece of channel data that has to come off the
network. ManifestLoader fetches them with httpx and keeps a copy on
disk; manifests for a dated release never change and are kept forever,
the moving "latest" ones expire after a TTL.
"""

import logging
import re
import time
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

import httpx

log = logging.getLogger(__name__)

DIST_ROOT = "https://static.rust-lang.org/dist"
DEFAULT_TTL = 3600  # seconds, same as Nix's tarball-ttl
DEFAULT_CACHE_DIR = Path.home() / ".cache" / "oxpix" / "rust-manifests"
WILDCARD_TARGET = "*"

_CHANNEL_RE = re.compile(r"stable|beta|nightly|\d+\.\d+(\.\d+)?")
_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


class ManifestError(Exception):
    pass


@dataclass(frozen=True)
class ComponentRef:
    pkg: str
    target: str


@dataclass(frozen=True)
class PackageTarget:
    available: bool
    url: str = ""
    hash: str = ""
    xz_url: str = ""
    xz_hash: str = ""
    components: tuple[ComponentRef, ...] = ()
    extensions: tuple[ComponentRef, ...] = ()


@dataclass(frozen=True)
class ManifestPackage:
    name: str
    version: str
    targets: dict[str, PackageTarget] = field(default_factory=dict, compare=False)

    @property
    def short_version(self) -> str:
        """Version without the commit suffix: "1.31.0-nightly"."""
        return self.version.split(" ", 1)[0]


def _refs(entries, where: str) -> tuple[ComponentRef, ...]:
    try:
        return tuple(ComponentRef(e["pkg"], e["target"]) for e in entries)
    except (KeyError, TypeError) as e:
        raise ManifestError(f"malformed component list in {where}: {e!r}") from None


def _target(data: dict, where: str) -> PackageTarget:
    return PackageTarget(
        available=bool(data.get("available", False)),
        url=data.get("url", ""),
        hash=data.get("hash", ""),
        xz_url=data.get("xz_url", ""),
        xz_hash=data.get("xz_hash", ""),
        components=_refs(data.get("components", []), where),
        extensions=_refs(data.get("extensions", []), where),
    )


@dataclass
class Manifest:
    date: str
    packages: dict[str, ManifestPackage]
    renames: dict[str, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, text: str) -> "Manifest":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise ManifestError(f"manifest is not valid TOML: {e}") from None

        version = data.get("manifest-version")
        if version != "2":
            raise ManifestError(f"unsupported manifest version {version!r}")
        if "date" not in data or "pkg" not in data:
            raise ManifestError("manifest has no date or no packages")

        packages = {}
        for name, pkg in data["pkg"].items():
            targets = {
                triple: _target(t, f"pkg.{name}.target.{triple}")
                for triple, t in pkg.get("target", {}).items()
            }
            packages[name] = ManifestPackage(name, pkg.get("version", ""), targets)

        renames = {old: r["to"] for old, r in data.get("renames", {}).items() if "to" in r}
        return cls(date=data["date"], packages=packages, renames=renames)

    def resolve_name(self, name: str) -> str:
        return self.renames.get(name, name)

    def package(self, name: str) -> ManifestPackage:
        try:
            return self.packages[self.resolve_name(name)]
        except KeyError:
            raise ManifestError(f"no package {name!r} in the {self.date} manifest") from None

    def target(self, name: str, triple: str) -> PackageTarget | None:
        """The entry for `name` on `triple`, falling back to the ``*`` target."""
        pkg = self.packages.get(self.resolve_name(name))
        if pkg is None:
            return None
        return pkg.targets.get(triple) or pkg.targets.get(WILDCARD_TARGET)

    def is_available(self, name: str, triple: str) -> bool:
        t = self.target(name, triple)
        return t is not None and t.available


def manifest_url(channel: str, date: str | None = None, dist_root: str = DIST_ROOT) -> str:
    if not _CHANNEL_RE.fullmatch(channel):
        raise ValueError(f"invalid rust channel {channel!r}")
    if date is None:
        return f"{dist_root}/channel-rust-{channel}.toml"
    if not _DATE_RE.fullmatch(date):
        raise ValueError(f"invalid channel date {date!r}, expected YYYY-MM-DD")
    return f"{dist_root}/{date}/channel-rust-{channel}.toml"


class ManifestLoader:
    """Fetch channel manifests over HTTP, with an on-disk cache.

    Args:
        cache_dir: Where manifests are kept (default ~/.cache/oxpix/rust-manifests).
        client:    httpx.Client to use; one is created per download otherwise.
        offline:   Never touch the network; serve stale copies, fail on a miss.
        ttl:       Seconds an undated ("latest") manifest stays fresh.
        dist_root: Base URL of the distribution server.
    """

    def __init__(self, cache_dir: str | Path | None = None, *,
                 client: httpx.Client | None = None, offline: bool = False,
                 ttl: int = DEFAULT_TTL, dist_root: str = DIST_ROOT):
        self.cache_dir = Path(cache_dir) if cache_dir is not None else DEFAULT_CACHE_DIR
        self.client = client
        self.offline = offline
        self.ttl = ttl
        self.dist_root = dist_root
        self._loaded: dict[tuple[str, str | None], Manifest] = {}

    def cache_path(self, channel: str, date: str | None = None) -> Path:
        return self.cache_dir / (date or "latest") / f"channel-rust-{channel}.toml"

    def _is_fresh(self, path: Path, date: str | None) -> bool:
        if not path.exists():
            return False
        return date is not None or time.time() - path.stat().st_mtime < self.ttl

    def load(self, channel: str, date: str | None = None) -> Manifest:
        key = (channel, date)
        if key not in self._loaded:
            self._loaded[key] = self._load(channel, date)
        return self._loaded[key]

    def _load(self, channel: str, date: str | None) -> Manifest:
        url = manifest_url(channel, date, self.dist_root)
        path = self.cache_path(channel, date)

        if self._is_fresh(path, date):
            log.debug("using cached manifest %s", path)
            return Manifest.parse(path.read_text())

        if self.offline:
            if path.exists():
                log.warning("manifest %s is older than %ds, using it anyway (offline)", path, self.ttl)
                return Manifest.parse(path.read_text())
            raise ManifestError(f"manifest for {channel} {date or 'latest'} is not cached and offline mode is on")

        text = self._download(url)
        manifest = Manifest.parse(text)

        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(text)
        tmp.replace(path)
        log.debug("cached manifest %s (%s)", path, manifest.date)
        return manifest

    def _download(self, url: str) -> str:
        log.info("fetching %s", url)
        client = self.client or httpx.Client(follow_redirects=True, timeout=30.0)
        try:
            resp = client.get(url)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ManifestError(f"{url}: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ManifestError(f"cannot fetch {url}: {e}") from e
        finally:
            if self.client is None:
                client.close()
        return resp.text
