from pathlib import Path

import pytest

from oxpkgs.rust.manifest import Manifest

FIXTURES = Path(__file__).parent / "fixtures"


class FixtureLoader:
    """Serves the fixture manifest for every channel and counts loads."""

    def __init__(self):
        self.text = (FIXTURES / "channel-rust-nightly.toml").read_text()
        self.calls = []

    def load(self, channel, date=None):
        self.calls.append((channel, date))
        return Manifest.parse(self.text)


@pytest.fixture
def manifest_text():
    return (FIXTURES / "channel-rust-nightly.toml").read_text()


@pytest.fixture
def manifest(manifest_text):
    return Manifest.parse(manifest_text)


@pytest.fixture
def loader():
    return FixtureLoader()
