import os

import pytest

from setlistbot.models import Image

from .fakes import FakeCatalog, FakeStore

SETTINGS_PREFIXES = ("SPOTIFY_", "SETLISTFM_", "RESOLVE_", "HOUSEKEEPING_", "RETRY_")


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep tests away from the developer's .env file and settings variables."""
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith(SETTINGS_PREFIXES) or key in ("DEBUG", "DEBUG_MODE"):
            monkeypatch.delenv(key)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def artist_image() -> Image:
    return Image(url="https://img/big.jpg", width=640, height=640)
