"""Shared test fixtures for jsonstore."""

import json
import os
import sys

import pytest

# Make the package importable without installing it
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'py'))

from jsonstore import Store  # noqa: E402

START_MS = 1_700_000_000_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now=START_MS):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep JSONSTORE_* variables from the caller's shell out of the tests."""
    for name in ('JSONSTORE_PATH', 'JSONSTORE_TTL', 'JSONSTORE_RESET_ON_FAILURE'):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / 'store.json'


@pytest.fixture
def make_store(store_path, clock):
    """Open a store at store_path on the fake clock, with optional overrides."""
    def _open(**overrides):
        overrides.setdefault('path', store_path)
        overrides.setdefault('clock', clock)
        return Store.open(**overrides)
    return _open


@pytest.fixture
def store(make_store):
    return make_store()


@pytest.fixture
def read_doc(store_path):
    """Read the raw document on disk."""
    def _read():
        return json.loads(store_path.read_text(encoding='utf-8'))
    return _read


@pytest.fixture
def write_doc(store_path):
    """Write a document to disk as-is, bypassing the store."""
    def _write(document):
        store_path.write_text(json.dumps(document), encoding='utf-8')
    return _write
