"""Pytest fixtures for vcr_sdk tests."""

import os
import tempfile
from pathlib import Path

import pytest

from vcr_sdk.client import VCR
from vcr_sdk.store import FixtureStore


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fixture_store(temp_dir):
    """Create a FixtureStore over a temporary directory."""
    return FixtureStore(temp_dir)


@pytest.fixture
def vcr_replay(temp_dir):
    """Create a VCR in REPLAY mode."""
    vcr = VCR(temp_dir)
    yield vcr
    vcr.close()


@pytest.fixture
def vcr_record(temp_dir):
    """Create a VCR in RECORD mode."""
    vcr = VCR(temp_dir).record()
    yield vcr
    vcr.close()


@pytest.fixture
def vcr_live(temp_dir):
    """Create a VCR in LIVE mode."""
    vcr = VCR(temp_dir).live()
    yield vcr
    vcr.close()


@pytest.fixture(autouse=True)
def reset_env():
    """Clear VCR_* variables for each test and restore the environment after."""
    original_env = os.environ.copy()
    for key in list(os.environ):
        if key.startswith("VCR_"):
            del os.environ[key]
    yield
    os.environ.clear()
    os.environ.update(original_env)
