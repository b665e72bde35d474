"""Shared test fixtures for sealjournal."""

import os
import tempfile

import pytest

from sealjournal.core.storage import SealedStore
from sealjournal.journal import JournalTransactor


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file pointing at tmp_dir."""
    import yaml

    config_data = {
        "paths": {
            "data_dir": os.path.join(tmp_dir, "data"),
            "data_file": os.path.join(tmp_dir, "data", "journal.json"),
            "public_key_file": os.path.join(tmp_dir, "data", "journal.pub"),
        },
        "logging": {"level": "debug"},
        "journal": {"title": "My Journal"},
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def store(tmp_path):
    return SealedStore(tmp_path / "data.json", tmp_path / "data.pub")


@pytest.fixture
async def transactor(store):
    tx = JournalTransactor(store)
    yield tx
    await tx.stop()
