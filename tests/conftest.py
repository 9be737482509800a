"""Pytest configuration and shared fixtures.

Ensure the project root is on sys.path so tests can import the package
without requiring PYTHONPATH to be set externally.
"""
import sys
from pathlib import Path

import pytest


def pytest_configure(config):
    # Insert repo root (one level up from tests/) to sys.path
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root))


@pytest.fixture
def codec():
    """HashCodec with a constant salt so hashes are reproducible."""
    from tests.helpers import fixed_codec
    return fixed_codec()


@pytest.fixture
def accounts_file(tmp_path):
    from tests.helpers import write_fixture
    return write_fixture(tmp_path / 'config' / 'postfix-accounts.cf')


@pytest.fixture
def store(accounts_file, codec):
    from mailserver_lib.accounts import AccountStore
    return AccountStore.load(accounts_file, codec=codec)
