"""
Shared fixtures: a throwaway SQLite provider per test.
"""
import os
import sys
from datetime import date

import pytest

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only-32chars")

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from backend.database import LocalProvider
from backend.repository import Repository

TODAY = date(2025, 1, 10)


@pytest.fixture
def provider(tmp_path):
    return LocalProvider(tmp_path / "tracker.db", tmp_path / "storage")


@pytest.fixture
def repo(provider):
    return Repository(provider)


@pytest.fixture
def today():
    return TODAY
