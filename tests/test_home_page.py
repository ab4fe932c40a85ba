"""
Tests for the home page script, run headless against the demo data.
"""
import os

import pytest
from streamlit.testing.v1 import AppTest

import backend.deadlines as deadlines
from core.config import get_settings

APP = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "app.py")


@pytest.fixture
def company_reads(monkeypatch, tmp_path):
    """Run the page signed out and record each per-company deadline read."""
    monkeypatch.setenv("TRACKER_BACKEND", "local")
    monkeypatch.setenv("TRACKER_DB_PATH", str(tmp_path / "tracker.db"))
    monkeypatch.setenv("TRACKER_STORAGE_DIR", str(tmp_path / "storage"))
    get_settings.cache_clear()

    reads = []
    original = deadlines.load_company_deadlines

    def recording(repo, user_id, company_id):
        reads.append(company_id)
        return original(repo, user_id, company_id)

    monkeypatch.setattr(deadlines, "load_company_deadlines", recording)
    yield reads
    get_settings.cache_clear()


class TestCompanyDeadlines:
    """Per-company deadline lists on the home page."""

    def test_not_read_on_render(self, company_reads):
        at = AppTest.from_file(APP, default_timeout=30).run()

        assert not at.exception
        assert len(at.expander) >= 4
        assert company_reads == []

    def test_read_when_toggled(self, company_reads):
        at = AppTest.from_file(APP, default_timeout=30).run()
        at.toggle(key="deadlines_demo-1").set_value(True).run()

        assert not at.exception
        assert company_reads == ["demo-1"]
