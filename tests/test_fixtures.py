"""
Tests for the demo dataset and its read-only provider.
"""
from datetime import date

import pytest

from backend.errors import LoginRequiredError
from backend.fixtures import DEMO_USER_ID, FixtureProvider, build_demo_dataset, seed_user
from backend.models import TemplateType
from backend.provider import IMAGE_BUCKET
from backend.repository import Repository

TODAY = date(2025, 1, 10)


@pytest.fixture
def demo():
    return Repository(FixtureProvider(TODAY))


class TestFixtureProvider:
    """Tests for reads and refused writes."""

    def test_rows_parse_as_models(self, demo):
        assert len(demo.list_companies(DEMO_USER_ID)) == 4
        assert len(demo.tasks.list(user_id=DEMO_USER_ID)) == 4
        assert len(demo.list_steps("demo-1")) == 3
        assert len(demo.entry_sheets.list()) == 2

    def test_dates_relative_to_today(self, demo):
        company = demo.companies.get("demo-1")
        assert company.es_deadline == date(2025, 1, 12)

    def test_filters(self, demo):
        tasks = demo.tasks.list(user_id=DEMO_USER_ID, completed=False)
        assert all(not t.completed for t in tasks)
        assert [t.title for t in demo.tasks.list(company_id=None)] == ["自己分析シートの見直し"]
        assert demo.list_companies("someone-else") == []

    def test_template_type_filter(self, demo):
        interview = demo.templates.list(type=TemplateType.INTERVIEW)
        assert [t.id for t in interview] == ["demo-tpl-2"]

    def test_ordering(self, demo):
        names = [c.name for c in demo.list_companies(DEMO_USER_ID)]
        assert names[0] == "サンプル商事"  # created most recently
        dues = [t.due_date for t in demo.tasks.list(order_by="due_date")]
        assert dues == sorted(dues)

    def test_writes_refused(self):
        provider = FixtureProvider(TODAY)
        with pytest.raises(LoginRequiredError):
            provider.insert("tasks", {"title": "x"})
        with pytest.raises(LoginRequiredError):
            provider.update("tasks", {"id": "demo-task-1"}, {"completed": True})
        with pytest.raises(LoginRequiredError):
            provider.delete("tasks", {"id": "demo-task-1"})
        with pytest.raises(LoginRequiredError):
            provider.upload(IMAGE_BUCKET, "a.png", b"", "image/png")

    def test_dataset_not_shared(self):
        first = FixtureProvider(TODAY)
        first.tables["companies"].clear()
        assert len(FixtureProvider(TODAY).tables["companies"]) == 4


class TestSeedUser:
    """Tests for copying the demo dataset into an account."""

    def test_seed(self, repo):
        counts = seed_user(repo.provider, "u1", TODAY)
        dataset = build_demo_dataset(TODAY)

        assert counts["companies"] == len(dataset["companies"])
        companies = repo.list_companies("u1")
        assert {c.name for c in companies} == {row["name"] for row in dataset["companies"]}

        ids = {c.id for c in companies}
        tasks = repo.tasks.list(user_id="u1")
        assert len(tasks) == 4
        assert all(t.company_id is None or t.company_id in ids for t in tasks)
        assert all(s.company_id in ids for s in repo.entry_sheets.list(user_id="u1"))
