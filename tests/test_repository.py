"""
Tests for the record façade over the SQLite provider.
"""
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from datetime import date

import pytest

from backend.database import LocalProvider, get_connection
from backend.errors import ProviderError
from backend.fixtures import FixtureProvider
from backend.models import Company, SelectionStep, TemplateType
from backend.provider import IMAGE_BUCKET
from backend.repository import Repository


def add_company(repo, name="Acme", user_id="u1", **fields):
    return repo.companies.insert({"user_id": user_id, "name": name, **fields})


class TestTables:
    """Tests for generic CRUD."""

    def test_insert_returns_stored_row(self, repo):
        company = add_company(repo, industry="IT", es_deadline=date(2025, 2, 1))

        assert isinstance(company, Company)
        assert company.id
        assert company.created_at is not None
        assert company.es_deadline == date(2025, 2, 1)
        assert company.motivation_level == 3

    def test_get_missing(self, repo):
        assert repo.companies.get("nope") is None

    def test_update_returns_row_and_touches(self, repo):
        company = add_company(repo)
        updated = repo.companies.update(company.id, {"name": "Acme 2", "motivation_level": 5})

        assert updated.name == "Acme 2"
        assert updated.motivation_level == 5
        assert updated.updated_at >= company.updated_at

    def test_update_to_null(self, repo):
        company = add_company(repo, es_deadline=date(2025, 2, 1))
        updated = repo.companies.update(company.id, {"es_deadline": None})
        assert updated.es_deadline is None

    def test_update_missing_row(self, repo):
        assert repo.companies.update("nope", {"name": "x"}) is None

    def test_list_filters_by_owner(self, repo):
        add_company(repo, "Mine", "u1")
        add_company(repo, "Theirs", "u2")
        assert [c.name for c in repo.list_companies("u1")] == ["Mine"]

    def test_list_companies_newest_first(self, repo):
        add_company(repo, "Old", created_at="2025-01-01T00:00:00+00:00")
        add_company(repo, "New", created_at="2025-01-05T00:00:00+00:00")
        assert [c.name for c in repo.list_companies("u1")] == ["New", "Old"]

    def test_null_filter(self, repo):
        repo.tasks.insert({"user_id": "u1", "title": "free"})
        company = add_company(repo)
        repo.tasks.insert({"user_id": "u1", "title": "bound", "company_id": company.id})
        assert [t.title for t in repo.tasks.list(company_id=None)] == ["free"]

    def test_order_nulls_last(self, repo):
        repo.tasks.insert({"user_id": "u1", "title": "none"})
        repo.tasks.insert({"user_id": "u1", "title": "late", "due_date": date(2025, 3, 1)})
        repo.tasks.insert({"user_id": "u1", "title": "early", "due_date": date(2025, 2, 1)})
        titles = [t.title for t in repo.tasks.list(order_by="due_date", user_id="u1")]
        assert titles == ["early", "late", "none"]

    def test_enum_values_stored(self, repo):
        template = repo.templates.insert(
            {"user_id": "u1", "type": TemplateType.INTERVIEW, "theme": "自己紹介"}
        )
        assert template.type is TemplateType.INTERVIEW
        assert repo.templates.list(type=TemplateType.INTERVIEW) == [template]
        assert repo.templates.list(type=TemplateType.ES) == []

    def test_delete(self, repo):
        company = add_company(repo)
        repo.companies.delete(company.id)
        assert repo.companies.get(company.id) is None


class TestProviderErrors:
    """Tests for failures surfacing as ProviderError."""

    def test_unknown_table(self, provider):
        with pytest.raises(ProviderError):
            provider.select("users")

    def test_unknown_column(self, provider):
        with pytest.raises(ProviderError) as exc:
            provider.select("companies", {"bogus": 1})
        assert exc.value.table == "companies"

    def test_constraint_violation(self, repo):
        repo.hidden_analysis_fields.insert({"user_id": "u1", "field_key": "revenue"})
        with pytest.raises(ProviderError) as exc:
            repo.hidden_analysis_fields.insert({"user_id": "u1", "field_key": "revenue"})
        assert exc.value.operation == "insert"

    def test_unfiltered_writes_refused(self, provider):
        with pytest.raises(ProviderError):
            provider.update("tasks", {}, {"completed": True})
        with pytest.raises(ProviderError):
            provider.delete("tasks", {})

    def test_unopenable_database(self, tmp_path):
        # A directory cannot be opened as a database file
        provider = LocalProvider(tmp_path, tmp_path / "storage")
        with pytest.raises(ProviderError) as exc:
            provider.select("companies", {"user_id": "u1"})
        assert exc.value.table == "companies"
        assert exc.value.operation == "select"


class TestCascade:
    """Deleting a company removes what hangs off it."""

    def test_company_delete_cascades(self, repo):
        company = add_company(repo)
        repo.tasks.insert({"user_id": "u1", "title": "t", "company_id": company.id})
        repo.selection_steps.insert({"company_id": company.id, "step_name": "ES提出"})
        repo.entry_sheets.insert({"user_id": "u1", "company_id": company.id, "theme": "x"})
        repo.company_custom_fields.insert({"company_id": company.id, "field_key": "custom_1"})

        repo.companies.delete(company.id)

        assert repo.tasks.list() == []
        assert repo.selection_steps.list() == []
        assert repo.entry_sheets.list() == []
        assert repo.company_custom_fields.list() == []


class TestSteps:
    """Tests for selection step ordering."""

    def test_swap_step_order(self, repo):
        company = add_company(repo)
        first = repo.selection_steps.insert({"company_id": company.id, "step_name": "A", "order_index": 0})
        second = repo.selection_steps.insert({"company_id": company.id, "step_name": "B", "order_index": 1})

        repo.swap_step_order(first, second)

        assert [s.step_name for s in repo.list_steps(company.id)] == ["B", "A"]

    def test_swap_failure_raises(self, tmp_path):
        class BrokenUpdates(LocalProvider):
            def update(self, table, filters, fields):
                raise ProviderError("offline", table, "update")

        repo = Repository(BrokenUpdates(tmp_path / "t.db", tmp_path / "storage"))
        first = SelectionStep(id="x", company_id="c", step_name="x", order_index=0)
        second = SelectionStep(id="y", company_id="c", step_name="y", order_index=1)

        with pytest.raises(ProviderError) as exc:
            repo.swap_step_order(first, second)
        assert exc.value.table == "selection_steps"


class TestCustomValues:
    """Tests for per-company custom analysis values."""

    def test_upsert(self, repo):
        company = add_company(repo)
        repo.save_custom_values(company.id, {"custom_1": "a", "custom_2": "b"})
        repo.save_custom_values(company.id, {"custom_1": "c"})

        assert repo.custom_values(company.id) == {"custom_1": "c", "custom_2": "b"}
        assert len(repo.company_custom_fields.list(company_id=company.id)) == 2


class TestProfiles:
    """Tests for profile creation on first visit."""

    def test_ensure_profile_once(self, repo):
        first = repo.ensure_profile("u1")
        second = repo.ensure_profile("u1")
        assert first.id == second.id == "u1"
        assert len(repo.user_profiles.list()) == 1


class TestImages:
    """Tests for company image replacement."""

    def test_replace_removes_previous(self, repo, provider):
        company = add_company(repo)

        url = repo.replace_company_image("u1", company, "logo.png", b"one", "image/png")
        assert url.endswith(".png")
        assert f"u1/{company.id}-" in url.replace("\\", "/")

        company = repo.companies.update(company.id, {"image_url": url})
        new_url = repo.replace_company_image("u1", company, "logo.jpg", b"two", "image/jpeg")

        stored = list((provider.storage_dir / IMAGE_BUCKET / "u1").iterdir())
        assert len(stored) == 1
        assert stored[0].read_bytes() == b"two"
        assert new_url.endswith(".jpg")


class TestMigrations:
    """Tests for adding columns to an existing database."""

    def test_missing_columns_added(self, tmp_path):
        db = tmp_path / "old.db"
        conn = sqlite3.connect(str(db))
        conn.execute(
            "CREATE TABLE companies (id TEXT PRIMARY KEY, user_id TEXT NOT NULL, "
            "name TEXT NOT NULL, created_at TEXT NOT NULL)"
        )
        conn.commit()
        conn.close()

        conn = get_connection(db)
        columns = {row["name"] for row in conn.execute("PRAGMA table_info(companies)")}
        conn.close()

        assert {"es_deadline", "webtest_deadline", "motivation_level", "career_plan"} <= columns

        company = Repository(LocalProvider(db, tmp_path / "storage")).companies.insert(
            {"user_id": "u1", "name": "Acme"}
        )
        assert company.name == "Acme"

    def test_concurrent_first_connections(self, tmp_path):
        db = tmp_path / "old.db"
        conn = sqlite3.connect(str(db))
        conn.execute("CREATE TABLE tasks (id TEXT PRIMARY KEY, user_id TEXT NOT NULL, title TEXT NOT NULL)")
        conn.commit()
        conn.close()

        def columns(_):
            conn = get_connection(db)
            try:
                return {row["name"] for row in conn.execute("PRAGMA table_info(tasks)")}
            finally:
                conn.close()

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(columns, range(4)))

        assert all({"due_date", "completed", "created_at"} <= found for found in results)


class TestNullableColumns:
    """Rows written by other clients may hold NULL where a form never would."""

    @pytest.fixture
    def served(self):
        provider = FixtureProvider(date(2025, 1, 10))
        provider.tables = {
            "companies": [
                {"id": "c1", "user_id": "u1", "name": "Acme", "industry": None, "motivation_level": None},
                {"id": "c2", "user_id": "u1", "name": "Beta", "industry": "IT", "motivation_level": 9},
                {"id": "c3", "user_id": "u1", "name": "Gamma", "es_deadline": "soon"},
            ],
            "user_profiles": [
                {"id": "u1", "full_name": None, "university": None, "department": None},
            ],
        }
        return Repository(provider)

    def test_null_text_and_level_coerced(self, served):
        company = served.companies.get("c1")
        assert company.industry == ""
        assert company.motivation_level == 3

    def test_level_clamped(self, served):
        assert served.companies.get("c2").motivation_level == 5

    def test_null_profile_fields(self, served):
        profile = served.ensure_profile("u1")
        assert (profile.full_name, profile.university, profile.department) == ("", "", "")

    def test_unreadable_row_raises_provider_error(self, served):
        with pytest.raises(ProviderError) as exc:
            served.companies.get("c3")
        assert exc.value.table == "companies"
        assert exc.value.operation == "select"

    def test_unreadable_row_in_listing(self, served):
        with pytest.raises(ProviderError):
            served.list_companies("u1")
