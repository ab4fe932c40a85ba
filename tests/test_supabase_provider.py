"""
Tests for the Supabase provider against a fake client.
"""
from datetime import date
from types import SimpleNamespace

import pytest

from backend.errors import ProviderError
from backend.models import TemplateType
from backend.repository import Repository
from backend.supabase_provider import SupabaseProvider


class FakeQuery:
    """Records the builder chain; execute() returns canned rows."""

    def __init__(self, client, table):
        self.client = client
        self.calls = [("table", table)]
        client.queries.append(self)

    def __getattr__(self, name):
        def record(*args, **kwargs):
            self.calls.append((name, args, kwargs) if kwargs else (name, args))
            return self
        return record

    def execute(self):
        if self.client.error:
            raise self.client.error
        return SimpleNamespace(data=self.client.rows)


class FakeBucket:
    def __init__(self, client, name):
        self.client = client
        self.name = name

    def upload(self, path, data, options):
        self.client.storage_calls.append(("upload", self.name, path, options))

    def remove(self, paths):
        self.client.storage_calls.append(("remove", self.name, paths))

    def get_public_url(self, path):
        return f"https://cdn.example/{self.name}/{path}"


class FakeClient:
    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.queries = []
        self.storage_calls = []
        self.storage = SimpleNamespace(from_=lambda name: FakeBucket(self, name))

    def table(self, name):
        return FakeQuery(self, name)


class TestQueries:
    """Tests for translating provider calls into query builder chains."""

    def test_select_with_filters_and_order(self):
        client = FakeClient(rows=[{"id": "1"}])
        rows = SupabaseProvider(client).select(
            "tasks", {"user_id": "u1", "completed": False, "company_id": None},
            order_by="due_date", ascending=False,
        )

        assert rows == [{"id": "1"}]
        assert client.queries[0].calls == [
            ("table", "tasks"),
            ("select", ("*",)),
            ("eq", ("user_id", "u1")),
            ("eq", ("completed", False)),
            ("is_", ("company_id", "null")),
            ("order", ("due_date",), {"desc": True}),
        ]

    def test_insert_encodes_values(self):
        client = FakeClient(rows=[{"id": "t1"}])
        SupabaseProvider(client).insert(
            "templates", {"type": TemplateType.ES, "due": date(2025, 2, 1)}
        )
        assert client.queries[0].calls[1] == ("insert", ({"type": "es", "due": "2025-02-01"},))

    def test_insert_without_row(self):
        with pytest.raises(ProviderError):
            SupabaseProvider(FakeClient(rows=[])).insert("tasks", {"title": "x"})

    def test_update_by_id(self):
        client = FakeClient(rows=[])
        Repository(SupabaseProvider(client)).tasks.update("42", {"completed": True})
        assert client.queries[0].calls == [
            ("table", "tasks"),
            ("update", ({"completed": True},)),
            ("eq", ("id", "42")),
        ]

    def test_unfiltered_writes_refused(self):
        client = FakeClient()
        provider = SupabaseProvider(client)
        with pytest.raises(ProviderError):
            provider.delete("tasks", {})
        with pytest.raises(ProviderError):
            provider.update("tasks", {}, {"completed": True})
        assert client.queries == []

    def test_errors_wrapped(self):
        client = FakeClient(error=RuntimeError("permission denied"))
        with pytest.raises(ProviderError) as exc:
            SupabaseProvider(client).select("companies", {"user_id": "u1"})
        assert exc.value.table == "companies"
        assert exc.value.operation == "select"
        assert "permission denied" in str(exc.value)


class TestStorage:
    """Tests for image storage calls."""

    def test_upload_options(self):
        client = FakeClient()
        SupabaseProvider(client).upload("company-images", "u1/c1-1.png", b"x", "image/png")
        assert client.storage_calls == [(
            "upload", "company-images", "u1/c1-1.png",
            {"content-type": "image/png", "cache-control": "3600", "upsert": "false"},
        )]

    def test_remove_nothing(self):
        client = FakeClient()
        SupabaseProvider(client).remove("company-images", [])
        assert client.storage_calls == []

    def test_replace_company_image(self):
        client = FakeClient()
        repo = Repository(SupabaseProvider(client))
        company = SimpleNamespace(
            id="c1", image_url="https://cdn.example/company-images/u1/c1-100.png"
        )

        url = repo.replace_company_image("u1", company, "new.jpg", b"x", "image/jpeg")

        assert client.storage_calls[0] == ("remove", "company-images", ["u1/c1-100.png"])
        assert client.storage_calls[1][0] == "upload"
        path = client.storage_calls[1][2]
        assert path.startswith("u1/c1-") and path.endswith(".jpg")
        assert url == f"https://cdn.example/company-images/{path}"
