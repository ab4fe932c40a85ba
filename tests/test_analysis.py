"""
Tests for company analysis fields.
"""
import pytest

from backend.analysis import (
    BUILTIN_FIELDS,
    BUILTIN_KEYS,
    add_custom_field,
    analysis_values,
    delete_custom_field,
    hidden_fields,
    load_custom_fields,
    save_analysis,
    toggle_hidden_field,
    visible_fields,
)
from backend.errors import ValidationError
from backend.models import TabCategory


@pytest.fixture
def company(repo):
    return repo.companies.insert({"user_id": "u1", "name": "Acme"})


class TestBuiltinFields:
    """Tests for the fixed field catalogue."""

    def test_every_key_is_a_company_column(self, company):
        assert set(analysis_values(company)) == BUILTIN_KEYS
        assert len(BUILTIN_KEYS) == 18

    def test_memo_tab_has_no_fields(self):
        assert visible_fields(TabCategory.MEMO, set(), []) == []


class TestHiddenFields:
    """Tests for hiding built-in fields."""

    def test_toggle(self, repo):
        assert toggle_hidden_field(repo, "u1", "revenue", set()) is True
        hidden = repo.hidden_field_keys("u1")
        assert hidden == {"revenue"}

        keys = [f.key for f in visible_fields(TabCategory.BASIC, hidden, [])]
        assert "revenue" not in keys
        assert [f.key for f in hidden_fields(TabCategory.BASIC, hidden)] == ["revenue"]

        assert toggle_hidden_field(repo, "u1", "revenue", hidden) is False
        assert repo.hidden_field_keys("u1") == set()

    def test_only_builtin(self, repo):
        with pytest.raises(ValidationError):
            toggle_hidden_field(repo, "u1", "custom_1", set())

    def test_per_user(self, repo):
        toggle_hidden_field(repo, "u1", "capital", set())
        assert repo.hidden_field_keys("u2") == set()


class TestCustomFields:
    """Tests for user-defined fields."""

    def test_add_appears_after_builtins(self, repo):
        field = add_custom_field(repo, "u1", " 初任給 ", TabCategory.BASIC, 0)
        assert field.field_name == "初任給"
        assert field.field_key.startswith("custom_")

        fields = visible_fields(TabCategory.BASIC, set(), load_custom_fields(repo, "u1"))
        assert fields[-1].key == field.field_key
        assert fields[-1].custom is True
        assert len(fields) == len(BUILTIN_FIELDS[TabCategory.BASIC]) + 1

    def test_only_on_its_tab(self, repo):
        add_custom_field(repo, "u1", "研修制度", TabCategory.CULTURE, 0)
        customs = load_custom_fields(repo, "u1")
        assert all(not f.custom for f in visible_fields(TabCategory.BASIC, set(), customs))

    def test_rejects_blank_and_memo(self, repo):
        with pytest.raises(ValidationError):
            add_custom_field(repo, "u1", " ", TabCategory.BASIC, 0)
        with pytest.raises(ValidationError):
            add_custom_field(repo, "u1", "x", TabCategory.MEMO, 0)
        assert load_custom_fields(repo, "u1") == []

    def test_inactive_not_loaded(self, repo):
        field = add_custom_field(repo, "u1", "x", TabCategory.BASIC, 0)
        repo.custom_analysis_fields.update(field.id, {"is_active": False})
        assert load_custom_fields(repo, "u1") == []

    def test_delete(self, repo):
        field = add_custom_field(repo, "u1", "x", TabCategory.BASIC, 0)
        delete_custom_field(repo, field)
        assert load_custom_fields(repo, "u1") == []


class TestSaveAnalysis:
    """Tests for saving the analysis form."""

    def test_save(self, repo, company):
        saved = save_analysis(
            repo,
            company.id,
            {"revenue": "1兆円", "philosophy": "挑戦", "name": "ignored"},
            "気になる点",
            {"custom_1": "25万円"},
        )

        assert saved.revenue == "1兆円"
        assert saved.philosophy == "挑戦"
        assert saved.name == "Acme"
        assert saved.personal_analysis_memo == "気になる点"
        assert repo.custom_values(company.id) == {"custom_1": "25万円"}
