"""
Company analysis: built-in fields per tab, user-defined fields, hidden fields.
"""
import logging
import time
from typing import Dict, Iterable, List, Mapping, Optional, Set

from pydantic import BaseModel

from .errors import ValidationError
from .models import Company, CustomAnalysisField, TabCategory
from .repository import Repository

logger = logging.getLogger(__name__)


class AnalysisField(BaseModel):
    """A field rendered on the analysis page"""
    key: str
    label: str
    custom: bool = False
    field_id: Optional[str] = None


def _fields(*pairs) -> List[AnalysisField]:
    return [AnalysisField(key=key, label=label) for key, label in pairs]


BUILTIN_FIELDS: Dict[TabCategory, List[AnalysisField]] = {
    TabCategory.BASIC: _fields(
        ("revenue", "売上高"),
        ("employee_count", "従業員数"),
        ("capital", "資本金"),
        ("hiring_count", "採用人数"),
        ("average_salary", "平均年収"),
        ("benefits", "福利厚生"),
        ("average_tenure", "平均勤続年数"),
        ("overtime_hours", "平均残業時間"),
    ),
    TabCategory.BUSINESS: _fields(
        ("business_content", "事業内容"),
        ("products", "製品・サービス"),
        ("department_operations", "部署・業務内容"),
        ("competitive_comparison", "競合比較"),
        ("growth_potential", "成長性・将来性"),
        ("commercials", "CM・広告"),
        ("mid_term_plan", "中期経営計画"),
    ),
    TabCategory.CULTURE: _fields(
        ("philosophy", "企業理念"),
        ("company_culture", "社風・文化"),
        ("career_plan", "キャリアパス"),
    ),
}

TAB_LABELS = {
    TabCategory.BASIC: "基本情報",
    TabCategory.BUSINESS: "事業内容",
    TabCategory.CULTURE: "社風・文化",
    TabCategory.MEMO: "メモ",
}

BUILTIN_KEYS: Set[str] = {
    field.key for fields in BUILTIN_FIELDS.values() for field in fields
}


def visible_fields(
    tab: TabCategory,
    hidden_keys: Set[str],
    custom_fields: Iterable[CustomAnalysisField],
) -> List[AnalysisField]:
    """Built-in fields not hidden, then the tab's active custom fields."""
    fields = [f for f in BUILTIN_FIELDS.get(tab, []) if f.key not in hidden_keys]
    for custom in custom_fields:
        if custom.tab_category == tab and custom.is_active:
            fields.append(AnalysisField(
                key=custom.field_key, label=custom.field_name, custom=True, field_id=custom.id,
            ))
    return fields


def hidden_fields(tab: TabCategory, hidden_keys: Set[str]) -> List[AnalysisField]:
    return [f for f in BUILTIN_FIELDS.get(tab, []) if f.key in hidden_keys]


def analysis_values(company: Company) -> Dict[str, str]:
    return {key: getattr(company, key) or "" for key in BUILTIN_KEYS}


def load_custom_fields(repo: Repository, user_id: str) -> List[CustomAnalysisField]:
    return repo.custom_analysis_fields.list(order_by="order_index", user_id=user_id, is_active=True)


def toggle_hidden_field(repo: Repository, user_id: str, field_key: str, hidden_keys: Set[str]) -> bool:
    """Flip a built-in field's visibility. Returns whether it is now hidden."""
    if field_key not in BUILTIN_KEYS:
        raise ValidationError(f"Only built-in fields can be hidden: {field_key}")
    if field_key in hidden_keys:
        repo.hidden_analysis_fields.delete_where(user_id=user_id, field_key=field_key)
        return False
    repo.hidden_analysis_fields.insert({"user_id": user_id, "field_key": field_key})
    return True


def add_custom_field(
    repo: Repository,
    user_id: str,
    field_name: str,
    tab: TabCategory,
    existing_count: int,
) -> CustomAnalysisField:
    field_name = field_name.strip()
    if not field_name:
        raise ValidationError("項目名を入力してください")
    if tab not in BUILTIN_FIELDS:
        raise ValidationError("このタブには項目を追加できません")

    field = repo.custom_analysis_fields.insert({
        "user_id": user_id,
        "field_name": field_name,
        "field_key": f"custom_{int(time.time() * 1000)}",
        "order_index": existing_count,
        "is_active": True,
        "tab_category": tab,
    })
    logger.info("Added custom analysis field %s (%s)", field.field_key, tab.value)
    return field


def delete_custom_field(repo: Repository, field: CustomAnalysisField) -> None:
    repo.custom_analysis_fields.delete(field.id)


def save_analysis(
    repo: Repository,
    company_id: str,
    values: Mapping[str, str],
    personal_memo: str,
    custom_values: Mapping[str, str],
) -> Optional[Company]:
    """Write built-in values and memo, then upsert custom values, then re-read."""
    fields = {key: value for key, value in values.items() if key in BUILTIN_KEYS}
    fields["personal_analysis_memo"] = personal_memo
    repo.companies.update(company_id, fields)
    repo.save_custom_values(company_id, custom_values)
    return repo.companies.get(company_id)
