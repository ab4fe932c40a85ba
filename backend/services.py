"""
Page-level operations: validate input, then call the façade.

Validation failures raise ValidationError before any provider call.
Provider failures propagate as ProviderError; pages report them once and
re-read.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel

from .dates import parse_date
from .errors import ValidationError
from .models import Company, EntrySheet, SelectionStep, Task, Template, TemplateType, UserProfile
from .repository import Repository, Table

logger = logging.getLogger(__name__)

PRESET_STEPS = [
    "ES提出",
    "Webテスト",
    "書類選考",
    "一次面接",
    "二次面接",
    "三次面接",
    "最終面接",
    "グループディスカッション",
    "インターンシップ",
    "内々定",
]

DEFAULT_CHAR_LIMIT = 400

COMPANY_TEXT_FIELDS = [
    "name", "industry", "location", "image_url", "website", "mypage_id",
    "mypage_password", "selection_process", "current_status", "webtest_format", "memo",
]
COMPANY_DATE_FIELDS = ["next_selection_date", "es_deadline", "webtest_deadline"]


def _required(value: Optional[str], message: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(message)
    return value


# ============ Companies ============

def add_company(
    repo: Repository,
    user_id: str,
    name: str,
    industry: str = "",
    website: str = "",
    location: str = "",
    description: str = "",
) -> Company:
    company = repo.companies.insert({
        "user_id": user_id,
        "name": _required(name, "企業名を入力してください"),
        "industry": industry.strip(),
        "website": website.strip(),
        "location": location.strip(),
        "description": description.strip(),
    })
    logger.info("Added company %s", company.id)
    return company


def company_form(company: Company) -> Dict[str, Any]:
    """Edit-form values for a company, blanks instead of None."""
    form: Dict[str, Any] = {key: getattr(company, key) or "" for key in COMPANY_TEXT_FIELDS}
    for key in COMPANY_DATE_FIELDS:
        form[key] = getattr(company, key)
    form["motivation_level"] = company.motivation_level or 3
    return form


def save_company(repo: Repository, company_id: str, form: Mapping[str, Any]) -> Optional[Company]:
    """Persist the edit form and return the re-read company."""
    fields: Dict[str, Any] = {key: form.get(key) or "" for key in COMPANY_TEXT_FIELDS if key in form}
    if "name" in fields:
        fields["name"] = _required(fields["name"], "企業名を入力してください")
    for key in COMPANY_DATE_FIELDS:
        if key in form:
            fields[key] = parse_date(form[key])
    if "motivation_level" in form:
        fields["motivation_level"] = min(5, max(1, int(form["motivation_level"] or 3)))

    repo.companies.update(company_id, fields)
    return repo.companies.get(company_id)


def delete_company(repo: Repository, company: Company) -> None:
    """Delete a company; its tasks, steps and entry sheets go with it."""
    repo.companies.delete(company.id)
    logger.info("Deleted company %s", company.id)


# ============ Tasks ============

def add_task(
    repo: Repository,
    user_id: str,
    title: str,
    due_date: Any = None,
    company_id: Optional[str] = None,
) -> Task:
    row: Dict[str, Any] = {
        "user_id": user_id,
        "title": _required(title, "タスク名を入力してください"),
        "description": "",
        "due_date": parse_date(due_date),
        "completed": False,
    }
    if company_id:
        row["company_id"] = company_id
    return repo.tasks.insert(row)


def list_company_tasks(repo: Repository, user_id: str, company_id: str) -> List[Task]:
    return repo.tasks.list(order_by="created_at", ascending=False, user_id=user_id, company_id=company_id)


def set_task_completed(repo: Repository, task_id: str, completed: bool) -> None:
    repo.tasks.update(task_id, {"completed": completed})


def delete_task(repo: Repository, task_id: str) -> None:
    repo.tasks.delete(task_id)


# ============ Selection steps ============

def next_order_index(steps: Sequence[SelectionStep]) -> int:
    return max((step.order_index for step in steps), default=-1) + 1


def add_selection_step(
    repo: Repository,
    company_id: str,
    steps: Sequence[SelectionStep],
    step_name: str,
) -> SelectionStep:
    return repo.selection_steps.insert({
        "company_id": company_id,
        "step_name": _required(step_name, "選考ステップ名を入力してください"),
        "memo": "",
        "order_index": next_order_index(steps),
    })


def move_selection_step(
    repo: Repository,
    steps: Sequence[SelectionStep],
    step_id: str,
    direction: str,
) -> bool:
    """Swap a step with its neighbour. Returns False when there is none."""
    if direction not in ("up", "down"):
        raise ValidationError(f"Unknown direction: {direction}")

    index = next((i for i, step in enumerate(steps) if step.id == step_id), None)
    if index is None:
        return False
    neighbour = index - 1 if direction == "up" else index + 1
    if neighbour < 0 or neighbour >= len(steps):
        return False

    repo.swap_step_order(steps[index], steps[neighbour])
    return True


def save_step_memo(repo: Repository, step_id: str, memo: str) -> None:
    repo.selection_steps.update(step_id, {"memo": memo})


def delete_selection_step(repo: Repository, step_id: str) -> None:
    repo.selection_steps.delete(step_id)


# ============ Entry sheets and templates ============

class CharCount(BaseModel):
    """Character count shown next to an answer"""
    count: int
    limit: int

    @property
    def over(self) -> bool:
        return self.count > self.limit

    def __str__(self) -> str:
        return f"{self.count} / {self.limit}文字"


def char_count(content: str, limit: int = DEFAULT_CHAR_LIMIT) -> CharCount:
    return CharCount(count=len(content or ""), limit=limit)


Script = Union[EntrySheet, Template]


def _script_table(repo: Repository, script: Script) -> Table:
    return repo.templates if isinstance(script, Template) else repo.entry_sheets


def add_entry_sheet(repo: Repository, user_id: str, company_id: str, theme: str, content: str) -> EntrySheet:
    if not company_id:
        raise ValidationError("企業を選択してください")
    return repo.entry_sheets.insert({
        "user_id": user_id,
        "company_id": company_id,
        "theme": _required(theme, "テーマを入力してください"),
        "content": content or "",
    })


def add_template(
    repo: Repository,
    user_id: str,
    template_type: TemplateType,
    theme: str,
    content: str,
) -> Template:
    return repo.templates.insert({
        "user_id": user_id,
        "type": TemplateType(template_type),
        "theme": _required(theme, "テーマを入力してください"),
        "content": content or "",
    })


def update_script(repo: Repository, script: Script, theme: str, content: str) -> None:
    _script_table(repo, script).update(
        script.id, {"theme": _required(theme, "テーマを入力してください"), "content": content or ""}
    )


def delete_script(repo: Repository, script: Script) -> None:
    _script_table(repo, script).delete(script.id)


# ============ Profiles ============

def update_profile(repo: Repository, user_id: str, form: Mapping[str, Any]) -> Optional[UserProfile]:
    year = form.get("graduation_year")
    if year in ("", None):
        year = None
    else:
        try:
            year = int(year)
        except (TypeError, ValueError):
            raise ValidationError("卒業年度は数字で入力してください")

    return repo.user_profiles.update(user_id, {
        "full_name": (form.get("full_name") or "").strip(),
        "university": (form.get("university") or "").strip(),
        "department": (form.get("department") or "").strip(),
        "graduation_year": year,
    })
