"""
Deadline aggregation.

Merges ad-hoc tasks, entry-sheet deadlines and web-test deadlines into one
list of DeadlineItem, either for the global "upcoming" sidebar or for one
company. Lists are derived fresh from the façade on every call.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Dict, Iterable, List, Optional

from .dates import due_sort_key, window_end
from .models import Company, DeadlineItem, DeadlineKind, DeadlineRef, Task
from .repository import Repository

logger = logging.getLogger(__name__)

ES_TITLE = "ES締切"
WEBTEST_TITLE = "Webテスト締切"
UNKNOWN_COMPANY = "Unknown"

DEFAULT_WINDOW_DAYS = 7
DEFAULT_LIMIT = 5


def task_item(task: Task, company_names: Dict[str, str]) -> DeadlineItem:
    """One `task` item per task row."""
    if task.company_id:
        company_name = company_names.get(task.company_id, UNKNOWN_COMPANY)
    else:
        company_name = ""
    return DeadlineItem(
        ref=DeadlineRef(kind=DeadlineKind.TASK, source_id=task.id),
        title=task.title,
        due_date=task.due_date,
        company_id=task.company_id,
        company_name=company_name,
        completed=task.completed,
    )


def company_items(company: Company) -> List[DeadlineItem]:
    """At most one `es` and one `webtest` item per company."""
    items = []
    for kind, title, due in (
        (DeadlineKind.ES, ES_TITLE, company.es_deadline),
        (DeadlineKind.WEBTEST, WEBTEST_TITLE, company.webtest_deadline),
    ):
        if due is None:
            continue
        items.append(DeadlineItem(
            ref=DeadlineRef(kind=kind, source_id=company.id),
            title=title,
            due_date=due,
            company_id=company.id,
            company_name=company.name,
        ))
    return items


def expand(tasks: Iterable[Task], companies: Iterable[Company]) -> List[DeadlineItem]:
    """Tasks first, then company deadlines, in input order."""
    companies = list(companies)
    names = {company.id: company.name for company in companies}
    items = [task_item(task, names) for task in tasks]
    for company in companies:
        items.extend(company_items(company))
    return items


def sort_deadlines(items: Iterable[DeadlineItem]) -> List[DeadlineItem]:
    """Ascending by due date, undated items last, ties in input order."""
    return sorted(items, key=lambda item: due_sort_key(item.due_date))


def in_window(
    item: DeadlineItem,
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
    show_all: bool = False,
) -> bool:
    if item.due_date is None or item.due_date < today:
        return False
    return show_all or item.due_date <= window_end(today, window_days)


def upcoming_deadlines(
    tasks: Iterable[Task],
    companies: Iterable[Company],
    today: date,
    show_all: bool = False,
    window_days: int = DEFAULT_WINDOW_DAYS,
    limit: int = DEFAULT_LIMIT,
) -> List[DeadlineItem]:
    """The global view.

    Tasks are expected to be pre-filtered to incomplete ones. Only items due
    from today on are kept; unless show_all, items past the window are
    dropped and the sorted result is capped at `limit`.
    """
    items = [
        item for item in expand(tasks, companies)
        if in_window(item, today, window_days, show_all)
    ]
    items = sort_deadlines(items)
    return items if show_all else items[:limit]


def company_deadlines(tasks: Iterable[Task], company: Optional[Company]) -> List[DeadlineItem]:
    """The per-company view: completed tasks included, no window, no cap."""
    companies = [company] if company is not None else []
    items = expand(tasks, companies)
    if company is None:
        for item in items:
            item.company_name = ""
    return sort_deadlines(items)


def load_upcoming_deadlines(
    repo: Repository,
    user_id: str,
    today: date,
    show_all: bool = False,
    window_days: int = DEFAULT_WINDOW_DAYS,
    limit: int = DEFAULT_LIMIT,
) -> List[DeadlineItem]:
    """Read incomplete tasks and companies in parallel, then aggregate."""
    with ThreadPoolExecutor(max_workers=2) as pool:
        tasks_future = pool.submit(
            repo.tasks.list, order_by="due_date", user_id=user_id, completed=False
        )
        companies_future = pool.submit(repo.companies.list, user_id=user_id)
        # result() re-raises the provider error of a failed branch
        tasks = tasks_future.result()
        companies = companies_future.result()

    logger.debug("Aggregating %d tasks and %d companies", len(tasks), len(companies))
    return upcoming_deadlines(tasks, companies, today, show_all, window_days, limit)


def load_company_deadlines(repo: Repository, user_id: str, company_id: str) -> List[DeadlineItem]:
    with ThreadPoolExecutor(max_workers=2) as pool:
        tasks_future = pool.submit(
            repo.tasks.list, order_by="due_date", user_id=user_id, company_id=company_id
        )
        company_future = pool.submit(repo.companies.get, company_id)
        tasks = tasks_future.result()
        company = company_future.result()

    return company_deadlines(tasks, company)


def complete_task(repo: Repository, ref: DeadlineRef) -> bool:
    """Mark the task behind a deadline item as completed.

    Returns False without touching the provider for ES / web-test items.
    """
    if ref.kind is not DeadlineKind.TASK:
        return False
    repo.tasks.update(ref.source_id, {"completed": True})
    return True
