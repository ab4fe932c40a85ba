"""
Demo dataset shown to visitors who are not signed in.

Served through the same Provider interface as the real backends, so pages
need no special casing beyond handling LoginRequiredError on writes.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .dates import today as current_date
from .errors import LoginRequiredError
from .provider import Provider, encode_fields

DEMO_USER_ID = "demo-user"


def _stamp(day: date) -> str:
    return datetime.combine(day, time(9, 0), tzinfo=timezone.utc).isoformat()


def build_demo_dataset(today: date) -> Dict[str, List[Dict[str, Any]]]:
    """Demo rows with dates relative to `today`."""
    def days(n: int) -> str:
        return (today + timedelta(days=n)).isoformat()

    companies = [
        {
            "id": "demo-1", "user_id": DEMO_USER_ID, "name": "株式会社サンプルテック",
            "industry": "IT", "location": "東京都渋谷区", "website": "https://example.com",
            "current_status": "一次面接待ち", "motivation_level": 5,
            "selection_process": "ES → Webテスト → 面接3回",
            "next_selection_date": days(4), "es_deadline": days(2),
            "webtest_deadline": days(6), "webtest_format": "SPI",
            "memo": "説明会で聞いた新規事業に興味あり", "business_content": "クラウドサービスの開発・運営",
            "created_at": _stamp(today - timedelta(days=3)),
        },
        {
            "id": "demo-2", "user_id": DEMO_USER_ID, "name": "サンプル銀行",
            "industry": "金融", "location": "東京都千代田区", "current_status": "ES作成中",
            "motivation_level": 3, "es_deadline": days(10), "webtest_deadline": None,
            "webtest_format": "玉手箱", "created_at": _stamp(today - timedelta(days=7)),
        },
        {
            "id": "demo-3", "user_id": DEMO_USER_ID, "name": "サンプル商事",
            "industry": "商社", "location": "大阪府大阪市", "current_status": "書類選考中",
            "motivation_level": 4, "es_deadline": None, "webtest_deadline": days(5),
            "webtest_format": "TG-WEB", "created_at": _stamp(today - timedelta(days=1)),
        },
        {
            "id": "demo-4", "user_id": DEMO_USER_ID, "name": "サンプルソフト株式会社",
            "industry": "IT", "location": "福岡県福岡市", "current_status": "エントリー済み",
            "motivation_level": 2, "es_deadline": days(20), "webtest_deadline": None,
            "created_at": _stamp(today - timedelta(days=14)),
        },
    ]
    tasks = [
        {"id": "demo-task-1", "user_id": DEMO_USER_ID, "company_id": "demo-1",
         "title": "OB訪問のお礼メール", "due_date": days(1), "completed": False},
        {"id": "demo-task-2", "user_id": DEMO_USER_ID, "company_id": "demo-3",
         "title": "面接対策ノート作成", "due_date": days(3), "completed": False},
        {"id": "demo-task-3", "user_id": DEMO_USER_ID, "company_id": None,
         "title": "自己分析シートの見直し", "due_date": days(12), "completed": False},
        {"id": "demo-task-4", "user_id": DEMO_USER_ID, "company_id": "demo-1",
         "title": "説明会アンケート提出", "due_date": days(-2), "completed": True},
    ]
    selection_steps = [
        {"id": "demo-step-1", "company_id": "demo-1", "step_name": "ES提出", "memo": "", "order_index": 0},
        {"id": "demo-step-2", "company_id": "demo-1", "step_name": "Webテスト", "memo": "SPI 言語・非言語", "order_index": 1},
        {"id": "demo-step-3", "company_id": "demo-1", "step_name": "一次面接", "memo": "", "order_index": 2},
    ]
    entry_sheets = [
        {"id": "demo-es-1", "user_id": DEMO_USER_ID, "company_id": "demo-1",
         "theme": "志望動機", "content": "クラウドを通じて社会の基盤を支えたいと考え、貴社を志望しました。"},
        {"id": "demo-es-2", "user_id": DEMO_USER_ID, "company_id": "demo-2",
         "theme": "学生時代に力を入れたこと", "content": "ゼミで地域金融の研究に取り組みました。"},
    ]
    templates = [
        {"id": "demo-tpl-1", "user_id": DEMO_USER_ID, "type": "es",
         "theme": "自己PR", "content": "私の強みは粘り強さです。"},
        {"id": "demo-tpl-2", "user_id": DEMO_USER_ID, "type": "interview",
         "theme": "1分間自己紹介", "content": "〇〇大学〇〇学部の〇〇です。"},
    ]

    for rows in (tasks, selection_steps, entry_sheets, templates):
        for row in rows:
            row.setdefault("created_at", _stamp(today))

    return {
        "companies": companies,
        "tasks": tasks,
        "selection_steps": selection_steps,
        "entry_sheets": entry_sheets,
        "templates": templates,
        "custom_analysis_fields": [],
        "company_custom_fields": [],
        "hidden_analysis_fields": [],
        "user_profiles": [],
    }


class FixtureProvider(Provider):
    """Read-only provider over the demo dataset."""

    def __init__(self, today: Optional[date] = None):
        self.tables = build_demo_dataset(today or current_date())

    def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
    ) -> List[Dict[str, Any]]:
        wanted = encode_fields(filters or {})
        rows = [
            dict(row) for row in self.tables.get(table, [])
            if all(row.get(column) == value for column, value in wanted.items())
        ]
        if order_by:
            present = [row for row in rows if row.get(order_by) is not None]
            missing = [row for row in rows if row.get(order_by) is None]
            present.sort(key=lambda row: row[order_by], reverse=not ascending)
            rows = present + missing if ascending else missing + present
        return rows

    def insert(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        raise LoginRequiredError()

    def update(
        self, table: str, filters: Mapping[str, Any], fields: Mapping[str, Any]
    ) -> List[Dict[str, Any]]:
        raise LoginRequiredError()

    def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        raise LoginRequiredError()

    def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> None:
        raise LoginRequiredError()

    def remove(self, bucket: str, paths: Iterable[str]) -> None:
        raise LoginRequiredError()

    def public_url(self, bucket: str, path: str) -> str:
        return ""


SEED_ORDER = ["companies", "tasks", "selection_steps", "entry_sheets", "templates"]


def seed_user(provider: Provider, user_id: str, today: date) -> Dict[str, int]:
    """Insert the demo dataset as `user_id`'s own data. Returns rows per table."""
    dataset = build_demo_dataset(today)
    company_ids: Dict[str, str] = {}
    counts: Dict[str, int] = {}

    for table in SEED_ORDER:
        for row in dataset[table]:
            values = {key: value for key, value in row.items() if key != "id"}
            if "user_id" in values:
                values["user_id"] = user_id
            if values.get("company_id"):
                values["company_id"] = company_ids[values["company_id"]]
            stored = provider.insert(table, values)
            if table == "companies":
                company_ids[row["id"]] = stored["id"]
        counts[table] = len(dataset[table])
    return counts
