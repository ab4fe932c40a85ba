"""
CSV export of the company list.
"""
import csv
import io
from typing import Any, Dict, Iterable, List

from .dates import format_long
from .models import Company

# Column order for better readability
FIELDNAMES = [
    "name", "industry", "location", "current_status", "motivation_level",
    "next_selection_date", "es_deadline", "webtest_deadline", "webtest_format",
    "website", "memo", "created_at",
]


def company_rows(companies: Iterable[Company]) -> List[Dict[str, Any]]:
    """Flatten companies for export; credentials are never exported."""
    rows = []
    for company in companies:
        row = company.model_dump(include=set(FIELDNAMES))
        for key in ("next_selection_date", "es_deadline", "webtest_deadline"):
            row[key] = format_long(row[key]) if row[key] else ""
        row["created_at"] = company.created_at.strftime("%Y-%m-%d") if company.created_at else ""
        rows.append(row)
    return rows


def export_companies_csv(companies: Iterable[Company]) -> str:
    """Export companies to a CSV string."""
    data = company_rows(companies)

    if not data:
        return ""

    output = io.StringIO()
    writer = csv.DictWriter(
        output,
        fieldnames=FIELDNAMES,
        extrasaction="ignore",
        quoting=csv.QUOTE_MINIMAL,
    )
    writer.writeheader()
    writer.writerows(data)

    return output.getvalue()


def get_csv_bytes(companies: Iterable[Company]) -> bytes:
    """CSV as bytes for download; BOM so spreadsheet apps detect UTF-8."""
    return export_companies_csv(companies).encode("utf-8-sig")
