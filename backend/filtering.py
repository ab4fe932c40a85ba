"""
Filtering, sorting and grouping for the company list and the ES list.
"""
from enum import Enum
from typing import Dict, Iterable, List, Sequence

from pydantic import BaseModel

from .dates import due_sort_key
from .models import Company, EntrySheet

ALL_INDUSTRIES = "all"


class SortKey(str, Enum):
    """Sort orders offered on list pages"""
    CREATED_AT = "created_at"
    ES_DEADLINE = "es_deadline"
    MOTIVATION_LEVEL = "motivation_level"


SORT_LABELS = {
    SortKey.CREATED_AT: "登録日順",
    SortKey.ES_DEADLINE: "ES締切順",
    SortKey.MOTIVATION_LEVEL: "志望度順",
}


class EntrySheetGroup(BaseModel):
    """Entry sheets of one company"""
    company: Company
    entries: List[EntrySheet]


def matches_query(company: Company, query: str) -> bool:
    """Case-insensitive substring match on name, industry or location."""
    query = query.strip().lower()
    if not query:
        return True
    fields = [company.name, company.industry]
    if company.location:
        fields.append(company.location)
    return any(query in (value or "").lower() for value in fields)


def filter_companies(
    companies: Iterable[Company],
    query: str = "",
    industry: str = ALL_INDUSTRIES,
) -> List[Company]:
    result = [company for company in companies if matches_query(company, query)]
    if industry != ALL_INDUSTRIES:
        result = [company for company in result if company.industry == industry]
    return result


def industry_options(companies: Iterable[Company]) -> List[str]:
    """"all" followed by the distinct non-empty industries, sorted."""
    industries = {company.industry for company in companies if company.industry}
    return [ALL_INDUSTRIES] + sorted(industries)


def _created_timestamp(company: Company) -> float:
    if company.created_at is None:
        return float("-inf")
    return company.created_at.timestamp()


def sort_companies(companies: Iterable[Company], sort_key: SortKey) -> List[Company]:
    """Stable sort; equal keys keep their incoming order."""
    sort_key = SortKey(sort_key)
    if sort_key is SortKey.CREATED_AT:
        return sorted(companies, key=_created_timestamp, reverse=True)
    if sort_key is SortKey.ES_DEADLINE:
        return sorted(companies, key=lambda c: due_sort_key(c.es_deadline))
    return sorted(companies, key=lambda c: c.motivation_level, reverse=True)


def company_view(
    companies: Iterable[Company],
    query: str = "",
    industry: str = ALL_INDUSTRIES,
    sort_key: SortKey = SortKey.CREATED_AT,
) -> List[Company]:
    """Filter then sort; recomputed from scratch on every change."""
    return sort_companies(filter_companies(companies, query, industry), sort_key)


def group_entry_sheets(
    companies: Sequence[Company],
    entry_sheets: Iterable[EntrySheet],
) -> List[EntrySheetGroup]:
    """Group entry sheets under already filtered/sorted companies.

    Companies without entry sheets are dropped; entry sheets whose company
    is not in `companies` are not shown.
    """
    by_company: Dict[str, List[EntrySheet]] = {}
    for sheet in entry_sheets:
        by_company.setdefault(sheet.company_id, []).append(sheet)

    return [
        EntrySheetGroup(company=company, entries=by_company[company.id])
        for company in companies
        if by_company.get(company.id)
    ]
