"""
Due-date comparison and formatting helpers.
"""
from datetime import date, datetime, timedelta
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo


def today(tz: str = "Asia/Tokyo") -> date:
    """Current calendar date in the given timezone."""
    return datetime.now(ZoneInfo(tz)).date()


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse a form or provider value; blank strings become None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    value = value.strip()
    if not value:
        return None
    return date.fromisoformat(value[:10])


def due_sort_key(due: Optional[date]) -> Tuple[bool, date]:
    """Sort key placing missing dates after every real date."""
    return (due is None, due or date.min)


def window_end(start: date, days: int) -> date:
    return start + timedelta(days=days)


def days_until(due: Optional[date], start: date) -> Optional[int]:
    if due is None:
        return None
    return (due - start).days


def format_short(due: Optional[date]) -> str:
    """M/D, as shown in the deadline sidebar."""
    if due is None:
        return "-"
    return f"{due.month}/{due.day}"


def format_long(due: Optional[date]) -> str:
    """YYYY/M/D, as shown in per-company lists."""
    if due is None:
        return "-"
    return f"{due.year}/{due.month}/{due.day}"


def remaining_label(due: Optional[date], start: date) -> str:
    """Short countdown shown beside a deadline."""
    days = days_until(due, start)
    if days is None:
        return ""
    if days == 0:
        return "今日"
    if days < 0:
        return f"{-days}日超過"
    return f"あと{days}日"
