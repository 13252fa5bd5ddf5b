from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator, Optional

from dateutil.relativedelta import relativedelta


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str):
    """Parse HH:MM string into time."""
    return datetime.strptime(value.strip(), "%H:%M").time()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every date from start to end, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def add_months(moment: datetime, months: int) -> datetime:
    return moment + relativedelta(months=int(months))


def minutes_between(start: Optional[datetime], end: Optional[datetime]) -> int:
    """Whole minutes from start to end; 0 when either side is missing."""
    if not start or not end:
        return 0
    return max(int((end - start).total_seconds() // 60), 0)


def format_minutes(minutes: Optional[int]) -> str:
    if not minutes:
        return "0h 0m"
    return f"{int(minutes) // 60}h {int(minutes) % 60}m"


def format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
