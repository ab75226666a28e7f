from datetime import date, datetime, timedelta
from typing import Optional


def validate_timestamps(date1: datetime, date2: datetime):
    '''Validate that date2 is greater than date1.'''
    if date2 < date1:
        raise ValueError("date2 must be greater than or equal to date1")

def to_day(value: date | datetime | str | None) -> Optional[date]:
    '''Normalize a date, datetime or ISO string to a calendar day (no time component).'''
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # "2024-06-01" or "2024-06-01T12:00:00Z"
    return date.fromisoformat(str(value)[:10])

def today() -> date:
    '''Current calendar day, i.e. "now" normalized to midnight.'''
    return date.today()

def count_nights(check_in: date, check_out: date) -> int:
    '''Nights between two days, floored to one night.'''
    nights = (check_out - check_in).days
    return nights if nights > 0 else 1

def next_day(day: date) -> date:
    return day + timedelta(days=1)
