from __future__ import annotations

from datetime import date, datetime, timedelta


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def is_future_date(value: date, *, today: date | None = None) -> bool:
    return value > (today or now_local().date())


def days_ago(days: int, *, today: date | None = None) -> date:
    return (today or now_local().date()) - timedelta(days=days)


def start_of_week(today: date | None = None) -> date:
    """Monday of the current week."""
    today = today or now_local().date()
    return today - timedelta(days=today.weekday())


def start_of_month(today: date | None = None) -> date:
    today = today or now_local().date()
    return today.replace(day=1)


def whole_minutes_between(start: datetime, end: datetime) -> int:
    """Truncated whole minutes, never negative."""
    return max(0, int((end - start).total_seconds() // 60))


def whole_seconds_between(start: datetime, end: datetime) -> int:
    return max(0, int((end - start).total_seconds() // 1))


def minutes_to_hours(minutes: int | float) -> float:
    return round(float(minutes) / 60, 2)


def format_duration(minutes: int) -> str:
    return f"{minutes // 60} hours {minutes % 60} minutes"
