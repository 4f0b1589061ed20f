from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, Optional

from ..core.constants import (
    MAX_HOURS_WORKED,
    MAX_NOTES_LENGTH,
    MAX_TASK_LENGTH,
    MIN_HOURS_WORKED,
)
from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

PASSWORD_REQUIREMENTS = "Password must be at least 8 characters and include uppercase, lowercase, and number"


# -------- Predicates --------
def is_valid_email(email: Any) -> bool:
    return isinstance(email, str) and bool(_EMAIL_RE.match(email))


def is_valid_password(password: Any) -> bool:
    if not isinstance(password, str) or len(password) < 8:
        return False
    has_upper = re.search(r"[A-Z]", password) is not None
    has_lower = re.search(r"[a-z]", password) is not None
    has_digit = re.search(r"\d", password) is not None
    return has_upper and has_lower and has_digit


def is_valid_full_name(full_name: Any) -> bool:
    return isinstance(full_name, str) and 2 <= len(full_name.strip()) <= 255


def is_valid_hours(hours: Any) -> bool:
    return _in_range(hours, MIN_HOURS_WORKED, MAX_HOURS_WORKED)


def is_valid_latitude(lat: Any) -> bool:
    return _in_range(lat, -90, 90)


def is_valid_longitude(lon: Any) -> bool:
    return _in_range(lon, -180, 180)


def as_number(value: Any) -> Optional[float]:
    """Numbers and numeric strings (JSON clients send both); None otherwise."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return float(value)


def _in_range(value: Any, low: float, high: float) -> bool:
    number = as_number(value)
    return number is not None and low <= number <= high


# -------- Guards --------
def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} must be {max_len} characters or less")
    return value


def require_number(value: Any, field_name: str) -> float:
    number = as_number(value)
    if number is None:
        raise ValidationError(f"{field_name} must be a number")
    return number


def parse_date(value: Any, field_name: str = "Date") -> date:
    """Accept a date or a YYYY-MM-DD string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field_name} must be in YYYY-MM-DD format")


def validate_report_fields(tasks: Any, hours: Any, notes: Any) -> tuple[list[str], float, Optional[str]]:
    """Field rules shared by report creation and report edits."""

    if not isinstance(tasks, (list, tuple)) or len(tasks) == 0:
        raise ValidationError("At least one task is required")
    for task in tasks:
        if not isinstance(task, str) or not task.strip():
            raise ValidationError("All tasks must be non-empty strings")
        if len(task) > MAX_TASK_LENGTH:
            raise ValidationError(f"Each task must be {MAX_TASK_LENGTH} characters or less")

    if not is_valid_hours(hours):
        raise ValidationError(f"Hours worked must be between {MIN_HOURS_WORKED} and {MAX_HOURS_WORKED}")

    if notes is not None and not isinstance(notes, str):
        raise ValidationError("Notes must be text")
    require_max_length(notes, "Notes", MAX_NOTES_LENGTH)

    return list(tasks), as_number(hours), notes


def validate_coordinates(latitude: Any, longitude: Any) -> tuple[float, float]:
    if latitude is None or longitude is None:
        raise ValidationError("Latitude and longitude are required")
    if not is_valid_latitude(latitude):
        raise ValidationError("Latitude must be between -90 and 90")
    if not is_valid_longitude(longitude):
        raise ValidationError("Longitude must be between -180 and 180")
    return as_number(latitude), as_number(longitude)


def validate_credentials(email: Any, password: Any, full_name: Any) -> None:
    if not is_valid_email(email):
        raise ValidationError("Invalid email format")
    if not is_valid_password(password):
        raise ValidationError(PASSWORD_REQUIREMENTS)
    if not is_valid_full_name(full_name):
        raise ValidationError("Full name must be between 2 and 255 characters")
