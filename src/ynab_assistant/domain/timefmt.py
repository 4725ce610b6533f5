import re
from datetime import date

from ynab_assistant.core.errors import ValidationError

CURRENT_MONTH = "current"

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})(?:-(\d{2}))?$")


def format_duration(seconds: float) -> str:
    if seconds <= 0:
        return "0 ms"
    if seconds < 1:
        return f"{seconds * 1000:.1f} ms"
    if seconds < 60:
        return f"{seconds:.2f} s"
    return f"{seconds / 60:.2f} min"


def today_iso(today: date | None = None) -> str:
    return (today or date.today()).isoformat()


def parse_iso_date(value: str | date, *, field: str = "date") -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise ValidationError(f"invalid {field}") from exc


def normalize_month(value: str | date | None) -> str:
    """Map ``None``/"current", ``YYYY-MM`` or ``YYYY-MM-DD`` to the API's month key."""
    if value is None:
        return CURRENT_MONTH
    if isinstance(value, date):
        return value.replace(day=1).isoformat()
    text = value.strip().lower()
    if not text or text == CURRENT_MONTH:
        return CURRENT_MONTH
    match = _MONTH_RE.match(text)
    if not match:
        raise ValidationError("invalid month")
    try:
        first_day = date(int(match.group(1)), int(match.group(2)), 1)
    except ValueError as exc:
        raise ValidationError("invalid month") from exc
    return first_day.isoformat()
