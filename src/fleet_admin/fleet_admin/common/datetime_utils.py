from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional

from ..core.exceptions import ValidationError


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def parse_datetime(value: Any, field_name: str = "Date") -> Optional[datetime]:
    """Accept 'YYYY-MM-DD', ISO-8601 datetimes (trailing 'Z' allowed) or date/datetime objects.

    Timezone-aware values are converted to naive UTC, which is what the DATETIME columns hold.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"{field_name} is not a valid date")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_date(value: Any, field_name: str = "Date") -> Optional[date]:
    parsed = parse_datetime(value, field_name)
    return parsed.date() if parsed else None


def end_of_day(value: Optional[datetime]) -> Optional[datetime]:
    """Range filters given as plain dates include the whole end day."""
    if value is None:
        return None
    if value.hour == 0 and value.minute == 0 and value.second == 0 and value.microsecond == 0:
        return value.replace(hour=23, minute=59, second=59, microsecond=999999)
    return value


def month_key(value: datetime | date) -> str:
    return value.strftime("%Y-%m")


def to_iso(value: Optional[datetime | date]) -> Optional[str]:
    return value.isoformat() if value is not None else None
