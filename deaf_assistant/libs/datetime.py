import calendar
from datetime import datetime, timezone


def now() -> datetime:
    """Current UTC time without tzinfo (naive).
    All timestamps in the database are stored this way.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def add_months(dt: datetime, months: int) -> datetime:
    """Shift ``dt`` by whole calendar months, clamping the day to the
    length of the target month (Jan 31 + 1 month -> Feb 28/29)."""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)
