from datetime import date, datetime, timedelta, timezone
import calendar
from utils.constants import (
    DATE_FORMAT, WIRE_TIME_SUFFIX,
    FREQ_DAILY, FREQ_WEEKLY, FREQ_MONTHLY, FREQ_YEARLY,
)


class SystemClock:
    """Wall clock in UTC. Swap for a fixed clock in tests."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def today(clock=None) -> date:
    """Current UTC calendar day according to `clock` (default: system clock)."""
    now = (clock or SystemClock()).now()
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.date()


def parse_date(date_str: str) -> date | None:
    """Parse a date string in YYYY-MM-DD format, returning None on failure."""
    if not date_str:
        return None
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue
    return None


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    max_day = calendar.monthrange(year, month)[1]
    return min(day, max_day)


def add_months(d: date, n: int) -> date:
    """Add n months to date d, clamping day to month end."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = clamp_day_to_month(year, month, d.day)
    return d.replace(year=year, month=month, day=day)


def add_years(d: date, n: int) -> date:
    """Add n years to date d; Feb 29 lands on Feb 28 in non-leap years."""
    year = d.year + n
    return d.replace(year=year, day=clamp_day_to_month(year, d.month, d.day))


def advance(d: date, frequency: str, interval: int) -> date:
    """Step d forward by `interval` periods of `frequency`.

    Weeks are 7 literal days; months and years use calendar addition with the
    day clamped to the target month's length (Jan 31 + 1 month = Feb 28/29).
    """
    if frequency == FREQ_DAILY:
        return d + timedelta(days=interval)
    if frequency == FREQ_WEEKLY:
        return d + timedelta(weeks=interval)
    if frequency == FREQ_MONTHLY:
        return add_months(d, interval)
    if frequency == FREQ_YEARLY:
        return add_years(d, interval)
    raise ValueError(f"Invalid frequency: {frequency}")


# ── Wire codec ───────────────────────────────────────────────────────────────

def to_wire(d: date) -> str:
    """Serialize a date-only value as an ISO datetime pinned to UTC noon."""
    return format_date(d) + WIRE_TIME_SUFFIX


def parse_wire_date(value) -> date:
    """Accept YYYY-MM-DD or a full ISO datetime; only the date part is kept.

    Raises ValueError on malformed input.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid date: {value!r}")
    date_part = value.strip().split("T")[0]
    try:
        return datetime.strptime(date_part, DATE_FORMAT).date()
    except ValueError:
        raise ValueError(f"Invalid date: {value!r}") from None
