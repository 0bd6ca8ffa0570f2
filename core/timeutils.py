"""Calendar helpers for local-day and regional-week boundaries."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

from core.config import get_zone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_iso_date(value) -> date:
    """Accept a `date` or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def local_day_bounds(day: date, tz_name: Optional[str] = None) -> Tuple[datetime, datetime]:
    """Return the UTC instants bounding ``day`` in the given timezone.

    The end bound is exclusive (next local midnight), so late-night and
    early-morning meals land on the local calendar day they were eaten.
    """
    zone = get_zone(tz_name)
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def today_in(tz_name: Optional[str] = None, now: Optional[datetime] = None) -> date:
    now = now or utcnow()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(get_zone(tz_name)).date()


def week_start(now: Optional[datetime] = None, tz_name: Optional[str] = None) -> datetime:
    """Most recent Monday 00:00 in the region timezone, as an aware datetime."""
    local_today = today_in(tz_name, now)
    monday = local_today - timedelta(days=local_today.weekday())
    return datetime.combine(monday, time.min, tzinfo=get_zone(tz_name))


def week_dates(monday: date):
    """Monday..Sunday inclusive."""
    return monday, monday + timedelta(days=6)


def to_utc_naive(moment: datetime) -> datetime:
    """Normalise an instant for comparison with naive-UTC database columns."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)
