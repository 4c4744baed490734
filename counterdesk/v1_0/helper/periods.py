"""
Time windows for sales statistics and reports.

Windows are fixed durations ending at "now" (week = 7 days, month = 30 days,
year = 365 days). `day` is the current calendar day in the configured
timezone.
"""
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Dict, Optional, Tuple

from counterdesk.core.errors import ValidationError

PERIOD_DURATIONS: Dict[str, timedelta] = {
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "year": timedelta(days=365),
}
PERIODS = ("day", *PERIOD_DURATIONS)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def stats_window(period: str, now: datetime, tz: tzinfo = timezone.utc) -> Tuple[datetime, datetime]:
    """Return (start, end) in UTC for `period`, with end == now."""
    if period not in PERIODS:
        raise ValidationError(
            f"period must be one of {', '.join(PERIODS)}", field="period", value=period
        )
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    end = now.astimezone(timezone.utc)

    if period == "day":
        local_midnight = datetime.combine(now.astimezone(tz).date(), time.min, tzinfo=tz)
        return local_midnight.astimezone(timezone.utc), end
    return end - PERIOD_DURATIONS[period], end


def day_range(
    date_from: Optional[date],
    date_to: Optional[date],
    tz: tzinfo = timezone.utc,
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Inclusive day range -> [start, end_exclusive) in UTC.
    Either side may be open. An inverted range is rejected, never swapped.
    """
    if date_from is not None and date_to is not None and date_from > date_to:
        raise ValidationError(
            "date_from must be on or before date_to",
            field="date_from",
            date_from=date_from.isoformat(),
            date_to=date_to.isoformat(),
        )
    start = (
        datetime.combine(date_from, time.min, tzinfo=tz).astimezone(timezone.utc)
        if date_from is not None
        else None
    )
    end_exclusive = (
        datetime.combine(date_to + timedelta(days=1), time.min, tzinfo=tz).astimezone(timezone.utc)
        if date_to is not None
        else None
    )
    return start, end_exclusive
