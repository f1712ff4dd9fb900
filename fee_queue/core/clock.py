"""Time helpers. All timestamps are stored as UTC; "today" is the server's local calendar day."""

from datetime import datetime, time, timedelta, timezone
from typing import Optional, Tuple


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def epoch_millis(now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    return int(now.timestamp() * 1000)


def local_day_bounds(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Return [start, end) of the current local calendar day, expressed in UTC.

    The local timezone is whatever the server process runs in.
    """
    local_now = (now or utcnow()).astimezone()
    start_local = datetime.combine(local_now.date(), time.min, tzinfo=local_now.tzinfo)
    end_local = start_local + timedelta(days=1)
    return start_local.astimezone(timezone.utc), end_local.astimezone(timezone.utc)
