"""Compact relative labels for message timestamps in conversation lists."""
import math
from datetime import datetime, timezone
from typing import Optional, Union

from verisponsor.exceptions import InvalidTimestampError


TimestampLike = Union[datetime, int, float, str]

SECONDS_PER_DAY = 86_400


def to_datetime(value: TimestampLike) -> datetime:
    """Coerce a datetime, epoch milliseconds or ISO-8601 string into a datetime."""

    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        raise InvalidTimestampError(value, "booleans are not timestamps")
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise InvalidTimestampError(value, "not a finite number")
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise InvalidTimestampError(value, str(exc)) from exc
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise InvalidTimestampError(value, "not an ISO-8601 string") from exc
    raise InvalidTimestampError(value, f"unsupported type {type(value).__name__}")


def format_message_time(timestamp: TimestampLike, now: Optional[datetime] = None) -> str:
    """Map a timestamp to a short label relative to ``now``.

    Same day gives the time of day ("09:00 AM"), one day back gives
    "Yesterday", up to a week back gives the weekday ("Fri"), anything older
    gives month and day ("Mar 20"). Timestamps ahead of ``now`` are labelled
    with their time of day.
    """

    moment = to_datetime(timestamp)
    if now is None:
        now = datetime.now(moment.tzinfo) if moment.tzinfo else datetime.now()
    if (moment.tzinfo is None) != (now.tzinfo is None):
        raise InvalidTimestampError(timestamp, "cannot compare naive and timezone-aware datetimes")
    if moment.tzinfo is not None:
        moment = moment.astimezone(now.tzinfo)

    diff_days = math.floor((now - moment).total_seconds() / SECONDS_PER_DAY)
    if diff_days <= 0:
        return moment.strftime("%I:%M %p")
    if diff_days == 1:
        return "Yesterday"
    if diff_days < 7:
        return moment.strftime("%a")
    return f"{moment.strftime('%b')} {moment.day}"
