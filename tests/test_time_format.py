from datetime import datetime, timezone

import pytest

from verisponsor.exceptions import InvalidTimestampError
from verisponsor.utils.time_format import format_message_time, to_datetime


NOW = datetime(2024, 4, 10, 12, 0, 0)


def test_same_day_renders_time_of_day():
    assert format_message_time(datetime(2024, 4, 10, 9, 0), NOW) == "09:00 AM"
    assert format_message_time(datetime(2024, 4, 10, 0, 5), NOW) == "12:05 AM"


def test_one_day_back_is_yesterday():
    assert format_message_time(datetime(2024, 4, 9, 9, 0), NOW) == "Yesterday"


def test_less_than_a_day_but_previous_date_is_still_today_bucket():
    # 23 hours back floors to zero days
    assert format_message_time(datetime(2024, 4, 9, 13, 0), NOW) == "01:00 PM"


def test_within_a_week_renders_weekday():
    assert format_message_time(datetime(2024, 4, 5, 9, 0), NOW) == "Fri"
    assert format_message_time(datetime(2024, 4, 3, 13, 0), NOW) == "Wed"


def test_week_or_older_renders_month_and_day():
    assert format_message_time(datetime(2024, 3, 20, 9, 0), NOW) == "Mar 20"
    assert format_message_time(datetime(2024, 4, 3, 12, 0), NOW) == "Apr 3"


def test_future_timestamps_clamp_to_time_of_day():
    assert format_message_time(datetime(2024, 4, 10, 15, 30), NOW) == "03:30 PM"
    assert format_message_time(datetime(2024, 4, 12, 9, 0), NOW) == "09:00 AM"


def test_aware_timestamps_are_shown_in_now_timezone():
    now = datetime(2024, 4, 10, 12, 0, tzinfo=timezone.utc)
    epoch_ms = int(datetime(2024, 4, 9, 9, 0, tzinfo=timezone.utc).timestamp() * 1000)
    assert format_message_time(epoch_ms, now) == "Yesterday"
    assert format_message_time("2024-04-10T09:00:00Z", now) == "09:00 AM"


def test_iso_strings_are_accepted():
    assert format_message_time("2024-03-20T09:00:00", NOW) == "Mar 20"


def test_naive_and_aware_mix_is_rejected():
    with pytest.raises(InvalidTimestampError):
        format_message_time(datetime(2024, 4, 10, 9, 0, tzinfo=timezone.utc), NOW)


@pytest.mark.parametrize("value", ["not a date", True, None, float("nan"), [2024]])
def test_unusable_values_are_rejected(value):
    with pytest.raises(InvalidTimestampError):
        format_message_time(value, NOW)


def test_invalid_timestamp_is_a_value_error():
    with pytest.raises(ValueError):
        to_datetime("yesterday-ish")
