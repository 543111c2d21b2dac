# tests/unit/test_relative_time.py
from datetime import datetime, timedelta, timezone

import pytest

from blamelens.domain.relative_time import from_now

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "delta, expected",
    [
        (timedelta(seconds=10), "a few seconds ago"),
        (timedelta(seconds=60), "a minute ago"),
        (timedelta(minutes=5), "5 minutes ago"),
        (timedelta(minutes=60), "an hour ago"),
        (timedelta(hours=3), "3 hours ago"),
        (timedelta(hours=30), "a day ago"),
        (timedelta(days=4), "4 days ago"),
        (timedelta(days=30), "a month ago"),
        (timedelta(days=90), "3 months ago"),
        (timedelta(days=400), "a year ago"),
        (timedelta(days=3 * 365), "3 years ago"),
    ],
)
def test_past_phrases(delta, expected):
    assert from_now(NOW - delta, NOW) == expected


def test_future_phrase():
    assert from_now(NOW + timedelta(minutes=5), NOW) == "in 5 minutes"


def test_naive_datetimes_are_utc():
    naive = datetime(2024, 6, 1, 9, 0)
    assert from_now(naive, NOW) == "3 hours ago"
