from datetime import datetime, timedelta, timezone

import pytest

from bookswap_engine.utils.formatting import badge_text, initials, message_time, relative_time

NOW = datetime(2024, 3, 8, 15, 30, tzinfo=timezone.utc)


def ago(**kwargs):
    return (NOW - timedelta(**kwargs)).isoformat()


@pytest.mark.parametrize(
    "timestamp,expected",
    [
        (ago(seconds=10), "Just now"),
        (ago(minutes=1), "1 minute ago"),
        (ago(minutes=45), "45 minutes ago"),
        (ago(hours=1), "1 hour ago"),
        (ago(hours=23, minutes=59), "23 hours ago"),
        (ago(days=2), "2 days ago"),
        (ago(days=8), "02/29/2024"),
    ],
)
def test_relative_time(timestamp, expected):
    assert relative_time(timestamp, NOW) == expected


@pytest.mark.parametrize(
    "timestamp,expected",
    [
        (None, None),
        (ago(hours=6), "9:30"),
        (ago(days=1), "Yesterday"),
        (ago(days=10), "27/2/2024"),
    ],
)
def test_message_time(timestamp, expected):
    assert message_time(timestamp, NOW) == expected


@pytest.mark.parametrize(
    "name,expected",
    [("Alice Smith", "AS"), ("bob", "B"), ("Mary Ann  Lee", "ML"), ("", "?"), (None, "?")],
)
def test_initials(name, expected):
    assert initials(name) == expected


@pytest.mark.parametrize("count,expected", [(0, None), (-1, None), (3, "3"), (9, "9"), (10, "9+")])
def test_badge_text(count, expected):
    assert badge_text(count) == expected
