from datetime import datetime, timezone, timedelta

from athletehub.routes.dashboard import humanize_time, weekly_activity
from athletehub.utils.dates import ensure_aware_utc, smart_parse_date


def test_smart_parse_date_formats():
    expected = datetime(2025, 3, 4, tzinfo=timezone.utc)
    assert smart_parse_date("2025-03-04") == expected
    assert smart_parse_date("03/04/2025") == expected
    assert smart_parse_date("03-04-2025") == expected
    # day-first is only used when month-first cannot match
    assert smart_parse_date("25/03/2025") == datetime(2025, 3, 25, tzinfo=timezone.utc)
    assert smart_parse_date("2025-03-04T10:30:00Z") == datetime(2025, 3, 4, 10, 30, tzinfo=timezone.utc)


def test_smart_parse_date_rejects_garbage():
    assert smart_parse_date("") is None
    assert smart_parse_date(None) is None
    assert smart_parse_date("next tuesday") is None


def test_ensure_aware_utc():
    naive = datetime(2025, 1, 1, 12, 0)
    assert ensure_aware_utc(naive).tzinfo == timezone.utc
    plus_two = datetime(2025, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    assert ensure_aware_utc(plus_two).hour == 10


def test_weekly_activity_window():
    today = datetime(2025, 3, 5, 9, 0, tzinfo=timezone.utc)  # Wednesday
    trainings = [
        {"scheduled_date": datetime(2025, 3, 5)},   # today
        {"scheduled_date": "2025-03-02"},           # Sunday, inside the window
        {"scheduled_date": "2025-02-26"},           # a week ago, outside
        {"scheduled_date": "2025-03-06"},           # tomorrow
        {"scheduled_date": None},
    ]
    out = weekly_activity(trainings, today=today)
    assert out["labels"] == ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
    assert out["counts"] == [1, 0, 0, 1, 0, 0, 0]


def test_humanize_time():
    now = datetime.now(timezone.utc)
    assert humanize_time(now) == "just now"
    assert humanize_time(now - timedelta(minutes=5)) == "5 min ago"
    assert humanize_time(now - timedelta(hours=3)) == "3 hr ago"
    assert humanize_time(now - timedelta(days=2)) == "2 d ago"
