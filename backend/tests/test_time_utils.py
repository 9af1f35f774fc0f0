from datetime import datetime, timedelta, timezone

from meatmaster.time_utils import day_bounds, to_utc_z


class TestDayBounds:

    def test_naive_is_utc(self):
        start, end = day_bounds(datetime(2026, 1, 1, 22, 0))
        assert start == datetime(2026, 1, 1)
        assert end == datetime(2026, 1, 2)

    def test_aware_is_converted_to_utc_day(self):
        # 22:00 in UTC-3 is already 01:00 of the next day in UTC
        local = datetime(2026, 1, 1, 22, 0, tzinfo=timezone(timedelta(hours=-3)))
        start, end = day_bounds(local)
        assert start == datetime(2026, 1, 2)
        assert end == datetime(2026, 1, 3)
        assert start.tzinfo is None


def test_to_utc_z():
    assert to_utc_z(datetime(2026, 1, 2, 3, 4, 5, 678)) == "2026-01-02T03:04:05Z"
    assert to_utc_z(None) is None
