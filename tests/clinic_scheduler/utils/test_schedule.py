from datetime import date, datetime

import pytest

from clinic_scheduler.utils.schedule import (
    build_range,
    compute_end_from_duration,
    day_of_week,
    minutes_diff,
    overlaps,
    snap_datetime_to_slot,
    snap_minutes,
    within_date_range,
)


def _t(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 1, 5, hour, minute)


def test_touching_intervals_do_not_overlap() -> None:
    assert overlaps(_t(9), _t(10), _t(10), _t(11)) is False
    assert overlaps(_t(10), _t(11), _t(9), _t(10)) is False


@pytest.mark.parametrize(
    ('start_a', 'end_a', 'start_b', 'end_b', 'expected'),
    [
        (_t(9), _t(10), _t(9, 30), _t(10, 30), True),
        (_t(9), _t(12), _t(10), _t(11), True),
        (_t(10), _t(11), _t(9), _t(12), True),
        (_t(9), _t(10), _t(9), _t(10), True),
        (_t(9), _t(10), _t(11), _t(12), False),
    ],
)
def test_overlaps_is_half_open(start_a, end_a, start_b, end_b, expected) -> None:
    assert overlaps(start_a, end_a, start_b, end_b) is expected


@pytest.mark.parametrize(
    ('minute_of_day', 'slot_minutes', 'mode', 'expected'),
    [
        (545, 15, 'floor', 540),
        (545, 15, 'ceil', 555),
        (545, 15, 'round', 540),
        (548, 15, 'round', 555),
        (540, 15, 'ceil', 540),
        (45, 30, 'round', 60),
    ],
)
def test_snap_minutes(minute_of_day: int, slot_minutes: int, mode: str, expected: int) -> None:
    assert snap_minutes(minute_of_day, slot_minutes, mode) == expected


def test_snap_datetime_to_slot_clears_seconds() -> None:
    value = datetime(2026, 1, 5, 9, 7, 42)

    assert snap_datetime_to_slot(value, 15, 'floor') == datetime(2026, 1, 5, 9, 0)
    assert snap_datetime_to_slot(value, 15, 'ceil') == datetime(2026, 1, 5, 9, 15)


def test_minutes_diff_rounds_to_nearest_minute() -> None:
    start = datetime(2026, 1, 5, 9, 0, 0)

    assert minutes_diff(start, datetime(2026, 1, 5, 9, 45, 29)) == 45
    assert minutes_diff(start, datetime(2026, 1, 5, 9, 45, 30)) == 46


def test_compute_end_from_duration() -> None:
    assert compute_end_from_duration(_t(9, 30), 45) == _t(10, 15)


def test_day_of_week_counts_from_sunday() -> None:
    assert day_of_week(date(2026, 1, 4)) == 0
    assert day_of_week(date(2026, 1, 5)) == 1
    assert day_of_week(date(2026, 1, 10)) == 6


def test_within_date_range_is_inclusive() -> None:
    assert within_date_range(datetime(2026, 1, 5, 0, 0), date(2026, 1, 5), date(2026, 1, 6))
    assert within_date_range(datetime(2026, 1, 6, 23, 59, 59), date(2026, 1, 5), date(2026, 1, 6))
    assert not within_date_range(datetime(2026, 1, 7, 0, 0), date(2026, 1, 5), date(2026, 1, 6))


def test_build_range_limits_day_and_week_views() -> None:
    start = date(2026, 1, 5)

    assert build_range(start, date(2026, 1, 20), 'day') == [start]
    assert len(build_range(start, date(2026, 1, 20), 'week')) == 7
    assert build_range(start, date(2026, 1, 7), 'week') == [
        date(2026, 1, 5),
        date(2026, 1, 6),
        date(2026, 1, 7),
    ]
