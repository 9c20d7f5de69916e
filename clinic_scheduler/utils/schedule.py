import math
from datetime import date, datetime, time, timedelta
from typing import Literal

SnapMode = Literal['floor', 'round', 'ceil']
ViewMode = Literal['day', 'week']

MINUTES_PER_DAY = 24 * 60


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open interval overlap. Touching endpoints do not overlap."""
    return start_a < end_b and end_a > start_b


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def snap_minutes(minute_of_day: int, slot_minutes: int, mode: SnapMode = 'floor') -> int:
    ratio = minute_of_day / slot_minutes
    if mode == 'floor':
        snapped = math.floor(ratio)
    elif mode == 'ceil':
        snapped = math.ceil(ratio)
    else:
        snapped = _round_half_up(ratio)
    return snapped * slot_minutes


def minutes_since_midnight(value: datetime) -> int:
    return value.hour * 60 + value.minute


def as_wall_clock(value: datetime) -> datetime:
    """Local wall-clock time without tzinfo; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def minutes_from_time(value: time) -> int:
    return value.hour * 60 + value.minute


def at_minute(day: date, minute_of_day: int) -> datetime:
    return datetime.combine(day, time.min) + timedelta(minutes=minute_of_day)


def snap_datetime_to_slot(value: datetime, slot_minutes: int, mode: SnapMode = 'floor') -> datetime:
    snapped = snap_minutes(minutes_since_midnight(value), slot_minutes, mode)
    return at_minute(value.date(), snapped)


def day_of_week(value: date) -> int:
    """Weekday number with 0 = Sunday, as stored in working hours."""
    return (value.weekday() + 1) % 7


def add_minutes(value: datetime, minutes: int) -> datetime:
    return value + timedelta(minutes=minutes)


def minutes_diff(start: datetime, end: datetime) -> int:
    return _round_half_up((end - start).total_seconds() / 60)


def compute_end_from_duration(start: datetime, duration_minutes: int) -> datetime:
    return add_minutes(start, duration_minutes)


def within_date_range(value: datetime, range_start: date, range_end: date) -> bool:
    return range_start <= value.date() <= range_end


def build_range(range_start: date, range_end: date, view: ViewMode = 'week') -> list[date]:
    max_end = range_start + timedelta(days=6) if view == 'week' else range_start
    actual_end = min(range_end, max_end)

    days: list[date] = []
    cursor = range_start
    while cursor <= actual_end:
        days.append(cursor)
        cursor += timedelta(days=1)
    return days
