"""Availability resolution and slot locks for one therapist's timeline."""

from datetime import date, datetime
from typing import Iterable

from clinic_scheduler.domain.types import (
    Appointment,
    AvailabilitySegment,
    ScheduleDecision,
    SlotLock,
    SlotResolution,
    Therapist,
    TimeAway,
)
from clinic_scheduler.reference.provider import ReferenceDataProvider
from clinic_scheduler.utils.schedule import (
    at_minute,
    day_of_week,
    minutes_diff,
    minutes_from_time,
    minutes_since_midnight,
    overlaps,
)

THERAPIST_NOT_FOUND = 'Therapist not found'
OUTSIDE_WORKING_HOURS = 'Outside working hours'
TIME_OFF = 'Time off'
LOCKED_BY_OTHER = 'Slot locked by another user'
OVERLAPPING_APPOINTMENT = 'Overlapping appointment'

APPOINTMENT_TYPE_LABELS = {
    'evaluation': 'Eval',
    'followup': 'Follow-up',
}


def is_cancelled(appointment: Appointment) -> bool:
    return appointment.cancelled_at is not None


def is_locked_appointment(appointment: Appointment, session_id: str) -> bool:
    return appointment.created_by != session_id


def get_locks_for_range(appointments: Iterable[Appointment], session_id: str) -> list[SlotLock]:
    """One lock per live appointment booked by any session other than ``session_id``."""
    return [
        SlotLock(
            id=f'lock_{appointment.id}',
            therapist_id=appointment.therapist_id,
            start=appointment.start,
            end=appointment.end,
            locked_by=appointment.created_by,
        )
        for appointment in appointments
        if not is_cancelled(appointment) and is_locked_appointment(appointment, session_id)
    ]


def slot_overlaps_locks(therapist_id: str, start: datetime, end: datetime, locks: Iterable[SlotLock]) -> bool:
    return any(
        lock.therapist_id == therapist_id and overlaps(start, end, lock.start, lock.end)
        for lock in locks
    )


def find_overlapping_appointment(
    appointments: Iterable[Appointment],
    therapist_id: str,
    start: datetime,
    end: datetime,
    ignore_appointment_id: str | None = None,
) -> Appointment | None:
    for appointment in appointments:
        if is_cancelled(appointment):
            continue
        if appointment.therapist_id != therapist_id:
            continue
        if ignore_appointment_id and appointment.id == ignore_appointment_id:
            continue
        if overlaps(start, end, appointment.start, appointment.end):
            return appointment
    return None


def has_appointment_overlap(
    appointments: Iterable[Appointment],
    therapist_id: str,
    start: datetime,
    end: datetime,
    ignore_appointment_id: str | None = None,
) -> bool:
    return find_overlapping_appointment(appointments, therapist_id, start, end, ignore_appointment_id) is not None


def within_working_hours(therapist: Therapist, start: datetime, end: datetime) -> bool:
    hours = therapist.working_hours
    if day_of_week(start) not in hours.days:
        return False
    start_minute = minutes_since_midnight(start)
    # measured from the start day, so an end past midnight runs beyond any shift
    end_minute = start_minute + minutes_diff(start, end)
    return start_minute >= hours.start_minute and end_minute <= hours.end_minute


def _time_away_window(slot: TimeAway) -> tuple[datetime, datetime]:
    return at_minute(slot.date, minutes_from_time(slot.start)), at_minute(slot.date, minutes_from_time(slot.end))


def find_time_away_conflict(
    therapist_id: str,
    start: datetime,
    end: datetime,
    away: Iterable[TimeAway],
) -> TimeAway | None:
    for slot in away:
        if slot.therapist_id != therapist_id:
            continue
        window_start, window_end = _time_away_window(slot)
        if overlaps(start, end, window_start, window_end):
            return slot
    return None


def has_time_away_conflict(therapist_id: str, start: datetime, end: datetime, away: Iterable[TimeAway]) -> bool:
    return find_time_away_conflict(therapist_id, start, end, away) is not None


def is_therapist_available(
    therapist: Therapist,
    start: datetime,
    end: datetime,
    appointments: Iterable[Appointment],
    away: Iterable[TimeAway],
) -> bool:
    if not within_working_hours(therapist, start, end):
        return False
    if has_time_away_conflict(therapist.id, start, end, away):
        return False
    return not has_appointment_overlap(appointments, therapist.id, start, end)


def can_schedule_window(
    therapist_id: str,
    start: datetime,
    end: datetime,
    appointments: Iterable[Appointment],
    locks: Iterable[SlotLock],
    reference: ReferenceDataProvider,
    ignore_appointment_id: str | None = None,
) -> ScheduleDecision:
    """Decide whether ``therapist_id`` can take the window ``[start, end)``.

    Checks run in a fixed order and the first failure is reported: unknown
    therapist, outside working hours, time off, another session's lock, then
    an existing live appointment (other than ``ignore_appointment_id``).
    """
    therapist = reference.get_therapist(therapist_id)
    if therapist is None:
        return ScheduleDecision.deny(THERAPIST_NOT_FOUND)

    if not within_working_hours(therapist, start, end):
        return ScheduleDecision.deny(OUTSIDE_WORKING_HOURS)
    if has_time_away_conflict(therapist_id, start, end, reference.list_time_away()):
        return ScheduleDecision.deny(TIME_OFF)
    if slot_overlaps_locks(therapist_id, start, end, locks):
        return ScheduleDecision.deny(LOCKED_BY_OTHER)
    if has_appointment_overlap(appointments, therapist_id, start, end, ignore_appointment_id):
        return ScheduleDecision.deny(OVERLAPPING_APPOINTMENT)

    return ScheduleDecision.allow()


def resolve_slot(
    therapist: Therapist,
    day: date,
    start_minute: int,
    end_minute: int,
    appointments: Iterable[Appointment],
    away: Iterable[TimeAway],
) -> SlotResolution:
    start = at_minute(day, start_minute)
    end = at_minute(day, end_minute)
    hours = therapist.working_hours

    if day_of_week(day) not in hours.days:
        return SlotResolution(status='off')
    if start_minute < hours.start_minute or end_minute > hours.end_minute:
        return SlotResolution(status='off')

    away_hit = find_time_away_conflict(therapist.id, start, end, away)
    if away_hit is not None:
        return SlotResolution(status='time-off', label='Time off', sublabel=away_hit.reason)

    appointment_hit = find_overlapping_appointment(appointments, therapist.id, start, end)
    if appointment_hit is not None:
        return SlotResolution(
            status='booked',
            label=APPOINTMENT_TYPE_LABELS.get(appointment_hit.appointment_type, appointment_hit.appointment_type),
            sublabel=appointment_hit.patient,
        )

    return SlotResolution(status='available', label='Available')


def build_segments(
    therapist: Therapist,
    day: date,
    range_start_minute: int,
    range_end_minute: int,
    step_minutes: int,
    appointments: Iterable[Appointment],
    away: Iterable[TimeAway],
) -> list[AvailabilitySegment]:
    """Resolve every step of a day and merge adjacent steps that read the same."""
    appointments = list(appointments)
    away = list(away)
    segments: list[AvailabilitySegment] = []

    for cursor in range(range_start_minute, range_end_minute, step_minutes):
        step_end = min(cursor + step_minutes, range_end_minute)
        slot = resolve_slot(therapist, day, cursor, step_end, appointments, away)
        previous = segments[-1] if segments else None

        if (
            previous is not None
            and previous.status == slot.status
            and previous.label == slot.label
            and previous.sublabel == slot.sublabel
            and previous.end_minute == cursor
        ):
            previous.end_minute = step_end
        else:
            segments.append(
                AvailabilitySegment(
                    start_minute=cursor,
                    end_minute=step_end,
                    status=slot.status,
                    label=slot.label,
                    sublabel=slot.sublabel,
                )
            )

    return segments
