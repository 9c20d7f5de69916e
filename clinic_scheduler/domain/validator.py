"""Pre-flight checks run before a command is sent to the store.

These are advisory. Locks are only as fresh as the snapshot they came from,
so the store repeats the overlap check when it commits.
"""

from datetime import datetime

from clinic_scheduler.domain.lifecycle import can_transition
from clinic_scheduler.domain.rules import can_schedule_window
from clinic_scheduler.domain.types import Appointment, AppointmentStatus, ScheduleDecision, Snapshot
from clinic_scheduler.reference.provider import ReferenceDataProvider

INVALID_WINDOW = 'End must be after start'
NOT_OWNER = 'Appointment is locked by another user'
CANCELLED = 'Appointment is cancelled'


def _check_owned(appointment: Appointment, session_id: str) -> ScheduleDecision | None:
    if appointment.created_by != session_id:
        return ScheduleDecision.deny(NOT_OWNER)
    if appointment.cancelled_at is not None:
        return ScheduleDecision.deny(CANCELLED)
    return None


def validate_create(
    therapist_id: str,
    start: datetime,
    end: datetime,
    snapshot: Snapshot,
    reference: ReferenceDataProvider,
) -> ScheduleDecision:
    if end <= start:
        return ScheduleDecision.deny(INVALID_WINDOW)
    return can_schedule_window(therapist_id, start, end, snapshot.appointments, snapshot.locks, reference)


def validate_reschedule(
    appointment: Appointment,
    start: datetime,
    end: datetime,
    snapshot: Snapshot,
    reference: ReferenceDataProvider,
    session_id: str,
) -> ScheduleDecision:
    denied = _check_owned(appointment, session_id)
    if denied is not None:
        return denied
    if end <= start:
        return ScheduleDecision.deny(INVALID_WINDOW)
    return can_schedule_window(
        appointment.therapist_id,
        start,
        end,
        snapshot.appointments,
        snapshot.locks,
        reference,
        ignore_appointment_id=appointment.id,
    )


def validate_reassign(
    appointment: Appointment,
    therapist_id: str,
    snapshot: Snapshot,
    reference: ReferenceDataProvider,
    session_id: str,
) -> ScheduleDecision:
    denied = _check_owned(appointment, session_id)
    if denied is not None:
        return denied
    return can_schedule_window(
        therapist_id,
        appointment.start,
        appointment.end,
        snapshot.appointments,
        snapshot.locks,
        reference,
        ignore_appointment_id=appointment.id,
    )


def validate_status_change(
    appointment: Appointment,
    status: AppointmentStatus,
    session_id: str,
) -> ScheduleDecision:
    denied = _check_owned(appointment, session_id)
    if denied is not None:
        return denied
    if not can_transition(appointment.status, status):
        return ScheduleDecision.deny(f'Cannot change status from {appointment.status} to {status}')
    return ScheduleDecision.allow()
