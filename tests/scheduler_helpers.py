from datetime import date, datetime, time, timedelta

from clinic_scheduler.domain.types import Appointment, AuditDelta, AuditEvent

MONDAY = date(2026, 1, 5)
TUESDAY = date(2026, 1, 6)
SUNDAY = date(2026, 1, 4)
WEEKDAYS = {1, 2, 3, 4, 5}


def at(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
    return datetime.combine(day, time(hour, minute))


class StepClock:
    """Returns a later timestamp on every call."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


def make_appointment(
    appointment_id: str,
    start: datetime,
    end: datetime,
    therapist_id: str = 't1',
    created_by: str = 'client_a',
    cancelled: bool = False,
    appointment_type: str = 'evaluation',
) -> Appointment:
    created_at = datetime(2026, 1, 2, 8, 0)
    return Appointment(
        id=appointment_id,
        clinic_id='c1',
        therapist_id=therapist_id,
        patient=f'Patient {appointment_id}',
        start=start,
        end=end,
        appointment_type=appointment_type,
        mode='in-clinic',
        created_by=created_by,
        updated_at=created_at,
        cancelled_at=created_at if cancelled else None,
        audit=[
            AuditEvent(
                at=created_at,
                by=created_by,
                kind='created',
                to=AuditDelta(start=start, end=end, status='scheduled'),
            )
        ],
    )
