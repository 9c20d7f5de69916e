"""Scheduling domain records."""

from datetime import date, datetime, time
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from clinic_scheduler.utils.schedule import as_wall_clock, minutes_from_time

StaffRole = Literal['PT', 'OT', 'Speech']
AppointmentType = Literal['evaluation', 'followup']
AppointmentMode = Literal['in-clinic', 'telephonic']
AppointmentStatus = Literal['scheduled', 'check-in', 'in-progress', 'completed', 'incomplete']
AuditEventKind = Literal['created', 'rescheduled', 'cancelled', 'status-change']
AvailabilityStatus = Literal['available', 'booked', 'time-off', 'off']

INITIAL_STATUS: AppointmentStatus = 'scheduled'


class Clinic(BaseModel):
    id: str
    name: str
    color: str = '#64748b'
    location: str = ''


class WorkingHours(BaseModel):
    """Recurring weekly window. Days use 0 = Sunday."""

    start: time
    end: time
    days: set[int]

    @field_validator('days')
    @classmethod
    def validate_days(cls, value: set[int]) -> set[int]:
        if any(day < 0 or day > 6 for day in value):
            raise ValueError('Working days must be between 0 (Sunday) and 6 (Saturday).')
        return value

    @property
    def start_minute(self) -> int:
        return minutes_from_time(self.start)

    @property
    def end_minute(self) -> int:
        return minutes_from_time(self.end)


class Therapist(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    role: StaffRole
    clinic_id: str
    working_hours: WorkingHours


class TimeAway(BaseModel):
    id: str
    therapist_id: str
    date: date
    start: time
    end: time
    reason: str = ''


class AuditDelta(BaseModel):
    start: datetime | None = None
    end: datetime | None = None
    status: AppointmentStatus | None = None


class AuditEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    at: datetime
    by: str
    kind: AuditEventKind
    from_: AuditDelta | None = Field(default=None, alias='from')
    to: AuditDelta | None = None
    note: str | None = None


class Appointment(BaseModel):
    id: str
    clinic_id: str
    therapist_id: str
    patient: str
    start: datetime
    end: datetime
    appointment_type: AppointmentType
    mode: AppointmentMode
    status: AppointmentStatus = INITIAL_STATUS
    created_by: str
    updated_at: datetime
    cancelled_at: datetime | None = None
    cancelled_by: str | None = None
    audit: list[AuditEvent] = Field(default_factory=list)

    @property
    def is_cancelled(self) -> bool:
        return self.cancelled_at is not None


class SlotLock(BaseModel):
    id: str
    therapist_id: str
    start: datetime
    end: datetime
    locked_by: str
    reason: Literal['booked'] = 'booked'


class Snapshot(BaseModel):
    appointments: list[Appointment]
    locks: list[SlotLock]
    server_time: datetime
    version: int


class StoredSchedulerState(BaseModel):
    version: int
    updated_at: datetime
    appointments: list[Appointment] = Field(default_factory=list)


class CreateAppointmentInput(BaseModel):
    clinic_id: str
    therapist_id: str
    patient: str
    start: datetime
    end: datetime
    appointment_type: AppointmentType
    mode: AppointmentMode = 'in-clinic'

    @field_validator('start', 'end')
    @classmethod
    def normalize_datetime(cls, value: datetime) -> datetime:
        return as_wall_clock(value)

    @field_validator('patient')
    @classmethod
    def validate_patient(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Patient is required.')
        return normalized

    @model_validator(mode='after')
    def validate_window(self) -> 'CreateAppointmentInput':
        if self.end <= self.start:
            raise ValueError('Appointment end must be after its start.')
        return self


class ScheduleDecision(BaseModel):
    ok: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> 'ScheduleDecision':
        return cls(ok=True)

    @classmethod
    def deny(cls, reason: str) -> 'ScheduleDecision':
        return cls(ok=False, reason=reason)


class SlotResolution(BaseModel):
    status: AvailabilityStatus
    label: str | None = None
    sublabel: str | None = None


class AvailabilitySegment(BaseModel):
    start_minute: int
    end_minute: int
    status: AvailabilityStatus
    label: str | None = None
    sublabel: str | None = None
