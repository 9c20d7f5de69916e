import logging
from datetime import date, datetime
from typing import Literal, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError

from clinic_scheduler.auth.dependencies import get_current_session_id
from clinic_scheduler.core import config
from clinic_scheduler.database import SessionLocal, ensure_scheduler_state_schema
from clinic_scheduler.domain.conflicts import detect_conflicts
from clinic_scheduler.domain.errors import SchedulerError
from clinic_scheduler.domain.rules import build_segments
from clinic_scheduler.domain.types import (
    Appointment,
    AppointmentStatus,
    AvailabilitySegment,
    CreateAppointmentInput,
    ScheduleDecision,
    Snapshot,
)
from clinic_scheduler.domain.validator import (
    validate_create,
    validate_reassign,
    validate_reschedule,
    validate_status_change,
)
from clinic_scheduler.reference.provider import ReferenceDataProvider, get_reference_data
from clinic_scheduler.store.ports import InMemorySessionIdentity
from clinic_scheduler.store.scheduler_store import SchedulerStore
from clinic_scheduler.store.sql_port import SqlAlchemyStatePort
from clinic_scheduler.utils.schedule import as_wall_clock

router = APIRouter(tags=['scheduler'])

logger = logging.getLogger(__name__)

GRID_START_MINUTE = 7 * 60
GRID_END_MINUTE = 19 * 60
MAX_SNAPSHOT_RANGE_DAYS = 31

SCHEDULER_ERROR_STATUS = {
    'not_found': status.HTTP_404_NOT_FOUND,
    'resource_not_found': status.HTTP_404_NOT_FOUND,
    'ownership_violation': status.HTTP_403_FORBIDDEN,
    'already_cancelled': status.HTTP_409_CONFLICT,
    'overlap_conflict': status.HTTP_409_CONFLICT,
    'version_conflict': status.HTTP_409_CONFLICT,
    'illegal_transition': status.HTTP_400_BAD_REQUEST,
    'invalid_time_window': status.HTTP_400_BAD_REQUEST,
}


class WallClockWindow(BaseModel):
    start: datetime
    end: datetime

    @field_validator('start', 'end')
    @classmethod
    def normalize_datetime(cls, value: datetime) -> datetime:
        return as_wall_clock(value)

    @model_validator(mode='after')
    def validate_window(self):
        if self.end <= self.start:
            raise ValueError('Appointment end must be after its start.')
        return self


class CreateAppointmentRequest(CreateAppointmentInput):
    expected_version: int | None = None


class RescheduleRequest(WallClockWindow):
    expected_version: int | None = None


class ReassignRequest(BaseModel):
    therapist_id: str
    expected_version: int | None = None


class StatusChangeRequest(BaseModel):
    status: AppointmentStatus
    expected_version: int | None = None


class ValidateRequest(BaseModel):
    action: Literal['create', 'reschedule', 'reassign', 'status']
    range_start: date
    range_end: date
    appointment_id: str | None = None
    therapist_id: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    status: AppointmentStatus | None = None

    @field_validator('start', 'end')
    @classmethod
    def normalize_datetime(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return as_wall_clock(value)

    @model_validator(mode='after')
    def validate_fields(self):
        required = {
            'create': ('therapist_id', 'start', 'end'),
            'reschedule': ('appointment_id', 'start', 'end'),
            'reassign': ('appointment_id', 'therapist_id'),
            'status': ('appointment_id', 'status'),
        }[self.action]
        missing = [name for name in required if getattr(self, name) is None]
        if missing:
            raise ValueError(f'Missing fields for {self.action}: {", ".join(missing)}.')
        return self


class ConflictsResponse(BaseModel):
    appointment_ids: list[str]


def raise_scheduler_error(exc: SchedulerError) -> NoReturn:
    raise HTTPException(
        status_code=SCHEDULER_ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST),
        detail=exc.message,
    ) from exc


def raise_database_unavailable(exc: SQLAlchemyError) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail='Database unavailable. Verify DATABASE_URL.',
    ) from exc


def ensure_database_ready() -> None:
    try:
        ensure_scheduler_state_schema()
    except SQLAlchemyError as exc:
        raise_database_unavailable(exc)


def validate_range(range_start: date, range_end: date) -> None:
    if range_end < range_start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='range_end must not be before range_start.',
        )
    if (range_end - range_start).days >= MAX_SNAPSHOT_RANGE_DAYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Ranges are limited to {MAX_SNAPSHOT_RANGE_DAYS} days.',
        )


def get_state_port() -> SqlAlchemyStatePort:
    return SqlAlchemyStatePort(SessionLocal)


def get_store(
    session_id: str = Depends(get_current_session_id),
    state_port: SqlAlchemyStatePort = Depends(get_state_port),
    reference: ReferenceDataProvider = Depends(get_reference_data),
) -> SchedulerStore:
    ensure_database_ready()
    return SchedulerStore(state_port, reference, InMemorySessionIdentity(session_id))


def _find_in_snapshot(snapshot: Snapshot, appointment_id: str) -> Appointment:
    for appointment in snapshot.appointments:
        if appointment.id == appointment_id:
            return appointment
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail='Appointment not found in the requested range.',
    )


@router.get('/snapshot', response_model=Snapshot)
def fetch_snapshot(
    range_start: date = Query(...),
    range_end: date = Query(...),
    store: SchedulerStore = Depends(get_store),
):
    validate_range(range_start, range_end)

    try:
        return store.fetch_snapshot(range_start, range_end)
    except SQLAlchemyError as exc:
        raise_database_unavailable(exc)


@router.post('/appointments', response_model=Appointment, status_code=status.HTTP_201_CREATED)
def create_appointment(data: CreateAppointmentRequest, store: SchedulerStore = Depends(get_store)):
    try:
        return store.create_appointment(
            CreateAppointmentInput.model_validate(data.model_dump(exclude={'expected_version'})),
            expected_version=data.expected_version,
        )
    except SchedulerError as exc:
        raise_scheduler_error(exc)
    except SQLAlchemyError as exc:
        raise_database_unavailable(exc)


@router.post('/appointments/{appointment_id}/reschedule', response_model=Appointment)
def reschedule_appointment(
    appointment_id: str,
    data: RescheduleRequest,
    store: SchedulerStore = Depends(get_store),
):
    try:
        return store.reschedule_appointment(
            appointment_id,
            data.start,
            data.end,
            expected_version=data.expected_version,
        )
    except SchedulerError as exc:
        raise_scheduler_error(exc)
    except SQLAlchemyError as exc:
        raise_database_unavailable(exc)


@router.post('/appointments/{appointment_id}/reassign', response_model=Appointment)
def reassign_appointment(
    appointment_id: str,
    data: ReassignRequest,
    store: SchedulerStore = Depends(get_store),
):
    try:
        return store.reassign_appointment(
            appointment_id,
            data.therapist_id,
            expected_version=data.expected_version,
        )
    except SchedulerError as exc:
        raise_scheduler_error(exc)
    except SQLAlchemyError as exc:
        raise_database_unavailable(exc)


@router.post('/appointments/{appointment_id}/status', response_model=Appointment)
def update_appointment_status(
    appointment_id: str,
    data: StatusChangeRequest,
    store: SchedulerStore = Depends(get_store),
):
    try:
        return store.update_appointment_status(
            appointment_id,
            data.status,
            expected_version=data.expected_version,
        )
    except SchedulerError as exc:
        raise_scheduler_error(exc)
    except SQLAlchemyError as exc:
        raise_database_unavailable(exc)


@router.post('/appointments/{appointment_id}/cancel', response_model=Appointment)
def cancel_appointment(
    appointment_id: str,
    expected_version: int | None = Query(default=None),
    store: SchedulerStore = Depends(get_store),
):
    try:
        return store.cancel_appointment(appointment_id, expected_version=expected_version)
    except SchedulerError as exc:
        raise_scheduler_error(exc)
    except SQLAlchemyError as exc:
        raise_database_unavailable(exc)


@router.post('/validate', response_model=ScheduleDecision)
def validate_command(
    data: ValidateRequest,
    store: SchedulerStore = Depends(get_store),
    reference: ReferenceDataProvider = Depends(get_reference_data),
):
    validate_range(data.range_start, data.range_end)

    try:
        snapshot = store.fetch_snapshot(data.range_start, data.range_end)
    except SQLAlchemyError as exc:
        raise_database_unavailable(exc)

    if data.action == 'create':
        return validate_create(data.therapist_id, data.start, data.end, snapshot, reference)

    appointment = _find_in_snapshot(snapshot, data.appointment_id)
    if data.action == 'reschedule':
        return validate_reschedule(appointment, data.start, data.end, snapshot, reference, store.session_id)
    if data.action == 'reassign':
        return validate_reassign(appointment, data.therapist_id, snapshot, reference, store.session_id)
    return validate_status_change(appointment, data.status, store.session_id)


@router.get('/availability', response_model=list[AvailabilitySegment])
def list_availability(
    therapist_id: str = Query(...),
    day: date = Query(...),
    step_minutes: int = Query(default=config.SLOT_MINUTES, ge=5, le=120),
    start_minute: int = Query(default=GRID_START_MINUTE, ge=0, le=24 * 60),
    end_minute: int = Query(default=GRID_END_MINUTE, ge=0, le=24 * 60),
    store: SchedulerStore = Depends(get_store),
    reference: ReferenceDataProvider = Depends(get_reference_data),
):
    therapist = reference.get_therapist(therapist_id)
    if therapist is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Therapist not found.',
        )
    if end_minute <= start_minute:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='end_minute must be after start_minute.',
        )

    try:
        snapshot = store.fetch_snapshot(day, day)
    except SQLAlchemyError as exc:
        raise_database_unavailable(exc)

    return build_segments(
        therapist,
        day,
        start_minute,
        end_minute,
        step_minutes,
        snapshot.appointments,
        reference.list_time_away(),
    )


@router.get('/conflicts', response_model=ConflictsResponse)
def list_conflicts(
    range_start: date = Query(...),
    range_end: date = Query(...),
    store: SchedulerStore = Depends(get_store),
):
    validate_range(range_start, range_end)

    try:
        snapshot = store.fetch_snapshot(range_start, range_end)
    except SQLAlchemyError as exc:
        raise_database_unavailable(exc)

    conflict_ids = detect_conflicts(snapshot.appointments)
    if conflict_ids:
        logger.warning('Found %d conflicting appointments between %s and %s', len(conflict_ids), range_start, range_end)
    return ConflictsResponse(appointment_ids=sorted(conflict_ids))
