"""Canonical keeper of appointment records.

Every mutating command loads the stored state, checks ownership, builds the
next version of one appointment with exactly one new audit event, re-checks
the no-overlap invariant where the command can move an appointment in time
or onto another therapist, and then saves the whole state once with
``version + 1``. A rejected command never reaches ``save_state``.

Commits are optimistic. Without ``expected_version`` the last write wins; with
it, a command is rejected if the schedule has moved on since the caller's
snapshot and the save itself is conditional on the loaded version.
"""

import logging
from datetime import date, datetime
from typing import Callable, Iterable
from uuid import uuid4

from pydantic import ValidationError

from clinic_scheduler.domain.errors import (
    AlreadyCancelled,
    AppointmentNotFound,
    InvalidTimeWindow,
    OverlapConflict,
    OwnershipViolation,
    ResourceNotFound,
    VersionConflict,
)
from clinic_scheduler.domain.lifecycle import assert_transition
from clinic_scheduler.domain.rules import find_overlapping_appointment, get_locks_for_range
from clinic_scheduler.domain.types import (
    INITIAL_STATUS,
    Appointment,
    AppointmentStatus,
    AuditDelta,
    AuditEvent,
    CreateAppointmentInput,
    Snapshot,
    StoredSchedulerState,
)
from clinic_scheduler.reference.provider import ReferenceDataProvider
from clinic_scheduler.store.ports import SchedulerStatePort, SessionIdentityPort, resolve_session_id
from clinic_scheduler.utils.schedule import as_wall_clock, within_date_range

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _new_appointment_id() -> str:
    return str(uuid4())


class SchedulerStore:
    def __init__(
        self,
        state_port: SchedulerStatePort,
        reference: ReferenceDataProvider,
        identity: SessionIdentityPort,
        clock: Clock = datetime.now,
        seed_appointments: Iterable[Appointment] = (),
        id_factory: Callable[[], str] = _new_appointment_id,
    ):
        self._state_port = state_port
        self._reference = reference
        self._clock = clock
        self._seed_appointments = list(seed_appointments)
        self._id_factory = id_factory
        self.session_id = resolve_session_id(identity)

    def _seed_state(self) -> StoredSchedulerState:
        initial = StoredSchedulerState(
            version=1,
            updated_at=self._clock(),
            appointments=[appointment.model_copy(deep=True) for appointment in self._seed_appointments],
        )
        self._state_port.save_state(initial)
        return initial

    def _read_state(self) -> StoredSchedulerState:
        try:
            state = self._state_port.load_state()
        except ValidationError:
            logger.warning('Stored scheduler state is unreadable; reseeding', exc_info=True)
            return self._seed_state()

        if state is None:
            logger.info('No scheduler state found; seeding %d appointments', len(self._seed_appointments))
            return self._seed_state()
        return state

    def _check_expected_version(self, state: StoredSchedulerState, expected_version: int | None) -> None:
        if expected_version is not None and state.version != expected_version:
            logger.warning('Rejected stale command: expected version %s, found %s', expected_version, state.version)
            raise VersionConflict(expected_version, state.version)

    def _find(self, state: StoredSchedulerState, appointment_id: str) -> Appointment:
        for appointment in state.appointments:
            if appointment.id == appointment_id:
                return appointment
        raise AppointmentNotFound()

    def _assert_owned(self, appointment: Appointment) -> None:
        if appointment.created_by != self.session_id:
            raise OwnershipViolation()
        if appointment.cancelled_at is not None:
            raise AlreadyCancelled()

    def _assert_therapist_exists(self, therapist_id: str) -> None:
        if self._reference.get_therapist(therapist_id) is None:
            raise ResourceNotFound()

    def _assert_no_overlap(self, appointments: list[Appointment], candidate: Appointment) -> None:
        clash = find_overlapping_appointment(
            appointments,
            candidate.therapist_id,
            candidate.start,
            candidate.end,
            ignore_appointment_id=candidate.id,
        )
        if clash is not None:
            logger.warning(
                'Rejected %s on therapist %s: overlaps appointment %s',
                candidate.id,
                candidate.therapist_id,
                clash.id,
            )
            raise OverlapConflict()

    def _commit(
        self,
        state: StoredSchedulerState,
        candidate: Appointment,
        at: datetime,
        expected_version: int | None,
        command: str,
    ) -> Appointment:
        replaced = False
        appointments: list[Appointment] = []
        for appointment in state.appointments:
            if appointment.id == candidate.id:
                appointments.append(candidate)
                replaced = True
            else:
                appointments.append(appointment)
        if not replaced:
            appointments.append(candidate)

        next_state = StoredSchedulerState(
            version=state.version + 1,
            updated_at=at,
            appointments=appointments,
        )
        self._state_port.save_state(
            next_state,
            previous_version=state.version if expected_version is not None else None,
        )
        logger.info('%s appointment %s (version %d)', command, candidate.id, next_state.version)
        return candidate

    def _event(self, at: datetime, kind: str, **fields) -> AuditEvent:
        return AuditEvent(at=at, by=self.session_id, kind=kind, **fields)

    def fetch_snapshot(self, range_start: date, range_end: date) -> Snapshot:
        state = self._read_state()
        in_range = [
            appointment
            for appointment in state.appointments
            if within_date_range(appointment.start, range_start, range_end)
        ]
        return Snapshot(
            appointments=in_range,
            locks=get_locks_for_range(in_range, self.session_id),
            server_time=self._clock(),
            version=state.version,
        )

    def create_appointment(self, data: CreateAppointmentInput, expected_version: int | None = None) -> Appointment:
        if data.end <= data.start:
            raise InvalidTimeWindow()

        state = self._read_state()
        self._check_expected_version(state, expected_version)
        self._assert_therapist_exists(data.therapist_id)

        at = self._clock()
        appointment = Appointment(
            id=self._id_factory(),
            clinic_id=data.clinic_id,
            therapist_id=data.therapist_id,
            patient=data.patient,
            start=data.start,
            end=data.end,
            appointment_type=data.appointment_type,
            mode=data.mode,
            status=INITIAL_STATUS,
            created_by=self.session_id,
            updated_at=at,
            audit=[
                self._event(
                    at,
                    'created',
                    to=AuditDelta(start=data.start, end=data.end, status=INITIAL_STATUS),
                )
            ],
        )

        self._assert_no_overlap(state.appointments, appointment)
        return self._commit(state, appointment, at, expected_version, 'Created')

    def reschedule_appointment(
        self,
        appointment_id: str,
        start: datetime,
        end: datetime,
        expected_version: int | None = None,
    ) -> Appointment:
        start, end = as_wall_clock(start), as_wall_clock(end)
        state = self._read_state()
        self._check_expected_version(state, expected_version)
        current = self._find(state, appointment_id)
        self._assert_owned(current)
        if end <= start:
            raise InvalidTimeWindow()

        at = self._clock()
        candidate = current.model_copy(
            update={
                'start': start,
                'end': end,
                'updated_at': at,
                'audit': [
                    *current.audit,
                    self._event(
                        at,
                        'rescheduled',
                        from_=AuditDelta(start=current.start, end=current.end),
                        to=AuditDelta(start=start, end=end),
                    ),
                ],
            }
        )

        self._assert_no_overlap(state.appointments, candidate)
        return self._commit(state, candidate, at, expected_version, 'Rescheduled')

    def reassign_appointment(
        self,
        appointment_id: str,
        therapist_id: str,
        expected_version: int | None = None,
    ) -> Appointment:
        state = self._read_state()
        self._check_expected_version(state, expected_version)
        current = self._find(state, appointment_id)
        self._assert_owned(current)
        self._assert_therapist_exists(therapist_id)

        at = self._clock()
        candidate = current.model_copy(
            update={
                'therapist_id': therapist_id,
                'updated_at': at,
                'audit': [
                    *current.audit,
                    self._event(at, 'rescheduled', note=f'reassigned:{current.therapist_id}->{therapist_id}'),
                ],
            }
        )

        self._assert_no_overlap(state.appointments, candidate)
        return self._commit(state, candidate, at, expected_version, 'Reassigned')

    def update_appointment_status(
        self,
        appointment_id: str,
        status: AppointmentStatus,
        expected_version: int | None = None,
    ) -> Appointment:
        state = self._read_state()
        self._check_expected_version(state, expected_version)
        current = self._find(state, appointment_id)
        self._assert_owned(current)
        assert_transition(current.status, status)

        at = self._clock()
        candidate = current.model_copy(
            update={
                'status': status,
                'updated_at': at,
                'audit': [
                    *current.audit,
                    self._event(
                        at,
                        'status-change',
                        from_=AuditDelta(status=current.status),
                        to=AuditDelta(status=status),
                    ),
                ],
            }
        )
        return self._commit(state, candidate, at, expected_version, 'Updated status of')

    def cancel_appointment(self, appointment_id: str, expected_version: int | None = None) -> Appointment:
        state = self._read_state()
        self._check_expected_version(state, expected_version)
        current = self._find(state, appointment_id)
        self._assert_owned(current)

        at = self._clock()
        candidate = current.model_copy(
            update={
                'cancelled_at': at,
                'cancelled_by': self.session_id,
                'updated_at': at,
                'audit': [*current.audit, self._event(at, 'cancelled')],
            }
        )
        return self._commit(state, candidate, at, expected_version, 'Cancelled')
