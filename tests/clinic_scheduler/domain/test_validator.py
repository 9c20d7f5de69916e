from datetime import datetime

from clinic_scheduler.domain.rules import LOCKED_BY_OTHER, OVERLAPPING_APPOINTMENT, TIME_OFF, get_locks_for_range
from clinic_scheduler.domain.types import Snapshot
from clinic_scheduler.domain.validator import (
    CANCELLED,
    INVALID_WINDOW,
    NOT_OWNER,
    validate_create,
    validate_reassign,
    validate_reschedule,
    validate_status_change,
)

from scheduler_helpers import at, make_appointment


def snapshot_for(session_id: str, appointments) -> Snapshot:
    return Snapshot(
        appointments=appointments,
        locks=get_locks_for_range(appointments, session_id),
        server_time=datetime(2026, 1, 5, 8, 0),
        version=3,
    )


def test_validate_create_reports_lock_from_other_session(reference) -> None:
    snapshot = snapshot_for('client_b', [make_appointment('a1', at(9), at(10), created_by='client_a')])

    decision = validate_create('t1', at(9, 30), at(10, 30), snapshot, reference)

    assert decision.ok is False
    assert decision.reason == LOCKED_BY_OTHER


def test_validate_create_reports_overlap_when_locks_are_missing(reference) -> None:
    snapshot = snapshot_for('client_b', [make_appointment('a1', at(9), at(10), created_by='client_a')])
    stale = snapshot.model_copy(update={'locks': []})

    decision = validate_create('t1', at(9, 30), at(10, 30), stale, reference)

    assert decision.reason == OVERLAPPING_APPOINTMENT


def test_validate_create_rejects_empty_window(reference) -> None:
    snapshot = snapshot_for('client_a', [])

    assert validate_create('t1', at(10), at(10), snapshot, reference).reason == INVALID_WINDOW


def test_validate_reschedule_ignores_the_moved_appointment(reference) -> None:
    own = make_appointment('a1', at(9), at(10), created_by='client_a')
    snapshot = snapshot_for('client_a', [own])

    decision = validate_reschedule(own, at(9, 30), at(10, 30), snapshot, reference, 'client_a')

    assert decision.ok is True


def test_validate_reschedule_rejects_other_sessions_appointment(reference) -> None:
    theirs = make_appointment('a1', at(9), at(10), created_by='client_a')
    snapshot = snapshot_for('client_b', [theirs])

    decision = validate_reschedule(theirs, at(11), at(12), snapshot, reference, 'client_b')

    assert decision.reason == NOT_OWNER


def test_validate_reassign_checks_new_therapist(reference) -> None:
    own = make_appointment('a1', at(12), at(13), created_by='client_a')
    snapshot = snapshot_for('client_a', [own])

    assert validate_reassign(own, 't2', snapshot, reference, 'client_a').reason == TIME_OFF


def test_validate_status_change_follows_lifecycle() -> None:
    own = make_appointment('a1', at(9), at(10), created_by='client_a')
    completed = own.model_copy(update={'status': 'completed'})
    cancelled = make_appointment('a2', at(9), at(10), created_by='client_a', cancelled=True)

    assert validate_status_change(own, 'check-in', 'client_a').ok is True
    assert validate_status_change(completed, 'incomplete', 'client_a').ok is False
    assert validate_status_change(cancelled, 'check-in', 'client_a').reason == CANCELLED
