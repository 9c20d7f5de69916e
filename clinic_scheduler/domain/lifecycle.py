"""Appointment status transitions.

Every status check goes through ``NEXT_ALLOWED_STATUSES``; a transition that
is not listed there is illegal, including asking for the current status again.
"""

from clinic_scheduler.domain.errors import IllegalTransition
from clinic_scheduler.domain.types import AppointmentStatus

NEXT_ALLOWED_STATUSES: dict[AppointmentStatus, tuple[AppointmentStatus, ...]] = {
    'scheduled': ('check-in', 'in-progress', 'completed', 'incomplete'),
    'check-in': ('in-progress', 'completed', 'incomplete'),
    'in-progress': ('completed', 'incomplete'),
    'completed': (),
    'incomplete': (),
}

TERMINAL_STATUSES = frozenset(status for status, allowed in NEXT_ALLOWED_STATUSES.items() if not allowed)


def can_transition(current: AppointmentStatus, requested: AppointmentStatus) -> bool:
    return requested in NEXT_ALLOWED_STATUSES.get(current, ())


def assert_transition(current: AppointmentStatus, requested: AppointmentStatus) -> None:
    if not can_transition(current, requested):
        raise IllegalTransition(current, requested)


def is_terminal(status: AppointmentStatus) -> bool:
    return status in TERMINAL_STATUSES
