"""Failures raised by the scheduler store's commit path."""


class SchedulerError(Exception):
    """Base exception for rejected scheduling commands."""

    def __init__(self, message: str, code: str = 'scheduler_error'):
        self.message = message
        self.code = code
        super().__init__(self.message)


class AppointmentNotFound(SchedulerError):
    def __init__(self, message: str = 'Appointment not found.'):
        super().__init__(message, code='not_found')


class OwnershipViolation(SchedulerError):
    def __init__(self, message: str = 'Appointment is locked by another user.'):
        super().__init__(message, code='ownership_violation')


class AlreadyCancelled(SchedulerError):
    def __init__(self, message: str = 'Appointment is cancelled.'):
        super().__init__(message, code='already_cancelled')


class OverlapConflict(SchedulerError):
    def __init__(self, message: str = 'Overlapping booking for this resource.'):
        super().__init__(message, code='overlap_conflict')


class IllegalTransition(SchedulerError):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(
            f'Cannot change appointment status from {current} to {requested}.',
            code='illegal_transition',
        )


class ResourceNotFound(SchedulerError):
    def __init__(self, message: str = 'Therapist not found.'):
        super().__init__(message, code='resource_not_found')


class InvalidTimeWindow(SchedulerError):
    def __init__(self, message: str = 'Appointment end must be after its start.'):
        super().__init__(message, code='invalid_time_window')


class VersionConflict(SchedulerError):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f'Schedule changed since it was loaded (expected version {expected}, found {actual}).',
            code='version_conflict',
        )
