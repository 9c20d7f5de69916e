from collections import defaultdict
from typing import Iterable

from clinic_scheduler.domain.types import Appointment
from clinic_scheduler.utils.schedule import overlaps


def detect_conflicts(appointments: Iterable[Appointment]) -> set[str]:
    """Return the ids of live appointments that overlap another on the same therapist.

    Each therapist's timeline is sorted by start and walked once. Every
    appointment is compared with the earlier one reaching furthest, so an
    overlap hidden behind a short booking nested inside a long one is still
    flagged. Used for display warnings; nothing is blocked or changed.
    """
    grouped: dict[str, list[Appointment]] = defaultdict(list)
    for appointment in appointments:
        if appointment.cancelled_at is not None:
            continue
        grouped[appointment.therapist_id].append(appointment)

    conflicts: set[str] = set()
    for timeline in grouped.values():
        ordered = sorted(timeline, key=lambda appointment: appointment.start)
        furthest: Appointment | None = None
        for current in ordered:
            if furthest is not None and overlaps(furthest.start, furthest.end, current.start, current.end):
                conflicts.add(furthest.id)
                conflicts.add(current.id)
            if furthest is None or current.end > furthest.end:
                furthest = current

    return conflicts
