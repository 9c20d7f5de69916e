import os
from datetime import datetime, time

import pytest

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from clinic_scheduler.domain.types import Clinic, Therapist, TimeAway, WorkingHours  # noqa: E402
from clinic_scheduler.reference.provider import StaticReferenceData  # noqa: E402
from clinic_scheduler.store.ports import InMemorySessionIdentity, InMemoryStatePort  # noqa: E402
from clinic_scheduler.store.scheduler_store import SchedulerStore  # noqa: E402
from scheduler_helpers import MONDAY, WEEKDAYS, StepClock  # noqa: E402


@pytest.fixture
def reference() -> StaticReferenceData:
    return StaticReferenceData(
        therapists=[
            Therapist(
                id='t1',
                name='Alex Morgan',
                role='PT',
                clinic_id='c1',
                working_hours=WorkingHours(start=time(8, 0), end=time(16, 0), days=WEEKDAYS),
            ),
            Therapist(
                id='t2',
                name='Priya Desai',
                role='OT',
                clinic_id='c1',
                working_hours=WorkingHours(start=time(9, 0), end=time(17, 0), days=WEEKDAYS),
            ),
        ],
        time_away=[
            TimeAway(
                id='away_1',
                therapist_id='t2',
                date=MONDAY,
                start=time(12, 0),
                end=time(13, 0),
                reason='Team meeting',
            ),
        ],
        clinics=[Clinic(id='c1', name='Redwood Clinic', location='North')],
    )


@pytest.fixture
def clock() -> StepClock:
    return StepClock(datetime(2026, 1, 2, 8, 0))


@pytest.fixture
def state_port() -> InMemoryStatePort:
    return InMemoryStatePort()


@pytest.fixture
def make_store(state_port, reference, clock):
    def _make_store(session_id: str, **kwargs) -> SchedulerStore:
        return SchedulerStore(
            kwargs.pop('state_port', state_port),
            reference,
            InMemorySessionIdentity(session_id),
            clock=clock,
            **kwargs,
        )

    return _make_store
