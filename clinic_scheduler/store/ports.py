"""Persistence and session identity ports used by the scheduler store."""

from threading import Lock
from typing import Protocol
from uuid import uuid4

from clinic_scheduler.domain.errors import VersionConflict
from clinic_scheduler.domain.types import StoredSchedulerState


class SchedulerStatePort(Protocol):
    def load_state(self) -> StoredSchedulerState | None:
        """Return the stored state, or None if nothing has been written yet.

        Raises pydantic ``ValidationError`` when the stored blob cannot be
        read back.
        """

    def save_state(self, state: StoredSchedulerState, previous_version: int | None = None) -> None:
        """Persist ``state``.

        With ``previous_version`` the write only happens if the stored version
        still equals it; otherwise ``VersionConflict`` is raised.
        """


class SessionIdentityPort(Protocol):
    def get_session_id(self) -> str | None: ...

    def set_session_id(self, session_id: str) -> None: ...


def new_session_id() -> str:
    return f'client_{uuid4()}'


def resolve_session_id(identity: SessionIdentityPort) -> str:
    existing = identity.get_session_id()
    if existing:
        return existing
    session_id = new_session_id()
    identity.set_session_id(session_id)
    return session_id


class InMemoryStatePort:
    """Keeps the state as a serialized blob so callers never share objects with it."""

    def __init__(self, raw: str | None = None):
        self._raw = raw
        self._lock = Lock()

    @property
    def raw(self) -> str | None:
        return self._raw

    def load_state(self) -> StoredSchedulerState | None:
        if self._raw is None:
            return None
        return StoredSchedulerState.model_validate_json(self._raw)

    def save_state(self, state: StoredSchedulerState, previous_version: int | None = None) -> None:
        payload = state.model_dump_json(by_alias=True)
        with self._lock:
            if previous_version is not None and self._raw is not None:
                stored_version = StoredSchedulerState.model_validate_json(self._raw).version
                if stored_version != previous_version:
                    raise VersionConflict(previous_version, stored_version)
            self._raw = payload


class InMemorySessionIdentity:
    def __init__(self, session_id: str | None = None):
        self._session_id = session_id

    def get_session_id(self) -> str | None:
        return self._session_id

    def set_session_id(self, session_id: str) -> None:
        self._session_id = session_id
