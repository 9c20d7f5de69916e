"""Scheduler state persisted as a single row in the ``scheduler_state`` table."""

import logging
from typing import Callable

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_scheduler.core import config
from clinic_scheduler.domain.errors import VersionConflict
from clinic_scheduler.domain.types import StoredSchedulerState
from clinic_scheduler.models.scheduler_state import SchedulerStateRecord

logger = logging.getLogger(__name__)


class SqlAlchemyStatePort:
    def __init__(self, session_factory: Callable[[], Session], storage_key: str | None = None):
        self._session_factory = session_factory
        self.storage_key = storage_key or config.SCHEDULER_STORAGE_KEY

    def load_state(self) -> StoredSchedulerState | None:
        db = self._session_factory()
        try:
            record = db.get(SchedulerStateRecord, self.storage_key)
            if record is None:
                return None
            return StoredSchedulerState.model_validate_json(record.payload)
        finally:
            db.close()

    def save_state(self, state: StoredSchedulerState, previous_version: int | None = None) -> None:
        payload = state.model_dump_json(by_alias=True)
        db = self._session_factory()
        try:
            existing = db.get(SchedulerStateRecord, self.storage_key)

            if existing is None:
                db.add(
                    SchedulerStateRecord(
                        key=self.storage_key,
                        version=state.version,
                        updated_at=state.updated_at,
                        payload=payload,
                    )
                )
            elif previous_version is None:
                existing.version = state.version
                existing.updated_at = state.updated_at
                existing.payload = payload
            else:
                result = db.execute(
                    update(SchedulerStateRecord)
                    .where(
                        SchedulerStateRecord.key == self.storage_key,
                        SchedulerStateRecord.version == previous_version,
                    )
                    .values(version=state.version, updated_at=state.updated_at, payload=payload)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    db.rollback()
                    db.expire_all()
                    current = db.get(SchedulerStateRecord, self.storage_key)
                    raise VersionConflict(previous_version, current.version if current else 0)

            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception('Failed to save scheduler state %s', self.storage_key)
            raise
        finally:
            db.close()
