"""Read-only therapist, clinic, and time-away data."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Protocol

from pydantic import BaseModel, Field

from clinic_scheduler.core import config
from clinic_scheduler.domain.types import Clinic, Therapist, TimeAway

logger = logging.getLogger(__name__)


class ReferenceDataProvider(Protocol):
    def list_clinics(self) -> list[Clinic]: ...

    def list_therapists(self) -> list[Therapist]: ...

    def list_time_away(self) -> list[TimeAway]: ...

    def get_therapist(self, therapist_id: str) -> Therapist | None: ...


class ReferenceDataDocument(BaseModel):
    clinics: list[Clinic] = Field(default_factory=list)
    therapists: list[Therapist] = Field(default_factory=list)
    time_away: list[TimeAway] = Field(default_factory=list)


class StaticReferenceData:
    def __init__(
        self,
        therapists: Iterable[Therapist] = (),
        time_away: Iterable[TimeAway] = (),
        clinics: Iterable[Clinic] = (),
    ):
        self._clinics = list(clinics)
        self._therapists = list(therapists)
        self._time_away = list(time_away)
        self._therapists_by_id = {therapist.id: therapist for therapist in self._therapists}

    def list_clinics(self) -> list[Clinic]:
        return list(self._clinics)

    def list_therapists(self) -> list[Therapist]:
        return list(self._therapists)

    def list_time_away(self) -> list[TimeAway]:
        return list(self._time_away)

    def get_therapist(self, therapist_id: str) -> Therapist | None:
        return self._therapists_by_id.get(therapist_id)


@lru_cache(maxsize=1)
def get_reference_data() -> StaticReferenceData:
    if not config.REFERENCE_DATA_PATH:
        logger.warning('REFERENCE_DATA_PATH is not set; no therapists are available')
        return StaticReferenceData()
    return load_reference_data(config.REFERENCE_DATA_PATH)


def load_reference_data(path: str | Path) -> StaticReferenceData:
    document = ReferenceDataDocument.model_validate_json(Path(path).read_text(encoding='utf-8'))
    logger.info(
        'Loaded reference data from %s: %d clinics, %d therapists, %d time-away windows',
        path,
        len(document.clinics),
        len(document.therapists),
        len(document.time_away),
    )
    return StaticReferenceData(
        therapists=document.therapists,
        time_away=document.time_away,
        clinics=document.clinics,
    )
