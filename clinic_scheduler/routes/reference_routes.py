from datetime import date

from fastapi import APIRouter, Depends, Query

from clinic_scheduler.domain.types import Clinic, Therapist, TimeAway
from clinic_scheduler.reference.provider import ReferenceDataProvider, get_reference_data

router = APIRouter(tags=['reference'])


@router.get('/clinics', response_model=list[Clinic])
def list_clinics(reference: ReferenceDataProvider = Depends(get_reference_data)):
    return reference.list_clinics()


@router.get('/therapists', response_model=list[Therapist])
def list_therapists(
    clinic_id: str | None = Query(default=None),
    reference: ReferenceDataProvider = Depends(get_reference_data),
):
    therapists = reference.list_therapists()
    if clinic_id:
        therapists = [therapist for therapist in therapists if therapist.clinic_id == clinic_id]
    return therapists


@router.get('/time-away', response_model=list[TimeAway])
def list_time_away(
    therapist_id: str | None = Query(default=None),
    range_start: date | None = Query(default=None),
    range_end: date | None = Query(default=None),
    reference: ReferenceDataProvider = Depends(get_reference_data),
):
    windows = reference.list_time_away()
    if therapist_id:
        windows = [window for window in windows if window.therapist_id == therapist_id]
    if range_start:
        windows = [window for window in windows if window.date >= range_start]
    if range_end:
        windows = [window for window in windows if window.date <= range_end]
    return sorted(windows, key=lambda window: (window.date, window.start))
