import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from clinic_scheduler.auth import jwt_handler
from clinic_scheduler.auth.dependencies import get_current_session_id
from clinic_scheduler.store.ports import new_session_id

router = APIRouter(tags=['session'])

logger = logging.getLogger(__name__)


class SessionResponse(BaseModel):
    session_id: str
    access_token: str
    token_type: str = 'bearer'


@router.post('', response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def start_session():
    session_id = new_session_id()
    logger.info('Started scheduler session %s', session_id)
    return SessionResponse(
        session_id=session_id,
        access_token=jwt_handler.create_session_token(session_id),
    )


@router.get('/me')
def me(session_id: str = Depends(get_current_session_id)):
    return {'session_id': session_id}
