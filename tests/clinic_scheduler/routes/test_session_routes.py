import jwt
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from clinic_scheduler.auth import jwt_handler
from clinic_scheduler.auth.dependencies import get_current_session_id
from clinic_scheduler.core import config
from clinic_scheduler.routes.session_routes import me, start_session


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_start_session_issues_token_for_new_session_id() -> None:
    response = start_session()

    assert response.session_id.startswith('client_')
    assert response.token_type == 'bearer'
    assert get_current_session_id(_credentials(response.access_token)) == response.session_id


def test_each_session_gets_its_own_id() -> None:
    assert start_session().session_id != start_session().session_id


def test_me_echoes_session_id() -> None:
    assert me(session_id='client_abc') == {'session_id': 'client_abc'}


def test_get_current_session_id_rejects_garbage_token() -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_session_id(_credentials('not-a-token'))

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid session token'


def test_get_current_session_id_rejects_other_token_types() -> None:
    token = jwt.encode({'sub': 'someone@example.edu'}, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)

    with pytest.raises(HTTPException) as exception_info:
        get_current_session_id(_credentials(token))

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid session token type'


def test_expired_session_token_is_rejected() -> None:
    token = jwt_handler.create_session_token('client_old', expires_minutes=-1)

    with pytest.raises(HTTPException) as exception_info:
        get_current_session_id(_credentials(token))

    assert exception_info.value.status_code == 401
