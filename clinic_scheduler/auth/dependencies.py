from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from clinic_scheduler.auth import jwt_handler

security = HTTPBearer()


def get_current_session_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_session_token(token)
    except Exception as exc:
        raise HTTPException(status_code=401, detail="Invalid session token") from exc

    if payload.get("typ") != jwt_handler.SESSION_TOKEN_TYPE:
        raise HTTPException(status_code=401, detail="Invalid session token type")

    session_id = payload.get("sub")
    if not session_id:
        raise HTTPException(status_code=401, detail="Invalid session token subject")
    return session_id
