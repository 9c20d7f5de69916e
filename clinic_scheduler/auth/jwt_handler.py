from datetime import datetime, timedelta, timezone

import jwt

from clinic_scheduler.core import config

SESSION_TOKEN_TYPE = "scheduler-session"


def create_session_token(session_id: str, expires_minutes: int | None = None) -> str:
    expire_minutes = expires_minutes or config.SESSION_TOKEN_EXPIRES_MINUTES
    issued_at = datetime.now(timezone.utc)
    payload = {
        "sub": session_id,
        "typ": SESSION_TOKEN_TYPE,
        "exp": issued_at + timedelta(minutes=expire_minutes),
        "iat": issued_at,
    }
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_session_token(token: str) -> dict:
    return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
