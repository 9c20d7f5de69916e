import os

from dotenv import load_dotenv

load_dotenv()

def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
DEBUG = _get_bool(os.getenv("DEBUG"), default=False)

SCHEDULER_STORAGE_KEY = os.getenv("SCHEDULER_STORAGE_KEY", "scheduler:poc:v1")
SLOT_MINUTES = int(os.getenv("SLOT_MINUTES", "15"))
REFRESH_INTERVAL_SECONDS = float(os.getenv("REFRESH_INTERVAL_SECONDS", "5"))
REFERENCE_DATA_PATH = os.getenv("REFERENCE_DATA_PATH", "")

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:5173"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
SESSION_TOKEN_EXPIRES_MINUTES = int(os.getenv("SESSION_TOKEN_EXPIRES_MINUTES", "480"))

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if SLOT_MINUTES <= 0:
        raise RuntimeError("SLOT_MINUTES must be a positive number of minutes.")
