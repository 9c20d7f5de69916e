import os
from dotenv import load_dotenv
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker


load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./scheduler.db")


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(DATABASE_URL, connect_args=_connect_args(DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_scheduler_state_schema_checked = False


def ensure_scheduler_state_schema() -> None:
    global _scheduler_state_schema_checked

    if _scheduler_state_schema_checked:
        return

    with _schema_lock:
        if _scheduler_state_schema_checked:
            return

        from clinic_scheduler.models.scheduler_state import SchedulerStateRecord

        inspector = inspect(engine)

        if 'scheduler_state' not in inspector.get_table_names():
            Base.metadata.create_all(bind=engine, tables=[SchedulerStateRecord.__table__])
            _scheduler_state_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('scheduler_state')}
        migration_steps = [
            ('version', 'ALTER TABLE scheduler_state ADD COLUMN version INTEGER NOT NULL DEFAULT 1'),
            ('updated_at', 'ALTER TABLE scheduler_state ADD COLUMN updated_at TIMESTAMP'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))

        _scheduler_state_schema_checked = True
