"""Scheduler state model definitions."""

from sqlalchemy import Column, DateTime, Integer, String, Text
from clinic_scheduler.database import Base


class SchedulerStateRecord(Base):
    """Holds the whole appointment list as one JSON blob per storage key."""
    __tablename__ = "scheduler_state"

    key = Column(String, primary_key=True)
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime)
    payload = Column(Text, nullable=False)
