from sqlalchemy import Column, String, DateTime, Integer, JSON
from .base import BaseModel


class DuelMixin:
    room_code = Column(String(12), unique=True, index=True, nullable=False)
    status = Column(String, default="waiting", nullable=False)
    duration_seconds = Column(Integer, nullable=True)
    # participant slots: user_id, name, email, ready, session_id, result_id, totals
    host = Column(JSON, nullable=False)
    guest = Column(JSON, nullable=True)
    started_at = Column(DateTime, nullable=True)
    ended_at = Column(DateTime, nullable=True)


class KreplinDuel(DuelMixin, BaseModel):
    __tablename__ = "kreplin_duels"

    mode = Column(String, default="tryout", nullable=False)


class TestDuel(DuelMixin, BaseModel):
    __tablename__ = "test_duels"

    source_type = Column(String, nullable=False)
    public_id = Column(String, nullable=True)
    user_type = Column(String, nullable=False)
    category = Column(String, nullable=False)
    difficulty = Column(String, nullable=False)
    question_count = Column(Integer, nullable=False)
    custom_duration_seconds = Column(Integer, nullable=True)
    questions_json = Column(JSON, nullable=False, default=list)
