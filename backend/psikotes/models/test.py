from sqlalchemy import (
    Column, String, DateTime, ForeignKey, Float, Boolean, Integer, JSON, Index, UniqueConstraint, text
)
from sqlalchemy.orm import relationship
from .base import BaseModel
from ..utils.timezone import utc_now


class TestSession(BaseModel):
    __tablename__ = "test_sessions"
    __table_args__ = (
        Index(
            "ix_test_sessions_public_id_unique",
            "public_id",
            unique=True,
            postgresql_where=text("public_id IS NOT NULL"),
            sqlite_where=text("public_id IS NOT NULL"),
        ),
    )

    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    user_type = Column(String, nullable=False)
    category = Column(String, nullable=False)
    difficulty = Column(String, nullable=False)
    question_count = Column(Integer, nullable=False)
    custom_duration_seconds = Column(Integer, nullable=True)
    questions_json = Column(JSON, nullable=False, default=list)

    started_at = Column(DateTime, default=utc_now, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    score = Column(Float, nullable=True)

    is_public = Column(Boolean, default=False, nullable=False)
    public_id = Column(String, nullable=True)

    is_draft = Column(Boolean, default=False, nullable=False)
    draft_saved_at = Column(DateTime, nullable=True)
    draft_question_index = Column(Integer, nullable=True)
    draft_timer_seconds = Column(Integer, nullable=True)

    duel_id = Column(String(36), nullable=True, index=True)
    duel_role = Column(String, nullable=True)

    user = relationship("User", back_populates="test_sessions")
    questions = relationship(
        "QuestionInstance", back_populates="session", cascade="all, delete-orphan",
        order_by="QuestionInstance.index"
    )
    answers = relationship(
        "Answer", back_populates="session", cascade="all, delete-orphan",
        order_by="Answer.question_index"
    )

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None and self.score is not None


class QuestionInstance(BaseModel):
    __tablename__ = "question_instances"
    __table_args__ = (UniqueConstraint("session_id", "index", name="uq_question_instance_session_index"),)

    session_id = Column(String(36), ForeignKey("test_sessions.id", ondelete="CASCADE"), index=True, nullable=False)
    index = Column(Integer, nullable=False)
    category = Column(String, nullable=False)
    question_type = Column(String, nullable=False)

    session = relationship("TestSession", back_populates="questions")


class Answer(BaseModel):
    __tablename__ = "answers"
    __table_args__ = (UniqueConstraint("session_id", "question_index", name="uq_answer_session_index"),)

    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    session_id = Column(String(36), ForeignKey("test_sessions.id", ondelete="CASCADE"), index=True, nullable=False)
    question_id = Column(String(36), ForeignKey("question_instances.id", ondelete="SET NULL"), nullable=True)
    question_index = Column(Integer, nullable=False)
    selected_label = Column(String(5), nullable=False)
    correct_label = Column(String(5), nullable=False)
    is_correct = Column(Boolean, nullable=False)
    category = Column(String, nullable=False)
    difficulty = Column(String, nullable=False)
    time_spent_ms = Column(Integer, default=0, nullable=False)
    answered_at = Column(DateTime, default=utc_now, nullable=False)

    session = relationship("TestSession", back_populates="answers")
