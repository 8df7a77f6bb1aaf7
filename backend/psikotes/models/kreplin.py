from sqlalchemy import Column, String, DateTime, ForeignKey, Float, Integer, JSON, Text
from sqlalchemy.orm import relationship
from .base import BaseModel


class KreplinResult(BaseModel):
    __tablename__ = "kreplin_results"

    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    mode = Column(String, nullable=False)
    duration_seconds = Column(Integer, nullable=False)
    total_sections = Column(Integer, nullable=False)
    total_answered = Column(Integer, nullable=False)
    total_correct = Column(Integer, nullable=False)
    total_incorrect = Column(Integer, nullable=False)
    accuracy = Column(Float, nullable=False)
    per_section_stats = Column(JSON, nullable=False, default=list)
    speed_timeline = Column(JSON, nullable=False, default=list)

    # written at most once, see kreplin_service.save_analysis
    ai_analysis_text = Column(Text, nullable=True)
    ai_analysis_model = Column(String, nullable=True)
    ai_analysis_created_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="kreplin_results")
