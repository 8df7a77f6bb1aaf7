from pydantic import BaseModel
from datetime import datetime
from typing import Dict, List, Optional


class CategoryAccuracy(BaseModel):
    correct: int
    total: int
    accuracy: float


class RecentSession(BaseModel):
    id: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    question_count: int
    correct_count: int
    accuracy: float


class DashboardData(BaseModel):
    total_sessions_completed: int
    total_questions_answered: int
    total_correct: int
    total_incorrect: int
    average_accuracy: float
    average_time_per_question_seconds: float
    category_accuracy: Dict[str, CategoryAccuracy]
    recent_sessions: List[RecentSession]
