from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Literal, Optional


class AnswerSnapshot(BaseModel):
    selected: Optional[str] = None
    is_correct: bool = False
    time_spent: Optional[float] = None
    auto_advance: bool = False


class SessionConfig(BaseModel):
    user_type: str
    category: str
    difficulty: str
    count: int
    custom_time_seconds: Optional[int] = None


class QuickSessionRecord(BaseModel):
    """Satu sesi latihan anonim yang disimpan di file snapshot."""
    session_id: str
    questions: List[Dict[str, Any]]
    answers: Dict[int, AnswerSnapshot] = {}
    current_index: int = 0
    completed: bool = False
    config: SessionConfig
    started_at: int
    updated_at: int


class GenerateQuestionsRequest(BaseModel):
    category: str = "mixed"
    difficulty: str = "sulit"
    user_type: str = "santai"
    count: int = 10
    custom_time_seconds: Optional[int] = Field(default=None, ge=10, le=900)
    session_id: Optional[str] = None

    @field_validator("count", mode="before")
    @classmethod
    def clamp_count(cls, value):
        try:
            count = int(value)
        except (TypeError, ValueError):
            count = 10
        return min(max(count, 1), 50)


class SessionProgress(BaseModel):
    answers: Dict[int, AnswerSnapshot]
    current_index: int
    completed: bool


class QuickSessionView(BaseModel):
    """Bentuk respons yang sama untuk generate, get, list dan patch."""
    session_id: str
    questions: List[Dict[str, Any]]
    progress: SessionProgress
    config: SessionConfig
    started_at: int
    updated_at: int


class GenerateQuestionsResponse(QuickSessionView):
    source: Literal["resume", "cache", "fresh"]


class QuickSessionPatch(BaseModel):
    answers: Optional[Dict[int, AnswerSnapshot]] = None
    current_index: Optional[int] = Field(default=None, ge=0)
    completed: Optional[bool] = None
