from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional


class QuestionOption(BaseModel):
    label: str
    text: str


class Question(BaseModel):
    category: str
    difficulty: str
    question_type: str
    question_text: str
    options: List[QuestionOption]
    correct_option_label: str
    explanation: str


class TestSessionCreate(BaseModel):
    user_type: str = Field(min_length=1)
    category: str = Field(min_length=1)
    difficulty: str = Field(min_length=1)
    count: int = Field(ge=1, le=30)
    custom_duration_seconds: Optional[int] = Field(default=None, ge=10, le=900)


class TestSessionCreated(BaseModel):
    session_id: str
    questions: List[Dict[str, Any]]


class TestSessionSummary(BaseModel):
    id: str
    user_type: str
    category: str
    difficulty: str
    question_count: int
    custom_duration_seconds: Optional[int] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    score: Optional[float] = None
    is_public: bool = False
    public_id: Optional[str] = None
    is_draft: bool = False
    draft_question_index: Optional[int] = None
    duel_id: Optional[str] = None
    total_answered: int = 0
    total_correct: int = 0


class AnswerOut(BaseModel):
    question_index: int
    selected_label: str
    correct_label: str
    is_correct: bool
    time_spent_ms: int
    answered_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TestSessionDetail(BaseModel):
    id: str
    user_type: str
    category: str
    difficulty: str
    question_count: int
    custom_duration_seconds: Optional[int] = None
    questions: List[Dict[str, Any]]
    answers: List[AnswerOut] = []
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    score: Optional[float] = None
    is_public: bool = False
    public_id: Optional[str] = None
    is_draft: bool = False
    draft_saved_at: Optional[datetime] = None
    draft_question_index: Optional[int] = None
    draft_timer_seconds: Optional[int] = None
    duel_id: Optional[str] = None
    duel_role: Optional[str] = None


class VisibilityUpdate(BaseModel):
    action: Literal["publish", "unpublish"]


class VisibilityResult(BaseModel):
    ok: bool = True
    is_public: bool
    public_id: Optional[str] = None


class AnswerSubmit(BaseModel):
    question_index: int = Field(ge=0)
    selected_label: str = Field(min_length=1, max_length=5)
    time_spent_ms: int = Field(default=0, ge=0)


class AnswerResult(BaseModel):
    ok: bool = True
    is_correct: bool


class DraftSave(BaseModel):
    question_index: int = Field(ge=0)
    remaining_seconds: Optional[int] = Field(default=None, ge=0)


class CompleteResult(BaseModel):
    ok: bool = True
    score: float
    answered: int
    correct: int


class PublicSession(BaseModel):
    public_id: str
    title: str
    category: str
    difficulty: str
    user_type: str
    question_count: int
    custom_duration_seconds: Optional[int] = None
    author_name: Optional[str] = None
    author_email: Optional[str] = None
    updated_at: Optional[datetime] = None
