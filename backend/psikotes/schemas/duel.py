from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

DuelStatus = Literal["waiting", "ready", "active", "completed"]


class Participant(BaseModel):
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    ready: bool = False
    session_id: Optional[str] = None
    result_id: Optional[str] = None
    total_correct: Optional[int] = None
    total_answered: Optional[int] = None
    accuracy: Optional[float] = None


class KreplinDuelCreate(BaseModel):
    duration_seconds: int = Field(default=600, ge=60, le=3600)


class TestDuelCreate(BaseModel):
    type: Literal["generated", "public"] = "generated"
    user_type: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None
    count: Optional[int] = Field(default=None, ge=1, le=30)
    custom_duration_seconds: Optional[int] = Field(default=None, ge=10, le=900)
    public_id: Optional[str] = None

    @model_validator(mode="after")
    def check_source(self):
        if self.type == "public":
            if not self.public_id:
                raise ValueError("public_id is required for public duels")
        elif not (self.user_type and self.category and self.difficulty and self.count):
            raise ValueError("user_type, category, difficulty and count are required")
        return self


class DuelJoin(BaseModel):
    room_code: str = Field(min_length=4, max_length=12)


class ReadyUpdate(BaseModel):
    ready: bool


class DuelSubmit(BaseModel):
    result_id: Optional[str] = None
    total_correct: int = Field(ge=0)
    total_answered: int = Field(ge=0)
    accuracy: float = Field(ge=0, le=100)


class KreplinDuelSubmit(DuelSubmit):
    """Kreplin submissions must reference the saved KreplinResult."""
    result_id: str = Field(min_length=1)


class Duel(BaseModel):
    id: str
    room_code: str
    status: DuelStatus
    duration_seconds: Optional[int] = None
    host: Participant
    guest: Optional[Participant] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class KreplinDuel(Duel):
    mode: str = "tryout"


class TestDuel(Duel):
    source_type: Literal["generated", "public"]
    public_id: Optional[str] = None
    user_type: str
    category: str
    difficulty: str
    question_count: int
    custom_duration_seconds: Optional[int] = None
    questions_json: List[Dict[str, Any]] = []
