from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Literal, Optional


class SectionStat(BaseModel):
    index: int = Field(ge=0)
    correct: int = Field(ge=0)
    total: int = Field(ge=0)


class KreplinResultCreate(BaseModel):
    mode: Literal["manual", "auto", "tryout"]
    duration_seconds: int = Field(ge=1)
    total_sections: int = Field(default=0, ge=0)
    total_answered: int = Field(ge=0)
    total_correct: int = Field(ge=0)
    total_incorrect: int = Field(ge=0)
    accuracy: float = Field(ge=0, le=100)
    per_section_stats: List[SectionStat] = []
    speed_timeline: List[SectionStat] = []


class KreplinResult(KreplinResultCreate):
    id: str
    created_at: Optional[datetime] = None
    ai_analysis_text: Optional[str] = None
    ai_analysis_model: Optional[str] = None
    ai_analysis_created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class KreplinAnalysis(BaseModel):
    analysis: str
    model: str
    created_at: datetime
