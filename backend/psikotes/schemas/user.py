from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Literal, Optional

Role = Literal["user", "admin"]
MembershipType = Literal["member", "non_member"]


class User(BaseModel):
    id: str
    email: EmailStr
    name: Optional[str] = None
    role: Role = "user"
    membership_type: MembershipType = "non_member"
    membership_expires_at: Optional[datetime] = None
    last_seen_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserStatus(BaseModel):
    id: str
    email: EmailStr
    name: Optional[str] = None
    status: Literal["online", "offline"]
    last_seen_at: Optional[datetime] = None


class MeStatus(BaseModel):
    status: Literal["online", "offline"]
    last_seen_at: Optional[datetime] = None


class AdminUserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: Optional[str] = Field(default=None, max_length=120)
    role: Role = "user"
    membership_type: MembershipType = "non_member"


class AdminUserUpdate(BaseModel):
    """Semua field opsional; minimal satu harus diisi."""
    role: Optional[Role] = None
    membership_type: Optional[MembershipType] = None
    # string so an unparseable date can be answered with 400 by the service
    membership_expires_at: Optional[str] = None

    def has_changes(self) -> bool:
        return bool(self.model_fields_set)


class AdminSessionUpdate(BaseModel):
    is_public: bool


class AdminUserSummary(User):
    total_sessions: int = 0
    completed_sessions: int = 0
