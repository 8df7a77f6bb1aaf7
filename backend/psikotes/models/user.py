from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from .base import BaseModel


class User(BaseModel):
    __tablename__ = "users"

    name = Column(String, nullable=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, default="user", nullable=False)
    membership_type = Column(String, default="non_member", nullable=False)
    membership_expires_at = Column(DateTime, nullable=True)
    last_seen_at = Column(DateTime, nullable=True)

    test_sessions = relationship("TestSession", back_populates="user")
    kreplin_results = relationship("KreplinResult", back_populates="user")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
