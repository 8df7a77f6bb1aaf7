from .base import BaseModel
from .user import User
from .test import TestSession, QuestionInstance, Answer
from .kreplin import KreplinResult
from .duel import KreplinDuel, TestDuel

__all__ = [
    "BaseModel",
    "User",
    "TestSession",
    "QuestionInstance",
    "Answer",
    "KreplinResult",
    "KreplinDuel",
    "TestDuel",
]
