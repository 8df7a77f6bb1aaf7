from .auth import Token, LoginRequest, RegisterRequest
from .user import User, UserStatus, MeStatus, AdminUserCreate, AdminUserUpdate, AdminSessionUpdate
from .test import (
    TestSessionCreate, TestSessionCreated, TestSessionSummary, TestSessionDetail,
    AnswerSubmit, AnswerResult, DraftSave, CompleteResult, VisibilityUpdate, VisibilityResult, PublicSession
)
from .quick_session import QuickSessionRecord, GenerateQuestionsRequest, GenerateQuestionsResponse, QuickSessionPatch, QuickSessionView
from .kreplin import KreplinResultCreate, KreplinResult, KreplinAnalysis
from .duel import Participant, KreplinDuelCreate, TestDuelCreate, DuelJoin, ReadyUpdate, DuelSubmit, KreplinDuelSubmit, KreplinDuel, TestDuel
from .dashboard import DashboardData

__all__ = [
    "Token",
    "LoginRequest",
    "RegisterRequest",
    "User",
    "UserStatus",
    "MeStatus",
    "AdminUserCreate",
    "AdminUserUpdate",
    "AdminSessionUpdate",
    "TestSessionCreate",
    "TestSessionCreated",
    "TestSessionSummary",
    "TestSessionDetail",
    "AnswerSubmit",
    "AnswerResult",
    "DraftSave",
    "CompleteResult",
    "VisibilityUpdate",
    "VisibilityResult",
    "PublicSession",
    "QuickSessionRecord",
    "GenerateQuestionsRequest",
    "GenerateQuestionsResponse",
    "QuickSessionPatch",
    "QuickSessionView",
    "KreplinResultCreate",
    "KreplinResult",
    "KreplinAnalysis",
    "Participant",
    "KreplinDuelCreate",
    "TestDuelCreate",
    "DuelJoin",
    "ReadyUpdate",
    "DuelSubmit",
    "KreplinDuelSubmit",
    "KreplinDuel",
    "TestDuel",
    "DashboardData",
]
