from typing import Any, Dict

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.test import TestSession, Answer


def _percent(part: int, whole: int) -> float:
    return part / whole * 100 if whole > 0 else 0.0


class DashboardService:
    """Per-user analytics aggregated in SQL over answers and sessions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_dashboard(self, user_id: str, recent_limit: int = 20) -> Dict[str, Any]:
        correct_expr = func.sum(case((Answer.is_correct.is_(True), 1), else_=0))

        total, correct, total_time = (await self.db.execute(
            select(func.count(Answer.id), correct_expr, func.sum(Answer.time_spent_ms))
            .filter(Answer.user_id == user_id)
        )).one()
        total = int(total or 0)
        correct = int(correct or 0)
        total_time = int(total_time or 0)

        category_rows = (await self.db.execute(
            select(Answer.category, func.count(Answer.id), correct_expr)
            .filter(Answer.user_id == user_id)
            .group_by(Answer.category)
        )).all()
        category_accuracy = {
            category: {
                "correct": int(cat_correct or 0),
                "total": int(cat_total or 0),
                "accuracy": _percent(int(cat_correct or 0), int(cat_total or 0)),
            }
            for category, cat_total, cat_correct in category_rows
        }

        completed = (await self.db.execute(
            select(func.count(TestSession.id))
            .filter(TestSession.user_id == user_id, TestSession.completed_at.is_not(None))
        )).scalar_one()

        per_session = (
            select(
                Answer.session_id.label("session_id"),
                func.count(Answer.id).label("total"),
                correct_expr.label("correct"),
            )
            .filter(Answer.user_id == user_id)
            .group_by(Answer.session_id)
            .subquery()
        )
        recent_rows = (await self.db.execute(
            select(TestSession, per_session.c.total, per_session.c.correct)
            .outerjoin(per_session, per_session.c.session_id == TestSession.id)
            .filter(TestSession.user_id == user_id)
            .order_by(TestSession.started_at.desc())
            .limit(recent_limit)
        )).all()

        recent_sessions = []
        for db_session, answered, session_correct in recent_rows:
            session_correct = int(session_correct or 0)
            # sessions without answers are measured against their question count
            denominator = int(answered) if answered else db_session.question_count
            recent_sessions.append({
                "id": db_session.id,
                "started_at": db_session.started_at,
                "completed_at": db_session.completed_at,
                "question_count": db_session.question_count,
                "correct_count": session_correct,
                "accuracy": _percent(session_correct, denominator),
            })

        return {
            "total_sessions_completed": int(completed or 0),
            "total_questions_answered": total,
            "total_correct": correct,
            "total_incorrect": total - correct,
            "average_accuracy": _percent(correct, total),
            "average_time_per_question_seconds": total_time / total / 1000 if total > 0 else 0.0,
            "category_accuracy": category_accuracy,
            "recent_sessions": recent_sessions,
        }
