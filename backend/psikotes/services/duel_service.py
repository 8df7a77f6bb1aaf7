import logging
import secrets
from typing import Any, Dict, Optional, Tuple, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.duel import KreplinDuel, TestDuel
from ..models.user import User
from ..schemas.duel import KreplinDuelCreate, TestDuelCreate, DuelSubmit
from ..utils.gemini_service import GenerationParams
from ..utils.timezone import utc_now
from .test_service import TestService, QuestionGenerator

logger = logging.getLogger(__name__)

ROOM_CODE_CHARS = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 6


class DuelNotFoundError(Exception):
    pass


class DuelFullError(Exception):
    pass


class DuelForbiddenError(Exception):
    pass


def generate_room_code() -> str:
    return "".join(secrets.choice(ROOM_CODE_CHARS) for _ in range(ROOM_CODE_LENGTH))


def participant_slot(user: User, session_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "user_id": user.id,
        "name": user.name,
        "email": user.email,
        "ready": False,
        "session_id": session_id,
        "result_id": None,
        "total_correct": None,
        "total_answered": None,
        "accuracy": None,
    }


def next_ready_state(duel, now=None) -> None:
    """
    Recompute status after a readiness change.
    Both ready -> active, stamping started_at only on entry. Otherwise back to
    ready with started_at cleared, so a new active phase gets a fresh start time.
    """
    host_ready = bool(duel.host and duel.host.get("ready"))
    guest_ready = bool(duel.guest and duel.guest.get("ready"))
    if host_ready and guest_ready:
        if duel.status != "active":
            duel.status = "active"
            duel.started_at = now or utc_now()
    else:
        duel.status = "ready"
        duel.started_at = None


class DuelService:
    """Room lifecycle shared by Kreplin duels and test duels."""

    model: Type = None

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _unique_room_code(self, attempts: int = 5) -> str:
        code = generate_room_code()
        for _ in range(attempts):
            exists = (await self.db.execute(
                select(self.model.id).filter(self.model.room_code == code)
            )).first()
            if not exists:
                return code
            code = generate_room_code()
        return code

    async def _load(self, duel_id: str, lock: bool = False):
        query = select(self.model).filter(self.model.id == duel_id)
        if lock:
            query = query.with_for_update()
        duel = (await self.db.execute(query)).scalars().first()
        if duel is None:
            raise DuelNotFoundError("Duel tidak ditemukan.")
        return duel

    @staticmethod
    def role_of(duel, user_id: str) -> Optional[str]:
        if duel.host and duel.host.get("user_id") == user_id:
            return "host"
        if duel.guest and duel.guest.get("user_id") == user_id:
            return "guest"
        return None

    async def get_for_participant(self, duel_id: str, user_id: str):
        duel = await self._load(duel_id)
        if self.role_of(duel, user_id) is None:
            raise DuelForbiddenError("Anda bukan peserta duel ini.")
        return duel

    async def _find_open_by_code(self, room_code: str, lock: bool = True):
        query = select(self.model).filter(
            self.model.room_code == room_code.strip().upper(),
            self.model.status != "completed",
        )
        if lock:
            query = query.with_for_update()
        duel = (await self.db.execute(query)).scalars().first()
        if duel is None:
            raise DuelNotFoundError("Kode room tidak ditemukan atau duel sudah selesai.")
        return duel

    async def _on_guest_joined(self, duel, user: User) -> Optional[str]:
        """Hook for per-participant setup. Returns the guest's session id, if any."""
        return None

    async def join(self, user: User, room_code: str):
        duel = await self._find_open_by_code(room_code)

        if self.role_of(duel, user.id) is not None:
            await self.db.commit()
            return duel

        if duel.guest and duel.guest.get("user_id"):
            await self.db.rollback()
            raise DuelFullError("Room sudah penuh.")

        session_id = await self._on_guest_joined(duel, user)
        # JSON columns only persist on reassignment
        duel.guest = participant_slot(user, session_id)
        duel.status = "waiting"
        await self.db.commit()
        await self.db.refresh(duel)
        logger.info(f"User {user.id} joined {self.model.__tablename__} room {duel.room_code}")
        return duel

    async def set_ready(self, duel_id: str, user_id: str, ready: bool):
        duel = await self._load(duel_id, lock=True)
        role = self.role_of(duel, user_id)
        if role is None:
            await self.db.rollback()
            raise DuelForbiddenError("Anda bukan peserta duel ini.")
        if duel.status == "completed":
            await self.db.commit()
            return duel

        slot = dict(getattr(duel, role))
        slot["ready"] = ready
        setattr(duel, role, slot)
        next_ready_state(duel)
        await self.db.commit()
        await self.db.refresh(duel)
        return duel

    def _default_result_id(self, slot: Dict[str, Any]) -> Optional[str]:
        return None

    async def submit_result(self, duel_id: str, user_id: str, data: DuelSubmit):
        duel = await self._load(duel_id, lock=True)
        role = self.role_of(duel, user_id)
        if role is None:
            await self.db.rollback()
            raise DuelForbiddenError("Anda bukan peserta duel ini.")

        slot = dict(getattr(duel, role))
        # a re-submit without an id keeps the one already stored
        slot["result_id"] = data.result_id or slot.get("result_id") or self._default_result_id(slot)
        slot["total_correct"] = data.total_correct
        slot["total_answered"] = data.total_answered
        slot["accuracy"] = data.accuracy
        setattr(duel, role, slot)

        host_done = bool(duel.host and duel.host.get("result_id"))
        guest_done = bool(duel.guest and duel.guest.get("result_id"))
        if host_done and guest_done and duel.status != "completed":
            duel.status = "completed"
            duel.ended_at = utc_now()
            logger.info(f"Duel {duel.id} completed")

        await self.db.commit()
        await self.db.refresh(duel)
        return duel


class KreplinDuelService(DuelService):
    model = KreplinDuel

    async def create(self, user: User, data: KreplinDuelCreate) -> KreplinDuel:
        duel = KreplinDuel(
            room_code=await self._unique_room_code(),
            status="waiting",
            duration_seconds=data.duration_seconds,
            mode="tryout",
            host=participant_slot(user),
            guest=None,
        )
        self.db.add(duel)
        await self.db.commit()
        await self.db.refresh(duel)
        logger.info(f"Kreplin duel {duel.id} created by {user.id} (room {duel.room_code})")
        return duel


class TestDuelService(DuelService):
    model = TestDuel

    def __init__(self, db: AsyncSession, generator: Optional[QuestionGenerator] = None):
        super().__init__(db)
        self.test_service = TestService(db, generator)

    async def create(self, user: User, data: TestDuelCreate) -> Tuple[TestDuel, str]:
        if data.type == "public":
            source = await self.test_service.get_public_session(data.public_id)
            questions = list(source.questions_json)
            meta = {
                "user_type": source.user_type,
                "category": source.category,
                "difficulty": source.difficulty,
                "custom_duration_seconds": source.custom_duration_seconds,
                "public_id": data.public_id,
            }
        else:
            questions = await self.test_service.generator.generate_questions(
                GenerationParams(
                    user_type=data.user_type,
                    category=data.category,
                    difficulty=data.difficulty,
                    count=data.count,
                )
            )
            meta = {
                "user_type": data.user_type,
                "category": data.category,
                "difficulty": data.difficulty,
                "custom_duration_seconds": data.custom_duration_seconds,
                "public_id": None,
            }

        duel = TestDuel(
            room_code=await self._unique_room_code(),
            status="waiting",
            source_type=data.type,
            question_count=len(questions),
            questions_json=questions,
            duration_seconds=meta["custom_duration_seconds"],
            host=participant_slot(user),
            guest=None,
            **meta,
        )
        self.db.add(duel)
        await self.db.flush()

        host_session = await self.test_service.create_session_from_snapshot(
            user.id, duel, duel_id=duel.id, duel_role="host", commit=False
        )
        duel.host = participant_slot(user, host_session.id)
        await self.db.commit()
        await self.db.refresh(duel)
        logger.info(f"Test duel {duel.id} created by {user.id} (room {duel.room_code})")
        return duel, host_session.id

    async def _on_guest_joined(self, duel: TestDuel, user: User) -> Optional[str]:
        guest_session = await self.test_service.create_session_from_snapshot(
            user.id, duel, duel_id=duel.id, duel_role="guest", commit=False
        )
        return guest_session.id

    def _default_result_id(self, slot: Dict[str, Any]) -> Optional[str]:
        return slot.get("session_id")

    @staticmethod
    def session_id_for(duel: TestDuel, user_id: str) -> Optional[str]:
        role = DuelService.role_of(duel, user_id)
        slot = getattr(duel, role) if role else None
        return slot.get("session_id") if slot else None
