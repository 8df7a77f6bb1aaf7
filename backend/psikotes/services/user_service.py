from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from sqlalchemy import select, func, case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.user import User
from ..models.test import TestSession
from ..schemas.user import AdminUserCreate, AdminUserUpdate
from ..core.security import get_password_hash, verify_password
from ..utils.timezone import utc_now

ONLINE_THRESHOLD = timedelta(minutes=5)


class EmailAlreadyRegisteredError(Exception):
    pass


class InvalidUserUpdateError(Exception):
    pass


def is_online(last_seen_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if last_seen_at is None:
        return False
    return (now or utc_now()) - last_seen_at < ONLINE_THRESHOLD


def parse_expiry(value: Optional[str]) -> Optional[datetime]:
    """ISO date or datetime to naive UTC; empty means no expiry."""
    if value is None or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        raise InvalidUserUpdateError("Tanggal kedaluwarsa tidak valid.")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).filter(User.email == email.strip().lower()))
        return result.scalars().first()

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def create_user(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        role: str = "user",
        membership_type: str = "non_member",
    ) -> User:
        db_user = User(
            email=email.strip().lower(),
            name=(name or "").strip() or None,
            hashed_password=get_password_hash(password),
            role=role,
            membership_type=membership_type,
        )
        self.db.add(db_user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise EmailAlreadyRegisteredError("Email sudah terdaftar.")
        await self.db.refresh(db_user)
        return db_user

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        user = await self.get_user_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            return None
        return user

    async def touch_last_seen(self, user: User) -> Optional[datetime]:
        """Stamp last_seen_at and return the previous value."""
        previous = user.last_seen_at
        user.last_seen_at = utc_now()
        await self.db.commit()
        return previous

    async def list_user_statuses(self) -> List[dict]:
        result = await self.db.execute(select(User).order_by(User.last_seen_at.desc().nulls_last(), User.email))
        now = utc_now()
        return [
            {
                "id": user.id,
                "email": user.email,
                "name": user.name,
                "status": "online" if is_online(user.last_seen_at, now) else "offline",
                "last_seen_at": user.last_seen_at,
            }
            for user in result.scalars().all()
        ]

    async def list_users_with_stats(self) -> List[Tuple[User, int, int]]:
        total = func.count(TestSession.id)
        completed = func.sum(case((TestSession.completed_at.is_not(None), 1), else_=0))
        result = await self.db.execute(
            select(User, total, completed)
            .outerjoin(TestSession, TestSession.user_id == User.id)
            .group_by(User.id)
            .order_by(User.created_at.desc())
        )
        return [(user, int(total or 0), int(completed or 0)) for user, total, completed in result.all()]

    async def admin_create_user(self, data: AdminUserCreate) -> User:
        return await self.create_user(
            email=data.email,
            password=data.password,
            name=data.name,
            role=data.role,
            membership_type=data.membership_type,
        )

    async def admin_update_user(self, user_id: str, data: AdminUserUpdate) -> Optional[User]:
        if not data.has_changes():
            raise InvalidUserUpdateError("Tidak ada perubahan yang dikirim.")

        user = await self.get_user_by_id(user_id)
        if not user:
            return None

        if data.role is not None:
            user.role = data.role
        if "membership_expires_at" in data.model_fields_set:
            user.membership_expires_at = parse_expiry(data.membership_expires_at)
        if data.membership_type is not None:
            user.membership_type = data.membership_type
            if data.membership_type == "non_member":
                user.membership_expires_at = None

        await self.db.commit()
        await self.db.refresh(user)
        return user
