import logging
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.security import create_access_token, verify_token
from ..core.config import settings
from .user_service import UserService
from ..schemas.auth import Token
from ..models.user import User

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_service = UserService(db)

    def create_token_for(self, user: User) -> Token:
        access_token = create_access_token(
            data={"sub": user.id, "email": user.email},
            expires_delta=timedelta(minutes=settings.access_token_expire_minutes)
        )
        return Token(access_token=access_token, token_type="bearer")

    async def register(self, email: str, password: str, name: Optional[str] = None) -> Tuple[User, Token]:
        user = await self.user_service.create_user(email=email, password=password, name=name)
        logger.info(f"User registered: user_id={user.id}")
        return user, self.create_token_for(user)

    async def authenticate_and_create_token(
        self, email: str, password: str, ip: str = "unknown", user_agent: str = "unknown"
    ) -> Optional[Tuple[User, Token]]:
        user = await self.user_service.authenticate_user(email, password)
        if not user:
            logger.info(f"Login failed: email={email.strip().lower()} ip={ip}")
            return None

        await self.user_service.touch_last_seen(user)
        logger.info(f"Login success: user_id={user.id} ip={ip} user_agent={user_agent[:100]}")
        return user, self.create_token_for(user)

    async def get_current_user(self, token: str) -> Optional[User]:
        user_id = verify_token(token)
        if user_id is None:
            return None
        return await self.user_service.get_user_by_id(user_id)
