from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.cache import cache, CacheManager
from ..core.config import settings
from ..core.database import get_async_db
from ..core.security import oauth2_scheme
from ..models.user import User
from ..services.auth_service import AuthService
from ..services.session_store import QuickSessionStore
from ..utils.gemini_service import GeminiService


async def get_current_user(
    request: Request,
    bearer_token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_async_db)
) -> User:
    token = request.cookies.get(settings.auth_cookie_name) or bearer_token
    user = await AuthService(db).get_current_user(token) if token else None

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


async def get_current_admin(
    current_user: User = Depends(get_current_user),
) -> User:
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return current_user


@lru_cache
def get_question_generator() -> GeminiService:
    return GeminiService()


@lru_cache
def get_quick_session_store() -> QuickSessionStore:
    return QuickSessionStore(settings.session_store_path)


def get_question_cache() -> CacheManager:
    return cache
