from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.database import get_async_db
from ....api.deps import get_current_user
from ....models.user import User as UserModel
from ....schemas.user import User, MeStatus, UserStatus
from ....services.user_service import UserService, is_online

router = APIRouter()


@router.get("/users/me", response_model=User)
async def read_users_me(
    current_user: UserModel = Depends(get_current_user)
):
    return current_user


@router.get("/me/status", response_model=MeStatus)
async def heartbeat(
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    """Catat kehadiran; status online jika terakhir terlihat kurang dari 5 menit lalu."""
    previous = await UserService(db).touch_last_seen(current_user)
    return {
        "status": "online" if is_online(previous) else "offline",
        "last_seen_at": current_user.last_seen_at,
    }


@router.get("/user-status", response_model=List[UserStatus])
async def list_user_status(
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    return await UserService(db).list_user_statuses()
