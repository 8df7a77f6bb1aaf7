import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ... import deps
from ....core.database import get_async_db
from ....models.user import User as UserModel
from ....schemas.user import AdminUserCreate, AdminUserUpdate, AdminSessionUpdate, AdminUserSummary, User
from ....schemas.test import VisibilityResult
from ....services.user_service import UserService, EmailAlreadyRegisteredError, InvalidUserUpdateError
from ....services.test_service import TestService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/users", response_model=List[AdminUserSummary])
async def list_users(
    admin: UserModel = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_async_db)
):
    rows = await UserService(db).list_users_with_stats()
    return [
        AdminUserSummary.model_validate(user).model_copy(
            update={"total_sessions": total, "completed_sessions": completed}
        )
        for user, total, completed in rows
    ]


@router.post("/users", response_model=User, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: AdminUserCreate,
    admin: UserModel = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_async_db)
):
    try:
        user = await UserService(db).admin_create_user(payload)
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    logger.info(f"Admin {admin.id} created user {user.id} ({user.role})")
    return user


@router.patch("/users/{user_id}", response_model=User)
async def update_user(
    user_id: str,
    payload: AdminUserUpdate,
    admin: UserModel = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_async_db)
):
    admin_id = admin.id
    try:
        user = await UserService(db).admin_update_user(user_id, payload)
    except InvalidUserUpdateError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pengguna tidak ditemukan.")
    logger.info(f"Admin {admin_id} updated user {user_id}: {payload.model_dump(exclude_unset=True)}")
    return user


@router.patch("/sessions/{session_id}", response_model=VisibilityResult)
async def update_session_visibility(
    session_id: str,
    payload: AdminSessionUpdate,
    admin: UserModel = Depends(deps.get_current_admin),
    db: AsyncSession = Depends(get_async_db)
):
    service = TestService(db)
    db_session = await service.get_session_by_id(session_id)
    if db_session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sesi tidak ditemukan.")
    db_session = await service.set_visibility(db_session, payload.is_public)
    return {"ok": True, "is_public": db_session.is_public, "public_id": db_session.public_id}
