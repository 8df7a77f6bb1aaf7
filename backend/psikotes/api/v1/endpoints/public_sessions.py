from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ... import deps
from ....core.database import get_async_db
from ....models.user import User
from ....schemas.test import PublicSession, TestSessionCreated
from ....services.test_service import TestService, PublicSessionNotFoundError

router = APIRouter()


@router.get("", response_model=List[PublicSession])
async def list_public_sessions(
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    return await TestService(db).list_public_sessions()


@router.post("/{public_id}/start", response_model=TestSessionCreated, status_code=status.HTTP_201_CREATED)
async def start_public_session(
    public_id: str,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    try:
        db_session = await TestService(db).start_public_session(current_user.id, public_id)
    except PublicSessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"session_id": db_session.id, "questions": db_session.questions_json}
