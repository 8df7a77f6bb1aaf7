from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ... import deps
from ....core.database import get_async_db
from ....models.user import User
from ....schemas.duel import KreplinDuelCreate, KreplinDuel, DuelJoin, ReadyUpdate, KreplinDuelSubmit
from ....services.duel_service import KreplinDuelService, DuelNotFoundError, DuelFullError, DuelForbiddenError

router = APIRouter()


@router.post("", response_model=KreplinDuel, status_code=status.HTTP_201_CREATED)
async def create_duel(
    payload: KreplinDuelCreate,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    return await KreplinDuelService(db).create(current_user, payload)


@router.post("/join", response_model=KreplinDuel)
async def join_duel(
    payload: DuelJoin,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    try:
        return await KreplinDuelService(db).join(current_user, payload.room_code)
    except (DuelNotFoundError, DuelFullError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/{duel_id}", response_model=KreplinDuel)
async def get_duel(
    duel_id: str,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    try:
        return await KreplinDuelService(db).get_for_participant(duel_id, current_user.id)
    except DuelNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DuelForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.patch("/{duel_id}", response_model=KreplinDuel)
async def toggle_ready(
    duel_id: str,
    payload: ReadyUpdate,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    user_id = current_user.id
    try:
        return await KreplinDuelService(db).set_ready(duel_id, user_id, payload.ready)
    except DuelNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DuelForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.post("/{duel_id}/submit", response_model=KreplinDuel)
async def submit_result(
    duel_id: str,
    payload: KreplinDuelSubmit,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    user_id = current_user.id
    try:
        return await KreplinDuelService(db).submit_result(duel_id, user_id, payload)
    except DuelNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DuelForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
