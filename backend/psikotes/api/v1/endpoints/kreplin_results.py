import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ... import deps
from ....core.database import get_async_db
from ....models.user import User
from ....schemas.kreplin import KreplinResultCreate, KreplinResult, KreplinAnalysis
from ....services.kreplin_service import KreplinService, AnalysisExistsError

logger = logging.getLogger(__name__)

router = APIRouter()

RESULT_NOT_FOUND = "Hasil tidak ditemukan."


@router.post("", status_code=status.HTTP_201_CREATED)
async def save_result(
    payload: KreplinResultCreate,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    result = await KreplinService(db).save_result(current_user.id, payload)
    return {"result_id": result.id}


@router.get("", response_model=List[KreplinResult])
async def list_results(
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    return await KreplinService(db).list_results(current_user.id)


@router.get("/{result_id}", response_model=KreplinResult)
async def get_result(
    result_id: str,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    result = await KreplinService(db).get_result(current_user.id, result_id)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=RESULT_NOT_FOUND)
    return result


@router.delete("/{result_id}")
async def delete_result(
    result_id: str,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    if not await KreplinService(db).delete_result(current_user.id, result_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=RESULT_NOT_FOUND)
    return {"success": True}


@router.post("/{result_id}/analyze", response_model=KreplinAnalysis)
async def analyze_result(
    result_id: str,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_async_db),
    generator=Depends(deps.get_question_generator)
):
    service = KreplinService(db)
    result = await service.get_result(current_user.id, result_id)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=RESULT_NOT_FOUND)

    try:
        return await service.analyze(result, generator)
    except AnalysisExistsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Kreplin analysis failed for result {result_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Gagal membuat analisis AI. Coba lagi nanti."
        )
