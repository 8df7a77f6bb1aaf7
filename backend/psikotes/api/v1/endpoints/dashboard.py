from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ... import deps
from ....core.database import get_async_db
from ....models.user import User
from ....schemas.dashboard import DashboardData
from ....services.dashboard_service import DashboardService

router = APIRouter()


@router.get("/dashboard", response_model=DashboardData)
async def get_dashboard(
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    return await DashboardService(db).get_dashboard(current_user.id)
