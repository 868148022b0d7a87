from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession
from kpi_service.database import get_db
from kpi_service.schemas.goal import MONTH_KEY_PATTERN
from kpi_service.schemas.kpi import StatsResponse
from kpi_service.services.stats import get_attendance_stats

router = APIRouter(prefix="/kpi/stats", tags=["kpi-stats"])

@router.get("/{user_id}/{month_key}", response_model=StatsResponse)
async def get_stats(
    user_id: int,
    month_key: str = Path(..., pattern=MONTH_KEY_PATTERN),
    db: AsyncSession = Depends(get_db)
):
    return await get_attendance_stats(db, user_id, month_key)
