from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from kpi_service.database import get_db
from kpi_service.schemas.goal import MONTH_KEY_PATTERN
from kpi_service.schemas.kpi import ReviewSave, ReviewResponse, HistoryItem, SlipResponse
from kpi_service.services import review as review_service
from kpi_service.services.review import ReviewNotFound, ReviewLocked, InvalidTransition, WeightsInvalid, UserNotFound

router = APIRouter(prefix="/kpi/reviews", tags=["kpi-reviews"])

def raise_http(exc: Exception):
    if isinstance(exc, (ReviewNotFound, UserNotFound)):
        raise HTTPException(404, str(exc))
    raise HTTPException(409, str(exc))

@router.get("/{user_id}/history", response_model=List[HistoryItem])
async def get_review_history(
    user_id: int,
    limit: int = Query(6, ge=1, le=24),
    db: AsyncSession = Depends(get_db)
):
    return await review_service.get_history(db, user_id, limit=limit)

@router.get("/{user_id}/{month_key}", response_model=ReviewResponse)
async def get_review(
    user_id: int,
    month_key: str = Path(..., pattern=MONTH_KEY_PATTERN),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await review_service.get_review(db, user_id, month_key)
    except WeightsInvalid as e:
        raise_http(e)

@router.put("/{user_id}/{month_key}", response_model=ReviewResponse)
async def save_review(
    user_id: int,
    review_in: ReviewSave,
    month_key: str = Path(..., pattern=MONTH_KEY_PATTERN),
    db: AsyncSession = Depends(get_db)
):
    try:
        await review_service.save_evaluation(db, user_id, month_key, review_in)
        return await review_service.get_review(db, user_id, month_key)
    except (UserNotFound, ReviewLocked, InvalidTransition, WeightsInvalid) as e:
        raise_http(e)

@router.get("/{user_id}/{month_key}/slip", response_model=SlipResponse)
async def get_review_slip(
    user_id: int,
    month_key: str = Path(..., pattern=MONTH_KEY_PATTERN),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await review_service.get_slip(db, user_id, month_key)
    except (ReviewNotFound, InvalidTransition) as e:
        raise_http(e)
