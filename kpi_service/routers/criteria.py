from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List
from kpi_service.database import get_db
from kpi_service.models.kpi import KpiCriterion
from kpi_service.schemas.kpi import CriterionCreate, CriterionUpdate, CriterionResponse

router = APIRouter(prefix="/kpi/criteria", tags=["kpi-criteria"])

async def get_criterion_or_404(db: AsyncSession, criterion_id: int) -> KpiCriterion:
    criterion = await db.get(KpiCriterion, criterion_id)
    if not criterion:
        raise HTTPException(404, "Criterion not found")
    return criterion

@router.get("", response_model=List[CriterionResponse])
async def list_criteria(
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db)
):
    query = select(KpiCriterion).order_by(KpiCriterion.sort_order, KpiCriterion.id)
    if not include_inactive:
        query = query.where(KpiCriterion.is_active.is_(True))
    result = await db.execute(query)
    return result.scalars().all()

@router.post("", response_model=CriterionResponse, status_code=201)
async def create_criterion(
    criterion_in: CriterionCreate,
    db: AsyncSession = Depends(get_db)
):
    existing = await db.execute(select(KpiCriterion).where(KpiCriterion.key == criterion_in.key))
    if existing.scalar_one_or_none():
        raise HTTPException(400, "Criterion key already exists")

    criterion = KpiCriterion(
        key=criterion_in.key,
        label=criterion_in.label,
        sort_order=criterion_in.sort_order,
        is_active=True
    )
    db.add(criterion)
    await db.commit()
    await db.refresh(criterion)
    return criterion

@router.patch("/{criterion_id}", response_model=CriterionResponse)
async def update_criterion(
    criterion_id: int,
    update_in: CriterionUpdate,
    db: AsyncSession = Depends(get_db)
):
    criterion = await get_criterion_or_404(db, criterion_id)
    for field, value in update_in.model_dump(exclude_unset=True).items():
        setattr(criterion, field, value)
    await db.commit()
    await db.refresh(criterion)
    return criterion

@router.delete("/{criterion_id}", response_model=CriterionResponse)
async def deactivate_criterion(
    criterion_id: int,
    db: AsyncSession = Depends(get_db)
):
    # Keys stay referenced by stored review scores, so criteria are never hard-deleted
    criterion = await get_criterion_or_404(db, criterion_id)
    criterion.is_active = False
    await db.commit()
    await db.refresh(criterion)
    return criterion
