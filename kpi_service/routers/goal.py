from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from kpi_service.database import get_db
from kpi_service.models.goal import IndividualGoal
from kpi_service.models.user import User
from kpi_service.schemas.goal import GoalCreate, GoalActualUpdate, GoalResponse, MONTH_KEY_PATTERN
from kpi_service.services.review import goal_to_dict, load_goals

router = APIRouter(prefix="/kpi/goals", tags=["goals"])

async def get_goal_or_404(db: AsyncSession, goal_id: int) -> IndividualGoal:
    goal = await db.get(IndividualGoal, goal_id)
    if not goal:
        raise HTTPException(404, "Goal not found")
    return goal

async def get_user_or_404(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(404, "User not found")
    return user

@router.get("", response_model=List[GoalResponse])
async def list_goals(
    user_id: int,
    month_key: str = Query(..., pattern=MONTH_KEY_PATTERN),
    db: AsyncSession = Depends(get_db)
):
    goals = await load_goals(db, user_id, month_key)
    return [goal_to_dict(g) for g in goals]

@router.post("", response_model=GoalResponse, status_code=201)
async def create_goal(
    goal_in: GoalCreate,
    db: AsyncSession = Depends(get_db)
):
    await get_user_or_404(db, goal_in.user_id)
    goal = IndividualGoal(
        user_id=goal_in.user_id,
        month_key=goal_in.month_key,
        title=goal_in.title,
        target_value=goal_in.target_value,
        actual_value=goal_in.actual_value,
        unit=goal_in.unit
    )
    db.add(goal)
    await db.commit()
    await db.refresh(goal)
    return goal_to_dict(goal)

@router.patch("/{goal_id}", response_model=GoalResponse)
async def update_goal_actual(
    goal_id: int,
    update_in: GoalActualUpdate,
    db: AsyncSession = Depends(get_db)
):
    goal = await get_goal_or_404(db, goal_id)
    goal.actual_value = update_in.actual_value
    await db.commit()
    await db.refresh(goal)
    return goal_to_dict(goal)

@router.delete("/{goal_id}", status_code=204)
async def delete_goal(
    goal_id: int,
    db: AsyncSession = Depends(get_db)
):
    goal = await get_goal_or_404(db, goal_id)
    await db.delete(goal)
    await db.commit()
