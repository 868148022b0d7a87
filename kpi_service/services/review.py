import logging
from dataclasses import asdict
from datetime import date
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from kpi_service.config import settings
from kpi_service.models.goal import IndividualGoal
from kpi_service.models.kpi import KpiConfig, KpiCriterion, KpiRecord, RewardTransaction, CONFIG_ROW_ID
from kpi_service.models.user import User
from kpi_service.services.kpi import (
    AttendanceStats,
    GradeResult,
    ScoreBreakdown,
    ScoringConfig,
    MAX_CRITERION_SCORE,
    behavior_raw_total,
    bonus_for_grade,
    compute_behavior_score,
    compute_final_grade,
    goal_percent,
    round_half_up,
    weights_total,
)
from kpi_service.services.stats import get_attendance_stats

logger = logging.getLogger(__name__)

DRAFT = "DRAFT"
FINAL = "FINAL"
PAID = "PAID"
FINALIZED = (FINAL, PAID)

# Behavior score a FINAL review needs before its bonus can be paid
PASSING_BEHAVIOR_SCORE = 70


class ReviewError(Exception):
    pass

class ReviewNotFound(ReviewError):
    pass

class ReviewLocked(ReviewError):
    pass

class InvalidTransition(ReviewError):
    pass

class WeightsInvalid(ReviewError):
    pass

class UserNotFound(ReviewError):
    pass


async def load_config(db: AsyncSession):
    """Stored scoring config, or the defaults when none has been saved yet."""
    config = await db.get(KpiConfig, CONFIG_ROW_ID)
    return config or ScoringConfig()


async def load_criteria(db: AsyncSession) -> List[KpiCriterion]:
    result = await db.execute(
        select(KpiCriterion)
        .where(KpiCriterion.is_active.is_(True))
        .order_by(KpiCriterion.sort_order, KpiCriterion.id)
    )
    return list(result.scalars().all())


async def load_goals(db: AsyncSession, user_id: int, month_key: str) -> List[IndividualGoal]:
    result = await db.execute(
        select(IndividualGoal)
        .where(IndividualGoal.user_id == user_id)
        .where(IndividualGoal.month_key == month_key)
        .order_by(IndividualGoal.id)
    )
    return list(result.scalars().all())


async def get_record(db: AsyncSession, user_id: int, month_key: str) -> Optional[KpiRecord]:
    result = await db.execute(
        select(KpiRecord)
        .where(KpiRecord.user_id == user_id)
        .where(KpiRecord.month_key == month_key)
    )
    return result.scalar_one_or_none()


def goal_to_dict(goal: IndividualGoal) -> dict:
    return {
        "id": goal.id,
        "user_id": goal.user_id,
        "month_key": goal.month_key,
        "title": goal.title,
        "target_value": goal.target_value,
        "actual_value": goal.actual_value,
        "unit": goal.unit,
        "percent": round_half_up(goal_percent(goal)),
        "created_at": goal.created_at,
    }


def goal_snapshot(goal: IndividualGoal) -> dict:
    """JSON-safe copy of a goal as it stood when the review was finalized."""
    row = goal_to_dict(goal)
    row.pop("created_at")
    return row


def grade_to_dict(result: GradeResult) -> dict:
    return {
        "final_score": result.final_score,
        "grade": result.grade,
        "bonus": bonus_for_grade(result.grade),
        "breakdown": asdict(result.breakdown),
        "warnings": list(result.warnings),
    }


def snapshot_to_grade(record: KpiRecord) -> GradeResult:
    return GradeResult(
        final_score=record.final_score,
        grade=record.grade,
        breakdown=ScoreBreakdown(**record.breakdown),
    )


async def build_grade(
    db: AsyncSession, user_id: int, month_key: str, scores: Optional[dict], as_of: Optional[date] = None
):
    """Gather every engine input for one employee-month and grade it."""
    config = await load_config(db)
    if settings.KPI_STRICT_WEIGHTS and weights_total(config) != 100:
        raise WeightsInvalid(f"KPI weights sum to {weights_total(config)}, expected 100")

    criteria = await load_criteria(db)
    goals = await load_goals(db, user_id, month_key)
    stats = await get_attendance_stats(db, user_id, month_key, as_of=as_of)
    result = compute_final_grade(config, criteria, goals, scores or {}, stats)
    return result, stats, goals, criteria


async def get_review(db: AsyncSession, user_id: int, month_key: str, as_of: Optional[date] = None) -> dict:
    record = await get_record(db, user_id, month_key)
    scores = record.scores if record else {}
    self_scores = record.self_scores if record else {}

    if record and record.status in FINALIZED:
        criteria = await load_criteria(db)
        goals = record.goals_snapshot or []
        result = snapshot_to_grade(record)
        stats = AttendanceStats(**record.stats_snapshot)
    else:
        result, stats, live_goals, criteria = await build_grade(db, user_id, month_key, scores, as_of=as_of)
        goals = [goal_to_dict(g) for g in live_goals]

    return {
        "id": record.id if record else None,
        "user_id": user_id,
        "month_key": month_key,
        "evaluator_id": record.evaluator_id if record else None,
        "status": record.status if record else DRAFT,
        "scores": scores,
        "self_scores": self_scores,
        "self_behavior_score": compute_behavior_score(criteria, self_scores),
        "feedback": record.feedback if record else "",
        "total_score": record.total_score if record else 0,
        "max_score": record.max_score if record else len(criteria) * MAX_CRITERION_SCORE,
        "result": grade_to_dict(result),
        "stats": asdict(stats),
        "goals": goals,
        "is_snapshot": bool(record and record.status in FINALIZED),
    }


async def pay_review(db: AsyncSession, record: Optional[KpiRecord], evaluator_id: Optional[int]) -> KpiRecord:
    if record is None or record.status != FINAL:
        raise InvalidTransition("Only a FINAL review can be marked as paid")
    behavior = (record.breakdown or {}).get("behavior_score", 0)
    if behavior < PASSING_BEHAVIOR_SCORE:
        raise InvalidTransition(
            f"Behavior score {behavior} is below {PASSING_BEHAVIOR_SCORE}; review cannot be paid"
        )

    record.status = PAID
    if evaluator_id is not None:
        record.evaluator_id = evaluator_id

    amount = record.bonus_amount or 0
    if amount > 0:
        db.add(RewardTransaction(
            user_id=record.user_id,
            kpi_record_id=record.id,
            amount=amount,
            reason=f"KPI bonus {record.month_key} (grade {record.grade})",
        ))
        logger.info("Credited KPI bonus %s to user %s for %s", amount, record.user_id, record.month_key)

    await db.commit()
    await db.refresh(record)
    return record


async def save_evaluation(
    db: AsyncSession, user_id: int, month_key: str, review_in, as_of: Optional[date] = None
) -> KpiRecord:
    """Upsert a review. FINAL freezes stats and grade; PAID credits the bonus once."""
    if await db.get(User, user_id) is None:
        raise UserNotFound("User not found")
    if review_in.evaluator_id is not None and await db.get(User, review_in.evaluator_id) is None:
        raise UserNotFound("Evaluator not found")

    record = await get_record(db, user_id, month_key)
    if record and record.status == PAID:
        raise ReviewLocked("Review has already been paid")

    if review_in.status == PAID:
        return await pay_review(db, record, review_in.evaluator_id)

    if record is None:
        record = KpiRecord(user_id=user_id, month_key=month_key)
        db.add(record)

    criteria = await load_criteria(db)
    record.evaluator_id = review_in.evaluator_id
    record.scores = dict(review_in.scores)
    record.self_scores = dict(review_in.self_scores)
    record.feedback = review_in.feedback
    record.total_score = behavior_raw_total(criteria, review_in.scores)
    record.max_score = len(criteria) * MAX_CRITERION_SCORE

    if review_in.status == FINAL:
        result, stats, goals, _ = await build_grade(db, user_id, month_key, review_in.scores, as_of=as_of)
        record.final_score = result.final_score
        record.grade = result.grade
        record.breakdown = asdict(result.breakdown)
        record.stats_snapshot = asdict(stats)
        record.goals_snapshot = [goal_snapshot(g) for g in goals]
        record.bonus_amount = bonus_for_grade(result.grade)
    else:
        record.final_score = None
        record.grade = None
        record.breakdown = None
        record.stats_snapshot = None
        record.goals_snapshot = None
        record.bonus_amount = None

    previous = record.status or DRAFT
    if previous != review_in.status:
        logger.info("KPI review %s/%s: %s -> %s", user_id, month_key, previous, review_in.status)
    record.status = review_in.status

    await db.commit()
    await db.refresh(record)
    return record


async def get_history(db: AsyncSession, user_id: int, limit: int = 6) -> List[dict]:
    """Finalized reviews, oldest first, for the last ``limit`` reviewed months."""
    result = await db.execute(
        select(KpiRecord)
        .where(KpiRecord.user_id == user_id)
        .where(KpiRecord.status.in_(FINALIZED))
        .order_by(KpiRecord.month_key.desc())
        .limit(limit)
    )
    records = list(result.scalars().all())
    records.reverse()
    return [
        {
            "month_key": r.month_key,
            "status": r.status,
            "final_score": r.final_score,
            "grade": r.grade,
            "breakdown": r.breakdown,
        }
        for r in records
    ]


async def get_slip(db: AsyncSession, user_id: int, month_key: str) -> dict:
    record = await get_record(db, user_id, month_key)
    if record is None:
        raise ReviewNotFound("Review not found")
    if record.status not in FINALIZED:
        raise InvalidTransition("Review must be finalized before printing")

    user = await db.get(User, user_id)
    return {
        "user_id": user_id,
        "user_name": user.name if user else None,
        "position": user.position if user else None,
        "month_key": month_key,
        "status": record.status,
        "evaluator_id": record.evaluator_id,
        "feedback": record.feedback,
        "final_score": record.final_score,
        "grade": record.grade,
        "bonus": record.bonus_amount or 0,
        "breakdown": record.breakdown,
        "stats": record.stats_snapshot,
    }
