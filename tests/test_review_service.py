"""
Tests for the stats provider and the review workflow.
"""
from __future__ import annotations

from datetime import date, datetime

import pytest
from sqlalchemy import select

from kpi_service.config import settings
from kpi_service.models.attendance import Attendance, Duty
from kpi_service.models.goal import IndividualGoal
from kpi_service.models.kpi import KpiConfig, KpiCriterion, KpiRecord, RewardTransaction
from kpi_service.models.task import Task
from kpi_service.models.user import User
from kpi_service.schemas.kpi import ReviewSave
from kpi_service.services import review as review_service
from kpi_service.services.review import InvalidTransition, ReviewLocked, ReviewNotFound, UserNotFound, WeightsInvalid
from kpi_service.services.stats import count_workdays, get_attendance_stats, parse_month_key

MONTH = "2024-01"  # 1 Jan 2024 is a Monday
START_OF_MONTH = date(2024, 1, 1)


async def seed_review_inputs(db, weights=(50, 30, 20)) -> int:
    user = User(email="mint@example.com", name="Mint", position="Editor")
    db.add(user)
    db.add(KpiConfig(
        id=1,
        weight_okr=weights[0],
        weight_behavior=weights[1],
        weight_attendance=weights[2],
        penalty_late=5,
        penalty_missed_duty=10,
        penalty_absent=15,
    ))
    db.add_all([
        KpiCriterion(key="teamwork", label="Teamwork", sort_order=1),
        KpiCriterion(key="quality", label="Quality", sort_order=2),
        KpiCriterion(key="legacy", label="Legacy", sort_order=3, is_active=False),
    ])
    await db.commit()
    await db.refresh(user)

    db.add(IndividualGoal(user_id=user.id, month_key=MONTH, title="Clips", target_value=10, actual_value=10, unit="clips"))
    db.add(Attendance(user_id=user.id, check_in_at=datetime(2024, 1, 1, 9, 30)))
    await db.commit()
    return user.id


# ---------- stats ----------

def test_parse_month_key_and_workdays():
    start, end = parse_month_key("2024-02")
    assert start == date(2024, 2, 1)
    assert end == date(2024, 3, 1)
    assert count_workdays(date(2024, 1, 1), date(2024, 1, 8)) == 5
    assert count_workdays(date(2024, 1, 1), date(2024, 1, 1)) == 0
    assert parse_month_key("2023-12")[1] == date(2024, 1, 1)


async def test_attendance_stats_counts_month(db_session):
    user = User(email="a@example.com", name="A")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    uid = user.id

    db_session.add_all([
        Attendance(user_id=uid, check_in_at=datetime(2024, 1, 2, 8, 30)),
        Attendance(user_id=uid, check_in_at=datetime(2024, 1, 3, 9, 15)),
        Attendance(user_id=uid, check_in_at=datetime(2024, 1, 6, 10, 0)),  # Saturday
        Attendance(user_id=uid, check_in_at=datetime(2024, 2, 1, 11, 0)),  # other month
        Duty(user_id=uid, duty_date=date(2024, 1, 4), is_done=False),
        Duty(user_id=uid, duty_date=date(2024, 1, 5), is_done=True),
        Duty(user_id=uid, duty_date=date(2024, 1, 10), is_done=False),  # not due yet
        Task(title="Edit", assigned_to_id=uid, status="completed",
             deadline=datetime(2024, 1, 10), completed_at=datetime(2024, 1, 15)),
        Task(title="Shoot", assigned_to_id=uid, status="completed",
             deadline=datetime(2024, 1, 25), completed_at=datetime(2024, 1, 20)),
        Task(title="Plan", assigned_to_id=uid, status="pending", deadline=datetime(2024, 1, 25)),
        Task(title="Old", assigned_to_id=uid, status="completed",
             deadline=datetime(2024, 2, 10), completed_at=datetime(2024, 2, 2)),
    ])
    await db_session.commit()

    stats = await get_attendance_stats(db_session, uid, MONTH, as_of=date(2024, 1, 8))

    assert stats.attendance_late == 2
    assert stats.attendance_absent == 3  # Mon-Fri 1..5 minus 2nd and 3rd
    assert stats.duty_missed == 1
    assert stats.task_completed == 2
    assert stats.task_late == 1


async def test_attendance_stats_respects_late_threshold(db_session, monkeypatch):
    monkeypatch.setattr(settings, "LATE_CHECK_IN_TIME", datetime(2024, 1, 1, 10, 0).time())
    db_session.add(Attendance(user_id=1, check_in_at=datetime(2024, 1, 3, 9, 15)))
    await db_session.commit()

    stats = await get_attendance_stats(db_session, 1, MONTH, as_of=START_OF_MONTH)
    assert stats.attendance_late == 0
    assert stats.attendance_absent == 0


async def test_second_check_in_same_day_is_not_another_late(db_session):
    db_session.add_all([
        Attendance(user_id=1, check_in_at=datetime(2024, 1, 3, 13, 0)),  # back from lunch
        Attendance(user_id=1, check_in_at=datetime(2024, 1, 3, 9, 30)),
        Attendance(user_id=1, check_in_at=datetime(2024, 1, 2, 8, 45)),
        Attendance(user_id=1, check_in_at=datetime(2024, 1, 2, 14, 0)),
    ])
    await db_session.commit()

    stats = await get_attendance_stats(db_session, 1, MONTH, as_of=date(2024, 1, 4))
    assert stats.attendance_late == 1
    assert stats.attendance_absent == 1  # only Jan 1


# ---------- review workflow ----------

async def test_draft_review_is_computed_live(db_session):
    uid = await seed_review_inputs(db_session)

    await review_service.save_evaluation(
        db_session, uid, MONTH,
        ReviewSave(scores={"teamwork": 4, "quality": 4, "legacy": 5}, self_scores={"teamwork": 5, "quality": 5}),
        as_of=START_OF_MONTH,
    )
    review = await review_service.get_review(db_session, uid, MONTH, as_of=START_OF_MONTH)

    assert review["status"] == "DRAFT"
    assert review["is_snapshot"] is False
    assert review["total_score"] == 8  # inactive criterion not summed
    assert review["max_score"] == 10
    assert review["self_behavior_score"] == 100
    assert review["result"]["final_score"] == 93
    assert review["result"]["grade"] == "A"
    assert review["result"]["bonus"] == 500
    assert review["stats"]["attendance_late"] == 1

    goal = (await db_session.execute(select(IndividualGoal))).scalar_one()
    goal.actual_value = 0
    await db_session.commit()

    review = await review_service.get_review(db_session, uid, MONTH, as_of=START_OF_MONTH)
    assert review["result"]["breakdown"]["okr_score"] == 0


async def test_finalized_review_keeps_snapshot(db_session):
    uid = await seed_review_inputs(db_session)
    lead = User(email="lead@example.com", name="Lead")
    db_session.add(lead)
    await db_session.commit()
    await db_session.refresh(lead)

    record = await review_service.save_evaluation(
        db_session, uid, MONTH,
        ReviewSave(evaluator_id=lead.id, scores={"teamwork": 4, "quality": 4}, status="FINAL"),
        as_of=START_OF_MONTH,
    )
    assert record.status == "FINAL"
    assert record.final_score == 93
    assert record.grade == "A"
    assert record.bonus_amount == 500
    assert record.stats_snapshot["attendance_late"] == 1
    assert record.breakdown == {"okr_score": 100, "behavior_score": 80, "attendance_score": 95}
    assert record.evaluator_id == lead.id

    goal = (await db_session.execute(select(IndividualGoal))).scalar_one()
    goal.actual_value = 0
    await db_session.commit()

    review = await review_service.get_review(db_session, uid, MONTH)
    assert review["is_snapshot"] is True
    assert review["result"]["final_score"] == 93
    assert review["stats"]["attendance_late"] == 1
    # Goals are frozen with the grade, so they still explain the OKR score
    assert review["result"]["breakdown"]["okr_score"] == 100
    assert review["goals"][0]["actual_value"] == 10
    assert review["goals"][0]["percent"] == 100


async def test_reverting_to_draft_clears_snapshot(db_session):
    uid = await seed_review_inputs(db_session)
    await review_service.save_evaluation(
        db_session, uid, MONTH, ReviewSave(scores={"teamwork": 4}, status="FINAL"), as_of=START_OF_MONTH
    )
    record = await review_service.save_evaluation(
        db_session, uid, MONTH, ReviewSave(scores={"teamwork": 4}, status="DRAFT"), as_of=START_OF_MONTH
    )
    assert record.status == "DRAFT"
    assert record.final_score is None
    assert record.stats_snapshot is None
    assert record.goals_snapshot is None


async def test_pay_credits_bonus_once_and_locks(db_session):
    uid = await seed_review_inputs(db_session)
    await review_service.save_evaluation(
        db_session, uid, MONTH, ReviewSave(scores={"teamwork": 4, "quality": 4}, status="FINAL"), as_of=START_OF_MONTH
    )

    record = await review_service.save_evaluation(db_session, uid, MONTH, ReviewSave(status="PAID"))
    assert record.status == "PAID"
    assert record.scores == {"teamwork": 4, "quality": 4}

    ledger = (await db_session.execute(select(RewardTransaction))).scalars().all()
    assert len(ledger) == 1
    assert ledger[0].amount == 500
    assert ledger[0].user_id == uid
    assert ledger[0].kpi_record_id == record.id

    with pytest.raises(ReviewLocked):
        await review_service.save_evaluation(db_session, uid, MONTH, ReviewSave(status="PAID"))
    with pytest.raises(ReviewLocked):
        await review_service.save_evaluation(db_session, uid, MONTH, ReviewSave(status="DRAFT"))

    ledger = (await db_session.execute(select(RewardTransaction))).scalars().all()
    assert len(ledger) == 1


async def test_pay_with_zero_bonus_writes_no_ledger_entry(db_session):
    uid = await seed_review_inputs(db_session)
    goal = (await db_session.execute(select(IndividualGoal))).scalar_one()
    goal.actual_value = 0
    await db_session.commit()

    record = await review_service.save_evaluation(
        db_session, uid, MONTH, ReviewSave(scores={"teamwork": 5, "quality": 5}, status="FINAL"), as_of=START_OF_MONTH
    )
    # 0 * 0.5 + 100 * 0.3 + 95 * 0.2 = 49
    assert record.grade == "F"
    record = await review_service.save_evaluation(db_session, uid, MONTH, ReviewSave(status="PAID"))
    assert record.status == "PAID"

    ledger = (await db_session.execute(select(RewardTransaction))).scalars().all()
    assert ledger == []


async def test_pay_refused_below_passing_behavior(db_session):
    uid = await seed_review_inputs(db_session)
    record = await review_service.save_evaluation(
        db_session, uid, MONTH, ReviewSave(scores={"teamwork": 3, "quality": 3}, status="FINAL"), as_of=START_OF_MONTH
    )
    # Grade A, but behavior is only 60
    assert record.grade == "A"
    assert record.breakdown["behavior_score"] == 60

    with pytest.raises(InvalidTransition):
        await review_service.save_evaluation(db_session, uid, MONTH, ReviewSave(status="PAID"))

    record = await review_service.get_record(db_session, uid, MONTH)
    assert record.status == "FINAL"
    ledger = (await db_session.execute(select(RewardTransaction))).scalars().all()
    assert ledger == []

    # Exactly 70 passes
    await review_service.save_evaluation(
        db_session, uid, MONTH, ReviewSave(scores={"teamwork": 4, "quality": 3}, status="FINAL"), as_of=START_OF_MONTH
    )
    record = await review_service.save_evaluation(db_session, uid, MONTH, ReviewSave(status="PAID"))
    assert record.status == "PAID"


async def test_save_for_unknown_user_or_evaluator_is_refused(db_session):
    uid = await seed_review_inputs(db_session)

    with pytest.raises(UserNotFound):
        await review_service.save_evaluation(db_session, 999, MONTH, ReviewSave(scores={"teamwork": 4}))
    with pytest.raises(UserNotFound):
        await review_service.save_evaluation(
            db_session, uid, MONTH, ReviewSave(evaluator_id=999, scores={"teamwork": 4}, status="FINAL")
        )

    records = (await db_session.execute(select(KpiRecord))).scalars().all()
    assert records == []


async def test_pay_requires_final(db_session):
    uid = await seed_review_inputs(db_session)
    with pytest.raises(InvalidTransition):
        await review_service.save_evaluation(db_session, uid, MONTH, ReviewSave(status="PAID"))

    await review_service.save_evaluation(db_session, uid, MONTH, ReviewSave(status="DRAFT"), as_of=START_OF_MONTH)
    with pytest.raises(InvalidTransition):
        await review_service.save_evaluation(db_session, uid, MONTH, ReviewSave(status="PAID"))


async def test_strict_weights_refuse_to_grade(db_session, monkeypatch):
    uid = await seed_review_inputs(db_session, weights=(50, 30, 30))

    review = await review_service.get_review(db_session, uid, MONTH, as_of=START_OF_MONTH)
    assert review["result"]["warnings"]
    # 100 * 0.5 + 0 * 0.3 + 95 * 0.3 = 78.5, not renormalized against 110
    assert review["result"]["final_score"] == 79

    monkeypatch.setattr(settings, "KPI_STRICT_WEIGHTS", True)
    with pytest.raises(WeightsInvalid):
        await review_service.get_review(db_session, uid, MONTH, as_of=START_OF_MONTH)


async def test_history_and_slip(db_session):
    uid = await seed_review_inputs(db_session)
    for month in ("2023-11", "2023-12", MONTH):
        await review_service.save_evaluation(
            db_session, uid, month, ReviewSave(scores={"teamwork": 5, "quality": 5}, status="FINAL"),
            as_of=parse_month_key(month)[0],
        )
    await review_service.save_evaluation(db_session, uid, "2024-02", ReviewSave(status="DRAFT"))

    history = await review_service.get_history(db_session, uid, limit=2)
    assert [h["month_key"] for h in history] == ["2023-12", MONTH]

    slip = await review_service.get_slip(db_session, uid, MONTH)
    assert slip["user_name"] == "Mint"
    assert slip["grade"] == "A"
    assert slip["bonus"] == 500
    assert slip["stats"]["attendance_late"] == 1

    with pytest.raises(InvalidTransition):
        await review_service.get_slip(db_session, uid, "2024-02")
    with pytest.raises(ReviewNotFound):
        await review_service.get_slip(db_session, uid, "2022-01")
