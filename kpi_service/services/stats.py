from datetime import date, datetime, timedelta
from calendar import monthrange
from typing import Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from kpi_service.config import settings
from kpi_service.models.attendance import Attendance, Duty
from kpi_service.models.task import Task
from kpi_service.services.kpi import AttendanceStats


def parse_month_key(month_key: str) -> Tuple[date, date]:
    """'2024-01' -> (first day, first day of next month)"""
    year, month = (int(part) for part in month_key.split("-"))
    start = date(year, month, 1)
    end = start + timedelta(days=monthrange(year, month)[1])
    return start, end


def count_workdays(start: date, end: date) -> int:
    """Mon-Fri days in [start, end)."""
    days = 0
    current = start
    while current < end:
        if current.weekday() < 5:
            days += 1
        current += timedelta(days=1)
    return days


async def get_attendance_late(db: AsyncSession, user_id: int, start: date, end: date) -> Tuple[int, set]:
    result = await db.execute(
        select(Attendance.check_in_at)
        .where(Attendance.user_id == user_id)
        .where(Attendance.check_in_at >= datetime.combine(start, datetime.min.time()))
        .where(Attendance.check_in_at < datetime.combine(end, datetime.min.time()))
    )
    # Lateness is judged once per day, on the earliest check-in
    first_by_day = {}
    for (check_in_at,) in result.all():
        day = check_in_at.date()
        if day not in first_by_day or check_in_at < first_by_day[day]:
            first_by_day[day] = check_in_at
    late = sum(1 for first in first_by_day.values() if first.time() > settings.LATE_CHECK_IN_TIME)
    return late, set(first_by_day)


async def get_duty_missed(db: AsyncSession, user_id: int, start: date, cutoff: date) -> int:
    result = await db.execute(
        select(func.count(Duty.id))
        .where(Duty.user_id == user_id)
        .where(Duty.duty_date >= start)
        .where(Duty.duty_date < cutoff)
        .where(Duty.is_done.is_(False))
    )
    return result.scalar_one()


async def get_task_counts(db: AsyncSession, user_id: int, start: date, end: date) -> Tuple[int, int]:
    result = await db.execute(
        select(Task.completed_at, Task.deadline)
        .where(Task.assigned_to_id == user_id)
        .where(Task.status == "completed")
        .where(Task.completed_at >= datetime.combine(start, datetime.min.time()))
        .where(Task.completed_at < datetime.combine(end, datetime.min.time()))
    )
    completed = 0
    late = 0
    for completed_at, deadline in result.all():
        completed += 1
        if deadline is not None and completed_at > deadline:
            late += 1
    return completed, late


async def get_attendance_stats(
    db: AsyncSession, user_id: int, month_key: str, as_of: Optional[date] = None
) -> AttendanceStats:
    """Live attendance/duty/task counts for one employee-month.

    Absences and missed duties only count days strictly before ``as_of``
    (default today), so the running month is not penalised for days still to come.
    """
    start, end = parse_month_key(month_key)
    as_of = as_of or date.today()
    cutoff = min(max(as_of, start), end)

    late, present_days = await get_attendance_late(db, user_id, start, end)
    absent = count_workdays(start, cutoff) - sum(
        1 for day in present_days if day < cutoff and day.weekday() < 5
    )
    duty_missed = await get_duty_missed(db, user_id, start, cutoff)
    task_completed, task_late = await get_task_counts(db, user_id, start, end)

    return AttendanceStats(
        attendance_late=late,
        attendance_absent=max(0, absent),
        duty_missed=duty_missed,
        task_completed=task_completed,
        task_late=task_late,
    )
