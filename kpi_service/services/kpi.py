import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

Number = Union[int, float]

# Ordered (min_score, grade) pairs, first match wins
GRADE_THRESHOLDS: List[Tuple[int, str]] = [
    (80, "A"),
    (70, "B"),
    (60, "C"),
    (50, "D"),
]
FALLBACK_GRADE = "F"

BONUS_BY_GRADE: Dict[str, int] = {
    "A": 500,
    "B": 200,
    "C": 50,
}

MAX_CRITERION_SCORE = 5


@dataclass(frozen=True)
class ScoringConfig:
    weight_okr: int = 50
    weight_behavior: int = 30
    weight_attendance: int = 20
    penalty_late: Number = 5
    penalty_missed_duty: Number = 10
    penalty_absent: Number = 15


@dataclass(frozen=True)
class BehaviorCriterion:
    key: str
    label: str = ""


@dataclass(frozen=True)
class IndividualGoal:
    target_value: Number
    actual_value: Number = 0
    unit: str = ""
    title: str = ""


@dataclass(frozen=True)
class AttendanceStats:
    attendance_late: int = 0
    attendance_absent: int = 0
    duty_missed: int = 0
    task_completed: int = 0
    task_late: int = 0


@dataclass(frozen=True)
class ScoreBreakdown:
    okr_score: int
    behavior_score: int
    attendance_score: Number


@dataclass(frozen=True)
class GradeResult:
    final_score: int
    grade: str
    breakdown: ScoreBreakdown
    warnings: Tuple[str, ...] = field(default=())


def round_half_up(value: float) -> int:
    """Round .5 away from zero on the positive side (2.5 -> 3, 92.5 -> 93)."""
    return int(math.floor(value + 0.5))


def compute_behavior_score(
    criteria: Sequence, manager_scores: Optional[Mapping[str, Optional[Number]]]
) -> int:
    """Manager scores as % of the maximum (5 per criterion). Self scores are not used."""
    manager_scores = manager_scores or {}
    core_max = len(criteria) * MAX_CRITERION_SCORE
    if core_max <= 0:
        return 0
    core_total = sum(manager_scores.get(c.key) or 0 for c in criteria)
    return round_half_up(core_total / core_max * 100)


def goal_percent(goal) -> float:
    """Completion of a single goal, capped at 100."""
    if goal.target_value > 0:
        percent = goal.actual_value / goal.target_value * 100
    else:
        percent = 0
    return min(100, percent)


def compute_okr_score(goals: Sequence) -> int:
    if not goals:
        return 0
    total = sum(goal_percent(g) for g in goals)
    return round_half_up(total / len(goals))


def compute_discipline_score(stats, config) -> Number:
    deduction = (
        stats.attendance_late * config.penalty_late
        + stats.duty_missed * config.penalty_missed_duty
        + stats.attendance_absent * config.penalty_absent
    )
    return max(0, 100 - deduction)


def weights_total(config) -> Number:
    return config.weight_okr + config.weight_behavior + config.weight_attendance


def grade_for_score(score: Number) -> str:
    for min_score, grade in GRADE_THRESHOLDS:
        if score >= min_score:
            return grade
    return FALLBACK_GRADE


def compute_final_grade(
    config,
    criteria: Sequence,
    goals: Sequence,
    manager_scores: Optional[Mapping[str, Optional[Number]]],
    stats,
) -> GradeResult:
    """Combine the three category scores into a final score and letter grade.

    Weights are applied as raw fractions of 100. A config whose weights do not
    sum to 100 is logged and reported in ``warnings`` but never renormalized,
    and the final score is not clamped.
    """
    okr = compute_okr_score(goals)
    behavior = compute_behavior_score(criteria, manager_scores)
    discipline = compute_discipline_score(stats, config)

    warnings = []
    total_weight = weights_total(config)
    if total_weight != 100:
        logger.warning("KPI weights sum to %s instead of 100; scoring with raw weights", total_weight)
        warnings.append(f"weights sum to {total_weight}, expected 100")

    w_okr = config.weight_okr / 100
    w_behavior = config.weight_behavior / 100
    w_attendance = config.weight_attendance / 100

    final_score = round_half_up(
        okr * w_okr
        + behavior * w_behavior
        + discipline * w_attendance
    )

    return GradeResult(
        final_score=final_score,
        grade=grade_for_score(final_score),
        breakdown=ScoreBreakdown(
            okr_score=okr,
            behavior_score=behavior,
            attendance_score=discipline,
        ),
        warnings=tuple(warnings),
    )


def bonus_for_grade(grade: Optional[str]) -> int:
    return BONUS_BY_GRADE.get(grade, 0)


def behavior_raw_total(criteria: Iterable, scores: Optional[Mapping[str, Optional[Number]]]) -> Number:
    """Raw sum of scores over the given criteria, as stored on a review record."""
    scores = scores or {}
    return sum(scores.get(c.key) or 0 for c in criteria)
