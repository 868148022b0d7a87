from pydantic import BaseModel, Field, model_validator
from typing import Annotated, Dict, List, Optional
from .goal import GoalResponse

CriterionScore = Annotated[int, Field(ge=0, le=5)]
Weight = Annotated[int, Field(ge=0, le=100)]
Penalty = Annotated[float, Field(ge=0)]


class KpiConfigUpdate(BaseModel):
    weight_okr: Weight
    weight_behavior: Weight
    weight_attendance: Weight
    penalty_late: Penalty
    penalty_missed_duty: Penalty
    penalty_absent: Penalty

    @model_validator(mode="after")
    def weights_must_total_100(self):
        total = self.weight_okr + self.weight_behavior + self.weight_attendance
        if total != 100:
            raise ValueError(f"Weights must sum to 100 (got {total})")
        return self

class KpiConfigResponse(BaseModel):
    weight_okr: int
    weight_behavior: int
    weight_attendance: int
    penalty_late: float
    penalty_missed_duty: float
    penalty_absent: float

    model_config = {"from_attributes": True}


class CriterionCreate(BaseModel):
    key: str = Field(..., min_length=1, max_length=50, pattern=r"^[A-Za-z0-9_\-]+$")
    label: str = Field(..., min_length=1, max_length=100)
    sort_order: int = 0

class CriterionUpdate(BaseModel):
    label: Optional[str] = Field(None, min_length=1, max_length=100)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None

class CriterionResponse(BaseModel):
    id: int
    key: str
    label: str
    sort_order: int
    is_active: bool

    model_config = {"from_attributes": True}


class StatsResponse(BaseModel):
    attendance_late: int = 0
    attendance_absent: int = 0
    duty_missed: int = 0
    task_completed: int = 0
    task_late: int = 0

    model_config = {"from_attributes": True}

class BreakdownResponse(BaseModel):
    okr_score: int
    behavior_score: int
    attendance_score: float

    model_config = {"from_attributes": True}

class GradeResponse(BaseModel):
    final_score: int
    grade: str
    bonus: int
    breakdown: BreakdownResponse
    warnings: List[str] = []


# Stateless engine call; nothing is loaded from the database
class PreviewCriterion(BaseModel):
    key: str
    label: str = ""

class PreviewGoal(BaseModel):
    target_value: float
    actual_value: float = 0
    unit: str = ""

class GradePreviewRequest(BaseModel):
    config: KpiConfigResponse
    criteria: List[PreviewCriterion] = []
    goals: List[PreviewGoal] = []
    scores: Dict[str, Optional[float]] = {}
    stats: StatsResponse = StatsResponse()


class ReviewSave(BaseModel):
    evaluator_id: Optional[int] = None
    scores: Dict[str, CriterionScore] = {}
    self_scores: Dict[str, CriterionScore] = {}
    feedback: str = ""
    status: str = Field("DRAFT", pattern="^(DRAFT|FINAL|PAID)$")

class ReviewResponse(BaseModel):
    id: Optional[int] = None  # None while no review has been saved
    user_id: int
    month_key: str
    evaluator_id: Optional[int] = None
    status: str
    scores: Dict[str, int]
    self_scores: Dict[str, int]
    self_behavior_score: int  # display only
    feedback: str
    total_score: float
    max_score: int
    result: GradeResponse
    stats: StatsResponse
    goals: List[GoalResponse]
    is_snapshot: bool  # True once finalized

class HistoryItem(BaseModel):
    month_key: str
    status: str
    final_score: int
    grade: str
    breakdown: BreakdownResponse

class SlipResponse(BaseModel):
    user_id: int
    user_name: Optional[str]
    position: Optional[str]
    month_key: str
    status: str
    evaluator_id: Optional[int]
    feedback: str
    final_score: int
    grade: str
    bonus: int
    breakdown: BreakdownResponse
    stats: StatsResponse
