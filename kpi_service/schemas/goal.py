from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

MONTH_KEY_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

class GoalCreate(BaseModel):
    user_id: int
    month_key: str = Field(..., pattern=MONTH_KEY_PATTERN)
    title: str = Field(..., min_length=1, max_length=200)
    target_value: float = Field(..., gt=0)
    actual_value: float = Field(0, ge=0)
    unit: str = Field("", max_length=30)

class GoalActualUpdate(BaseModel):
    actual_value: float = Field(..., ge=0)

class GoalResponse(BaseModel):
    id: int
    user_id: int
    month_key: str
    title: str
    target_value: float
    actual_value: float
    unit: str
    percent: int  # capped at 100
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
