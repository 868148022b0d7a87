from sqlalchemy import (
    Column, Integer, String, Float, Text, Boolean, DateTime, ForeignKey, JSON, UniqueConstraint, func
)
from kpi_service.database import Base

CONFIG_ROW_ID = 1

class KpiConfig(Base):
    __tablename__ = "kpi_configs"

    id = Column(Integer, primary_key=True, default=CONFIG_ROW_ID)
    weight_okr = Column(Integer, nullable=False, default=50)
    weight_behavior = Column(Integer, nullable=False, default=30)
    weight_attendance = Column(Integer, nullable=False, default=20)
    penalty_late = Column(Float, nullable=False, default=5)
    penalty_missed_duty = Column(Float, nullable=False, default=10)
    penalty_absent = Column(Float, nullable=False, default=15)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

class KpiCriterion(Base):
    __tablename__ = "kpi_criteria"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String, unique=True, nullable=False)
    label = Column(String, nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

class KpiRecord(Base):
    __tablename__ = "kpi_records"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    evaluator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    month_key = Column(String(7), nullable=False)
    scores = Column(JSON, nullable=False, default=dict)
    self_scores = Column(JSON, nullable=False, default=dict)
    feedback = Column(Text, nullable=False, default="")
    status = Column(String, nullable=False, default="DRAFT")  # DRAFT, FINAL, PAID
    total_score = Column(Float, nullable=False, default=0)
    max_score = Column(Integer, nullable=False, default=0)

    # Frozen when the review is finalized
    final_score = Column(Integer, nullable=True)
    grade = Column(String(1), nullable=True)
    breakdown = Column(JSON, nullable=True)
    stats_snapshot = Column(JSON, nullable=True)
    goals_snapshot = Column(JSON, nullable=True)
    bonus_amount = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "month_key", name="uq_kpi_user_month"),
    )

class RewardTransaction(Base):
    __tablename__ = "reward_transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    kpi_record_id = Column(Integer, ForeignKey("kpi_records.id"), nullable=True)
    amount = Column(Integer, nullable=False)
    reason = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
