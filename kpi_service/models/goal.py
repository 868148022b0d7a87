from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, func, Index
from kpi_service.database import Base

class IndividualGoal(Base):
    __tablename__ = "individual_goals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    month_key = Column(String(7), nullable=False)  # YYYY-MM
    title = Column(String, nullable=False)
    target_value = Column(Float, nullable=False)
    actual_value = Column(Float, nullable=False, default=0)
    unit = Column(String, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        Index("ix_individual_goals_user_month", "user_id", "month_key"),
    )
