from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from kpi_service.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=True)
    position = Column(String, nullable=True)
    role = Column(String, nullable=False, default="staff")  # staff, admin
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
