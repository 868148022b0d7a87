from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, ForeignKey
from kpi_service.database import Base

class Attendance(Base):
    __tablename__ = "attendance_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    check_in_at = Column(DateTime(timezone=True), nullable=False)
    check_out_at = Column(DateTime(timezone=True), nullable=True)
    method = Column(String, nullable=False, default="IP")  # "IP", "QR" or "GPS"
    location = Column(String, nullable=True)

class Duty(Base):
    __tablename__ = "duties"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    duty_date = Column(Date, nullable=False)
    title = Column(String, nullable=True)
    is_done = Column(Boolean, nullable=False, default=False)
