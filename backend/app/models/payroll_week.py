from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Integer, String, UniqueConstraint

from app.db.session import Base


class PayrollWeek(Base):
    __tablename__ = "payroll_weeks"
    __table_args__ = (UniqueConstraint("week_start", "week_end", name="uq_payroll_week_range"),)

    id = Column(Integer, primary_key=True, index=True)
    week_start = Column(Date, nullable=False)  # Sunday
    week_end = Column(Date, nullable=False)  # Saturday
    week_label = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
