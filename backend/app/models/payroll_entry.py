from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.session import Base


def _empty_week() -> list:
    return [0, 0, 0, 0, 0, 0, 0]


class PayrollEntry(Base):
    __tablename__ = "payroll_entries"
    __table_args__ = (UniqueConstraint("employee_id", "week_id", name="uq_payroll_entry_employee_week"),)

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    week_id = Column(Integer, ForeignKey("payroll_weeks.id"), nullable=False, index=True)

    days_present = Column(Integer, nullable=False, default=0)
    overtime_hours = Column(JSON, nullable=False, default=_empty_week)  # Sunday first
    bonus = Column(Numeric(14, 2), nullable=False, default=0)
    additions = Column(JSON, nullable=False, default=list)  # [{"label": ..., "amount": ...}]
    loan_deduction = Column(Numeric(14, 2), nullable=False, default=0)

    # NULL means "use the employee's rate"
    override_daily_wage = Column(Numeric(14, 2), nullable=True)
    override_overtime_rate = Column(Numeric(14, 2), nullable=True)
    override_transport_rate = Column(Numeric(14, 2), nullable=True)
    override_meal_rate = Column(Numeric(14, 2), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    employee = relationship("Employee")
    week = relationship("PayrollWeek")
