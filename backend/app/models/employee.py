from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String

from app.db.session import Base


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    employee_code = Column(String(50), nullable=False, unique=True)
    name = Column(String(200), nullable=False)

    # Rate schedule, per day unless noted
    daily_wage = Column(Numeric(14, 2), nullable=False, default=0)
    overtime_rate = Column(Numeric(14, 2), nullable=False, default=0)  # per hour
    transport_rate = Column(Numeric(14, 2), nullable=False, default=0)
    meal_rate = Column(Numeric(14, 2), nullable=False, default=0)
    default_bonus = Column(Numeric(14, 2), nullable=False, default=0)  # per week

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
