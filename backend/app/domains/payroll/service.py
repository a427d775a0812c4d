from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.models.employee import Employee
from app.models.payroll_entry import PayrollEntry
from wagebook.calculator import compute_pay_breakdown
from wagebook.models import PayBreakdown, RateSchedule, WeekEntry
from wagebook.reports.exporter import PayslipLine


@dataclass
class EntryLine:
    entry: PayrollEntry
    employee: Employee
    week_entry: WeekEntry
    breakdown: PayBreakdown

    def payslip_line(self) -> PayslipLine:
        return PayslipLine(
            employee_code=self.employee.employee_code,
            employee_name=self.employee.name,
            entry=self.week_entry,
            breakdown=self.breakdown,
        )


def compute_line(entry: PayrollEntry, employee: Employee) -> EntryLine:
    week_entry = WeekEntry.from_record(entry)
    breakdown = compute_pay_breakdown(RateSchedule.from_record(employee), week_entry)
    return EntryLine(entry=entry, employee=employee, week_entry=week_entry, breakdown=breakdown)


def load_week_lines(db: Session, week_id: int) -> list[EntryLine]:
    """Entries of active employees for a week, each with its computed breakdown."""
    rows = (
        db.query(PayrollEntry, Employee)
        .join(Employee, Employee.id == PayrollEntry.employee_id)
        .filter(PayrollEntry.week_id == week_id, Employee.is_active.is_(True))
        .order_by(Employee.name.asc(), Employee.id.asc())
        .all()
    )
    return [compute_line(entry, employee) for entry, employee in rows]
