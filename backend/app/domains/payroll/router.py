from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.audit import record_audit, snapshot
from app.core.logging import get_logger
from app.db.session import get_session
from app.domains.employees.router import get_employee_or_404
from app.domains.loans.service import allocate_for_employee, allocated_for_week
from app.domains.payroll.service import EntryLine, compute_line, load_week_lines
from app.domains.weeks.router import get_week_or_404
from app.models.employee import Employee
from app.models.payroll_entry import PayrollEntry
from wagebook.models import RateSchedule, normalize_overtime_hours

router = APIRouter(prefix="/payroll", tags=["payroll"])
logger = get_logger(__name__)

OVERRIDE_FIELDS = (
    "override_daily_wage",
    "override_overtime_rate",
    "override_transport_rate",
    "override_meal_rate",
)


class AdditionIn(BaseModel):
    label: str = ""
    amount: float = 0


class EntryCreate(BaseModel):
    employee_id: int
    week_id: int


class EntryUpdate(BaseModel):
    days_present: int | None = Field(default=None, ge=0, le=7)
    overtime_hours: list[float] | None = None
    bonus: float | None = Field(default=None, ge=0)
    additions: list[AdditionIn] | None = None
    loan_deduction: float | None = Field(default=None, ge=0)
    override_daily_wage: float | None = Field(default=None, ge=0)
    override_overtime_rate: float | None = Field(default=None, ge=0)
    override_transport_rate: float | None = Field(default=None, ge=0)
    override_meal_rate: float | None = Field(default=None, ge=0)


class AllocationSummary(BaseModel):
    requested: float
    allocated: float
    unallocated: float
    loans_touched: int


class EntryOut(BaseModel):
    id: int
    employee_id: int
    week_id: int
    employee_code: str
    name: str
    days_present: int
    overtime_hours: list[float]
    bonus: float
    additions: list[AdditionIn]
    loan_deduction: float
    override_daily_wage: float | None = None
    override_overtime_rate: float | None = None
    override_transport_rate: float | None = None
    override_meal_rate: float | None = None
    calculated: dict[str, Any]
    allocation: AllocationSummary | None = None


def _optional_float(value: Any) -> float | None:
    return None if value is None else float(value)


def to_out(line: EntryLine, allocation: AllocationSummary | None = None) -> EntryOut:
    entry = line.entry
    week_entry = line.week_entry
    return EntryOut(
        id=entry.id,
        employee_id=entry.employee_id,
        week_id=entry.week_id,
        employee_code=line.employee.employee_code,
        name=line.employee.name,
        days_present=week_entry.days_present,
        overtime_hours=[float(hours) for hours in week_entry.overtime_hours],
        bonus=float(week_entry.bonus),
        additions=[AdditionIn(label=item.label, amount=float(item.amount)) for item in week_entry.additions],
        loan_deduction=float(week_entry.loan_deduction),
        **{name: _optional_float(getattr(entry, name)) for name in OVERRIDE_FIELDS},
        calculated=line.breakdown.as_dict(),
        allocation=allocation,
    )


def seeded_bonus(employee: Employee) -> Decimal:
    return RateSchedule.from_record(employee).default_bonus


def get_entry_or_404(db: Session, entry_id: int) -> PayrollEntry:
    row = db.query(PayrollEntry).filter(PayrollEntry.id == entry_id).one_or_none()
    if not row:
        raise HTTPException(status_code=404, detail="Payroll entry not found")
    return row


def _find_entry(db: Session, employee_id: int, week_id: int) -> PayrollEntry | None:
    return (
        db.query(PayrollEntry)
        .filter(PayrollEntry.employee_id == employee_id, PayrollEntry.week_id == week_id)
        .one_or_none()
    )


@router.get("/{week_id}", response_model=list[EntryOut])
def list_week_entries(week_id: int, db: Session = Depends(get_session)) -> list[EntryOut]:
    get_week_or_404(db, week_id)
    return [to_out(line) for line in load_week_lines(db, week_id)]


@router.get("/entries/{entry_id}", response_model=EntryOut)
def get_entry(entry_id: int, db: Session = Depends(get_session)) -> EntryOut:
    row = get_entry_or_404(db, entry_id)
    return to_out(compute_line(row, row.employee))


@router.post("", response_model=EntryOut)
def get_or_create_entry(payload: EntryCreate, db: Session = Depends(get_session)) -> EntryOut:
    employee = get_employee_or_404(db, payload.employee_id)
    get_week_or_404(db, payload.week_id)

    row = _find_entry(db, employee.id, payload.week_id)
    if row is None:
        row = PayrollEntry(employee_id=employee.id, week_id=payload.week_id, bonus=seeded_bonus(employee))
        db.add(row)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent create; the other row wins.
            db.rollback()
            row = _find_entry(db, employee.id, payload.week_id)
        else:
            db.refresh(row)
            logger.info("payroll_entry_created", entry_id=row.id, employee_id=employee.id, week_id=row.week_id)
    return to_out(compute_line(row, employee))


@router.put("/entries/{entry_id}", response_model=EntryOut)
def update_entry(entry_id: int, payload: EntryUpdate, db: Session = Depends(get_session)) -> EntryOut:
    row = get_entry_or_404(db, entry_id)
    changes = payload.model_dump(exclude_unset=True)
    before = snapshot(row)

    for name in ("days_present", "bonus", "loan_deduction"):
        if changes.get(name) is not None:
            setattr(row, name, changes[name])
    if changes.get("overtime_hours") is not None:
        row.overtime_hours = [float(hours) for hours in normalize_overtime_hours(changes["overtime_hours"])]
    if changes.get("additions") is not None:
        row.additions = [{"label": item["label"], "amount": item["amount"]} for item in changes["additions"]]
    for name in OVERRIDE_FIELDS:
        if name in changes:
            setattr(row, name, changes[name])

    db.flush()
    record_audit(db, "payroll_entries", row.id, "UPDATE", before, snapshot(row))
    line = compute_line(row, row.employee)

    allocation = None
    if "loan_deduction" in changes and line.breakdown.loan_deduction > 0:
        already = allocated_for_week(db, row.employee_id, row.week_id)
        pending = Decimal(line.breakdown.loan_deduction) - already
        if pending > 0:
            result = allocate_for_employee(db, row.employee_id, row.week_id, pending)
            allocation = AllocationSummary(
                requested=float(result.requested),
                allocated=float(result.allocated),
                unallocated=float(result.unallocated),
                loans_touched=len(result.payments),
            )
        elif pending < 0:
            # Payments are append-only; a lowered deduction is not refunded to the loans.
            logger.warning(
                "loan_deduction_below_allocated",
                entry_id=row.id,
                deduction=line.breakdown.loan_deduction,
                allocated=float(already),
            )
    db.commit()
    db.refresh(row)

    logger.info("payroll_entry_updated", entry_id=row.id, fields=sorted(changes))
    return to_out(compute_line(row, row.employee), allocation)


@router.post("/initialize/{week_id}")
def initialize_week(week_id: int, db: Session = Depends(get_session)) -> dict[str, Any]:
    get_week_or_404(db, week_id)
    employees = db.query(Employee).filter(Employee.is_active.is_(True)).all()
    existing = {
        employee_id
        for (employee_id,) in db.query(PayrollEntry.employee_id).filter(PayrollEntry.week_id == week_id).all()
    }

    created = 0
    for employee in employees:
        if employee.id in existing:
            continue
        db.add(PayrollEntry(employee_id=employee.id, week_id=week_id, bonus=seeded_bonus(employee)))
        created += 1
    db.commit()

    logger.info("payroll_week_initialized", week_id=week_id, created=created, employees=len(employees))
    return {
        "message": f"Initialized payroll for {len(employees)} employees",
        "employee_count": len(employees),
        "created": created,
    }
