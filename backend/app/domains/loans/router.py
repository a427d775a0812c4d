from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.audit import record_audit, snapshot
from app.core.logging import get_logger
from app.db.session import get_session
from app.domains.employees.router import get_employee_or_404
from app.domains.loans.service import allocate_for_employee, to_core_loan, write_back
from app.models.employee import Employee
from app.models.loan import Loan, LoanPayment
from app.models.payroll_week import PayrollWeek
from wagebook.loans import apply_correction, settle_loan

router = APIRouter(prefix="/loans", tags=["loans"])
logger = get_logger(__name__)


class LoanCreate(BaseModel):
    employee_id: int
    principal: float = Field(..., gt=0)
    start_date: date
    loan_code: str | None = Field(default=None, max_length=50)
    notes: str | None = None


class LoanCorrection(BaseModel):
    principal: float | None = Field(default=None, ge=0)
    remaining: float | None = Field(default=None, ge=0)
    notes: str | None = None


class LoanOut(BaseModel):
    id: int
    loan_code: str | None = None
    employee_id: int
    employee_code: str | None = None
    employee_name: str | None = None
    principal: float
    remaining: float
    start_date: date
    notes: str | None = None
    is_active: bool


class PaymentRequest(BaseModel):
    employee_id: int
    week_id: int | None = None
    amount: float = 0


class LoanPaymentOut(BaseModel):
    id: int | None = None
    loan_id: int
    loan_code: str | None = None
    week_id: int | None = None
    week_label: str | None = None
    week_start: date | None = None
    week_end: date | None = None
    amount: float
    balance_after: float
    payment_date: date
    created_at: datetime | None = None


class AllocationOut(BaseModel):
    requested: float
    allocated: float
    unallocated: float
    payments: list[LoanPaymentOut]


def to_out(row: Loan, employee: Employee | None = None) -> LoanOut:
    return LoanOut(
        id=row.id,
        loan_code=row.loan_code,
        employee_id=row.employee_id,
        employee_code=employee.employee_code if employee else None,
        employee_name=employee.name if employee else None,
        principal=float(row.principal),
        remaining=float(row.remaining),
        start_date=row.start_date,
        notes=row.notes,
        is_active=bool(row.is_active),
    )


def payment_out(payment: LoanPayment, loan: Loan | None = None, week: PayrollWeek | None = None) -> LoanPaymentOut:
    return LoanPaymentOut(
        id=payment.id,
        loan_id=payment.loan_id,
        loan_code=loan.loan_code if loan else None,
        week_id=payment.week_id,
        week_label=week.week_label if week else None,
        week_start=week.week_start if week else None,
        week_end=week.week_end if week else None,
        amount=float(payment.amount),
        balance_after=float(payment.balance_after),
        payment_date=payment.payment_date,
        created_at=payment.created_at,
    )


def get_loan_or_404(db: Session, loan_id: int) -> Loan:
    row = db.query(Loan).filter(Loan.id == loan_id).one_or_none()
    if not row:
        raise HTTPException(status_code=404, detail="Loan not found")
    return row


@router.get("", response_model=list[LoanOut])
def list_active_loans(db: Session = Depends(get_session)) -> list[LoanOut]:
    rows = (
        db.query(Loan, Employee)
        .join(Employee, Employee.id == Loan.employee_id)
        .filter(Loan.is_active.is_(True))
        .order_by(Loan.start_date.desc(), Loan.id.desc())
        .all()
    )
    return [to_out(loan, employee) for loan, employee in rows]


@router.get("/employee/{employee_id}", response_model=list[LoanOut])
def list_employee_loans(employee_id: int, db: Session = Depends(get_session)) -> list[LoanOut]:
    employee = get_employee_or_404(db, employee_id)
    rows = (
        db.query(Loan)
        .filter(Loan.employee_id == employee_id, Loan.is_active.is_(True), Loan.remaining > 0)
        .order_by(Loan.start_date.asc(), Loan.id.asc())
        .all()
    )
    return [to_out(row, employee) for row in rows]


@router.get("/employee/{employee_id}/history", response_model=list[LoanPaymentOut])
def employee_payment_history(employee_id: int, db: Session = Depends(get_session)) -> list[LoanPaymentOut]:
    get_employee_or_404(db, employee_id)
    rows = (
        db.query(LoanPayment, Loan, PayrollWeek)
        .join(Loan, Loan.id == LoanPayment.loan_id)
        .outerjoin(PayrollWeek, PayrollWeek.id == LoanPayment.week_id)
        .filter(Loan.employee_id == employee_id)
        .order_by(LoanPayment.created_at.desc(), LoanPayment.id.desc())
        .all()
    )
    return [payment_out(payment, loan, week) for payment, loan, week in rows]


@router.post("", response_model=LoanOut, status_code=201)
def create_loan(payload: LoanCreate, db: Session = Depends(get_session)) -> LoanOut:
    employee = get_employee_or_404(db, payload.employee_id)
    row = Loan(
        loan_code=payload.loan_code,
        employee_id=employee.id,
        principal=payload.principal,
        remaining=payload.principal,
        start_date=payload.start_date,
        notes=payload.notes,
        is_active=True,
    )
    db.add(row)
    db.flush()
    record_audit(db, "loans", row.id, "INSERT", None, snapshot(row))
    db.commit()
    db.refresh(row)

    logger.info("loan_created", loan_id=row.id, employee_id=employee.id, principal=payload.principal)
    return to_out(row, employee)


@router.post("/payment", response_model=AllocationOut)
def allocate_payment(payload: PaymentRequest, db: Session = Depends(get_session)) -> AllocationOut:
    employee = get_employee_or_404(db, payload.employee_id)
    if not employee.is_active:
        raise HTTPException(status_code=409, detail="Employee is inactive")
    if payload.week_id is not None and db.get(PayrollWeek, payload.week_id) is None:
        raise HTTPException(status_code=404, detail="Payroll week not found")

    result = allocate_for_employee(db, employee.id, payload.week_id, payload.amount)
    return AllocationOut(
        requested=float(result.requested),
        allocated=float(result.allocated),
        unallocated=float(result.unallocated),
        payments=[
            LoanPaymentOut(
                loan_id=payment.loan_id,
                week_id=payment.week_id,
                amount=float(payment.amount),
                balance_after=float(payment.balance_after),
                payment_date=payment.payment_date,
            )
            for payment in result.payments
        ],
    )


@router.get("/{loan_id}/payments", response_model=list[LoanPaymentOut])
def loan_payment_history(loan_id: int, db: Session = Depends(get_session)) -> list[LoanPaymentOut]:
    loan = get_loan_or_404(db, loan_id)
    rows = (
        db.query(LoanPayment, PayrollWeek)
        .outerjoin(PayrollWeek, PayrollWeek.id == LoanPayment.week_id)
        .filter(LoanPayment.loan_id == loan_id)
        .order_by(LoanPayment.payment_date.desc(), LoanPayment.id.desc())
        .all()
    )
    return [payment_out(payment, loan, week) for payment, week in rows]


@router.put("/{loan_id}", response_model=LoanOut)
def correct_loan(loan_id: int, payload: LoanCorrection, db: Session = Depends(get_session)) -> LoanOut:
    """Administrative overwrite of principal/remaining; not reflected in the payment ledger."""
    row = get_loan_or_404(db, loan_id)
    before = snapshot(row)
    loan = to_core_loan(row)
    try:
        apply_correction(loan, principal=payload.principal, remaining=payload.remaining)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    write_back(row, loan)
    if "notes" in payload.model_fields_set:
        row.notes = payload.notes
    db.flush()
    record_audit(db, "loans", row.id, "UPDATE", before, snapshot(row))
    db.commit()
    db.refresh(row)

    logger.info("loan_corrected", loan_id=row.id, principal=float(row.principal), remaining=float(row.remaining))
    return to_out(row, row.employee)


@router.put("/{loan_id}/paid", response_model=LoanOut)
def mark_loan_paid(loan_id: int, db: Session = Depends(get_session)) -> LoanOut:
    row = get_loan_or_404(db, loan_id)
    before = snapshot(row)
    loan = settle_loan(to_core_loan(row))
    write_back(row, loan)
    db.flush()
    record_audit(db, "loans", row.id, "UPDATE", before, snapshot(row))
    db.commit()
    db.refresh(row)

    logger.info("loan_marked_paid", loan_id=row.id)
    return to_out(row, row.employee)


@router.delete("/{loan_id}", status_code=204)
def delete_loan(loan_id: int, db: Session = Depends(get_session)) -> None:
    row = get_loan_or_404(db, loan_id)
    before = snapshot(row)
    db.delete(row)
    record_audit(db, "loans", loan_id, "DELETE", before, None)
    db.commit()
    logger.info("loan_deleted", loan_id=loan_id)
    return None
