from __future__ import annotations

import threading
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from app.core.audit import record_audit
from app.core.logging import get_logger
from app.core.observability import loan_allocations, tracer, unallocated_deductions
from app.models.loan import Loan, LoanPayment
from app.models.payroll_week import PayrollWeek
from wagebook import models as core
from wagebook.loans import AllocationResult, LoanRepaymentAllocator

logger = get_logger(__name__)


class EmployeeLockRegistry:
    """One lock per employee id, created on first use."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = defaultdict(threading.Lock)

    def lock_for(self, employee_id: int) -> threading.Lock:
        with self._guard:
            return self._locks[employee_id]


employee_locks = EmployeeLockRegistry()


def to_core_loan(row: Loan) -> core.Loan:
    return core.Loan(
        id=row.id,
        employee_id=row.employee_id,
        principal=row.principal,
        remaining=row.remaining,
        start_date=row.start_date,
        active=bool(row.is_active),
        code=row.loan_code,
    )


def write_back(row: Loan, loan: core.Loan) -> None:
    row.principal = loan.principal
    row.remaining = loan.remaining
    row.is_active = loan.active


def allocate_for_employee(
    db: Session,
    employee_id: int,
    week_id: int | None,
    amount: Any,
    allocator: LoanRepaymentAllocator | None = None,
    payment_date: date | None = None,
) -> AllocationResult:
    """Read outstanding loans, allocate, persist balances and payments, commit.

    The whole read-allocate-write sequence runs under the employee's lock and
    inside one transaction, so concurrent requests for the same employee
    cannot spend the same balance twice.
    """
    allocator = allocator or LoanRepaymentAllocator()
    with employee_locks.lock_for(employee_id), tracer.start_as_current_span("allocate_loan_payment") as span:
        span.set_attribute("wagebook.employee_id", employee_id)
        rows = (
            db.query(Loan)
            .filter(Loan.employee_id == employee_id, Loan.is_active.is_(True), Loan.remaining > 0)
            .order_by(Loan.start_date.asc(), Loan.id.asc())
            .with_for_update()
            .all()
        )
        by_id = {row.id: row for row in rows}
        loans = [to_core_loan(row) for row in rows]
        result = allocator.allocate_detailed(employee_id, week_id, amount, loans, payment_date=payment_date)

        touched = {payment.loan_id for payment in result.payments}
        for loan in loans:
            if loan.id in touched:
                write_back(by_id[loan.id], loan)
        for payment in result.payments:
            db.add(
                LoanPayment(
                    loan_id=payment.loan_id,
                    week_id=payment.week_id,
                    amount=payment.amount,
                    balance_after=payment.balance_after,
                    payment_date=payment.payment_date,
                )
            )
        if result.payments:
            record_audit(
                db,
                "loan_payments",
                None,
                "ALLOCATE",
                None,
                {
                    "employee_id": employee_id,
                    "week_id": week_id,
                    "requested": result.requested,
                    "allocated": result.allocated,
                    "payments": [
                        {"loan_id": p.loan_id, "amount": p.amount, "balance_after": p.balance_after}
                        for p in result.payments
                    ],
                },
            )
        db.commit()
        span.set_attribute("wagebook.loans_touched", len(result.payments))

    loan_allocations.add(1)
    if result.unallocated > 0:
        unallocated_deductions.add(1)
        logger.warning(
            "loan_deduction_exceeds_outstanding",
            employee_id=employee_id,
            week_id=week_id,
            requested=float(result.requested),
            unallocated=float(result.unallocated),
        )
    logger.info(
        "loan_payment_allocated",
        employee_id=employee_id,
        week_id=week_id,
        allocated=float(result.allocated),
        loans_touched=len(result.payments),
    )
    return result


def allocated_for_week(db: Session, employee_id: int, week_id: int) -> Decimal:
    """Total already applied to the employee's loans for one week."""
    rows = (
        db.query(LoanPayment.amount)
        .join(Loan, Loan.id == LoanPayment.loan_id)
        .filter(Loan.employee_id == employee_id, LoanPayment.week_id == week_id)
        .all()
    )
    return sum((Decimal(amount) for (amount,) in rows), Decimal(0))


def balance_after_week(db: Session, employee_id: int, week: PayrollWeek) -> Decimal:
    """Outstanding balance as it stood once the given week's deduction was applied.

    Payments recorded for later weeks, or dated after the week without one,
    are added back onto today's balances. Loans started after the week are
    left out.
    """
    loans = (
        db.query(Loan.id, Loan.remaining)
        .filter(Loan.employee_id == employee_id, Loan.start_date <= week.week_end)
        .all()
    )
    if not loans:
        return Decimal(0)
    later = (
        db.query(LoanPayment.amount)
        .outerjoin(PayrollWeek, PayrollWeek.id == LoanPayment.week_id)
        .filter(
            LoanPayment.loan_id.in_([loan_id for loan_id, _ in loans]),
            or_(
                PayrollWeek.week_start > week.week_start,
                and_(LoanPayment.week_id.is_(None), LoanPayment.payment_date > week.week_end),
            ),
        )
        .all()
    )
    current = sum((Decimal(remaining) for _, remaining in loans), Decimal(0))
    return current + sum((Decimal(amount) for (amount,) in later), Decimal(0))
