from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, List, Optional

import structlog

from .models import EmployeeId, Loan, LoanPayment, WeekId, check_loan_bounds
from .rounding import ZERO, to_amount

logger = structlog.get_logger(__name__)


def outstanding_loans(employee_id: EmployeeId, loans: Iterable[Loan]) -> List[Loan]:
    """Active loans with a balance left, oldest debt first."""
    owned = [loan for loan in loans if loan.employee_id == employee_id and loan.is_outstanding]
    return sorted(owned, key=lambda loan: (loan.start_date, loan.id))


def total_outstanding(loans: Iterable[Loan]) -> Decimal:
    return sum((loan.remaining for loan in loans if loan.is_outstanding), ZERO)


def unallocated_amount(requested: Any, payments: Iterable[LoanPayment]) -> Decimal:
    """Portion of a requested deduction that no loan absorbed."""
    allocated = sum((payment.amount for payment in payments), ZERO)
    return max(to_amount(requested) - allocated, ZERO)


def ledger_discrepancy(loan: Loan, payments: Iterable[LoanPayment]) -> Decimal:
    """``principal - remaining - sum(payments)``; zero when the ledger balances."""
    paid = sum((payment.amount for payment in payments if payment.loan_id == loan.id), ZERO)
    return loan.repaid - paid


@dataclass(frozen=True)
class AllocationResult:
    requested: Decimal
    payments: List[LoanPayment]
    outstanding_before: Decimal

    @property
    def allocated(self) -> Decimal:
        return sum((payment.amount for payment in self.payments), ZERO)

    @property
    def unallocated(self) -> Decimal:
        return max(self.requested - self.allocated, ZERO)


class LoanRepaymentAllocator:
    """Split one requested deduction across an employee's outstanding loans.

    The caller owns the loans passed in and must hold them exclusively for
    the whole read-allocate-write sequence; two interleaved allocations for
    the same employee would spend the same remaining balance twice.
    """

    def __init__(self, clamp_excess: bool = False):
        self.clamp_excess = clamp_excess

    def allocatable(self, requested: Decimal, outstanding: Decimal) -> Decimal:
        if self.clamp_excess:
            return min(requested, outstanding)
        # Anything above the total outstanding balance is silently dropped.
        return requested

    def allocate_detailed(
        self,
        employee_id: EmployeeId,
        week_id: Optional[WeekId],
        amount: Any,
        loans: Iterable[Loan],
        payment_date: Optional[date] = None,
    ) -> AllocationResult:
        requested = to_amount(amount)
        ordered = outstanding_loans(employee_id, loans)
        outstanding = total_outstanding(ordered)
        if requested <= 0:
            return AllocationResult(requested=requested, payments=[], outstanding_before=outstanding)

        paid_on = payment_date or date.today()
        left = self.allocatable(requested, outstanding)
        payments: List[LoanPayment] = []
        for loan in ordered:
            if left <= 0:
                break
            applied = min(left, loan.remaining)
            loan.remaining -= applied
            if loan.remaining == 0:
                loan.active = False
            payments.append(
                LoanPayment(
                    loan_id=loan.id,
                    week_id=week_id,
                    amount=applied,
                    balance_after=loan.remaining,
                    payment_date=paid_on,
                )
            )
            left -= applied

        result = AllocationResult(requested=requested, payments=payments, outstanding_before=outstanding)
        logger.debug(
            "loan_allocation",
            employee_id=employee_id,
            week_id=week_id,
            requested=str(requested),
            allocated=str(result.allocated),
            loans_touched=len(payments),
        )
        if result.unallocated > 0:
            logger.debug(
                "loan_allocation_excess_dropped",
                employee_id=employee_id,
                unallocated=str(result.unallocated),
            )
        return result

    def allocate(
        self,
        employee_id: EmployeeId,
        week_id: Optional[WeekId],
        amount: Any,
        loans: Iterable[Loan],
        payment_date: Optional[date] = None,
    ) -> List[LoanPayment]:
        return self.allocate_detailed(employee_id, week_id, amount, loans, payment_date).payments


def allocate_loan_payment(
    employee_id: EmployeeId,
    week_id: Optional[WeekId],
    amount: Any,
    loans: Iterable[Loan],
    payment_date: Optional[date] = None,
) -> List[LoanPayment]:
    return LoanRepaymentAllocator().allocate(employee_id, week_id, amount, loans, payment_date)


def apply_correction(loan: Loan, principal: Any = None, remaining: Any = None) -> Loan:
    """Administrative overwrite of principal and/or remaining.

    Not covered by ledger conservation; existing payment rows are left as is.
    """
    new_principal = loan.principal if principal is None else to_amount(principal)
    new_remaining = loan.remaining if remaining is None else to_amount(remaining)
    check_loan_bounds(new_principal, new_remaining)
    loan.principal = new_principal
    loan.remaining = new_remaining
    loan.active = new_remaining > 0
    return loan


def settle_loan(loan: Loan) -> Loan:
    return apply_correction(loan, remaining=ZERO)
