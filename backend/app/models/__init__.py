from .audit_log import AuditLog
from .employee import Employee
from .loan import Loan, LoanPayment
from .payroll_entry import PayrollEntry
from .payroll_week import PayrollWeek

__all__ = ["Employee", "PayrollWeek", "PayrollEntry", "Loan", "LoanPayment", "AuditLog"]
