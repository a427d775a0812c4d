from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from ..models import PayBreakdown, WeekEntry

ReportRow = Dict[str, Any]

WEEKLY_HEADERS = [
    "Employee ID",
    "Name",
    "Days Present",
    "Overtime Hours",
    "Base Wage",
    "Overtime Pay",
    "Transport",
    "Meal",
    "Bonus",
    "Additions",
    "Gross Earnings",
    "Loan Deduction",
    "Net Pay",
]


@dataclass(frozen=True)
class PayslipLine:
    employee_code: str
    employee_name: str
    entry: WeekEntry
    breakdown: PayBreakdown


def _hours(value: Any) -> str:
    # 5.0 -> "5", 2.5 -> "2.5"
    return format(value.normalize(), "f") if value else "0"


def weekly_rows(lines: Iterable[PayslipLine]) -> List[ReportRow]:
    rows: List[ReportRow] = []
    for line in sorted(lines, key=lambda item: item.employee_name.lower()):
        calc = line.breakdown
        rows.append(
            {
                "Employee ID": line.employee_code,
                "Name": line.employee_name,
                "Days Present": line.entry.days_present,
                "Overtime Hours": _hours(calc.overtime_hours),
                "Base Wage": calc.base,
                "Overtime Pay": calc.overtime,
                "Transport": calc.transport,
                "Meal": calc.meal,
                "Bonus": calc.bonus,
                "Additions": calc.additions_total,
                "Gross Earnings": calc.gross_earnings,
                "Loan Deduction": calc.loan_deduction,
                "Net Pay": calc.net_pay,
            }
        )
    return rows


def weekly_csv(lines: Iterable[PayslipLine]) -> str:
    handle = io.StringIO()
    writer = csv.DictWriter(handle, fieldnames=WEEKLY_HEADERS, lineterminator="\n")
    writer.writeheader()
    for row in weekly_rows(lines):
        writer.writerow(row)
    return handle.getvalue()
