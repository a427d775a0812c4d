from __future__ import annotations

from typing import Iterable

from .models import PayBreakdown, WeekTotals
from .rounding import ZERO


def aggregate_week_totals(breakdowns: Iterable[PayBreakdown]) -> WeekTotals:
    # Components are already whole rounded units; summing them needs no further rounding.
    base = overtime = transport = meal = bonus = additions = 0
    gross = deduction = net = 0
    overtime_hours = ZERO
    count = 0

    for breakdown in breakdowns:
        base += breakdown.base
        overtime += breakdown.overtime
        overtime_hours += breakdown.overtime_hours
        transport += breakdown.transport
        meal += breakdown.meal
        bonus += breakdown.bonus
        additions += breakdown.additions_total
        gross += breakdown.gross_earnings
        deduction += breakdown.loan_deduction
        net += breakdown.net_pay
        count += 1

    return WeekTotals(
        base=base,
        overtime=overtime,
        overtime_hours=overtime_hours,
        transport=transport,
        meal=meal,
        bonus=bonus,
        additions=additions,
        gross_earnings=gross,
        loan_deduction=deduction,
        net_pay=net,
        employee_count=count,
    )
