from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from .models import EffectiveRates, PayBreakdown, PayItem, RateSchedule, WeekEntry
from .rounding import round_up, to_amount


def resolve_rate(override: Optional[Decimal], base: Any) -> Decimal:
    # An override of exactly 0 falls back to the schedule rate, same as no override.
    if override is not None and override != 0:
        return override
    return to_amount(base)


def effective_rates(rates: RateSchedule, entry: WeekEntry) -> EffectiveRates:
    overrides = entry.overrides
    return EffectiveRates(
        daily_wage=resolve_rate(overrides.daily_wage, rates.daily_wage),
        overtime_rate=resolve_rate(overrides.overtime_rate, rates.overtime_rate),
        transport_rate=resolve_rate(overrides.transport_rate, rates.transport_rate),
        meal_rate=resolve_rate(overrides.meal_rate, rates.meal_rate),
    )


def compute_pay_breakdown(rates: RateSchedule, entry: WeekEntry) -> PayBreakdown:
    """Itemize one employee's pay for one week.

    Every component is rounded up on its own before anything is summed.
    Net pay is not clamped and goes negative when the requested loan
    deduction exceeds gross earnings.
    """
    resolved = effective_rates(rates, entry)
    days = Decimal(entry.days_present)
    overtime_hours = entry.total_overtime_hours

    base = round_up(resolved.daily_wage * days)
    overtime = round_up(resolved.overtime_rate * overtime_hours)
    transport = round_up(resolved.transport_rate * days)
    meal = round_up(resolved.meal_rate * days)
    bonus = round_up(entry.bonus)
    additions = tuple(PayItem(item.label, round_up(item.amount)) for item in entry.additions)
    additions_total = sum(item.amount for item in additions)

    gross_earnings = base + overtime + transport + meal + bonus + additions_total
    loan_deduction = round_up(entry.loan_deduction)

    return PayBreakdown(
        base=base,
        overtime=overtime,
        overtime_hours=overtime_hours,
        transport=transport,
        meal=meal,
        bonus=bonus,
        additions=additions,
        additions_total=additions_total,
        gross_earnings=gross_earnings,
        loan_deduction=loan_deduction,
        net_pay=gross_earnings - loan_deduction,
        rates=resolved,
    )


def compute_from_record(record: Any) -> PayBreakdown:
    """Compute from one flat row carrying both the entry fields and the employee rates."""
    return compute_pay_breakdown(RateSchedule.from_record(record), WeekEntry.from_record(record))

