from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .rounding import ZERO, to_amount

DAYS_PER_WEEK = 7

EmployeeId = Union[int, str]
WeekId = Union[int, str]


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _parse_json_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (str, bytes)):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    if isinstance(value, Mapping) or not isinstance(value, Iterable):
        return []
    return list(value)


def _optional_amount(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return to_amount(value)


def normalize_days(value: Any) -> int:
    days = min(max(to_amount(value), ZERO), Decimal(DAYS_PER_WEEK))
    return int(days)


def normalize_overtime_hours(values: Any) -> Tuple[Decimal, ...]:
    """Exactly seven non-negative hour values, Sunday first."""
    hours = [max(to_amount(v), ZERO) for v in _parse_json_list(values)[:DAYS_PER_WEEK]]
    hours.extend([ZERO] * (DAYS_PER_WEEK - len(hours)))
    return tuple(hours)


@dataclass(frozen=True)
class RateSchedule:
    daily_wage: Decimal = ZERO
    overtime_rate: Decimal = ZERO
    transport_rate: Decimal = ZERO
    meal_rate: Decimal = ZERO
    default_bonus: Decimal = ZERO

    def __post_init__(self) -> None:
        for name in ("daily_wage", "overtime_rate", "transport_rate", "meal_rate", "default_bonus"):
            object.__setattr__(self, name, to_amount(getattr(self, name)))

    @classmethod
    def from_record(cls, record: Any) -> "RateSchedule":
        return cls(
            daily_wage=_field(record, "daily_wage"),
            overtime_rate=_field(record, "overtime_rate"),
            transport_rate=_field(record, "transport_rate"),
            meal_rate=_field(record, "meal_rate"),
            default_bonus=_field(record, "default_bonus"),
        )


@dataclass(frozen=True)
class AdditionItem:
    label: str
    amount: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "label", str(self.label or ""))
        object.__setattr__(self, "amount", to_amount(self.amount))

    @classmethod
    def from_record(cls, record: Any) -> "AdditionItem":
        if isinstance(record, AdditionItem):
            return record
        return cls(label=_field(record, "label") or "", amount=_field(record, "amount"))


@dataclass(frozen=True)
class RateOverrides:
    """Per-week rate overrides. ``None`` means not overridden."""

    daily_wage: Optional[Decimal] = None
    overtime_rate: Optional[Decimal] = None
    transport_rate: Optional[Decimal] = None
    meal_rate: Optional[Decimal] = None

    def __post_init__(self) -> None:
        for name in ("daily_wage", "overtime_rate", "transport_rate", "meal_rate"):
            object.__setattr__(self, name, _optional_amount(getattr(self, name)))


@dataclass(frozen=True)
class WeekEntry:
    days_present: int = 0
    overtime_hours: Tuple[Decimal, ...] = ()
    bonus: Decimal = ZERO
    additions: Tuple[AdditionItem, ...] = ()
    loan_deduction: Decimal = ZERO
    overrides: RateOverrides = field(default_factory=RateOverrides)

    def __post_init__(self) -> None:
        object.__setattr__(self, "days_present", normalize_days(self.days_present))
        object.__setattr__(self, "overtime_hours", normalize_overtime_hours(self.overtime_hours))
        object.__setattr__(self, "bonus", to_amount(self.bonus))
        object.__setattr__(
            self,
            "additions",
            tuple(AdditionItem.from_record(item) for item in _parse_json_list(self.additions)),
        )
        object.__setattr__(self, "loan_deduction", to_amount(self.loan_deduction))
        if self.overrides is None:
            object.__setattr__(self, "overrides", RateOverrides())

    @classmethod
    def from_record(cls, record: Any) -> "WeekEntry":
        return cls(
            days_present=_field(record, "days_present"),
            overtime_hours=_field(record, "overtime_hours"),
            bonus=_field(record, "bonus"),
            additions=_field(record, "additions"),
            loan_deduction=_field(record, "loan_deduction"),
            overrides=RateOverrides(
                daily_wage=_field(record, "override_daily_wage"),
                overtime_rate=_field(record, "override_overtime_rate"),
                transport_rate=_field(record, "override_transport_rate"),
                meal_rate=_field(record, "override_meal_rate"),
            ),
        )

    @property
    def total_overtime_hours(self) -> Decimal:
        return sum(self.overtime_hours, ZERO)


@dataclass(frozen=True)
class EffectiveRates:
    daily_wage: Decimal
    overtime_rate: Decimal
    transport_rate: Decimal
    meal_rate: Decimal


@dataclass(frozen=True)
class PayItem:
    label: str
    amount: int


@dataclass(frozen=True)
class PayBreakdown:
    base: int
    overtime: int
    overtime_hours: Decimal
    transport: int
    meal: int
    bonus: int
    additions: Tuple[PayItem, ...]
    additions_total: int
    gross_earnings: int
    loan_deduction: int
    net_pay: int
    rates: EffectiveRates

    @property
    def is_over_deducted(self) -> bool:
        return self.net_pay < 0

    def items(self) -> List[PayItem]:
        """Every component of gross pay in payslip order."""
        return [
            PayItem("Base wage", self.base),
            PayItem("Overtime", self.overtime),
            PayItem("Transport", self.transport),
            PayItem("Meal allowance", self.meal),
            PayItem("Bonus", self.bonus),
            *self.additions,
        ]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "base": self.base,
            "overtime": self.overtime,
            "overtime_hours": float(self.overtime_hours),
            "transport": self.transport,
            "meal": self.meal,
            "bonus": self.bonus,
            "additions": [{"label": item.label, "amount": item.amount} for item in self.additions],
            "additions_total": self.additions_total,
            "gross_earnings": self.gross_earnings,
            "loan_deduction": self.loan_deduction,
            "net_pay": self.net_pay,
            "rates": {
                "daily_wage": float(self.rates.daily_wage),
                "overtime_rate": float(self.rates.overtime_rate),
                "transport_rate": float(self.rates.transport_rate),
                "meal_rate": float(self.rates.meal_rate),
            },
        }


@dataclass
class Loan:
    id: int
    employee_id: EmployeeId
    principal: Decimal
    remaining: Decimal
    start_date: date
    active: bool = True
    code: Optional[str] = None

    def __post_init__(self) -> None:
        self.principal = to_amount(self.principal)
        self.remaining = to_amount(self.remaining)
        check_loan_bounds(self.principal, self.remaining)

    @property
    def is_outstanding(self) -> bool:
        return self.active and self.remaining > 0

    @property
    def repaid(self) -> Decimal:
        return self.principal - self.remaining


def check_loan_bounds(principal: Decimal, remaining: Decimal) -> None:
    if principal < 0:
        raise ValueError(f"Loan principal must not be negative, got {principal}")
    if not ZERO <= remaining <= principal:
        raise ValueError(f"Loan remaining {remaining} must be between 0 and principal {principal}")


@dataclass(frozen=True)
class LoanPayment:
    loan_id: int
    week_id: Optional[WeekId]
    amount: Decimal
    balance_after: Decimal
    payment_date: date


@dataclass(frozen=True)
class WeekTotals:
    base: int = 0
    overtime: int = 0
    overtime_hours: Decimal = ZERO
    transport: int = 0
    meal: int = 0
    bonus: int = 0
    additions: int = 0
    gross_earnings: int = 0
    loan_deduction: int = 0
    net_pay: int = 0
    employee_count: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "base": self.base,
            "overtime": self.overtime,
            "overtime_hours": float(self.overtime_hours),
            "transport": self.transport,
            "meal": self.meal,
            "bonus": self.bonus,
            "additions": self.additions,
            "gross_earnings": self.gross_earnings,
            "loan_deduction": self.loan_deduction,
            "net_pay": self.net_pay,
            "employee_count": self.employee_count,
        }
