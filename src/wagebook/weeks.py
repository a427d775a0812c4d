from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from math import ceil
from typing import List, Optional, Tuple

from .models import DAYS_PER_WEEK

MONTH_ABBREVIATIONS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


@dataclass(frozen=True)
class WeekOption:
    start: date
    end: date
    label: str

    @property
    def range_label(self) -> str:
        return f"{format_day(self.start)} - {format_day(self.end)}"


def week_bounds(anchor: date) -> Tuple[date, date]:
    """Sunday..Saturday week containing ``anchor``."""
    # date.weekday() is Monday=0 .. Sunday=6
    start = anchor - timedelta(days=(anchor.weekday() + 1) % DAYS_PER_WEEK)
    end = start + timedelta(days=DAYS_PER_WEEK - 1)
    return start, end


def is_week_start(value: date) -> bool:
    return value.weekday() == 6


def week_label(start: date) -> str:
    number = ceil(start.day / DAYS_PER_WEEK)
    return f"Week {number} {MONTH_ABBREVIATIONS[start.month - 1]} {start.year}"


def format_day(value: date) -> str:
    return f"{value.day} {MONTH_ABBREVIATIONS[value.month - 1]} {value.year}"


def recent_weeks(count: int = 5, today: Optional[date] = None) -> List[WeekOption]:
    anchor = today or date.today()
    options: List[WeekOption] = []
    for offset in range(max(count, 0)):
        start, end = week_bounds(anchor - timedelta(days=DAYS_PER_WEEK * offset))
        options.append(WeekOption(start=start, end=end, label=week_label(start)))
    return options
