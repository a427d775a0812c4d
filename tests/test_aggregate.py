from wagebook.aggregate import aggregate_week_totals
from wagebook.calculator import compute_pay_breakdown
from wagebook.models import AdditionItem, RateSchedule, WeekEntry


def test_week_totals_sum_each_component():
    rates = RateSchedule(daily_wage=70000, overtime_rate=15000, transport_rate=15000, meal_rate=20000)
    breakdowns = [
        compute_pay_breakdown(
            rates,
            WeekEntry(
                days_present=6,
                overtime_hours=[0, 2, 0, 3],
                bonus=10000,
                additions=[AdditionItem("Tools", 5500)],
                loan_deduction=20000,
            ),
        ),
        compute_pay_breakdown(rates, WeekEntry(days_present=2, overtime_hours=[1.5])),
    ]

    totals = aggregate_week_totals(breakdowns)

    assert totals.employee_count == 2
    assert totals.base == 420000 + 140000
    assert totals.overtime == 75000 + 23000
    assert totals.overtime_hours == 6.5
    assert totals.transport == 90000 + 30000
    assert totals.meal == 120000 + 40000
    assert totals.bonus == 10000
    assert totals.additions == 6000
    assert totals.loan_deduction == 20000
    assert totals.gross_earnings == sum(b.gross_earnings for b in breakdowns)
    assert totals.net_pay == sum(b.net_pay for b in breakdowns)


def test_empty_week_has_zero_totals():
    totals = aggregate_week_totals([])

    assert totals.employee_count == 0
    assert totals.as_dict()["net_pay"] == 0


def test_aggregate_accepts_a_generator():
    rates = RateSchedule(daily_wage=1000)

    totals = aggregate_week_totals(compute_pay_breakdown(rates, WeekEntry(days_present=d)) for d in range(3))

    assert totals.base == 0 + 1000 + 2000
    assert totals.employee_count == 3
