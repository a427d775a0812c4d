from datetime import date

from sqlalchemy.orm import Session

from app.db.session import Base, engine, session_scope
from app.models import Employee, Loan, PayrollEntry, PayrollWeek
from wagebook.weeks import week_bounds, week_label


def seed(session: Session, today: date | None = None) -> None:
    ada = Employee(
        employee_code="EMP001",
        name="Ada Lovelace",
        daily_wage=70000,
        overtime_rate=15000,
        transport_rate=15000,
        meal_rate=20000,
        default_bonus=10000,
    )
    alan = Employee(
        employee_code="EMP002",
        name="Alan Turing",
        daily_wage=65000,
        overtime_rate=12000,
        transport_rate=15000,
        meal_rate=20000,
    )
    session.add_all([ada, alan])
    session.flush()

    start, end = week_bounds(today or date.today())
    week = PayrollWeek(week_start=start, week_end=end, week_label=week_label(start))
    session.add(week)
    session.flush()

    session.add_all(
        [
            PayrollEntry(
                employee_id=ada.id,
                week_id=week.id,
                days_present=6,
                overtime_hours=[0, 2, 0, 3, 0, 0, 0],
                bonus=10000,
                additions=[{"label": "Tool allowance", "amount": 5500}],
                loan_deduction=20000,
            ),
            PayrollEntry(employee_id=alan.id, week_id=week.id, days_present=5),
            Loan(
                loan_code="LN-001",
                employee_id=ada.id,
                principal=500000,
                remaining=500000,
                start_date=date(start.year, 1, 1),
                notes="Motorbike repair",
            ),
        ]
    )
    session.commit()


def main() -> None:
    Base.metadata.create_all(bind=engine)
    with session_scope() as session:
        seed(session)


if __name__ == "__main__":
    main()
