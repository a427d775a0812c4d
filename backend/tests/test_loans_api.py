from __future__ import annotations

import threading
from datetime import date
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.db.session import Base
from app.domains.loans.service import EmployeeLockRegistry, allocate_for_employee
from app.models.employee import Employee
from app.models.loan import Loan, LoanPayment


def create_loan(client, employee, principal, start_date, code=None):
    payload = {"employee_id": employee["id"], "principal": principal, "start_date": start_date}
    if code:
        payload["loan_code"] = code
    response = client.post("/loans", json=payload)
    assert response.status_code == 201
    return response.json()


def test_create_loan_starts_fully_outstanding(client, employee):
    loan = create_loan(client, employee, 50000, "2024-01-10", code="LN-1")

    assert loan["remaining"] == 50000
    assert loan["is_active"] is True
    assert loan["employee_code"] == "EMP001"


def test_payment_pays_oldest_loan_first(client, employee, week):
    newer = create_loan(client, employee, 5000, "2024-02-01", code="B")
    older = create_loan(client, employee, 5000, "2024-01-01", code="A")

    response = client.post(
        "/loans/payment",
        json={"employee_id": employee["id"], "week_id": week["id"], "amount": 7000},
    )

    assert response.status_code == 200
    body = response.json()
    assert [(p["loan_id"], p["amount"]) for p in body["payments"]] == [(older["id"], 5000), (newer["id"], 2000)]
    assert body["allocated"] == 7000
    assert body["unallocated"] == 0
    outstanding = client.get(f"/loans/employee/{employee['id']}").json()
    assert [(row["id"], row["remaining"]) for row in outstanding] == [(newer["id"], 3000)]


def test_payment_beyond_outstanding_reports_unallocated(client, employee):
    loan = create_loan(client, employee, 5000, "2024-01-01")

    body = client.post("/loans/payment", json={"employee_id": employee["id"], "amount": 8000}).json()

    assert body["allocated"] == 5000
    assert body["unallocated"] == 3000
    assert client.get("/loans").json() == []
    history = client.get(f"/loans/{loan['id']}/payments").json()
    assert history[0]["balance_after"] == 0


def test_zero_payment_changes_nothing(client, employee):
    create_loan(client, employee, 5000, "2024-01-01")

    body = client.post("/loans/payment", json={"employee_id": employee["id"], "amount": 0}).json()

    assert body["payments"] == []
    assert client.get(f"/loans/employee/{employee['id']}").json()[0]["remaining"] == 5000


def test_payment_for_inactive_employee_is_conflict(client, employee):
    client.delete(f"/employees/{employee['id']}")

    response = client.post("/loans/payment", json={"employee_id": employee["id"], "amount": 1000})

    assert response.status_code == 409


def test_payment_for_unknown_week_is_404(client, employee):
    response = client.post("/loans/payment", json={"employee_id": employee["id"], "week_id": 999, "amount": 1000})

    assert response.status_code == 404


def test_employee_history_includes_week_details(client, employee, week):
    create_loan(client, employee, 5000, "2024-01-01", code="A")
    client.post("/loans/payment", json={"employee_id": employee["id"], "week_id": week["id"], "amount": 1000})

    history = client.get(f"/loans/employee/{employee['id']}/history").json()

    assert len(history) == 1
    assert history[0]["loan_code"] == "A"
    assert history[0]["week_label"] == "Week 1 Mar 2024"
    assert history[0]["balance_after"] == 4000


def test_correction_overwrites_balance(client, employee):
    loan = create_loan(client, employee, 5000, "2024-01-01")

    response = client.put(f"/loans/{loan['id']}", json={"remaining": 0, "notes": "written off"})

    assert response.status_code == 200
    body = response.json()
    assert body["remaining"] == 0
    assert body["is_active"] is False
    assert body["notes"] == "written off"


def test_correction_above_principal_rejected(client, employee):
    loan = create_loan(client, employee, 5000, "2024-01-01")

    response = client.put(f"/loans/{loan['id']}", json={"remaining": 6000})

    assert response.status_code == 422


def test_mark_paid_and_delete(client, employee):
    loan = create_loan(client, employee, 5000, "2024-01-01")

    paid = client.put(f"/loans/{loan['id']}/paid").json()
    deleted = client.delete(f"/loans/{loan['id']}")

    assert paid["remaining"] == 0
    assert paid["is_active"] is False
    assert deleted.status_code == 204
    assert client.get(f"/loans/{loan['id']}/payments").status_code == 404


def test_lock_registry_hands_out_one_lock_per_employee():
    registry = EmployeeLockRegistry()

    assert registry.lock_for(1) is registry.lock_for(1)
    assert registry.lock_for(1) is not registry.lock_for(2)


def test_concurrent_allocations_never_spend_a_balance_twice(tmp_path):
    file_engine = create_engine(
        f"sqlite:///{tmp_path / 'allocations.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=file_engine)
    ThreadSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)

    with ThreadSessionLocal() as setup:
        worker = Employee(employee_code="EMP010", name="Grace Hopper")
        setup.add(worker)
        setup.flush()
        setup.add_all(
            [
                Loan(employee_id=worker.id, principal=30000, remaining=30000, start_date=date(2024, 1, 1)),
                Loan(employee_id=worker.id, principal=20000, remaining=20000, start_date=date(2024, 2, 1)),
            ]
        )
        setup.commit()
        employee_id = worker.id

    barrier = threading.Barrier(4)
    results = []
    errors = []

    def run():
        db = ThreadSessionLocal()
        try:
            barrier.wait()
            results.append(allocate_for_employee(db, employee_id, None, 20000))
        except Exception as exc:
            errors.append(exc)
        finally:
            db.close()

    threads = [threading.Thread(target=run) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert sum(result.allocated for result in results) == Decimal(50000)
    assert sum(result.unallocated for result in results) == Decimal(30000)
    with ThreadSessionLocal() as check:
        for loan in check.query(Loan).all():
            paid = sum(
                (Decimal(p.amount) for p in check.query(LoanPayment).filter(LoanPayment.loan_id == loan.id)),
                Decimal(0),
            )
            assert loan.remaining == 0
            assert loan.principal - loan.remaining == paid
    file_engine.dispose()
