from __future__ import annotations

from app.domains.loans.service import balance_after_week
from app.models.payroll_week import PayrollWeek


def fill_week(client, employee, week):
    other = client.post(
        "/employees",
        json={"employee_code": "EMP002", "name": "Alan Turing", "daily_wage": 65000},
    ).json()
    client.post(f"/payroll/initialize/{week['id']}")
    entries = {row["employee_id"]: row for row in client.get(f"/payroll/{week['id']}").json()}
    client.put(
        f"/payroll/entries/{entries[employee['id']]['id']}",
        json={"days_present": 6, "overtime_hours": [0, 2, 0, 3, 0, 0, 0], "additions": [{"label": "Tools", "amount": 5500}]},
    )
    client.put(f"/payroll/entries/{entries[other['id']]['id']}", json={"days_present": 5})
    return entries


def test_weekly_totals_sum_every_entry(client, employee, week):
    fill_week(client, employee, week)

    response = client.get(f"/reports/weekly/{week['id']}")

    assert response.status_code == 200
    body = response.json()
    assert body["employee_count"] == 2
    assert body["week"]["week_label"] == "Week 1 Mar 2024"
    totals = body["totals"]
    assert totals["base"] == 420000 + 325000
    assert totals["gross_earnings"] == 721000 + 325000
    assert totals["net_pay"] == totals["gross_earnings"] - totals["loan_deduction"]


def test_weekly_totals_for_empty_week(client, week):
    body = client.get(f"/reports/weekly/{week['id']}").json()

    assert body["employee_count"] == 0
    assert body["totals"]["net_pay"] == 0


def test_weekly_export_is_csv(client, employee, week):
    fill_week(client, employee, week)

    response = client.get(f"/reports/weekly/{week['id']}/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "payroll-2024-03-03.csv" in response.headers["content-disposition"]
    lines = response.text.strip().split("\n")
    assert lines[0].startswith("Employee ID,Name,Days Present")
    assert lines[1].startswith("EMP001,Ada Lovelace,6,")
    assert len(lines) == 3


def test_payslip_is_pdf(client, employee, week):
    entries = fill_week(client, employee, week)

    response = client.get(f"/reports/payslip/{entries[employee['id']]['id']}")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "payslip-EMP001-2024-03-03.pdf" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


def test_unknown_week_report_is_404(client):
    assert client.get("/reports/weekly/999").status_code == 404
    assert client.get("/reports/payslip/999").status_code == 404


def deduct(client, employee, week, amount):
    entry = client.post("/payroll", json={"employee_id": employee["id"], "week_id": week["id"]}).json()
    client.put(f"/payroll/entries/{entry['id']}", json={"days_present": 5, "loan_deduction": amount})
    return entry


def test_reprinted_payslip_uses_balance_as_of_its_week(client, db_session, employee, week):
    client.post("/loans", json={"employee_id": employee["id"], "principal": 100000, "start_date": "2024-01-01"})
    next_week = client.post("/weeks", json={"week_start": "2024-03-10"}).json()
    first_entry = deduct(client, employee, week, 20000)
    deduct(client, employee, next_week, 30000)
    client.post("/loans", json={"employee_id": employee["id"], "principal": 40000, "start_date": "2024-03-12"})

    first = db_session.get(PayrollWeek, week["id"])
    second = db_session.get(PayrollWeek, next_week["id"])

    assert balance_after_week(db_session, employee["id"], first) == 80000
    assert balance_after_week(db_session, employee["id"], second) == 90000
    assert client.get(f"/reports/payslip/{first_entry['id']}").status_code == 200


def test_balance_after_week_without_loans_is_zero(client, db_session, employee, week):
    assert balance_after_week(db_session, employee["id"], db_session.get(PayrollWeek, week["id"])) == 0
