from __future__ import annotations

WEEK_INPUT = {
    "days_present": 6,
    "overtime_hours": [0, 2, 0, 3, 0, 0, 0],
    "bonus": 10000,
    "additions": [{"label": "Tools", "amount": 5500}],
    "loan_deduction": 20000,
}


def create_entry(client, employee, week):
    response = client.post("/payroll", json={"employee_id": employee["id"], "week_id": week["id"]})
    assert response.status_code == 200
    return response.json()


def test_entry_get_or_create_is_idempotent(client, employee, week):
    first = create_entry(client, employee, week)
    second = create_entry(client, employee, week)

    assert first["id"] == second["id"]
    assert len(client.get(f"/payroll/{week['id']}").json()) == 1


def test_new_entry_starts_from_default_bonus(client, employee, week):
    entry = create_entry(client, employee, week)

    assert entry["days_present"] == 0
    assert entry["overtime_hours"] == [0, 0, 0, 0, 0, 0, 0]
    assert entry["bonus"] == 10000
    assert entry["calculated"]["gross_earnings"] == 10000
    assert entry["calculated"]["net_pay"] == 10000


def test_update_entry_recomputes_breakdown(client, employee, week):
    entry = create_entry(client, employee, week)

    response = client.put(f"/payroll/entries/{entry['id']}", json=WEEK_INPUT)

    assert response.status_code == 200
    calculated = response.json()["calculated"]
    assert calculated["base"] == 420000
    assert calculated["overtime"] == 75000
    assert calculated["transport"] == 90000
    assert calculated["meal"] == 120000
    assert calculated["additions_total"] == 6000
    assert calculated["gross_earnings"] == 721000
    assert calculated["loan_deduction"] == 20000
    assert calculated["net_pay"] == 701000


def test_override_replaces_schedule_rate_and_zero_falls_back(client, employee, week):
    entry = create_entry(client, employee, week)

    overridden = client.put(
        f"/payroll/entries/{entry['id']}",
        json={"days_present": 2, "override_daily_wage": 80000},
    ).json()
    zeroed = client.put(f"/payroll/entries/{entry['id']}", json={"override_daily_wage": 0}).json()

    assert overridden["calculated"]["base"] == 160000
    assert zeroed["override_daily_wage"] == 0
    assert zeroed["calculated"]["base"] == 140000


def test_days_present_out_of_range_rejected(client, employee, week):
    entry = create_entry(client, employee, week)

    response = client.put(f"/payroll/entries/{entry['id']}", json={"days_present": 8})

    assert response.status_code == 422


def test_loan_deduction_is_allocated_once_per_week(client, employee, week):
    loan = client.post(
        "/loans",
        json={"employee_id": employee["id"], "principal": 500000, "start_date": "2024-01-01"},
    ).json()
    entry = create_entry(client, employee, week)

    first = client.put(f"/payroll/entries/{entry['id']}", json=WEEK_INPUT).json()
    again = client.put(f"/payroll/entries/{entry['id']}", json=WEEK_INPUT).json()
    raised = client.put(f"/payroll/entries/{entry['id']}", json={"loan_deduction": 30000}).json()

    assert first["allocation"]["allocated"] == 20000
    assert again["allocation"] is None
    assert raised["allocation"]["allocated"] == 10000
    history = client.get(f"/loans/{loan['id']}/payments").json()
    assert sum(payment["amount"] for payment in history) == 30000
    remaining = client.get(f"/loans/employee/{employee['id']}").json()[0]["remaining"]
    assert remaining == 470000


def test_rounded_deduction_is_what_gets_allocated(client, employee, week):
    client.post("/loans", json={"employee_id": employee["id"], "principal": 100000, "start_date": "2024-01-01"})
    entry = create_entry(client, employee, week)

    response = client.put(f"/payroll/entries/{entry['id']}", json={"loan_deduction": 12345}).json()

    assert response["calculated"]["loan_deduction"] == 13000
    assert response["allocation"]["allocated"] == 13000


def test_initialize_week_creates_missing_entries(client, employee, week):
    client.post("/employees", json={"employee_code": "EMP002", "name": "Alan Turing"})
    create_entry(client, employee, week)

    response = client.post(f"/payroll/initialize/{week['id']}")

    assert response.status_code == 200
    body = response.json()
    assert body["employee_count"] == 2
    assert body["created"] == 1
    names = [row["name"] for row in client.get(f"/payroll/{week['id']}").json()]
    assert names == ["Ada Lovelace", "Alan Turing"]


def test_unknown_week_or_entry_is_404(client, employee):
    assert client.get("/payroll/999").status_code == 404
    assert client.get("/payroll/entries/999").status_code == 404
    assert client.post("/payroll", json={"employee_id": employee["id"], "week_id": 999}).status_code == 404


def test_initialize_week_seeds_default_bonus(client, employee, week):
    client.post(f"/payroll/initialize/{week['id']}")

    rows = client.get(f"/payroll/{week['id']}").json()

    assert rows[0]["bonus"] == 10000
    assert rows[0]["calculated"]["bonus"] == 10000
