from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.session import Base, get_session
from app.main import app

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_session] = override_get_session


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def employee(client):
    payload = {
        "employee_code": "EMP001",
        "name": "Ada Lovelace",
        "daily_wage": 70000,
        "overtime_rate": 15000,
        "transport_rate": 15000,
        "meal_rate": 20000,
        "default_bonus": 10000,
    }
    response = client.post("/employees", json=payload)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def week(client):
    response = client.post("/weeks", json={"week_start": "2024-03-03"})
    assert response.status_code == 200
    return response.json()
