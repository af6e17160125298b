from datetime import date
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.db.models.charge import Charge as ChargeModel
from app.db.models.reminder import Reminder as ReminderModel
from app.db.models.rental import Rental as RentalModel

CRON_HEADERS = {"X-Cron-Secret": "test-cron-secret"}


@pytest.fixture(scope="function")
def upcoming_rental(customer, vehicle, make_rental) -> RentalModel:
    return make_rental(
        customer,
        vehicle,
        start_date=date(2024, 6, 1),
        as_of=date(2024, 5, 28),
        periodic_amount=10000,
    )


def test_tick_runs_every_step(client: TestClient, db: Session, upcoming_rental):
    with patch("app.services.dispatch.send_reminder_email", new_callable=AsyncMock) as mock_send:
        response = client.post(
            "/api/v1/scheduler/tick", params={"as_of": "2024-07-03"}, headers=CRON_HEADERS
        )

    assert response.status_code == 200
    assert response.json() == {
        "as_of": "2024-07-03",
        "rentals_activated": 1,
        "charges_generated": 1,
        "charges_overdue": 1,
        "reminders_created": 3,
        "reminders_sent": 3,
        "reminders_failed": 0,
        "dispatch_error": None,
    }
    assert mock_send.call_count == 3

    db.expire_all()
    rental = db.query(RentalModel).filter(RentalModel.id == upcoming_rental.id).one()
    assert rental.status == "Active"
    charges = db.query(ChargeModel).order_by(ChargeModel.due_date).all()
    assert [(c.due_date, c.status) for c in charges] == [
        (date(2024, 6, 1), "Overdue"),
        (date(2024, 7, 1), "Overdue"),
    ]


def test_tick_twice_is_idempotent(client: TestClient, db: Session, upcoming_rental):
    with patch("app.services.dispatch.send_reminder_email", new_callable=AsyncMock) as mock_send:
        client.post(
            "/api/v1/scheduler/tick", params={"as_of": "2024-07-03"}, headers=CRON_HEADERS
        )
        response = client.post(
            "/api/v1/scheduler/tick", params={"as_of": "2024-07-03"}, headers=CRON_HEADERS
        )

    data = response.json()
    assert data["rentals_activated"] == 0
    assert data["charges_generated"] == 0
    assert data["charges_overdue"] == 0
    assert data["reminders_created"] == 0
    assert data["reminders_sent"] == 0
    assert mock_send.call_count == 3
    assert db.query(ChargeModel).count() == 2


def test_tick_reports_unconfigured_email(client: TestClient, db: Session, upcoming_rental):
    response = client.post(
        "/api/v1/scheduler/tick", params={"as_of": "2024-07-03"}, headers=CRON_HEADERS
    )

    assert response.status_code == 200
    data = response.json()
    assert data["reminders_created"] == 3
    assert data["reminders_sent"] == 0
    assert "not configured" in data["dispatch_error"]

    db.expire_all()
    pending = db.query(ReminderModel).filter(ReminderModel.status == "pending").count()
    assert pending == 3


def test_tick_without_secret_fails(client: TestClient):
    response = client.post("/api/v1/scheduler/tick")
    assert response.status_code == 401


def test_tick_with_wrong_secret_fails(client: TestClient):
    response = client.post("/api/v1/scheduler/tick", headers={"X-Cron-Secret": "nope"})
    assert response.status_code == 401


def test_tick_ignores_bearer_tokens(client: TestClient, admin_headers: dict):
    response = client.post("/api/v1/scheduler/tick", headers=admin_headers)
    assert response.status_code == 401
