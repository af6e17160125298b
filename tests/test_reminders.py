from datetime import date

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.db.models.reminder import Reminder as ReminderModel
from app.domain.reminder_rules import ReminderRule, Trigger
from app.repositories.vehicle import update_vehicle
from app.services.payment import apply_payment, record_payment
from app.services.reminder import derive_reminders


def _reminders(db: Session) -> list[ReminderModel]:
    return db.query(ReminderModel).order_by(ReminderModel.id).all()


# ============================================================================
# CHARGE REMINDERS
# ============================================================================


def test_charge_due_soon_raises_one_warning(db: Session, customer, vehicle, make_rental):
    rental = make_rental(
        customer, vehicle, start_date=date(2024, 6, 15), as_of=date(2024, 6, 10)
    )

    created = derive_reminders(db, date(2024, 6, 10))

    assert len(created) == 1
    reminder = created[0]
    assert reminder.rule_code == "charge.due_7d"
    assert reminder.object_type == "Charge"
    assert reminder.severity == "warning"
    assert reminder.status == "pending"
    assert reminder.due_on == date(2024, 6, 15)
    assert reminder.remind_on == date(2024, 6, 8)
    assert reminder.title == "Payment due: AB12CDE"
    assert "£100.00" in reminder.message
    assert reminder.context["rental_id"] == rental.id
    assert reminder.context["customer_email"] == "jane@example.com"
    assert reminder.context["days_until"] == 5


def test_derive_is_idempotent_for_same_day(db: Session, customer, vehicle, make_rental):
    make_rental(customer, vehicle, start_date=date(2024, 6, 15), as_of=date(2024, 6, 10))

    derive_reminders(db, date(2024, 6, 10))
    again = derive_reminders(db, date(2024, 6, 10))
    next_day = derive_reminders(db, date(2024, 6, 11))

    assert again == []
    assert next_day == []
    assert len(_reminders(db)) == 1


def test_overdue_charge_raises_critical_reminders(db: Session, customer, vehicle, make_rental):
    make_rental(customer, vehicle, start_date=date(2024, 6, 1))

    created = derive_reminders(db, date(2024, 6, 8))

    codes = sorted(r.rule_code for r in created)
    assert codes == ["charge.overdue", "charge.overdue_repeat_3d"]
    for reminder in created:
        assert reminder.severity == "critical"
        assert reminder.context["days_until"] < 0
        assert reminder.title == "Overdue payment: AB12CDE"


def test_paid_charge_reminders_are_discarded(db: Session, customer, vehicle, make_rental):
    make_rental(customer, vehicle, start_date=date(2024, 6, 15), as_of=date(2024, 6, 10))
    derive_reminders(db, date(2024, 6, 10))

    payment = record_payment(
        db, customer_id=customer.id, amount=10000, payment_date=date(2024, 6, 11)
    )
    apply_payment(db, payment.id)
    created = derive_reminders(db, date(2024, 6, 11))

    assert created == []
    assert _reminders(db) == []


def test_custom_rules(db: Session, customer, vehicle, make_rental):
    make_rental(customer, vehicle, start_date=date(2024, 6, 20), as_of=date(2024, 6, 10))
    rules = (ReminderRule("charge.due_14d", "charge", Trigger.BEFORE_DUE, 14),)

    created = derive_reminders(db, date(2024, 6, 10), rules=rules)

    assert [(r.rule_code, r.severity) for r in created] == [("charge.due_14d", "info")]


# ============================================================================
# VEHICLE DOCUMENT REMINDERS
# ============================================================================


def test_mot_reminders_follow_windows(db: Session, make_vehicle):
    van = make_vehicle(reg="MO71ABC", mot_due_date=date(2024, 7, 1))

    early = derive_reminders(db, date(2024, 6, 10))
    late = derive_reminders(db, date(2024, 6, 25))

    assert [(r.rule_code, r.severity) for r in early] == [("mot.due_30d", "info")]
    assert [(r.rule_code, r.severity) for r in late] == [("mot.due_7d", "warning")]
    assert late[0].object_type == "Vehicle"
    assert late[0].object_id == van.id
    assert late[0].title == "MOT due: MO71ABC"
    assert late[0].context["subject"] == "mot"


def test_expired_document(db: Session, make_vehicle):
    make_vehicle(reg="IN51URE", insurance_expiry_date=date(2024, 6, 1))

    created = derive_reminders(db, date(2024, 6, 10))

    assert [r.rule_code for r in created] == ["insurance.expired"]
    assert created[0].severity == "critical"
    assert created[0].remind_on == date(2024, 6, 2)


def test_renewed_document_discards_pending_reminders(db: Session, make_vehicle):
    van = make_vehicle(reg="MO71ABC", mot_due_date=date(2024, 7, 1))
    derive_reminders(db, date(2024, 6, 25))
    assert len(_reminders(db)) == 1

    update_vehicle(db, van.id, mot_due_date=date(2025, 7, 1))
    created = derive_reminders(db, date(2024, 6, 26))

    assert created == []
    assert _reminders(db) == []


# ============================================================================
# API
# ============================================================================


def test_derive_and_list_via_api(
    client: TestClient,
    admin_headers: dict,
    accountant_headers: dict,
    customer,
    vehicle,
    make_rental,
):
    make_rental(customer, vehicle, start_date=date(2024, 6, 15), as_of=date(2024, 6, 10))

    response = client.post(
        "/api/v1/reminders/derive", params={"as_of": "2024-06-10"}, headers=admin_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["as_of"] == "2024-06-10"
    assert len(data["created"]) == 1
    assert data["created"][0]["severity"] == "warning"

    response = client.get(
        "/api/v1/reminders", params={"status": "pending"}, headers=accountant_headers
    )
    assert response.status_code == 200
    assert response.json()["total"] == 1

    response = client.get("/api/v1/reminders", params={"status": "sent"}, headers=admin_headers)
    assert response.json()["total"] == 0


def test_derive_as_accountant_fails(client: TestClient, accountant_headers: dict):
    response = client.post("/api/v1/reminders/derive", headers=accountant_headers)
    assert response.status_code == 403


def test_get_reminder_by_id_via_api(
    client: TestClient, db: Session, accountant_headers: dict, customer, vehicle, make_rental
):
    make_rental(customer, vehicle, start_date=date(2024, 6, 15), as_of=date(2024, 6, 10))
    (reminder,) = derive_reminders(db, date(2024, 6, 10))

    response = client.get(f"/api/v1/reminders/{reminder.id}", headers=accountant_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["rule_code"] == "charge.due_7d"
    assert data["context"]["vehicle_reg"] == "AB12CDE"


def test_get_unknown_reminder_via_api(client: TestClient, admin_headers: dict):
    response = client.get("/api/v1/reminders/999", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"
