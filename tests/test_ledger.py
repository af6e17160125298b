from datetime import date

import pytest
from sqlalchemy import update
from sqlalchemy.orm import Session

from app.db.models.charge import Charge as ChargeModel
from app.errors import LedgerIntegrityError, NotFoundError
from app.services.charge import rollover_charges
from app.services.ledger import get_customer_net_position, get_rental_totals
from app.services.payment import apply_payment, record_payment


def _charges(db: Session, rental_id: int) -> list[ChargeModel]:
    return db.query(ChargeModel).filter(ChargeModel.rental_id == rental_id).all()


def test_rental_totals_follow_charges_and_allocations(db: Session, customer, vehicle, make_rental):
    rental = make_rental(
        customer, vehicle, start_date=date(2024, 1, 1), periodic_amount=10000, initial_fee=2500
    )
    rollover_charges(db, rental, date(2024, 3, 15))
    db.commit()

    totals = get_rental_totals(db, rental.id)

    assert totals.total_charges == 30000
    assert totals.total_payments == 2500
    assert totals.outstanding == 27500
    assert totals.total_charges == sum(c.amount for c in _charges(db, rental.id))
    assert totals.outstanding == sum(c.amount_outstanding for c in _charges(db, rental.id))


def test_rental_totals_with_no_payments(db: Session, customer, vehicle, make_rental):
    rental = make_rental(customer, vehicle, periodic_amount=7000)

    totals = get_rental_totals(db, rental.id)

    assert (totals.total_charges, totals.total_payments, totals.outstanding) == (7000, 0, 7000)


def test_customer_net_position_sums_rentals(db: Session, make_customer, make_vehicle, make_rental):
    company = make_customer(customer_type="Company")
    r1 = make_rental(company, make_vehicle(), start_date=date(2024, 1, 1), periodic_amount=4000)
    make_rental(company, make_vehicle(), start_date=date(2024, 1, 5), periodic_amount=6000)

    payment = record_payment(
        db,
        customer_id=company.id,
        amount=12000,
        payment_date=date(2024, 1, 6),
    )
    apply_payment(db, payment.id)

    position = get_customer_net_position(db, company.id)

    assert position.total_charges == 10000
    assert position.total_payments == 10000
    assert position.outstanding == 0
    assert position.unallocated_credit == 2000
    assert get_rental_totals(db, r1.id).total_payments == 4000


def test_unprocessed_payment_is_not_credit(db: Session, customer, vehicle, make_rental):
    make_rental(customer, vehicle, periodic_amount=5000)
    record_payment(db, customer_id=customer.id, amount=9000, payment_date=date(2024, 1, 2))

    position = get_customer_net_position(db, customer.id)

    assert position.total_payments == 0
    assert position.outstanding == 5000
    assert position.unallocated_credit == 0


def test_drift_between_balances_raises(db: Session, customer, vehicle, make_rental):
    rental = make_rental(customer, vehicle, periodic_amount=5000)
    db.execute(
        update(ChargeModel)
        .where(ChargeModel.rental_id == rental.id)
        .values(amount_outstanding=4000)
    )
    db.commit()

    with pytest.raises(LedgerIntegrityError):
        get_rental_totals(db, rental.id)
    with pytest.raises(LedgerIntegrityError):
        get_customer_net_position(db, customer.id)


def test_totals_for_unknown_records(db: Session):
    with pytest.raises(NotFoundError):
        get_rental_totals(db, 999)
    with pytest.raises(NotFoundError):
        get_customer_net_position(db, 999)


def test_rental_ledger_endpoint(client, db: Session, accountant_headers: dict, customer, vehicle, make_rental):
    rental = make_rental(customer, vehicle, periodic_amount=8000, initial_fee=8000)

    response = client.get(f"/api/v1/rentals/{rental.id}/ledger", headers=accountant_headers)

    assert response.status_code == 200
    assert response.json() == {"total_charges": 8000, "total_payments": 8000, "outstanding": 0}


def test_drift_maps_to_server_error(client, db: Session, admin_headers: dict, customer, vehicle, make_rental):
    rental = make_rental(customer, vehicle, periodic_amount=5000)
    db.execute(
        update(ChargeModel)
        .where(ChargeModel.rental_id == rental.id)
        .values(amount_outstanding=1)
    )
    db.commit()

    response = client.get(f"/api/v1/rentals/{rental.id}/ledger", headers=admin_headers)
    assert response.status_code == 500
    assert response.json()["code"] == "LEDGER_INTEGRITY"
