from datetime import date
from types import SimpleNamespace

import pytest
from sqlalchemy.orm import Session

from app.db.models.charge import Charge as ChargeModel
from app.errors import InvalidCadenceError
from app.services.charge import (
    generate_initial_charge,
    refresh_overdue_charges,
    rollover_all_rentals,
    rollover_charges,
)


def _due_dates(db: Session, rental_id: int) -> list[date]:
    return [
        c.due_date
        for c in db.query(ChargeModel)
        .filter(ChargeModel.rental_id == rental_id)
        .order_by(ChargeModel.due_date)
    ]


def test_monthly_rollover_stops_at_as_of(db: Session, customer, vehicle, make_rental):
    rental = make_rental(
        customer,
        vehicle,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 12, 31),
        cadence="Monthly",
    )

    created = rollover_charges(db, rental, date(2024, 3, 15))
    db.commit()

    assert [c.due_date for c in created] == [date(2024, 2, 1), date(2024, 3, 1)]
    assert _due_dates(db, rental.id) == [date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1)]


def test_rollover_is_idempotent(db: Session, customer, vehicle, make_rental):
    rental = make_rental(customer, vehicle, start_date=date(2024, 1, 1), cadence="Weekly")

    first = rollover_charges(db, rental, date(2024, 1, 31))
    db.commit()
    second = rollover_charges(db, rental, date(2024, 1, 31))
    db.commit()

    assert len(first) == 4
    assert second == []
    assert len(_due_dates(db, rental.id)) == 5


def test_rollover_never_passes_end_date(db: Session, customer, vehicle, make_rental):
    rental = make_rental(
        customer,
        vehicle,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 3),
        cadence="Daily",
        periodic_amount=1500,
    )

    rollover_charges(db, rental, date(2024, 2, 1))
    db.commit()

    assert _due_dates(db, rental.id) == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]


def test_open_ended_rental_only_gets_started_periods(db: Session, customer, vehicle, make_rental):
    rental = make_rental(customer, vehicle, start_date=date(2024, 1, 10), cadence="Monthly")

    rollover_charges(db, rental, date(2024, 4, 9))
    db.commit()

    assert _due_dates(db, rental.id) == [date(2024, 1, 10), date(2024, 2, 10), date(2024, 3, 10)]


def test_month_end_start_clamps_without_drifting(db: Session, customer, vehicle, make_rental):
    rental = make_rental(customer, vehicle, start_date=date(2024, 1, 31), cadence="Monthly")

    rollover_charges(db, rental, date(2024, 5, 31))
    db.commit()

    assert _due_dates(db, rental.id) == [
        date(2024, 1, 31),
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 30),
        date(2024, 5, 31),
    ]


def test_past_periods_are_created_overdue(db: Session, customer, vehicle, make_rental):
    rental = make_rental(customer, vehicle, start_date=date(2024, 1, 1), cadence="Weekly")

    created = rollover_charges(db, rental, date(2024, 1, 10))
    db.commit()

    assert [(c.due_date, c.status) for c in created] == [(date(2024, 1, 8), "Overdue")]


def test_generate_initial_charge_returns_existing(db: Session, customer, vehicle, make_rental):
    rental = make_rental(customer, vehicle, start_date=date(2024, 1, 1))

    again = generate_initial_charge(db, rental)
    db.commit()

    assert again.due_date == date(2024, 1, 1)
    assert db.query(ChargeModel).filter(ChargeModel.rental_id == rental.id).count() == 1


def test_unsupported_cadence_raises():
    rental = SimpleNamespace(
        id=1,
        start_date=date(2024, 1, 1),
        end_date=None,
        cadence="Quarterly",
        periodic_amount=1000,
    )
    with pytest.raises(InvalidCadenceError):
        rollover_charges(None, rental, date(2024, 6, 1))
    with pytest.raises(InvalidCadenceError):
        generate_initial_charge(None, rental)


def test_rollover_all_rentals_skips_closed(db: Session, make_customer, make_vehicle, make_rental):
    from app.services.rental import close_rental

    open_rental = make_rental(make_customer(), make_vehicle(), start_date=date(2024, 1, 1))
    closed = make_rental(make_customer(), make_vehicle(), start_date=date(2024, 1, 1))
    close_rental(db, closed.id, date(2024, 1, 15))

    created = rollover_all_rentals(db, date(2024, 3, 1))

    assert created == 2
    assert len(_due_dates(db, open_rental.id)) == 3
    assert _due_dates(db, closed.id) == [date(2024, 1, 1)]


def test_refresh_overdue_charges(db: Session, customer, vehicle, make_rental):
    rental = make_rental(customer, vehicle, start_date=date(2024, 1, 1))

    assert refresh_overdue_charges(db, date(2024, 1, 1)) == 0
    assert refresh_overdue_charges(db, date(2024, 1, 2)) == 1

    charge = db.query(ChargeModel).filter(ChargeModel.rental_id == rental.id).one()
    assert charge.status == "Overdue"
