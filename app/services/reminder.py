"""Reminder Deriver: turns charge and vehicle-document dates into reminder records.

Derivation is idempotent for a given ``as_of``: a firing that is already
recorded is skipped, so the scheduler may run it as often as it likes.
"""

import logging
from datetime import date

from sqlalchemy.orm import Session

import app.repositories.charge as charge_repo
import app.repositories.reminder as reminder_repo
import app.repositories.vehicle as vehicle_repo
from app.core.config import settings
from app.db.models.reminder import Reminder as ReminderModel
from app.domain.billing import ChargeStatus, format_pence
from app.domain.reminder_rules import (
    CHARGE_SUBJECT,
    DEFAULT_REMINDER_RULES,
    VEHICLE_DOCUMENTS,
    ReminderObjectType,
    ReminderRule,
    RuleFiring,
    build_rules,
    evaluate_rules,
)
from app.errors import NotFoundError

logger = logging.getLogger(__name__)


def active_rules() -> tuple[ReminderRule, ...]:
    """Rules from the REMINDER_RULES setting, or the built-in defaults."""
    if settings.reminder_rules:
        return build_rules(settings.reminder_rules)
    return DEFAULT_REMINDER_RULES


def _when(days_until: int) -> str:
    if days_until > 1:
        return f"in {days_until} days"
    if days_until == 1:
        return "tomorrow"
    if days_until == 0:
        return "today"
    if days_until == -1:
        return "1 day ago"
    return f"{-days_until} days ago"


def _charge_text(charge, firing: RuleFiring) -> tuple[str, str]:
    rental = charge.rental
    reg = rental.vehicle.reg
    outstanding = format_pence(charge.amount_outstanding)
    if firing.days_until < 0:
        title = f"Overdue payment: {reg}"
        message = (
            f"The {rental.cadence.lower()} charge for rental {rental.id} ({reg}) "
            f"was due on {charge.due_date.isoformat()} ({_when(firing.days_until)}). "
            f"Outstanding: {outstanding}."
        )
    else:
        title = f"Payment due: {reg}"
        message = (
            f"The {rental.cadence.lower()} charge for rental {rental.id} ({reg}) "
            f"is due on {charge.due_date.isoformat()} ({_when(firing.days_until)}). "
            f"Amount due: {outstanding}."
        )
    return title, message


def _vehicle_text(vehicle, label: str, firing: RuleFiring) -> tuple[str, str]:
    due = firing.due_on.isoformat()
    if firing.days_until < 0:
        title = f"{label} expired: {vehicle.reg}"
        message = f"{label} for {vehicle.reg} expired on {due} ({_when(firing.days_until)})."
    else:
        title = f"{label} due: {vehicle.reg}"
        message = f"{label} for {vehicle.reg} is due on {due} ({_when(firing.days_until)})."
    return title, message


def _emit(
    db: Session,
    firing: RuleFiring,
    object_type: ReminderObjectType,
    object_id: int,
    title: str,
    message: str,
    context: dict,
) -> ReminderModel | None:
    if reminder_repo.reminder_exists(
        db,
        object_type=object_type.value,
        object_id=object_id,
        rule_code=firing.rule.code,
        due_on=firing.due_on,
        remind_on=firing.remind_on,
    ):
        return None
    return reminder_repo.add_reminder(
        db,
        rule_code=firing.rule.code,
        object_type=object_type.value,
        object_id=object_id,
        title=title,
        message=message,
        due_on=firing.due_on,
        remind_on=firing.remind_on,
        severity=firing.severity.value,
        context={**context, "subject": firing.rule.subject, "days_until": firing.days_until},
    )


def discard_stale_reminders(db: Session) -> int:
    """
    Delete pending reminders whose subject no longer needs one.

    A charge reminder is stale once the charge is paid or gone; a vehicle
    reminder is stale once the vehicle is gone or the document date it was
    raised for has changed (renewed). Flushes only.
    """
    stale = []

    charge_reminders = reminder_repo.get_pending_reminders_for_objects(
        db, ReminderObjectType.CHARGE.value
    )
    for reminder in charge_reminders:
        charge = charge_repo.get_charge_by_id(db, reminder.object_id)
        if charge is None or charge.status == ChargeStatus.PAID.value:
            stale.append(reminder.id)

    vehicle_reminders = reminder_repo.get_pending_reminders_for_objects(
        db, ReminderObjectType.VEHICLE.value
    )
    for reminder in vehicle_reminders:
        vehicle = vehicle_repo.get_vehicle_by_id(db, reminder.object_id)
        document = VEHICLE_DOCUMENTS.get((reminder.context or {}).get("subject"))
        if vehicle is None or document is None:
            stale.append(reminder.id)
        elif getattr(vehicle, document[0]) != reminder.due_on:
            stale.append(reminder.id)

    return reminder_repo.delete_reminders(db, stale)


def derive_reminders(
    db: Session,
    as_of: date,
    rules: tuple[ReminderRule, ...] | None = None,
) -> list[ReminderModel]:
    """
    Evaluate the reminder rules for every outstanding charge and every vehicle
    document date, and record the reminders that are not already recorded.

    Args:
        db: Database session
        as_of: The date to evaluate against
        rules: Rule set to apply; defaults to the configured rules

    Returns:
        The reminders created by this call.
    """
    if rules is None:
        rules = active_rules()

    try:
        discarded = discard_stale_reminders(db)

        created = []
        for charge in charge_repo.get_outstanding_charges_with_rental(db):
            rental = charge.rental
            for firing in evaluate_rules(
                rules, subject=CHARGE_SUBJECT, due_on=charge.due_date, as_of=as_of
            ):
                title, message = _charge_text(charge, firing)
                reminder = _emit(
                    db,
                    firing,
                    ReminderObjectType.CHARGE,
                    charge.id,
                    title,
                    message,
                    context={
                        "rental_id": rental.id,
                        "customer_id": rental.customer_id,
                        "customer_name": rental.customer.name,
                        "customer_email": rental.customer.email,
                        "vehicle_id": rental.vehicle_id,
                        "vehicle_reg": rental.vehicle.reg,
                        "amount_outstanding": charge.amount_outstanding,
                    },
                )
                if reminder is not None:
                    created.append(reminder)

        for vehicle in vehicle_repo.get_vehicles_with_document_dates(db):
            for subject, (column, label) in VEHICLE_DOCUMENTS.items():
                due_on = getattr(vehicle, column)
                if due_on is None:
                    continue
                for firing in evaluate_rules(rules, subject=subject, due_on=due_on, as_of=as_of):
                    title, message = _vehicle_text(vehicle, label, firing)
                    reminder = _emit(
                        db,
                        firing,
                        ReminderObjectType.VEHICLE,
                        vehicle.id,
                        title,
                        message,
                        context={
                            "vehicle_id": vehicle.id,
                            "vehicle_reg": vehicle.reg,
                            "document": label,
                        },
                    )
                    if reminder is not None:
                        created.append(reminder)

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Derived reminders as of %s: %d created, %d stale discarded",
        as_of,
        len(created),
        discarded,
    )
    return created


def get_all_reminders(
    db: Session,
    page: int = 1,
    page_size: int = 100,
    status: str | None = None,
    object_type: str | None = None,
) -> tuple[list[ReminderModel], int]:
    return reminder_repo.get_reminders_paginated(
        db, page=page, page_size=page_size, status=status, object_type=object_type
    )


def get_reminder(db: Session, reminder_id: int) -> ReminderModel:
    reminder = reminder_repo.get_reminder_by_id(db, reminder_id)
    if not reminder:
        raise NotFoundError(f"Reminder with id {reminder_id} not found")
    return reminder
