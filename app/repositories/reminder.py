from datetime import date, datetime

from sqlalchemy.orm import Session

from app.db.models.reminder import Reminder as ReminderModel
from app.domain.reminder_rules import ReminderStatus


def get_reminder_by_id(db: Session, reminder_id: int) -> ReminderModel | None:
    """Get a reminder by ID."""
    return db.query(ReminderModel).filter(ReminderModel.id == reminder_id).first()


def get_reminders_paginated(
    db: Session,
    page: int = 1,
    page_size: int = 100,
    status: str | None = None,
    object_type: str | None = None,
) -> tuple[list[ReminderModel], int]:
    """
    Get reminders with pagination, most urgent first.

    Returns:
        Tuple of (list of reminders, total count)
    """
    query = db.query(ReminderModel)
    if status is not None:
        query = query.filter(ReminderModel.status == status)
    if object_type is not None:
        query = query.filter(ReminderModel.object_type == object_type)

    total = query.count()
    skip = (page - 1) * page_size
    reminders = (
        query.order_by(ReminderModel.remind_on, ReminderModel.id)
        .offset(skip)
        .limit(page_size)
        .all()
    )
    return reminders, total


def reminder_exists(
    db: Session,
    object_type: str,
    object_id: int,
    rule_code: str,
    due_on: date,
    remind_on: date,
) -> bool:
    """
    Whether this firing was already recorded.

    A firing is a duplicate when a pending reminder exists for the same object,
    rule and due date, or any reminder (sent included) exists for the exact
    remind date.
    """
    base = db.query(ReminderModel.id).filter(
        ReminderModel.object_type == object_type,
        ReminderModel.object_id == object_id,
        ReminderModel.rule_code == rule_code,
        ReminderModel.due_on == due_on,
    )
    pending = base.filter(ReminderModel.status == ReminderStatus.PENDING.value)
    if db.query(pending.exists()).scalar():
        return True
    exact = base.filter(ReminderModel.remind_on == remind_on)
    return db.query(exact.exists()).scalar()


def add_reminder(
    db: Session,
    rule_code: str,
    object_type: str,
    object_id: int,
    title: str,
    message: str,
    due_on: date,
    remind_on: date,
    severity: str,
    context: dict,
) -> ReminderModel:
    """Add a pending reminder to the session. Flushes only."""
    db_reminder = ReminderModel(
        rule_code=rule_code,
        object_type=object_type,
        object_id=object_id,
        title=title,
        message=message,
        due_on=due_on,
        remind_on=remind_on,
        severity=severity,
        status=ReminderStatus.PENDING.value,
        context=context,
        attempts=0,
    )
    db.add(db_reminder)
    db.flush()
    return db_reminder


def get_pending_reminders_for_objects(
    db: Session, object_type: str
) -> list[ReminderModel]:
    return (
        db.query(ReminderModel)
        .filter(
            ReminderModel.object_type == object_type,
            ReminderModel.status == ReminderStatus.PENDING.value,
        )
        .all()
    )


def delete_reminders(db: Session, reminder_ids: list[int]) -> int:
    if not reminder_ids:
        return 0
    return (
        db.query(ReminderModel)
        .filter(ReminderModel.id.in_(reminder_ids))
        .delete(synchronize_session=False)
    )


def get_due_pending_reminders(db: Session, as_of: date) -> list[ReminderModel]:
    """Pending reminders whose remind date has arrived, oldest first."""
    return (
        db.query(ReminderModel)
        .filter(
            ReminderModel.status == ReminderStatus.PENDING.value,
            ReminderModel.remind_on <= as_of,
        )
        .order_by(ReminderModel.remind_on, ReminderModel.id)
        .all()
    )


def mark_sent(
    db: Session, reminder: ReminderModel, sent_at: datetime, attempts: int = 1
) -> None:
    reminder.status = ReminderStatus.SENT.value
    reminder.attempts = (reminder.attempts or 0) + attempts
    reminder.last_sent_at = sent_at
    reminder.last_error = None
    db.commit()


def record_failure(db: Session, reminder: ReminderModel, attempts: int, error: str) -> None:
    reminder.attempts = (reminder.attempts or 0) + attempts
    reminder.last_error = error
    db.commit()


def delete_reminders_for_objects(db: Session, object_type: str, object_ids: list[int]) -> int:
    """Delete every reminder (pending or sent) raised for the given objects. Flushes only."""
    if not object_ids:
        return 0
    return (
        db.query(ReminderModel)
        .filter(
            ReminderModel.object_type == object_type,
            ReminderModel.object_id.in_(object_ids),
        )
        .delete(synchronize_session=False)
    )
