"""Reminder dispatch: delivers pending reminders by email and records the outcome.

Each reminder is committed on its own, so one failed delivery never undoes
another reminder's state, nor the derivation that created them.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

import app.repositories.charge as charge_repo
import app.repositories.reminder as reminder_repo
from app.core.config import settings
from app.db.models.reminder import Reminder as ReminderModel
from app.domain.reminder_rules import ReminderObjectType
from app.services.email import EmailDeliveryError, send_reminder_email

logger = logging.getLogger(__name__)


@dataclass
class DispatchSummary:
    sent: int = 0
    failed: int = 0


def _recipient_for(db: Session, reminder: ReminderModel) -> str | None:
    """Charge reminders go to the rental's customer, vehicle reminders to the fleet manager."""
    if reminder.object_type == ReminderObjectType.VEHICLE.value:
        return settings.fleet_manager_email

    charge = charge_repo.get_charge_by_id(db, reminder.object_id)
    if charge is not None and charge.rental.customer.email:
        return charge.rental.customer.email
    return (reminder.context or {}).get("customer_email")


async def _deliver(to_email: str, reminder: ReminderModel) -> tuple[bool, int, str | None]:
    """Try to deliver, retrying transient failures. Returns (sent, attempts, last_error)."""
    max_attempts = settings.reminder_max_attempts
    last_error = None
    for attempt in range(1, max_attempts + 1):
        try:
            await send_reminder_email(to_email, reminder.title, reminder.message)
            return True, attempt, None
        except EmailDeliveryError as e:
            last_error = str(e)
            if not e.transient or attempt == max_attempts:
                return False, attempt, last_error
            logger.info(
                "Transient failure sending reminder %s (attempt %d/%d): %s",
                reminder.id,
                attempt,
                max_attempts,
                e,
            )
            await asyncio.sleep(settings.reminder_retry_backoff_seconds * attempt)
    return False, max_attempts, last_error


async def dispatch_pending_reminders(db: Session, as_of: date) -> DispatchSummary:
    """
    Send every pending reminder whose remind date is on or before ``as_of``.

    Delivered reminders are marked sent. Undeliverable ones stay pending with
    their attempt count and last error updated, to be retried on a later run.

    Raises:
        ConfigurationError: If no email transport is configured
    """
    summary = DispatchSummary()
    for reminder in reminder_repo.get_due_pending_reminders(db, as_of):
        to_email = _recipient_for(db, reminder)
        if not to_email:
            reminder_repo.record_failure(db, reminder, 1, "No recipient email address")
            logger.warning("Reminder %s has no recipient; left pending", reminder.id)
            summary.failed += 1
            continue

        sent, attempts, error = await _deliver(to_email, reminder)
        if sent:
            reminder_repo.mark_sent(db, reminder, datetime.now(timezone.utc), attempts)
            summary.sent += 1
            logger.info("Sent reminder %s (%s) to %s", reminder.id, reminder.rule_code, to_email)
        else:
            reminder_repo.record_failure(db, reminder, attempts, error)
            summary.failed += 1
            logger.warning(
                "Reminder %s not delivered after %d attempt(s): %s",
                reminder.id,
                attempts,
                error,
            )

    return summary
