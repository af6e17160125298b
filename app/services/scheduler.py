"""Scheduling tick: the daily batch run triggered by an external cron."""

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from app.errors import ConfigurationError
from app.services.charge import refresh_overdue_charges, rollover_all_rentals
from app.services.dispatch import dispatch_pending_reminders
from app.services.reminder import derive_reminders
from app.services.rental import refresh_rental_statuses

logger = logging.getLogger(__name__)


@dataclass
class TickSummary:
    as_of: date
    rentals_activated: int = 0
    charges_generated: int = 0
    charges_overdue: int = 0
    reminders_created: int = 0
    reminders_sent: int = 0
    reminders_failed: int = 0
    dispatch_error: str | None = None


async def run_scheduled_tick(db: Session, as_of: date) -> TickSummary:
    """
    Run the daily steps in order: rental status refresh, charge rollover,
    overdue refresh, reminder derivation, reminder dispatch.

    Every step commits its own work. A dispatch that cannot run because email
    is not configured is reported in the summary and leaves the derived
    reminders pending.
    """
    summary = TickSummary(as_of=as_of)
    summary.rentals_activated = refresh_rental_statuses(db, as_of)
    summary.charges_generated = rollover_all_rentals(db, as_of)
    summary.charges_overdue = refresh_overdue_charges(db, as_of)
    summary.reminders_created = len(derive_reminders(db, as_of))

    try:
        dispatched = await dispatch_pending_reminders(db, as_of)
    except ConfigurationError as e:
        logger.warning("Reminder dispatch skipped: %s", e)
        summary.dispatch_error = str(e)
    else:
        summary.reminders_sent = dispatched.sent
        summary.reminders_failed = dispatched.failed

    logger.info("Scheduler tick as of %s finished: %s", as_of, summary)
    return summary
