from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class RentalStatus(str, Enum):
    UPCOMING = "Upcoming"
    ACTIVE = "Active"
    CLOSED = "Closed"


@dataclass(frozen=True, slots=True)
class RentalActivityPolicy:
    """Defines how a booked rental's status follows the calendar "as of" a given date.

    Semantics (intentionally centralized):
    - A rental whose start_date is after as_of is Upcoming
    - Otherwise it is Active until explicitly closed
    - Closed is terminal and only reached through the close action, so it is
      never derived here

    Note: start_date is inclusive. A rental starting "today" is Active today.
    """

    as_of: date

    def is_upcoming(self, *, start_date: date) -> bool:
        return start_date > self.as_of

    def status_for(self, *, start_date: date) -> RentalStatus:
        if self.is_upcoming(start_date=start_date):
            return RentalStatus.UPCOMING
        return RentalStatus.ACTIVE

    def sqlalchemy_started_predicate(self, *, status_col, start_col):
        """Build a SQLAlchemy predicate matching Upcoming rentals that should now be Active."""
        from sqlalchemy import and_

        return and_(
            status_col == RentalStatus.UPCOMING.value,
            start_col <= self.as_of,
        )
