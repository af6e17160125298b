from datetime import date

from pydantic import BaseModel, ConfigDict


class TickSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    as_of: date
    rentals_activated: int
    charges_generated: int
    charges_overdue: int
    reminders_created: int
    reminders_sent: int
    reminders_failed: int
    dispatch_error: str | None = None
