from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class Reminder(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    rule_code: str
    object_type: str
    object_id: int
    title: str
    message: str
    due_on: date
    remind_on: date
    severity: str
    status: str
    context: dict[str, Any]
    attempts: int
    last_error: str | None = None
    last_sent_at: datetime | None = None


class DeriveResult(BaseModel):
    as_of: date
    created: list[Reminder]


class DispatchResult(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sent: int
    failed: int
