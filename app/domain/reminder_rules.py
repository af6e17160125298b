"""Reminder trigger rules.

A rule belongs to a subject (a charge, or one of a vehicle's expiring
documents) and says when, relative to the subject's due date, a reminder
should be raised. Evaluation is pure: given a due date and ``as_of`` it
returns the firings, and deciding whether a firing is new is left to the
caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

from app.errors import ConfigurationError

WARNING_WINDOW_DAYS = 7


class Trigger(str, Enum):
    BEFORE_DUE = "before_due"
    ON_OVERDUE = "on_overdue"
    REPEAT_OVERDUE = "repeat_overdue"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class ReminderStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"


class ReminderObjectType(str, Enum):
    CHARGE = "Charge"
    VEHICLE = "Vehicle"


CHARGE_SUBJECT = "charge"

# Vehicle document subject -> (vehicle column, human label)
VEHICLE_DOCUMENTS: dict[str, tuple[str, str]] = {
    "mot": ("mot_due_date", "MOT"),
    "tax": ("tax_due_date", "Road tax"),
    "warranty": ("warranty_end_date", "Warranty"),
    "insurance": ("insurance_expiry_date", "Insurance"),
}

SUBJECTS = (CHARGE_SUBJECT, *VEHICLE_DOCUMENTS)


@dataclass(frozen=True, slots=True)
class ReminderRule:
    code: str
    subject: str
    trigger: Trigger
    offset_days: int = 0

    def __post_init__(self):
        if self.subject not in SUBJECTS:
            raise ConfigurationError(f"Unknown reminder subject '{self.subject}'")
        if self.trigger is Trigger.BEFORE_DUE and self.offset_days < 0:
            raise ConfigurationError(f"Rule {self.code}: offset_days must be >= 0")
        if self.trigger is Trigger.REPEAT_OVERDUE and self.offset_days <= 0:
            raise ConfigurationError(f"Rule {self.code}: repeat interval must be > 0")


@dataclass(frozen=True, slots=True)
class RuleFiring:
    rule: ReminderRule
    due_on: date
    remind_on: date
    days_until: int
    severity: Severity


def _vehicle_document_rules(subject: str) -> tuple[ReminderRule, ...]:
    return (
        ReminderRule(f"{subject}.due_30d", subject, Trigger.BEFORE_DUE, 30),
        ReminderRule(f"{subject}.due_7d", subject, Trigger.BEFORE_DUE, 7),
        ReminderRule(f"{subject}.expired", subject, Trigger.ON_OVERDUE),
    )


DEFAULT_REMINDER_RULES: tuple[ReminderRule, ...] = (
    ReminderRule("charge.due_7d", CHARGE_SUBJECT, Trigger.BEFORE_DUE, 7),
    ReminderRule("charge.overdue", CHARGE_SUBJECT, Trigger.ON_OVERDUE),
    ReminderRule("charge.overdue_repeat_3d", CHARGE_SUBJECT, Trigger.REPEAT_OVERDUE, 3),
    *(rule for subject in VEHICLE_DOCUMENTS for rule in _vehicle_document_rules(subject)),
)


def build_rules(entries) -> tuple[ReminderRule, ...]:
    """Build rules from configuration entries (objects with code/subject/trigger/offset_days)."""
    rules = []
    for entry in entries:
        try:
            trigger = Trigger(entry.trigger)
        except ValueError:
            raise ConfigurationError(
                f"Rule {entry.code}: unknown trigger '{entry.trigger}'"
            ) from None
        rules.append(ReminderRule(entry.code, entry.subject, trigger, entry.offset_days))
    codes = [rule.code for rule in rules]
    if len(codes) != len(set(codes)):
        raise ConfigurationError("Reminder rule codes must be unique")
    return tuple(rules)


def severity_for(days_until: int) -> Severity:
    if days_until < 0:
        return Severity.CRITICAL
    if days_until <= WARNING_WINDOW_DAYS:
        return Severity.WARNING
    return Severity.INFO


def evaluate_rules(
    rules: tuple[ReminderRule, ...] | list[ReminderRule],
    *,
    subject: str,
    due_on: date,
    as_of: date,
) -> list[RuleFiring]:
    """Return the rules of ``subject`` that fire for an item due on ``due_on``.

    before_due rules split the run-up into windows: the rule with offset N
    fires when the next smaller offset < days_until <= N, and the smallest
    window also covers the due date itself. This way a single tick raises at
    most one advance reminder per item.
    """
    days_until = (due_on - as_of).days
    severity = severity_for(days_until)
    subject_rules = [rule for rule in rules if rule.subject == subject]

    firings = []
    advance = sorted(
        (rule for rule in subject_rules if rule.trigger is Trigger.BEFORE_DUE),
        key=lambda rule: rule.offset_days,
    )
    lower = -1
    for rule in advance:
        if lower < days_until <= rule.offset_days:
            firings.append(
                RuleFiring(
                    rule=rule,
                    due_on=due_on,
                    remind_on=due_on - timedelta(days=rule.offset_days),
                    days_until=days_until,
                    severity=severity,
                )
            )
        lower = rule.offset_days

    if days_until >= 0:
        return firings

    days_overdue = -days_until
    for rule in subject_rules:
        if rule.trigger is Trigger.ON_OVERDUE:
            remind_on = due_on + timedelta(days=1)
        elif rule.trigger is Trigger.REPEAT_OVERDUE:
            if days_overdue < rule.offset_days:
                continue
            steps = days_overdue // rule.offset_days
            remind_on = due_on + timedelta(days=rule.offset_days * steps)
        else:
            continue
        firings.append(
            RuleFiring(
                rule=rule,
                due_on=due_on,
                remind_on=remind_on,
                days_until=days_until,
                severity=severity,
            )
        )
    return firings
