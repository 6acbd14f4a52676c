"""Reminder lifecycle rules: responses, snoozes, escalation and expiry."""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta

from focusnudge.db.models import Reminder, ReminderPreferences
from focusnudge.utils.constants import ESCALATION_CHECK_MINUTES, TERMINAL_STATUSES

_SNOOZE_RESPONSE = re.compile(r"^snoozed_(\d+)min$")

# Response -> status the reminder moves to
RESPONSE_STATUS = {
    "acknowledged": "acknowledged",
    "completed_task": "acknowledged",
    "snoozed_5min": "snoozed",
    "snoozed_15min": "snoozed",
    "snoozed_30min": "snoozed",
    "dismissed": "dismissed",
    "not_now": "dismissed",
    # Too many reminders: stop this one, no more escalation
    "too_frequent": "dismissed",
}


@dataclass
class EscalationOutcome:
    """What escalating a reminder did."""

    reminder: Reminder
    expired: bool = False
    changed: bool = True


def is_terminal(reminder: Reminder) -> bool:
    return reminder.status in TERMINAL_STATUSES


def status_for_response(response: str) -> str:
    """Status a reminder moves to after the given user response."""
    try:
        return RESPONSE_STATUS[response]
    except KeyError:
        raise ValueError(f"Unknown reminder response: {response}")


def snooze_minutes(response: str) -> int | None:
    """Snooze length encoded in a response name, e.g. snoozed_15min -> 15."""
    match = _SNOOZE_RESPONSE.match(response)
    return int(match.group(1)) if match else None


def escalation_interval(preferences: ReminderPreferences | None) -> int:
    if preferences is None:
        return 15
    return preferences.escalation_preferences.escalation_interval_minutes or 15


def apply_escalation(
    reminder: Reminder, preferences: ReminderPreferences | None, now: datetime
) -> EscalationOutcome:
    """Escalate an unanswered reminder in place.

    Terminal reminders are left untouched. A reminder already at its
    escalation cap expires; otherwise its level goes up and it is scheduled
    again after the user's escalation interval.
    """
    if is_terminal(reminder):
        return EscalationOutcome(reminder, expired=reminder.status == "expired", changed=False)

    reminder.escalation_check_at = None
    reminder.updated_at = now

    if reminder.escalation_level >= reminder.max_escalations:
        reminder.status = "expired"
        return EscalationOutcome(reminder, expired=True)

    reminder.escalation_level += 1
    reminder.scheduled_time = now + timedelta(minutes=escalation_interval(preferences))
    reminder.status = "scheduled"
    return EscalationOutcome(reminder)


def mark_sent(reminder: Reminder, now: datetime) -> None:
    """Record a dispatch and arm the unanswered-check timer.

    actual_sent_time keeps the first dispatch. The check is armed even at the
    escalation cap so an ignored final send still expires.
    """
    reminder.status = "sent"
    if reminder.actual_sent_time is None:
        reminder.actual_sent_time = now
    reminder.escalation_check_at = now + timedelta(minutes=ESCALATION_CHECK_MINUTES)
    reminder.updated_at = now


def apply_response(reminder: Reminder, response: str, now: datetime) -> None:
    """Move a reminder to the status implied by a user response."""
    reminder.status = status_for_response(response)  # type: ignore
    reminder.escalation_check_at = None
    reminder.updated_at = now

    minutes = snooze_minutes(response)
    if minutes is not None:
        reminder.scheduled_time = now + timedelta(minutes=minutes)


def apply_snooze(reminder: Reminder, minutes: int, now: datetime) -> None:
    reminder.status = "snoozed"
    reminder.scheduled_time = now + timedelta(minutes=minutes)
    reminder.escalation_check_at = None
    reminder.updated_at = now
