"""Tests for reminder lifecycle rules."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from focusnudge.db.models import EscalationPreferences, Reminder, ReminderPreferences
from focusnudge.engine.escalation import (
    apply_escalation,
    apply_response,
    apply_snooze,
    mark_sent,
    snooze_minutes,
    status_for_response,
)

NOW = datetime(2026, 3, 4, 12, 0, tzinfo=ZoneInfo("UTC"))


def make_reminder(**overrides) -> Reminder:
    values = dict(
        user_id=1,
        title="Test",
        reminder_type="task_start",
        priority="medium",
        scheduled_time=NOW,
        status="sent",
    )
    values.update(overrides)
    return Reminder(**values)


def test_escalation_raises_level_and_reschedules():
    prefs = ReminderPreferences(
        user_id=1, escalation_preferences=EscalationPreferences(escalation_interval_minutes=20)
    )
    reminder = make_reminder(escalation_check_at=NOW)

    outcome = apply_escalation(reminder, prefs, NOW)

    assert not outcome.expired
    assert reminder.escalation_level == 1
    assert reminder.status == "scheduled"
    assert reminder.scheduled_time == NOW + timedelta(minutes=20)
    assert reminder.escalation_check_at is None


def test_escalation_interval_defaults_to_15():
    reminder = make_reminder()
    apply_escalation(reminder, None, NOW)
    assert reminder.scheduled_time == NOW + timedelta(minutes=15)


def test_escalation_at_cap_expires():
    reminder = make_reminder(escalation_level=3, max_escalations=3)

    outcome = apply_escalation(reminder, None, NOW)

    assert outcome.expired
    assert reminder.status == "expired"
    assert reminder.escalation_level == 3


def test_escalation_of_terminal_reminder_is_noop():
    for status in ("acknowledged", "dismissed", "expired", "cancelled"):
        reminder = make_reminder(status=status, escalation_level=1)

        outcome = apply_escalation(reminder, None, NOW)

        assert not outcome.changed
        assert reminder.status == status
        assert reminder.escalation_level == 1
        assert reminder.scheduled_time == NOW


def test_zero_max_escalations_expires_immediately():
    reminder = make_reminder(max_escalations=0)
    assert apply_escalation(reminder, None, NOW).expired


def test_mark_sent_keeps_first_send_time():
    reminder = make_reminder(status="scheduled")
    mark_sent(reminder, NOW)

    assert reminder.status == "sent"
    assert reminder.actual_sent_time == NOW
    assert reminder.escalation_check_at == NOW + timedelta(minutes=15)

    later = NOW + timedelta(minutes=30)
    mark_sent(reminder, later)
    assert reminder.actual_sent_time == NOW
    assert reminder.escalation_check_at == later + timedelta(minutes=15)


def test_status_for_response():
    assert status_for_response("acknowledged") == "acknowledged"
    assert status_for_response("completed_task") == "acknowledged"
    assert status_for_response("snoozed_30min") == "snoozed"
    assert status_for_response("not_now") == "dismissed"
    assert status_for_response("too_frequent") == "dismissed"

    with pytest.raises(ValueError):
        status_for_response("maybe_later")


def test_snooze_minutes():
    assert snooze_minutes("snoozed_5min") == 5
    assert snooze_minutes("snoozed_15min") == 15
    assert snooze_minutes("snoozed_30min") == 30
    assert snooze_minutes("acknowledged") is None


def test_snooze_response_moves_time():
    reminder = make_reminder(escalation_check_at=NOW + timedelta(minutes=15))
    apply_response(reminder, "snoozed_5min", NOW)

    assert reminder.status == "snoozed"
    assert reminder.scheduled_time == NOW + timedelta(minutes=5)
    assert reminder.escalation_check_at is None


def test_acknowledge_keeps_time():
    reminder = make_reminder()
    apply_response(reminder, "acknowledged", NOW + timedelta(minutes=3))

    assert reminder.status == "acknowledged"
    assert reminder.scheduled_time == NOW


def test_apply_snooze():
    reminder = make_reminder()
    apply_snooze(reminder, 45, NOW)

    assert reminder.status == "snoozed"
    assert reminder.scheduled_time == NOW + timedelta(minutes=45)
