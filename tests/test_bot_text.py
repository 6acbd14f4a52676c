"""Tests for bot message text, keyboards and error messages."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from focusnudge.bot.callbacks import response_latency
from focusnudge.bot.formatters import format_notification, format_reminder_list
from focusnudge.bot.keyboards import rating_keyboard, response_keyboard
from focusnudge.bot.stats import effectiveness_bar, format_stats_message
from focusnudge.db.models import OptimalHour, ReminderAnalytics
from focusnudge.utils.constants import REMINDER_RESPONSES
from focusnudge.utils.error_handler import user_message_for
from focusnudge.utils.errors import (
    AuthorizationError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)

NOW = datetime(2026, 3, 4, 12, 0, tzinfo=ZoneInfo("UTC"))


def test_notification_escapes_html():
    text = format_notification("a <b> & c", None, "medium")
    assert "a &lt;b&gt; &amp; c" in text


def test_urgent_notification_is_loud():
    text = format_notification("Submit report", "Due in 2 hours", "urgent")
    assert text.count("🚨") == 2
    assert text.endswith("Due in 2 hours")


def test_empty_reminder_list():
    assert format_reminder_list([], "UTC", NOW) == "No reminders found."
    assert format_reminder_list([], "UTC", NOW, page=2) == "No more reminders."


def test_response_keyboard_covers_every_response():
    keyboard = response_keyboard(42)
    data = [button.callback_data for row in keyboard.inline_keyboard for button in row]
    assert sorted(data) == sorted(f"respond:42:{r}" for r in REMINDER_RESPONSES)


def test_rating_keyboard_carries_response_and_latency():
    keyboard = rating_keyboard(7, "acknowledged", 95)
    data = [button.callback_data for row in keyboard.inline_keyboard for button in row]
    assert data[0] == "rate:7:acknowledged:95:1"
    assert data[-1] == "rate:7:acknowledged:95:0"
    assert len(data) == 6


def test_response_latency():
    assert response_latency(NOW, NOW + timedelta(seconds=90)) == 90
    assert response_latency(NOW, NOW - timedelta(seconds=5)) == 0
    assert response_latency(None, NOW) == 0


def test_effectiveness_bar():
    assert effectiveness_bar(3.4) == "●●●○○"
    assert effectiveness_bar(0) == "○○○○○"
    assert effectiveness_bar(9) == "●●●●●"


def test_stats_message():
    analytics = ReminderAnalytics(
        user_id=1,
        start=NOW - timedelta(days=30),
        end=NOW,
        total=4,
        response_rate=75.0,
        avg_effectiveness=4.0,
        avg_response_time=30.0,
        type_effectiveness={"task_start": 4.5, "break_reminder": 2.0},
        optimal_hours=[OptimalHour(hour=9, effectiveness=4.5, sample_count=3)],
    )

    text = format_stats_message(analytics, 30)

    assert "Reminders: 4" in text
    assert "Response rate: 75.0%" in text
    assert "30 seconds" in text
    assert text.index("Task start") < text.index("Break")
    assert "09:00 - 4.5/5 (3 ratings)" in text


def test_stats_message_without_data():
    analytics = ReminderAnalytics(
        user_id=1,
        start=NOW - timedelta(days=7),
        end=NOW,
        total=0,
        response_rate=0.0,
        avg_effectiveness=None,
        avg_response_time=None,
        type_effectiveness={},
        optimal_hours=[],
    )
    assert "No reminders yet" in format_stats_message(analytics, 7)


def test_user_messages_for_domain_errors():
    assert user_message_for(NotFoundError("Reminder", 5)) == "❌ Reminder not found."
    assert user_message_for(AuthorizationError("not yours")) == "❌ Reminder not found."
    assert user_message_for(ValidationError("minutes out of range")).startswith(
        "❌ minutes out of range"
    )
    assert "busy" in user_message_for(TransientStoreError("locked"))
    assert "Oops" in user_message_for(RuntimeError("boom"))
