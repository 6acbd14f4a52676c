"""Message text formatters."""

from datetime import datetime
from html import escape

from focusnudge.db.models import Reminder, ReminderPreferences
from focusnudge.utils.time_utils import format_relative_time, from_utc

PRIORITY_EMOJI = {
    "low": "🔔",
    "medium": "🔔",
    "high": "⚠️",
    "urgent": "🚨",
}

STATUS_EMOJI = {
    "scheduled": "🕒",
    "sent": "🔔",
    "acknowledged": "✓",
    "snoozed": "⏸",
    "dismissed": "✗",
    "expired": "⌛",
    "cancelled": "🗑",
}

TYPE_LABELS = {
    "task_start": "Task start",
    "break_reminder": "Break",
    "deadline_warning": "Deadline",
    "energy_check": "Energy check",
    "hyperfocus_break": "Hyperfocus break",
    "medication_reminder": "Medication",
    "transition_warning": "Transition",
}


def format_notification(title: str, body: str | None, priority: str) -> str:
    """Format a delivered reminder with urgency."""
    emoji = PRIORITY_EMOJI.get(priority, "🔔")
    header = f"{emoji} <b>{escape(title)}</b>"
    if priority == "urgent":
        header += f" {emoji}"
    if body:
        return f"{header}\n\n{escape(body)}"
    return header


def format_reminder(reminder: Reminder, tz: str, now: datetime) -> str:
    """Format one reminder for a list."""
    local = from_utc(reminder.scheduled_time, tz)
    relative = format_relative_time(reminder.scheduled_time, now)
    emoji = STATUS_EMOJI.get(reminder.status, "")

    line = (
        f"{emoji} <b>{escape(reminder.title)}</b> (ID: {reminder.id})\n"
        f"   {TYPE_LABELS.get(reminder.reminder_type, reminder.reminder_type)}, "
        f"{reminder.priority} - {local.strftime('%b %d %H:%M')} ({relative})"
    )
    if reminder.escalation_level:
        line += f"\n   Escalated {reminder.escalation_level}/{reminder.max_escalations}"
    return line


def format_reminder_list(
    reminders: list[Reminder], tz: str, now: datetime, page: int = 1
) -> str:
    if not reminders:
        return "No reminders found." if page == 1 else "No more reminders."

    lines = [f"<b>Your Reminders (page {page})</b>\n"]
    lines.extend(format_reminder(reminder, tz, now) for reminder in reminders)
    return "\n\n".join(lines)


def format_preferences(prefs: ReminderPreferences) -> str:
    """Format reminder preferences for /prefs."""
    escalation = prefs.escalation_preferences
    enabled = [
        TYPE_LABELS[name]
        for name in TYPE_LABELS
        if prefs.reminder_types_enabled.is_enabled(name)
    ]

    lines = [
        "<b>⚙️ Reminder Preferences</b>\n",
        f"Timezone: {prefs.timezone}",
        f"Quiet hours: {prefs.quiet_hours.start} - {prefs.quiet_hours.end}",
        f"Frequency: {prefs.reminder_frequency}",
        f"Max reminders: {prefs.max_daily_reminders}",
        f"Energy-based timing: {'on' if prefs.energy_based_adjustment else 'off'}",
        f"Gentle escalation: {'on' if prefs.gentle_escalation else 'off'}",
        f"Escalation: every {escalation.escalation_interval_minutes} min, "
        f"up to {escalation.max_escalations} times",
        f"Adaptive learning: {'on' if prefs.adaptive_learning.enabled else 'off'}",
        f"\nEnabled types: {', '.join(enabled) if enabled else 'none'}",
    ]
    return "\n".join(lines)


def format_optimal_times(reminder_type: str, times: list[str]) -> str:
    label = TYPE_LABELS.get(reminder_type, reminder_type)
    return f"<b>Best times for {label.lower()} reminders</b>\n\n" + "\n".join(
        f"• {t}" for t in times
    )


def format_welcome_message() -> str:
    """Format the welcome message for /start."""
    return """
<b>Welcome to FocusNudge!</b> 🧠

I send reminders when you're most likely to act on them. I learn your energy
patterns, stay quiet during focus sessions and quiet hours, and follow up when
a reminder gets lost.

<b>Quick Start:</b>
• /remind in 30 minutes | stretch
• /reminders - See your reminders
• /prefs - Your settings
• /help - Full command list
""".strip()


def format_help_message() -> str:
    """Format the help message."""
    return """
<b>FocusNudge Commands 🧠</b>

<b>Reminders:</b>
/remind &lt;when&gt; | &lt;title&gt; [| type [| priority]]
   e.g. <code>/remind 15:30 | call the pharmacy | medication_reminder | high</code>
/reminders [status] [page] - Your reminders
/snooze &lt;id&gt; [mins] - Snooze a reminder
/dismiss &lt;id&gt; - Dismiss a reminder
/autoschedule - Reminders for your dated tasks

<b>Settings:</b>
/prefs - View preferences
/timezone &lt;tz&gt; - Set timezone (e.g., America/Toronto)
/quiet &lt;start&gt; &lt;end&gt; - Set quiet hours (e.g., 22:00 08:00)

<b>Insights:</b>
/optimal &lt;type&gt; - Best times for a reminder type
/stats [days] - How you respond to reminders

<b>Tips:</b>
• Use the buttons on each reminder so I can learn what works
• Unanswered reminders come back a few times, then expire
• Non-urgent reminders wait until your focus session ends
""".strip()
