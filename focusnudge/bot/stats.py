"""Statistics and analytics formatting."""

from focusnudge.bot.formatters import TYPE_LABELS
from focusnudge.db.models import ReminderAnalytics


def effectiveness_bar(value: float, width: int = 5) -> str:
    """Render a 1-5 rating as filled/empty blocks."""
    filled = max(0, min(width, round(value)))
    return "●" * filled + "○" * (width - filled)


def format_stats_message(analytics: ReminderAnalytics, days: int) -> str:
    """Format reminder analytics into a readable message."""
    lines = [f"<b>📊 Your Reminder Statistics ({days} days)</b>\n"]

    # Overview
    lines.append("<b>📋 Overview</b>")
    lines.append(f"Reminders: {analytics.total}")
    lines.append(f"Response rate: {analytics.response_rate:.1f}%")
    if analytics.avg_response_time is not None:
        minutes = analytics.avg_response_time / 60
        if minutes < 1:
            lines.append(f"Average response time: {analytics.avg_response_time:.0f} seconds")
        else:
            lines.append(f"Average response time: {minutes:.1f} minutes")
    if analytics.avg_effectiveness is not None:
        lines.append(
            f"Helpfulness: {effectiveness_bar(analytics.avg_effectiveness)} "
            f"({analytics.avg_effectiveness:.1f}/5)"
        )
    lines.append("")

    # By type
    if analytics.type_effectiveness:
        lines.append("<b>🎯 By Type</b>")
        for reminder_type, value in sorted(
            analytics.type_effectiveness.items(), key=lambda item: -item[1]
        ):
            label = TYPE_LABELS.get(reminder_type, reminder_type)
            lines.append(f"{label}: {effectiveness_bar(value)} ({value:.1f})")
        lines.append("")

    # Best hours
    if analytics.optimal_hours:
        lines.append("<b>🕒 Best Hours</b>")
        for hour in analytics.optimal_hours:
            lines.append(
                f"{hour.hour:02d}:00 - {hour.effectiveness:.1f}/5 "
                f"({hour.sample_count} rating{'s' if hour.sample_count != 1 else ''})"
            )

    if analytics.total == 0:
        lines.append("No reminders yet. Rate reminders when they arrive to see insights here.")

    return "\n".join(lines).rstrip()
