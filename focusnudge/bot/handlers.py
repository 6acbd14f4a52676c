"""Command handlers."""

import logging

from telegram import Update
from telegram.ext import ContextTypes

from focusnudge.bot.formatters import (
    TYPE_LABELS,
    format_help_message,
    format_optimal_times,
    format_preferences,
    format_reminder_list,
    format_welcome_message,
)
from focusnudge.bot.stats import format_stats_message
from focusnudge.db.models import CreateReminderRequest, Reminder, ReminderFilters, User
from focusnudge.db.repository import Repository
from focusnudge.engine.reminder_service import ReminderService
from focusnudge.parser.when import parse_when
from focusnudge.utils.constants import (
    DEFAULT_SNOOZE_MINUTES,
    REMINDER_PRIORITIES,
    REMINDER_STATUSES,
    REMINDER_TYPES,
)
from focusnudge.utils.errors import AuthorizationError, ValidationError
from focusnudge.utils.time_utils import format_duration, from_utc

logger = logging.getLogger(__name__)


async def get_user(update: Update, context: ContextTypes.DEFAULT_TYPE) -> User | None:
    """Look up the sender, asking them to /start if they are unknown."""
    repo: Repository = context.bot_data["repo"]
    user = await repo.get_user_by_telegram_id(update.effective_user.id)  # type: ignore

    if not user:
        await update.message.reply_text("Please /start the bot first.")  # type: ignore
    return user


async def get_owned_reminder(
    context: ContextTypes.DEFAULT_TYPE, user: User, reminder_id: int
) -> Reminder:
    """Fetch a reminder, refusing reminders that belong to someone else."""
    service: ReminderService = context.bot_data["service"]
    reminder = await service.get_reminder(reminder_id)
    if reminder.user_id != user.id:
        raise AuthorizationError(f"Reminder {reminder_id} belongs to another user")
    return reminder


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command."""
    if not update.effective_user or not update.message:
        return

    repo: Repository = context.bot_data["repo"]
    service: ReminderService = context.bot_data["service"]
    telegram_id = update.effective_user.id

    # Get or create user
    user = await repo.get_user_by_telegram_id(telegram_id)
    if user is None:
        user = await repo.create_user(telegram_id, service.clock.now())
        logger.info(f"New user created: {telegram_id}")

    await service.get_preferences(user.id)  # type: ignore

    await update.message.reply_html(format_welcome_message())


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    if not update.message:
        return

    await update.message.reply_html(format_help_message())


async def remind_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /remind <when> | <title> [| type [| priority]] command."""
    if not update.effective_user or not update.message:
        return

    parts = [part.strip() for part in " ".join(context.args or []).split("|")]
    if len(parts) < 2 or not parts[0] or not parts[1]:
        await update.message.reply_html(
            "Usage: <code>/remind &lt;when&gt; | &lt;title&gt; [| type [| priority]]</code>\n\n"
            "<b>Examples:</b>\n"
            "• /remind in 20 minutes | drink water\n"
            "• /remind tomorrow 9am | start the report | task_start | high\n"
            "• /remind 15:30 | take meds | medication_reminder\n\n"
            f"Types: {', '.join(REMINDER_TYPES)}\n"
            f"Priorities: {', '.join(REMINDER_PRIORITIES)}"
        )
        return

    user = await get_user(update, context)
    if not user:
        return

    service: ReminderService = context.bot_data["service"]
    prefs = await service.get_preferences(user.id)  # type: ignore

    try:
        scheduled = parse_when(parts[0], prefs.timezone, service.clock.now())
    except ValueError as e:
        await update.message.reply_text(f"{e}\n\nTry: 15:30, tomorrow 9am, in 45 minutes")
        return

    reminder = await service.create_reminder(
        CreateReminderRequest(
            user_id=user.id,
            title=parts[1],
            reminder_type=parts[2] if len(parts) > 2 and parts[2] else "task_start",
            priority=parts[3] if len(parts) > 3 and parts[3] else "medium",
            scheduled_time=scheduled,
        )
    )

    local = from_utc(reminder.scheduled_time, prefs.timezone)
    message = (
        f"✓ <b>Reminder created!</b>\n\n"
        f"ID: {reminder.id}\n"
        f"Title: {reminder.title}\n"
        f"When: {local.strftime('%b %d at %H:%M')}"
    )
    if reminder.scheduled_time != scheduled:
        message += "\n\n🧠 Moved to a time that suits your energy and quiet hours."

    await update.message.reply_html(message)


async def reminders_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /reminders [status] [page] command."""
    if not update.effective_user or not update.message:
        return

    user = await get_user(update, context)
    if not user:
        return

    status = None
    page = 1
    for arg in context.args or []:
        if arg.isdigit():
            page = int(arg)
        elif arg.lower() in REMINDER_STATUSES:
            status = arg.lower()
        else:
            await update.message.reply_text(
                f"Unknown status: {arg}\n\nStatuses: {', '.join(REMINDER_STATUSES)}"
            )
            return

    service: ReminderService = context.bot_data["service"]
    prefs = await service.get_preferences(user.id)  # type: ignore
    reminders = await service.list_reminders(
        user.id, ReminderFilters(status=status), page=page  # type: ignore
    )

    await update.message.reply_html(
        format_reminder_list(reminders, prefs.timezone, service.clock.now(), page)
    )


async def snooze_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /snooze <id> [duration] command."""
    if not update.effective_user or not update.message:
        return

    if not context.args or len(context.args) < 1:
        await update.message.reply_text(
            "Usage: /snooze <reminder_id> [duration_in_minutes]\n\n"
            "Examples:\n"
            "  /snooze 5 60   (snooze for 1 hour)\n"
            f"  /snooze 5      (snooze for {DEFAULT_SNOOZE_MINUTES} minutes by default)"
        )
        return

    try:
        reminder_id = int(context.args[0])
        duration_minutes = (
            int(context.args[1]) if len(context.args) > 1 else DEFAULT_SNOOZE_MINUTES
        )
    except ValueError:
        await update.message.reply_text("Invalid reminder ID or duration. Must be numbers.")
        return

    user = await get_user(update, context)
    if not user:
        return

    service: ReminderService = context.bot_data["service"]
    await get_owned_reminder(context, user, reminder_id)
    reminder = await service.snooze(reminder_id, duration_minutes)

    await update.message.reply_html(
        f"⏸ <b>Snoozed:</b> {reminder.title}\n\n"
        f"Will remind you again in {format_duration(duration_minutes)}."
    )


async def dismiss_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /dismiss <id> command."""
    if not update.effective_user or not update.message:
        return

    if not context.args or len(context.args) != 1:
        await update.message.reply_text("Usage: /dismiss <reminder_id>")
        return

    try:
        reminder_id = int(context.args[0])
    except ValueError:
        await update.message.reply_text("Invalid reminder ID. Must be a number.")
        return

    user = await get_user(update, context)
    if not user:
        return

    service: ReminderService = context.bot_data["service"]
    reminder = await get_owned_reminder(context, user, reminder_id)
    await service.dismiss(reminder_id)

    await update.message.reply_html(f"✗ Dismissed: <b>{reminder.title}</b>")


async def prefs_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /prefs command - show current preferences."""
    if not update.effective_user or not update.message:
        return

    user = await get_user(update, context)
    if not user:
        return

    service: ReminderService = context.bot_data["service"]
    prefs = await service.get_preferences(user.id)  # type: ignore

    await update.message.reply_html(
        format_preferences(prefs)
        + "\n\n<b>Commands to change:</b>\n"
        "• /timezone <code>America/Toronto</code>\n"
        "• /quiet <code>22:00 08:00</code>"
    )


async def timezone_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /timezone <timezone> command."""
    if not update.effective_user or not update.message:
        return

    user = await get_user(update, context)
    if not user:
        return

    service: ReminderService = context.bot_data["service"]

    # If no timezone provided, show current
    if not context.args:
        prefs = await service.get_preferences(user.id)  # type: ignore
        await update.message.reply_html(
            f"<b>Current timezone:</b> {prefs.timezone}\n\n"
            "To change: <code>/timezone America/Toronto</code>\n\n"
            "See full list: https://en.wikipedia.org/wiki/List_of_tz_database_time_zones"
        )
        return

    new_timezone = context.args[0]
    try:
        await service.update_preferences(user.id, {"timezone": new_timezone})  # type: ignore
    except ValidationError:
        await update.message.reply_text(
            f"Invalid timezone: {new_timezone}\n\n"
            "Use format like: America/Toronto, Europe/London, etc."
        )
        return

    await update.message.reply_html(
        f"✓ Timezone updated to <b>{new_timezone}</b>\n\n"
        "Your reminders and quiet hours will now use this timezone."
    )


async def quiet_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /quiet <start> <end> command."""
    if not update.effective_user or not update.message:
        return

    user = await get_user(update, context)
    if not user:
        return

    service: ReminderService = context.bot_data["service"]

    # If no args, show current
    if not context.args or len(context.args) < 2:
        prefs = await service.get_preferences(user.id)  # type: ignore
        await update.message.reply_html(
            f"<b>Current quiet hours:</b> {prefs.quiet_hours.start} - {prefs.quiet_hours.end}\n\n"
            "To change: <code>/quiet 22:00 08:00</code>"
        )
        return

    quiet_start, quiet_end = context.args[0], context.args[1]
    try:
        await service.update_preferences(
            user.id, {"quiet_hours": {"start": quiet_start, "end": quiet_end}}  # type: ignore
        )
    except ValidationError:
        await update.message.reply_text(
            "Invalid time format. Use HH:MM (24-hour format)\n\n"
            "Example: /quiet 22:00 08:00"
        )
        return

    await update.message.reply_html(
        f"✓ Quiet hours updated to <b>{quiet_start} - {quiet_end}</b>\n\n"
        "Reminders that come due in these hours will wait until they end."
    )


async def optimal_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /optimal <type> command."""
    if not update.effective_user or not update.message:
        return

    if not context.args or context.args[0] not in REMINDER_TYPES:
        await update.message.reply_text(
            "Usage: /optimal <reminder_type>\n\nTypes:\n"
            + "\n".join(f"• {name} ({TYPE_LABELS[name]})" for name in REMINDER_TYPES)
        )
        return

    user = await get_user(update, context)
    if not user:
        return

    service: ReminderService = context.bot_data["service"]
    times = await service.get_optimal_times(user.id, context.args[0])  # type: ignore

    await update.message.reply_html(format_optimal_times(context.args[0], times))


async def stats_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /stats [days] command."""
    if not update.effective_user or not update.message:
        return

    try:
        days = int(context.args[0]) if context.args else 30
    except ValueError:
        await update.message.reply_text("Usage: /stats [days]")
        return

    user = await get_user(update, context)
    if not user:
        return

    service: ReminderService = context.bot_data["service"]
    analytics = await service.get_analytics(user.id, days)  # type: ignore

    await update.message.reply_html(format_stats_message(analytics, days))


async def autoschedule_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /autoschedule command - reminders for open, dated tasks."""
    if not update.effective_user or not update.message:
        return

    user = await get_user(update, context)
    if not user:
        return

    service: ReminderService = context.bot_data["service"]
    created = await service.schedule_automatic_reminders(user.id)  # type: ignore

    if not created:
        await update.message.reply_text("No open tasks with due dates need reminders.")
        return

    await update.message.reply_html(
        f"✓ Scheduled <b>{len(created)}</b> reminder{'s' if len(created) != 1 else ''} "
        "for your upcoming tasks.\n\nUse /reminders to see them."
    )
