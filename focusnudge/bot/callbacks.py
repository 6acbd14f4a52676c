"""Callback query handlers for inline buttons."""

import logging
from datetime import datetime

from telegram import Update
from telegram.ext import ContextTypes

from focusnudge.bot.keyboards import rating_keyboard
from focusnudge.db.repository import Repository
from focusnudge.engine.escalation import snooze_minutes
from focusnudge.engine.reminder_service import ReminderService
from focusnudge.utils.constants import REMINDER_RESPONSES
from focusnudge.utils.errors import ReminderError
from focusnudge.utils.time_utils import format_duration

logger = logging.getLogger(__name__)

# Responses that ask for a helpfulness rating before being recorded
RATED_RESPONSES = ("acknowledged", "completed_task")

RESPONSE_TEXT = {
    "acknowledged": "✓ <b>On it:</b>",
    "completed_task": "✓ <b>Done:</b>",
    "dismissed": "✗ <b>Dismissed:</b>",
    "not_now": "✗ <b>Not now:</b>",
    "too_frequent": "✗ <b>Noted, fewer reminders:</b>",
}


def response_latency(sent_at: datetime | None, now: datetime) -> int:
    """Whole seconds between a message being sent and the button press."""
    if sent_at is None:
        return 0
    return max(0, int((now - sent_at).total_seconds()))


async def _owns_reminder(update: Update, context: ContextTypes.DEFAULT_TYPE, reminder_id: int) -> bool:
    repo: Repository = context.bot_data["repo"]
    user = await repo.get_user_by_telegram_id(update.effective_user.id)  # type: ignore
    if not user:
        await update.callback_query.answer("Please /start the bot first.")  # type: ignore
        return False

    reminder = await repo.get_reminder(reminder_id)
    if not reminder or reminder.user_id != user.id:
        await update.callback_query.answer("Reminder not found.")  # type: ignore
        return False
    return True


async def record(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
    reminder_id: int,
    response: str,
    latency: int,
    rating: int | None = None,
) -> None:
    """Record a response and replace the buttons with the outcome."""
    query = update.callback_query
    service: ReminderService = context.bot_data["service"]

    try:
        await service.record_response(reminder_id, response, latency, effectiveness=rating)
    except ReminderError as e:
        await query.answer(str(e))  # type: ignore
        return

    reminder = await service.get_reminder(reminder_id)
    minutes = snooze_minutes(response)
    if minutes is not None:
        text = (
            f"⏸ <b>Snoozed:</b> {reminder.title}\n\n"
            f"Will remind you again in {format_duration(minutes)}."
        )
        answer = f"⏸ Snoozed for {format_duration(minutes)}"
    else:
        text = f"{RESPONSE_TEXT[response]} {reminder.title}"
        answer = "Thanks!" if rating else "Got it"

    if query.message:  # type: ignore
        await query.message.edit_text(text, parse_mode="HTML")  # type: ignore
    await query.answer(answer)  # type: ignore


async def handle_response_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE, reminder_id: int, response: str
) -> None:
    """Handle a response button on a delivered reminder."""
    if not update.effective_user or not update.callback_query:
        return

    if response not in REMINDER_RESPONSES:
        await update.callback_query.answer("Unknown response")
        return

    if not await _owns_reminder(update, context, reminder_id):
        return

    message = update.callback_query.message
    now = context.bot_data["clock"].now()
    latency = response_latency(message.date if message else None, now)

    if response in RATED_RESPONSES and message:
        await message.edit_reply_markup(
            reply_markup=rating_keyboard(reminder_id, response, latency)
        )
        await update.callback_query.answer("How helpful was this reminder?")
        return

    await record(update, context, reminder_id, response, latency)


async def handle_rating_callback(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
    reminder_id: int,
    response: str,
    latency: int,
    rating: int,
) -> None:
    """Handle the rating that follows an acknowledgement."""
    if not update.effective_user or not update.callback_query:
        return

    if response not in RATED_RESPONSES:
        await update.callback_query.answer("Unknown response")
        return

    if not await _owns_reminder(update, context, reminder_id):
        return

    await record(update, context, reminder_id, response, latency, rating or None)


async def callback_router(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Route callback queries to appropriate handlers."""
    if not update.callback_query:
        return

    query = update.callback_query
    data = query.data

    if not data:
        return

    # Parse callback data
    parts = data.split(":")

    try:
        reminder_id = int(parts[1]) if len(parts) > 1 else None
        numbers = [int(p) for p in parts[3:]]
    except ValueError:
        logger.warning(f"Malformed callback data: {data}")
        reminder_id = None

    if reminder_id is not None and parts[0] == "respond" and len(parts) == 3:
        await handle_response_callback(update, context, reminder_id, parts[2])

    elif reminder_id is not None and parts[0] == "rate" and len(parts) == 5:
        latency, rating = numbers
        await handle_rating_callback(update, context, reminder_id, parts[2], latency, rating)

    else:
        await query.answer("Unknown action")
