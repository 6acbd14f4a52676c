"""Global error handler for the bot."""

import logging
import traceback

from telegram import Update
from telegram.ext import ContextTypes

from focusnudge.utils.errors import (
    AuthorizationError,
    NotFoundError,
    ReminderError,
    TransientStoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def user_message_for(error: BaseException | None) -> str:
    """Pick the message shown to the user for an error."""
    if isinstance(error, NotFoundError):
        return f"❌ {error.kind} not found."
    if isinstance(error, AuthorizationError):
        # Same answer as a missing reminder so ids of others are not revealed
        return "❌ Reminder not found."
    if isinstance(error, ValidationError):
        return f"❌ {error}\n\nUse /help for examples."
    if isinstance(error, TransientStoreError):
        return "⏱️ I'm a bit busy right now.\n\nPlease try again in a moment."

    if "Unauthorized" in str(error):
        return (
            "❌ I don't have permission to send you messages.\n\n"
            "Please /start the bot first."
        )
    if "Timeout" in str(error):
        return "⏱️ Request timed out.\n\nPlease try again in a moment."
    if "Network" in str(error):
        return "🌐 Network error.\n\nPlease check your connection and try again."

    return (
        "😅 Oops! Something went wrong.\n\n"
        "The error has been logged. Please try again or use /help for assistance."
    )


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle errors in the bot."""
    error = context.error

    if isinstance(error, ReminderError) and not isinstance(error, TransientStoreError):
        # Expected outcome of a bad request; no traceback needed
        logger.info(f"Request rejected: {error}")
    else:
        logger.error("Exception while handling an update:", exc_info=error)
        tb_string = "".join(traceback.format_exception(None, error, error.__traceback__))  # type: ignore
        logger.error(f"Traceback:\n{tb_string}")

    # Try to notify the user
    if isinstance(update, Update) and update.effective_message:
        try:
            await update.effective_message.reply_text(user_message_for(error))
        except Exception as e:
            logger.error(f"Failed to send error message to user: {e}")
