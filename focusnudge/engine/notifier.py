"""Notification sinks the scheduler hands sent reminders to."""

import logging
from typing import Protocol

from telegram import Bot
from telegram.error import TelegramError

from focusnudge.bot.formatters import format_notification
from focusnudge.bot.keyboards import response_keyboard
from focusnudge.db.repository import Repository
from focusnudge.utils.errors import NotificationSinkFailure

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    """Best-effort delivery. Raising NotificationSinkFailure is allowed."""

    async def send(
        self,
        user_id: int,
        title: str,
        body: str | None,
        priority: str,
        reminder_id: int | None = None,
    ) -> None:
        ...


class LogNotifier:
    """Writes notifications to the log instead of delivering them."""

    async def send(
        self,
        user_id: int,
        title: str,
        body: str | None,
        priority: str,
        reminder_id: int | None = None,
    ) -> None:
        logger.info(f"NOTIFICATION [{priority.upper()}] user={user_id} {title}")


class TelegramNotifier:
    """Delivers reminders as Telegram messages with response buttons."""

    def __init__(self, bot: Bot, repo: Repository):
        self.bot = bot
        self.repo = repo

    async def send(
        self,
        user_id: int,
        title: str,
        body: str | None,
        priority: str,
        reminder_id: int | None = None,
    ) -> None:
        user = await self.repo.get_user_by_id(user_id)
        if user is None:
            raise NotificationSinkFailure(f"No chat for user {user_id}")

        try:
            await self.bot.send_message(
                chat_id=user.telegram_id,
                text=format_notification(title, body, priority),
                parse_mode="HTML",
                reply_markup=response_keyboard(reminder_id) if reminder_id else None,
            )
        except TelegramError as e:
            raise NotificationSinkFailure(f"Telegram delivery failed: {e}") from e
