"""Inline keyboard builders."""

from telegram import InlineKeyboardButton, InlineKeyboardMarkup


def response_keyboard(reminder_id: int) -> InlineKeyboardMarkup:
    """Keyboard for delivered reminders: one button per response."""
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton("✓ On it", callback_data=f"respond:{reminder_id}:acknowledged"),
                InlineKeyboardButton("✓ Done", callback_data=f"respond:{reminder_id}:completed_task"),
            ],
            [
                InlineKeyboardButton("5 min", callback_data=f"respond:{reminder_id}:snoozed_5min"),
                InlineKeyboardButton("15 min", callback_data=f"respond:{reminder_id}:snoozed_15min"),
                InlineKeyboardButton("30 min", callback_data=f"respond:{reminder_id}:snoozed_30min"),
            ],
            [
                InlineKeyboardButton("Not now", callback_data=f"respond:{reminder_id}:not_now"),
                InlineKeyboardButton("✗ Dismiss", callback_data=f"respond:{reminder_id}:dismissed"),
            ],
            [
                InlineKeyboardButton(
                    "Too many reminders", callback_data=f"respond:{reminder_id}:too_frequent"
                ),
            ],
        ]
    )


def rating_keyboard(reminder_id: int, response: str, latency: int) -> InlineKeyboardMarkup:
    """Keyboard asking how helpful a reminder was, 1-5.

    The response and its latency ride along in the callback data so they
    are recorded together with the rating.
    """
    prefix = f"rate:{reminder_id}:{response}:{latency}"
    return InlineKeyboardMarkup(
        [
            [InlineKeyboardButton(str(n), callback_data=f"{prefix}:{n}") for n in range(1, 6)],
            [InlineKeyboardButton("Skip", callback_data=f"{prefix}:0")],
        ]
    )
