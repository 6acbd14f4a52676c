"""Configuration management from environment variables."""

import os
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from focusnudge.utils.time_utils import is_valid_hhmm

# Load .env file if it exists
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")

    # Database
    DATABASE_PATH: Path = Path(os.getenv("DATABASE_PATH", "./data/focusnudge.db"))
    DB_TIMEOUT: float = float(os.getenv("DB_TIMEOUT", "5.0"))  # seconds, SQLite busy timeout

    # Notifications
    NOTIFIER_BACKEND: Literal["telegram", "log"] = os.getenv("NOTIFIER_BACKEND", "telegram")  # type: ignore

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Time
    DEFAULT_TIMEZONE: str = os.getenv("DEFAULT_TIMEZONE", "UTC")
    ENERGY_SLOT_MINUTES: int = int(os.getenv("ENERGY_SLOT_MINUTES", "15"))

    # Scheduler sweeps (seconds)
    DISPATCH_INTERVAL: int = int(os.getenv("DISPATCH_INTERVAL", "60"))
    ENERGY_ANALYSIS_INTERVAL: int = int(os.getenv("ENERGY_ANALYSIS_INTERVAL", "900"))
    DEADLINE_WATCH_INTERVAL: int = int(os.getenv("DEADLINE_WATCH_INTERVAL", "300"))
    HYPERFOCUS_WATCH_INTERVAL: int = int(os.getenv("HYPERFOCUS_WATCH_INTERVAL", "1800"))
    DAILY_OPTIMIZATION_TIME: str = os.getenv("DAILY_OPTIMIZATION_TIME", "00:00")

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        if cls.NOTIFIER_BACKEND not in ("telegram", "log"):
            raise ValueError("NOTIFIER_BACKEND must be 'telegram' or 'log'")

        if not cls.TELEGRAM_BOT_TOKEN:
            raise ValueError("TELEGRAM_BOT_TOKEN environment variable is required")

        try:
            ZoneInfo(cls.DEFAULT_TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown DEFAULT_TIMEZONE: {cls.DEFAULT_TIMEZONE}")

        if not 1 <= cls.ENERGY_SLOT_MINUTES <= 60 or 60 % cls.ENERGY_SLOT_MINUTES:
            raise ValueError("ENERGY_SLOT_MINUTES must divide an hour evenly")

        for name in (
            "DISPATCH_INTERVAL",
            "ENERGY_ANALYSIS_INTERVAL",
            "DEADLINE_WATCH_INTERVAL",
            "HYPERFOCUS_WATCH_INTERVAL",
        ):
            if getattr(cls, name) <= 0:
                raise ValueError(f"{name} must be a positive number of seconds")

        if not is_valid_hhmm(cls.DAILY_OPTIMIZATION_TIME):
            raise ValueError("DAILY_OPTIMIZATION_TIME must be HH:MM")

        # Ensure database directory exists
        cls.DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
