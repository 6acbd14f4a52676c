"""Main entry point for the FocusNudge bot."""

import logging
import sys

from telegram.ext import Application, CallbackQueryHandler, CommandHandler

from focusnudge.bot.callbacks import callback_router
from focusnudge.bot.handlers import (
    autoschedule_command,
    dismiss_command,
    help_command,
    optimal_command,
    prefs_command,
    quiet_command,
    remind_command,
    reminders_command,
    snooze_command,
    start_command,
    stats_command,
    timezone_command,
)
from focusnudge.config import Config
from focusnudge.db.migrations import run_migrations
from focusnudge.db.repository import Repository
from focusnudge.engine.notifier import LogNotifier, NotificationSink, TelegramNotifier
from focusnudge.engine.reminder_service import ReminderService
from focusnudge.engine.scheduler import SchedulerHandle
from focusnudge.utils.error_handler import error_handler
from focusnudge.utils.time_utils import SystemClock

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, Config.LOG_LEVEL),
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)


def build_sink(application: Application, repo: Repository) -> NotificationSink:
    if Config.NOTIFIER_BACKEND == "log":
        return LogNotifier()
    return TelegramNotifier(application.bot, repo)


async def post_init(application: Application) -> None:
    """Initialize bot resources after application is created."""
    # Initialize database
    await run_migrations(Config.DATABASE_PATH)

    # Create repository and store in bot_data
    repo = Repository(Config.DATABASE_PATH, timeout=Config.DB_TIMEOUT)
    await repo.connect()

    clock = SystemClock()
    service = ReminderService(
        repo,
        clock,
        energy_slot_minutes=Config.ENERGY_SLOT_MINUTES,
        default_timezone=Config.DEFAULT_TIMEZONE,
    )
    scheduler = SchedulerHandle(
        service,
        build_sink(application, repo),
        clock,
        dispatch_interval=Config.DISPATCH_INTERVAL,
        energy_analysis_interval=Config.ENERGY_ANALYSIS_INTERVAL,
        deadline_watch_interval=Config.DEADLINE_WATCH_INTERVAL,
        hyperfocus_watch_interval=Config.HYPERFOCUS_WATCH_INTERVAL,
        daily_optimization_time=Config.DAILY_OPTIMIZATION_TIME,
    )

    application.bot_data["repo"] = repo
    application.bot_data["clock"] = clock
    application.bot_data["service"] = service
    application.bot_data["scheduler"] = scheduler

    # Start the sweeps
    if application.job_queue:
        scheduler.start(application.job_queue)
    else:
        logger.warning("No job queue available; install python-telegram-bot[job-queue]")

    logger.info("FocusNudge initialized successfully")


async def post_shutdown(application: Application) -> None:
    """Cleanup resources on shutdown."""
    scheduler: SchedulerHandle | None = application.bot_data.get("scheduler")
    if scheduler:
        await scheduler.stop()

    repo: Repository | None = application.bot_data.get("repo")
    if repo:
        await repo.close()

    logger.info("FocusNudge shut down")


def main() -> None:
    """Start the bot."""
    # Validate configuration
    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    # Create application
    application = (
        Application.builder()
        .token(Config.TELEGRAM_BOT_TOKEN)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )

    # Commands
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("remind", remind_command))
    application.add_handler(CommandHandler("reminders", reminders_command))
    application.add_handler(CommandHandler("snooze", snooze_command))
    application.add_handler(CommandHandler("dismiss", dismiss_command))
    application.add_handler(CommandHandler("autoschedule", autoschedule_command))

    # Settings commands
    application.add_handler(CommandHandler("prefs", prefs_command))
    application.add_handler(CommandHandler("timezone", timezone_command))
    application.add_handler(CommandHandler("quiet", quiet_command))

    # Insights
    application.add_handler(CommandHandler("optimal", optimal_command))
    application.add_handler(CommandHandler("stats", stats_command))

    # Callback queries (response buttons)
    application.add_handler(CallbackQueryHandler(callback_router))

    # Error handler
    application.add_error_handler(error_handler)

    # Start the bot
    logger.info("Starting FocusNudge bot...")
    application.run_polling(allowed_updates=["message", "callback_query"])


if __name__ == "__main__":
    main()
