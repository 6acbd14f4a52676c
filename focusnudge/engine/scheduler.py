"""Scheduler - the periodic sweeps that dispatch, escalate and generate reminders."""

import asyncio
import logging
from datetime import timedelta
from typing import Awaitable, Callable, Dict, List, Set

from telegram.ext import ContextTypes, Job, JobQueue

from focusnudge.db.models import Reminder
from focusnudge.db.repository import Repository
from focusnudge.engine.escalation import mark_sent
from focusnudge.engine.notifier import NotificationSink
from focusnudge.engine.reminder_service import ReminderService
from focusnudge.utils.constants import (
    DEADLINE_LOOKAHEAD_HOURS,
    DISPATCH_DELAY_MINUTES,
    HYPERFOCUS_THRESHOLD_MINUTES,
    RECENT_REMINDER_WINDOW_MINUTES,
)
from focusnudge.utils.errors import NotificationSinkFailure
from focusnudge.utils.time_utils import UTC, Clock, is_in_quiet_hours, parse_hhmm

logger = logging.getLogger(__name__)


class SchedulerHandle:
    """Owns the sweep jobs on a JobQueue and the notifications they start.

    Sweeps:
    - dispatch: wakes snoozed reminders, escalates unanswered ones and sends
      or delays everything that is due
    - energy_analysis: refreshes energy insights (extension point)
    - daily_optimization: re-tunes reminder timing once a day (extension point)
    - deadline_watch: warns about tasks due within 48 hours
    - hyperfocus_watch: suggests a break after 90 minutes of focus
    """

    def __init__(
        self,
        service: ReminderService,
        sink: NotificationSink,
        clock: Clock,
        dispatch_interval: float = 60,
        energy_analysis_interval: float = 900,
        deadline_watch_interval: float = 300,
        hyperfocus_watch_interval: float = 1800,
        daily_optimization_time: str = "00:00",
    ):
        self.service = service
        self.sink = sink
        self.clock = clock
        self.intervals = {
            "dispatch": dispatch_interval,
            "energy_analysis": energy_analysis_interval,
            "deadline_watch": deadline_watch_interval,
            "hyperfocus_watch": hyperfocus_watch_interval,
        }
        self.daily_optimization_time = daily_optimization_time
        self._jobs: List[Job] = []
        self._pending: Set[asyncio.Task] = set()

    @property
    def repo(self) -> Repository:
        return self.service.repo

    @property
    def sweeps(self) -> Dict[str, Callable[[], Awaitable[None]]]:
        return {
            "dispatch": self.dispatch_sweep,
            "energy_analysis": self.energy_analysis_sweep,
            "daily_optimization": self.daily_optimization_sweep,
            "deadline_watch": self.deadline_watch_sweep,
            "hyperfocus_watch": self.hyperfocus_watch_sweep,
        }

    @property
    def running(self) -> bool:
        return bool(self._jobs)

    # Lifecycle

    def start(self, job_queue: JobQueue) -> None:
        """Register every sweep on the job queue."""
        if self._jobs:
            raise RuntimeError("Scheduler already started")

        for name, interval in self.intervals.items():
            self._jobs.append(
                job_queue.run_repeating(
                    self._job_callback(name),
                    interval=interval,
                    first=10 if name == "dispatch" else interval,
                    name=name,
                )
            )
            logger.info(f"{name} sweep scheduled (interval: {interval}s)")

        daily_at = parse_hhmm(self.daily_optimization_time).replace(tzinfo=UTC)
        self._jobs.append(
            job_queue.run_daily(
                self._job_callback("daily_optimization"),
                time=daily_at,
                name="daily_optimization",
            )
        )
        logger.info(f"daily_optimization sweep scheduled (at {self.daily_optimization_time} UTC)")

    async def stop(self) -> None:
        """Cancel all sweeps and wait for notifications already in flight."""
        for job in self._jobs:
            job.schedule_removal()
        self._jobs.clear()

        if self._pending:
            logger.info(f"Waiting for {len(self._pending)} notifications in flight")
            await asyncio.gather(*self._pending, return_exceptions=True)

        logger.info("Scheduler stopped")

    def _job_callback(self, name: str) -> Callable[[ContextTypes.DEFAULT_TYPE], Awaitable[None]]:
        async def callback(context: ContextTypes.DEFAULT_TYPE) -> None:
            await self.run_sweep(name)

        return callback

    async def run_sweep(self, name: str) -> None:
        """Run one tick of a sweep. A failing tick never stops the next one."""
        try:
            await self.sweeps[name]()
        except Exception as e:
            logger.error(f"{name} sweep error: {e}", exc_info=True)

    # Dispatch

    async def dispatch_sweep(self) -> None:
        now = self.clock.now()

        woken = await self.repo.wake_snoozed_reminders(now)
        if woken:
            logger.info(f"dispatch: {woken} snoozed reminders back to scheduled")

        for reminder in await self.repo.get_due_escalation_checks(now):
            try:
                await self.service.check_unanswered(reminder.id)  # type: ignore
            except Exception as e:
                logger.error(
                    f"dispatch: escalation check failed for reminder {reminder.id} "
                    f"(user {reminder.user_id}): {e}"
                )

        due = await self.repo.get_due_reminders(now)
        if not due:
            return

        logger.info(f"dispatch: {len(due)} reminders due")

        for reminder in due:
            try:
                await self.dispatch_reminder(reminder)
            except Exception as e:
                logger.error(
                    f"dispatch: error processing reminder {reminder.id} "
                    f"(user {reminder.user_id}): {e}"
                )
                continue

    async def delay_reason(self, reminder: Reminder) -> str | None:
        """Why a due reminder should wait, or None if it can go out now."""
        now = self.clock.now()
        prefs = await self.service.get_preferences(reminder.user_id)

        if reminder.priority != "urgent" and await self.repo.has_active_focus_session(
            reminder.user_id
        ):
            return "focus session"

        # Rolling one-hour window against the "daily" limit
        recent = await self.repo.count_recent_sends(
            reminder.user_id, now - timedelta(minutes=RECENT_REMINDER_WINDOW_MINUTES)
        )
        if recent >= prefs.max_daily_reminders:
            return "rate limit"

        if is_in_quiet_hours(now, prefs.quiet_hours.start, prefs.quiet_hours.end, prefs.timezone):
            return "quiet hours"

        return None

    async def dispatch_reminder(self, reminder: Reminder) -> bool:
        """Send a due reminder, or push it back. Returns True if it was sent."""
        now = self.clock.now()

        reason = await self.delay_reason(reminder)
        if reason is not None:
            if await self.repo.delay_reminder(reminder, DISPATCH_DELAY_MINUTES, now):
                logger.info(
                    f"Delayed reminder {reminder.id} by {DISPATCH_DELAY_MINUTES} minutes ({reason})"
                )
            return False

        async with self.repo.transaction():
            current = await self.repo.get_reminder(reminder.id)  # type: ignore
            if current is None or current.status != "scheduled":
                return False
            mark_sent(current, now)
            await self.repo.update_reminder(current)

        logger.info(
            f"Sent reminder {current.id} to user {current.user_id} "
            f"({current.priority}, level {current.escalation_level})"
        )
        self._notify(current)
        return True

    def _notify(self, reminder: Reminder) -> None:
        """Hand a sent reminder to the sink without waiting for delivery."""
        task = asyncio.create_task(self._deliver(reminder))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, reminder: Reminder) -> None:
        try:
            await self.sink.send(
                reminder.user_id,
                reminder.title,
                reminder.description,
                reminder.priority,
                reminder_id=reminder.id,
            )
        except NotificationSinkFailure as e:
            logger.warning(f"Notification for reminder {reminder.id} not delivered: {e}")
        except Exception as e:
            logger.error(f"Notification sink error for reminder {reminder.id}: {e}")

    async def wait_for_notifications(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    # Analysis sweeps

    async def energy_analysis_sweep(self) -> None:
        users = await self.repo.get_users_with_energy_adjustment()
        for user_id in users:
            try:
                await self.service.update_energy_insights(user_id)
            except Exception as e:
                logger.error(f"energy_analysis: failed for user {user_id}: {e}")

    async def daily_optimization_sweep(self) -> None:
        users = await self.repo.get_users_with_adaptive_learning()
        logger.info(f"daily_optimization: {len(users)} users")
        for user_id in users:
            try:
                await self.service.optimize_user_reminders(user_id)
            except Exception as e:
                logger.error(f"daily_optimization: failed for user {user_id}: {e}")

    # Watches

    async def deadline_watch_sweep(self) -> None:
        now = self.clock.now()
        tasks = await self.repo.get_tasks_nearing_deadline(
            now, now + timedelta(hours=DEADLINE_LOOKAHEAD_HOURS)
        )

        for task in tasks:
            try:
                prefs = await self.service.get_preferences(task.user_id)
                if not prefs.reminder_types_enabled.deadline_warning:
                    continue
                reminder = await self.service.create_deadline_warning(task)
                logger.info(
                    f"deadline_watch: reminder {reminder.id} for task {task.id} "
                    f"(user {task.user_id}, {reminder.priority})"
                )
            except Exception as e:
                logger.error(
                    f"deadline_watch: failed for task {task.id} (user {task.user_id}): {e}"
                )

    async def hyperfocus_watch_sweep(self) -> None:
        now = self.clock.now()
        sessions = await self.repo.get_long_running_focus_sessions(
            now - timedelta(minutes=HYPERFOCUS_THRESHOLD_MINUTES)
        )

        for session in sessions:
            try:
                prefs = await self.service.get_preferences(session.user_id)
                if not prefs.reminder_types_enabled.hyperfocus_break:
                    continue
                if await self.repo.has_session_reminder(
                    session.user_id, session.id, "hyperfocus_break", session.start_time  # type: ignore
                ):
                    continue
                reminder = await self.service.create_hyperfocus_break(
                    session.user_id, session.id  # type: ignore
                )
                logger.info(
                    f"hyperfocus_watch: break reminder {reminder.id} for session "
                    f"{session.id} (user {session.user_id})"
                )
            except Exception as e:
                logger.error(
                    f"hyperfocus_watch: failed for session {session.id} "
                    f"(user {session.user_id}): {e}"
                )
