"""Database repository - all SQL queries."""

import asyncio
import json
import logging
import sqlite3
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime, timedelta
from pathlib import Path
from typing import AsyncIterator, List

import aiosqlite

from focusnudge.db.models import (
    AdaptiveLearning,
    EnergyPattern,
    EscalationPreferences,
    FocusSession,
    LogContext,
    PreferredTimeSlot,
    QuietHours,
    Reminder,
    ReminderContext,
    ReminderFilters,
    ReminderLog,
    ReminderPreferences,
    ReminderTypesEnabled,
    Task,
    User,
)
from focusnudge.utils.constants import PRIORITY_RANK
from focusnudge.utils.errors import TransientStoreError
from focusnudge.utils.time_utils import UTC

logger = logging.getLogger(__name__)

# SQL expression ranking priorities so that ORDER BY ... DESC puts urgent first
PRIORITY_ORDER_SQL = (
    "CASE priority "
    + " ".join(f"WHEN '{name}' THEN {rank}" for name, rank in PRIORITY_RANK.items())
    + " ELSE 0 END"
)


def _ts(dt: datetime | None) -> str | None:
    """Serialize a datetime as a UTC ISO string so text comparison orders correctly."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat()


def _dt(value: str | None) -> datetime | None:
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class Repository:
    """Database access layer."""

    def __init__(self, db_path: Path, timeout: float = 5.0):
        self.db_path = db_path
        self.timeout = timeout
        self._db: aiosqlite.Connection | None = None
        self._tx_lock = asyncio.Lock()
        self._tx_owner: asyncio.Task | None = None

    async def connect(self) -> None:
        """Open database connection."""
        self._db = await aiosqlite.connect(self.db_path, timeout=self.timeout)
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA foreign_keys = ON")
        logger.info(f"Connected to database at {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Database connection closed")

    @property
    def db(self) -> aiosqlite.Connection:
        """Get the database connection."""
        if self._db is None:
            raise RuntimeError("Database not connected")
        return self._db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Unit of work: everything inside commits together or not at all.

        Re-entrant within the same asyncio task, so repository writes can be
        composed into a larger transaction by the caller.
        """
        task = asyncio.current_task()
        if self._tx_owner is not None and self._tx_owner is task:
            yield
            return

        async with self._tx_lock:
            self._tx_owner = task
            try:
                await self.db.execute("BEGIN IMMEDIATE")
                try:
                    yield
                except BaseException:
                    await self.db.rollback()
                    raise
                await self.db.commit()
            except sqlite3.OperationalError as e:
                if self.db.in_transaction:
                    await self.db.rollback()
                raise TransientStoreError(f"Database unavailable: {e}") from e
            finally:
                self._tx_owner = None

    # User operations

    async def get_user_by_telegram_id(self, telegram_id: int) -> User | None:
        """Get user by Telegram ID."""
        async with self.db.execute(
            "SELECT * FROM users WHERE telegram_id = ?", (telegram_id,)
        ) as cursor:
            row = await cursor.fetchone()
            return self._row_to_user(row) if row else None

    async def get_user_by_id(self, user_id: int) -> User | None:
        """Get user by database ID."""
        async with self.db.execute(
            "SELECT * FROM users WHERE id = ?", (user_id,)
        ) as cursor:
            row = await cursor.fetchone()
            return self._row_to_user(row) if row else None

    async def create_user(self, telegram_id: int, created_at: datetime) -> User:
        """Create a new user."""
        async with self.transaction():
            async with self.db.execute(
                "INSERT INTO users (telegram_id, created_at) VALUES (?, ?) RETURNING *",
                (telegram_id, _ts(created_at)),
            ) as cursor:
                row = await cursor.fetchone()

        logger.info(f"Created user {telegram_id}")
        return self._row_to_user(row)

    # Task operations (rows owned by the task service)

    async def create_task(self, task: Task) -> Task:
        async with self.transaction():
            async with self.db.execute(
                """
                INSERT INTO tasks (user_id, title, due_date, completed, started_at)
                VALUES (?, ?, ?, ?, ?)
                RETURNING *
                """,
                (
                    task.user_id,
                    task.title,
                    _ts(task.due_date),
                    1 if task.completed else 0,
                    _ts(task.started_at),
                ),
            ) as cursor:
                row = await cursor.fetchone()
        return self._row_to_task(row)

    async def get_task(self, task_id: int) -> Task | None:
        async with self.db.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)) as cursor:
            row = await cursor.fetchone()
            return self._row_to_task(row) if row else None

    async def get_open_dated_tasks(self, user_id: int, now: datetime) -> List[Task]:
        """Incomplete tasks for a user with a due date still in the future."""
        async with self.db.execute(
            """
            SELECT * FROM tasks
            WHERE user_id = ?
            AND completed = 0
            AND due_date IS NOT NULL
            AND due_date > ?
            ORDER BY due_date
            """,
            (user_id, _ts(now)),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_task(row) for row in rows]

    async def get_tasks_nearing_deadline(self, now: datetime, until: datetime) -> List[Task]:
        """Incomplete tasks due in [now, until] with no live deadline warning."""
        async with self.db.execute(
            """
            SELECT t.* FROM tasks t
            WHERE t.completed = 0
            AND t.due_date BETWEEN ? AND ?
            AND NOT EXISTS (
                SELECT 1 FROM reminders r
                WHERE r.task_id = t.id
                AND r.reminder_type = 'deadline_warning'
                AND r.status IN ('scheduled', 'sent')
            )
            ORDER BY t.due_date
            """,
            (_ts(now), _ts(until)),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_task(row) for row in rows]

    # Focus session operations (rows owned by the focus timer)

    async def start_focus_session(
        self, user_id: int, start_time: datetime, task_id: int | None = None
    ) -> FocusSession:
        async with self.transaction():
            async with self.db.execute(
                """
                INSERT INTO focus_sessions (user_id, task_id, start_time)
                VALUES (?, ?, ?)
                RETURNING *
                """,
                (user_id, task_id, _ts(start_time)),
            ) as cursor:
                row = await cursor.fetchone()
        return self._row_to_session(row)

    async def end_focus_session(self, session_id: int, end_time: datetime) -> None:
        async with self.transaction():
            await self.db.execute(
                "UPDATE focus_sessions SET end_time = ? WHERE id = ?",
                (_ts(end_time), session_id),
            )

    async def has_active_focus_session(self, user_id: int) -> bool:
        async with self.db.execute(
            "SELECT 1 FROM focus_sessions WHERE user_id = ? AND end_time IS NULL LIMIT 1",
            (user_id,),
        ) as cursor:
            return await cursor.fetchone() is not None

    async def get_long_running_focus_sessions(self, started_before: datetime) -> List[FocusSession]:
        """Active sessions that started before the given instant."""
        async with self.db.execute(
            """
            SELECT * FROM focus_sessions
            WHERE end_time IS NULL
            AND start_time < ?
            ORDER BY start_time
            """,
            (_ts(started_before),),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_session(row) for row in rows]

    async def has_recent_break(self, user_id: int, since: datetime) -> bool:
        """Whether a focus session ended after the given instant."""
        async with self.db.execute(
            """
            SELECT 1 FROM focus_sessions
            WHERE user_id = ?
            AND end_time IS NOT NULL
            AND end_time > ?
            LIMIT 1
            """,
            (user_id, _ts(since)),
        ) as cursor:
            return await cursor.fetchone() is not None

    # Reminder operations

    async def create_reminder(self, reminder: Reminder) -> Reminder:
        """Create a new reminder."""
        async with self.transaction():
            async with self.db.execute(
                """
                INSERT INTO reminders (
                    user_id, task_id, title, description, reminder_type, priority,
                    scheduled_time, actual_sent_time, status, escalation_level,
                    max_escalations, escalation_check_at, predicted_energy,
                    focus_session_id, estimated_task_duration, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                RETURNING *
                """,
                (
                    reminder.user_id,
                    reminder.task_id,
                    reminder.title,
                    reminder.description,
                    reminder.reminder_type,
                    reminder.priority,
                    _ts(reminder.scheduled_time),
                    _ts(reminder.actual_sent_time),
                    reminder.status,
                    reminder.escalation_level,
                    reminder.max_escalations,
                    _ts(reminder.escalation_check_at),
                    reminder.context.predicted_energy,
                    reminder.context.focus_session_id,
                    reminder.context.estimated_task_duration,
                    _ts(reminder.created_at),
                    _ts(reminder.updated_at or reminder.created_at),
                ),
            ) as cursor:
                row = await cursor.fetchone()
        return self._row_to_reminder(row)

    async def get_reminder(self, reminder_id: int) -> Reminder | None:
        """Get a reminder by ID."""
        async with self.db.execute(
            "SELECT * FROM reminders WHERE id = ?", (reminder_id,)
        ) as cursor:
            row = await cursor.fetchone()
            return self._row_to_reminder(row) if row else None

    async def update_reminder(self, reminder: Reminder) -> None:
        """Persist the mutable lifecycle fields of a reminder."""
        async with self.transaction():
            await self.db.execute(
                """
                UPDATE reminders SET
                    scheduled_time = ?,
                    actual_sent_time = ?,
                    status = ?,
                    escalation_level = ?,
                    escalation_check_at = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    _ts(reminder.scheduled_time),
                    _ts(reminder.actual_sent_time),
                    reminder.status,
                    reminder.escalation_level,
                    _ts(reminder.escalation_check_at),
                    _ts(reminder.updated_at),
                    reminder.id,
                ),
            )

    async def list_reminders(
        self,
        user_id: int,
        filters: ReminderFilters | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Reminder]:
        """Get a page of a user's reminders, newest scheduled first."""
        filters = filters or ReminderFilters()
        clauses = ["user_id = ?"]
        params: list = [user_id]

        if filters.status is not None:
            clauses.append("status = ?")
            params.append(filters.status)
        if filters.reminder_type is not None:
            clauses.append("reminder_type = ?")
            params.append(filters.reminder_type)
        if filters.priority is not None:
            clauses.append("priority = ?")
            params.append(filters.priority)
        if filters.start is not None:
            clauses.append("scheduled_time >= ?")
            params.append(_ts(filters.start))
        if filters.end is not None:
            clauses.append("scheduled_time <= ?")
            params.append(_ts(filters.end))

        params.extend([limit, offset])
        query = (
            f"SELECT * FROM reminders WHERE {' AND '.join(clauses)} "
            "ORDER BY scheduled_time DESC, id DESC LIMIT ? OFFSET ?"
        )
        async with self.db.execute(query, params) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_reminder(row) for row in rows]

    async def get_due_reminders(self, now: datetime) -> List[Reminder]:
        """Scheduled reminders whose time has come, most urgent first (dispatch query)."""
        async with self.db.execute(
            f"""
            SELECT * FROM reminders
            WHERE status = 'scheduled'
            AND scheduled_time <= ?
            ORDER BY {PRIORITY_ORDER_SQL} DESC, scheduled_time ASC, id ASC
            """,
            (_ts(now),),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_reminder(row) for row in rows]

    async def get_due_escalation_checks(self, now: datetime) -> List[Reminder]:
        """Sent reminders whose unanswered-check time has passed."""
        async with self.db.execute(
            """
            SELECT * FROM reminders
            WHERE status = 'sent'
            AND escalation_check_at IS NOT NULL
            AND escalation_check_at <= ?
            ORDER BY escalation_check_at
            """,
            (_ts(now),),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_reminder(row) for row in rows]

    async def wake_snoozed_reminders(self, now: datetime) -> int:
        """Move snoozed reminders whose snooze has ended back to scheduled."""
        async with self.transaction():
            cursor = await self.db.execute(
                """
                UPDATE reminders SET status = 'scheduled', updated_at = ?
                WHERE status = 'snoozed'
                AND scheduled_time <= ?
                """,
                (_ts(now), _ts(now)),
            )
            count = cursor.rowcount
            await cursor.close()
        return count

    async def delay_reminder(self, reminder: Reminder, minutes: int, now: datetime) -> bool:
        """Push a still-scheduled reminder forward. Returns False if it moved on."""
        new_time = reminder.scheduled_time + timedelta(minutes=minutes)
        async with self.transaction():
            cursor = await self.db.execute(
                """
                UPDATE reminders SET scheduled_time = ?, updated_at = ?
                WHERE id = ? AND status = 'scheduled'
                """,
                (_ts(new_time), _ts(now), reminder.id),
            )
            updated = cursor.rowcount > 0
            await cursor.close()
        if updated:
            reminder.scheduled_time = new_time
        return updated

    async def count_recent_sends(self, user_id: int, since: datetime) -> int:
        """Reminders first sent to the user after the given instant."""
        async with self.db.execute(
            """
            SELECT COUNT(*) FROM reminders
            WHERE user_id = ?
            AND actual_sent_time IS NOT NULL
            AND actual_sent_time > ?
            """,
            (user_id, _ts(since)),
        ) as cursor:
            row = await cursor.fetchone()
            return int(row[0])

    async def has_session_reminder(
        self, user_id: int, focus_session_id: int, reminder_type: str, since: datetime
    ) -> bool:
        """Whether a reminder of this type already exists for the focus session."""
        async with self.db.execute(
            """
            SELECT 1 FROM reminders
            WHERE user_id = ?
            AND reminder_type = ?
            AND focus_session_id = ?
            AND created_at >= ?
            LIMIT 1
            """,
            (user_id, reminder_type, focus_session_id, _ts(since)),
        ) as cursor:
            return await cursor.fetchone() is not None

    # Preference operations

    async def get_preferences(self, user_id: int) -> ReminderPreferences | None:
        async with self.db.execute(
            "SELECT * FROM reminder_preferences WHERE user_id = ?", (user_id,)
        ) as cursor:
            row = await cursor.fetchone()
            return self._row_to_preferences(row) if row else None

    async def create_preferences(self, prefs: ReminderPreferences) -> ReminderPreferences:
        """Insert a preferences row; an existing row for the user wins."""
        async with self.transaction():
            await self.db.execute(
                """
                INSERT INTO reminder_preferences (
                    user_id, reminder_frequency, preferred_times, energy_based_adjustment,
                    gentle_escalation, max_daily_reminders, quiet_hours,
                    reminder_types_enabled, escalation_preferences, adaptive_learning,
                    timezone, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id) DO NOTHING
                """,
                (prefs.user_id, *self._preferences_values(prefs), _ts(prefs.created_at), _ts(prefs.updated_at)),
            )
            stored = await self.get_preferences(prefs.user_id)
        return stored  # type: ignore

    async def update_preferences(self, prefs: ReminderPreferences) -> None:
        async with self.transaction():
            await self.db.execute(
                """
                UPDATE reminder_preferences SET
                    reminder_frequency = ?,
                    preferred_times = ?,
                    energy_based_adjustment = ?,
                    gentle_escalation = ?,
                    max_daily_reminders = ?,
                    quiet_hours = ?,
                    reminder_types_enabled = ?,
                    escalation_preferences = ?,
                    adaptive_learning = ?,
                    timezone = ?,
                    updated_at = ?
                WHERE user_id = ?
                """,
                (*self._preferences_values(prefs), _ts(prefs.updated_at), prefs.user_id),
            )

    async def get_users_with_energy_adjustment(self) -> List[int]:
        async with self.db.execute(
            """
            SELECT DISTINCT user_id FROM reminder_preferences
            WHERE energy_based_adjustment = 1
            ORDER BY user_id
            """
        ) as cursor:
            rows = await cursor.fetchall()
            return [row["user_id"] for row in rows]

    async def get_users_with_adaptive_learning(self) -> List[int]:
        async with self.db.execute(
            """
            SELECT user_id FROM reminder_preferences
            WHERE json_extract(adaptive_learning, '$.enabled') = 1
            ORDER BY user_id
            """
        ) as cursor:
            rows = await cursor.fetchall()
            return [row["user_id"] for row in rows]

    # Energy pattern operations

    async def get_energy_patterns(self, user_id: int) -> List[EnergyPattern]:
        async with self.db.execute(
            """
            SELECT * FROM energy_patterns
            WHERE user_id = ?
            ORDER BY average_energy_level DESC, id
            """,
            (user_id,),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_energy(row) for row in rows]

    async def fold_energy_sample(
        self,
        user_id: int,
        time_slot: str,
        day_of_week: int,
        energy_level: float,
        now: datetime,
    ) -> EnergyPattern:
        """Fold one observation into a bucket's running mean.

        The mean is computed by the database in one upsert so concurrent
        writers to the same bucket cannot lose updates.
        """
        async with self.transaction():
            async with self.db.execute(
                """
                INSERT INTO energy_patterns (
                    user_id, time_slot, day_of_week, average_energy_level,
                    sample_count, last_updated
                ) VALUES (?, ?, ?, ?, 1, ?)
                ON CONFLICT (user_id, time_slot, day_of_week) DO UPDATE SET
                    average_energy_level =
                        (average_energy_level * sample_count + excluded.average_energy_level)
                        / (sample_count + 1),
                    sample_count = sample_count + 1,
                    last_updated = excluded.last_updated
                RETURNING *
                """,
                (user_id, time_slot, day_of_week, float(energy_level), _ts(now)),
            ) as cursor:
                row = await cursor.fetchone()
        return self._row_to_energy(row)

    # Reminder log operations

    async def create_log(self, log: ReminderLog) -> ReminderLog:
        """Append a response log row."""
        async with self.transaction():
            async with self.db.execute(
                """
                INSERT INTO reminder_logs (
                    reminder_id, user_id, sent_at, user_response, response_time_seconds,
                    effectiveness_rating, user_energy_before, user_energy_after,
                    context_factors, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                RETURNING *
                """,
                (
                    log.reminder_id,
                    log.user_id,
                    _ts(log.sent_at),
                    log.user_response,
                    log.response_time_seconds,
                    log.effectiveness_rating,
                    log.user_energy_before,
                    log.user_energy_after,
                    json.dumps(asdict(log.context)),
                    _ts(log.created_at),
                ),
            ) as cursor:
                row = await cursor.fetchone()
        return self._row_to_log(row)

    async def get_logs_for_reminder(self, reminder_id: int) -> List[ReminderLog]:
        async with self.db.execute(
            "SELECT * FROM reminder_logs WHERE reminder_id = ? ORDER BY id",
            (reminder_id,),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_log(row) for row in rows]

    async def get_rated_sends(
        self, user_id: int, since: datetime, reminder_type: str | None = None,
        until: datetime | None = None,
    ) -> List[tuple[datetime, int]]:
        """(sent_at, effectiveness) pairs for rated responses in a window."""
        query = """
            SELECT rl.sent_at, rl.effectiveness_rating
            FROM reminder_logs rl
            JOIN reminders r ON rl.reminder_id = r.id
            WHERE rl.user_id = ?
            AND rl.effectiveness_rating IS NOT NULL
            AND rl.sent_at > ?
        """
        params: list = [user_id, _ts(since)]
        if until is not None:
            query += " AND rl.sent_at <= ?"
            params.append(_ts(until))
        if reminder_type is not None:
            query += " AND r.reminder_type = ?"
            params.append(reminder_type)

        async with self.db.execute(query, params) as cursor:
            rows = await cursor.fetchall()
            return [(_dt(row[0]), int(row[1])) for row in rows]  # type: ignore

    async def get_response_summary(self, user_id: int, start: datetime, end: datetime) -> dict:
        """Totals over reminders created in [start, end] and their responses."""
        async with self.db.execute(
            """
            SELECT
                COUNT(DISTINCT r.id) AS total_reminders,
                COUNT(DISTINCT CASE
                    WHEN rl.user_response IN ('acknowledged', 'completed_task') THEN r.id
                END) AS responded_reminders,
                AVG(rl.effectiveness_rating) AS avg_effectiveness,
                AVG(rl.response_time_seconds) AS avg_response_time
            FROM reminders r
            LEFT JOIN reminder_logs rl ON r.id = rl.reminder_id
            WHERE r.user_id = ?
            AND r.created_at BETWEEN ? AND ?
            """,
            (user_id, _ts(start), _ts(end)),
        ) as cursor:
            row = await cursor.fetchone()
            return dict(row)

    async def get_type_effectiveness(
        self, user_id: int, start: datetime, end: datetime
    ) -> dict[str, float]:
        async with self.db.execute(
            """
            SELECT r.reminder_type, AVG(rl.effectiveness_rating) AS avg_effectiveness
            FROM reminders r
            JOIN reminder_logs rl ON r.id = rl.reminder_id
            WHERE r.user_id = ?
            AND r.created_at BETWEEN ? AND ?
            AND rl.effectiveness_rating IS NOT NULL
            GROUP BY r.reminder_type
            ORDER BY r.reminder_type
            """,
            (user_id, _ts(start), _ts(end)),
        ) as cursor:
            rows = await cursor.fetchall()
            return {row["reminder_type"]: float(row["avg_effectiveness"]) for row in rows}

    # Helper methods

    @staticmethod
    def _preferences_values(prefs: ReminderPreferences) -> tuple:
        return (
            prefs.reminder_frequency,
            json.dumps([asdict(slot) for slot in prefs.preferred_times]),
            1 if prefs.energy_based_adjustment else 0,
            1 if prefs.gentle_escalation else 0,
            prefs.max_daily_reminders,
            json.dumps(asdict(prefs.quiet_hours)),
            json.dumps(asdict(prefs.reminder_types_enabled)),
            json.dumps(asdict(prefs.escalation_preferences)),
            json.dumps(asdict(prefs.adaptive_learning)),
            prefs.timezone,
        )

    def _row_to_user(self, row: aiosqlite.Row) -> User:
        return User(
            id=row["id"],
            telegram_id=row["telegram_id"],
            created_at=_dt(row["created_at"]),  # type: ignore
        )

    def _row_to_task(self, row: aiosqlite.Row) -> Task:
        return Task(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            due_date=_dt(row["due_date"]),
            completed=bool(row["completed"]),
            started_at=_dt(row["started_at"]),
        )

    def _row_to_session(self, row: aiosqlite.Row) -> FocusSession:
        return FocusSession(
            id=row["id"],
            user_id=row["user_id"],
            task_id=row["task_id"],
            start_time=_dt(row["start_time"]),  # type: ignore
            end_time=_dt(row["end_time"]),
        )

    def _row_to_reminder(self, row: aiosqlite.Row) -> Reminder:
        """Convert a database row to a Reminder object."""
        return Reminder(
            id=row["id"],
            user_id=row["user_id"],
            task_id=row["task_id"],
            title=row["title"],
            description=row["description"],
            reminder_type=row["reminder_type"],
            priority=row["priority"],
            scheduled_time=_dt(row["scheduled_time"]),  # type: ignore
            actual_sent_time=_dt(row["actual_sent_time"]),
            status=row["status"],
            escalation_level=row["escalation_level"],
            max_escalations=row["max_escalations"],
            escalation_check_at=_dt(row["escalation_check_at"]),
            context=ReminderContext(
                predicted_energy=row["predicted_energy"],
                focus_session_id=row["focus_session_id"],
                estimated_task_duration=row["estimated_task_duration"],
            ),
            created_at=_dt(row["created_at"]),
            updated_at=_dt(row["updated_at"]),
        )

    def _row_to_preferences(self, row: aiosqlite.Row) -> ReminderPreferences:
        return ReminderPreferences(
            id=row["id"],
            user_id=row["user_id"],
            reminder_frequency=row["reminder_frequency"],
            preferred_times=[
                PreferredTimeSlot(**slot) for slot in json.loads(row["preferred_times"])
            ],
            energy_based_adjustment=bool(row["energy_based_adjustment"]),
            gentle_escalation=bool(row["gentle_escalation"]),
            max_daily_reminders=row["max_daily_reminders"],
            quiet_hours=QuietHours(**json.loads(row["quiet_hours"])),
            reminder_types_enabled=ReminderTypesEnabled(
                **json.loads(row["reminder_types_enabled"])
            ),
            escalation_preferences=EscalationPreferences(
                **json.loads(row["escalation_preferences"])
            ),
            adaptive_learning=AdaptiveLearning(**json.loads(row["adaptive_learning"])),
            timezone=row["timezone"],
            created_at=_dt(row["created_at"]),
            updated_at=_dt(row["updated_at"]),
        )

    def _row_to_energy(self, row: aiosqlite.Row) -> EnergyPattern:
        return EnergyPattern(
            id=row["id"],
            user_id=row["user_id"],
            time_slot=row["time_slot"],
            day_of_week=row["day_of_week"],
            average_energy_level=float(row["average_energy_level"]),
            sample_count=row["sample_count"],
            last_updated=_dt(row["last_updated"]),
        )

    def _row_to_log(self, row: aiosqlite.Row) -> ReminderLog:
        return ReminderLog(
            id=row["id"],
            reminder_id=row["reminder_id"],
            user_id=row["user_id"],
            sent_at=_dt(row["sent_at"]),  # type: ignore
            user_response=row["user_response"],
            response_time_seconds=row["response_time_seconds"],
            effectiveness_rating=row["effectiveness_rating"],
            user_energy_before=row["user_energy_before"],
            user_energy_after=row["user_energy_after"],
            context=LogContext(**json.loads(row["context_factors"])),
            created_at=_dt(row["created_at"]),
        )
