"""Reminder service: creation, lifecycle transitions, responses and insights."""

import logging
import math
from collections import defaultdict
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from focusnudge.db.models import (
    CreateReminderRequest,
    LogContext,
    OptimalHour,
    PreferredTimeSlot,
    Reminder,
    ReminderAnalytics,
    ReminderContext,
    ReminderFilters,
    ReminderLog,
    ReminderPreferences,
    Task,
)
from focusnudge.db.repository import Repository
from focusnudge.engine.energy import bucket_for, predict_energy
from focusnudge.engine.escalation import (
    apply_escalation,
    apply_response,
    apply_snooze,
    is_terminal,
)
from focusnudge.engine.optimizer import optimize
from focusnudge.utils.constants import (
    DEFAULT_OPTIMAL_TIMES,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SNOOZE_MINUTES,
    DEFAULT_TIMEZONE,
    DEADLINE_WARNING_OFFSETS_HOURS,
    ENERGY_PREFERENCES,
    MAX_DESCRIPTION_LENGTH,
    MAX_ESCALATIONS_LIMIT,
    MAX_PAGE_SIZE,
    MAX_SNOOZE_MINUTES,
    MAX_TITLE_LENGTH,
    OPTIMAL_TIMES_LIMIT,
    OPTIMAL_TIMES_LOOKBACK_DAYS,
    OPTIMAL_TIMES_MIN_SAMPLES,
    RECENT_BREAK_MINUTES,
    REMINDER_FREQUENCIES,
    REMINDER_PRIORITIES,
    REMINDER_RESPONSES,
    REMINDER_STATUSES,
    REMINDER_TYPES,
    TASK_START_DELAY_MINUTES,
)
from focusnudge.utils.errors import AuthorizationError, NotFoundError, ValidationError
from focusnudge.utils.time_utils import (
    WEEKDAY_NAMES,
    Clock,
    day_of_week,
    format_hhmm,
    from_utc,
    is_valid_hhmm,
    to_utc,
)

logger = logging.getLogger(__name__)

LearningHook = Callable[[int, ReminderLog, ReminderPreferences], Awaitable[None]]


async def log_learning_signal(
    user_id: int, log: ReminderLog, preferences: ReminderPreferences
) -> None:
    """Default adaptive-learning hook: records the signal, learns nothing yet."""
    logger.info(
        f"Learning from reminder effectiveness: {log.effectiveness_rating} "
        f"for user {user_id} (weights: "
        f"effectiveness={preferences.adaptive_learning.effectiveness_weight}, "
        f"energy={preferences.adaptive_learning.energy_correlation_weight}, "
        f"time={preferences.adaptive_learning.time_preference_weight})"
    )


def task_complexity(estimated_minutes: int | None) -> int | None:
    """Rough 1-3 complexity from a task's estimated duration."""
    if estimated_minutes is None:
        return None
    if estimated_minutes > 60:
        return 3
    if estimated_minutes > 30:
        return 2
    return 1


def deadline_priority(hours_until_due: float) -> str:
    if hours_until_due < 6:
        return "urgent"
    if hours_until_due < 24:
        return "high"
    return "medium"


# Validation helpers


def _require_choice(field: str, value: Any, choices: tuple) -> None:
    if value not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(choices)}", field)


def _require_bool(field: str, value: Any) -> None:
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be true or false", field)


def _require_number(
    field: str, value: Any, low: float, high: float | None = None, integer: bool = False
) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a number", field)
    if integer and not isinstance(value, int):
        raise ValidationError(f"{field} must be a whole number", field)
    if not math.isfinite(value):
        raise ValidationError(f"{field} must be a finite number", field)
    if value < low or (high is not None and value > high):
        bounds = f"between {low} and {high}" if high is not None else f"at least {low}"
        raise ValidationError(f"{field} must be {bounds}", field)


def _require_hhmm(field: str, value: Any) -> None:
    if not isinstance(value, str) or not is_valid_hhmm(value):
        raise ValidationError(f"{field} must be a time in HH:MM format", field)


def _require_timezone(field: str, value: Any) -> None:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        raise ValidationError(f"Unknown timezone: {value}", field)


def _require_mapping(field: str, value: Any, allowed: tuple) -> dict:
    if not isinstance(value, dict):
        raise ValidationError(f"{field} must be an object", field)
    unknown = set(value) - set(allowed)
    if unknown:
        raise ValidationError(f"Unknown {field} fields: {', '.join(sorted(unknown))}", field)
    return value


def validate_create_request(request: CreateReminderRequest) -> None:
    if request.user_id is None:
        raise AuthorizationError("Reminder has no owning user")

    if not isinstance(request.title, str) or not request.title.strip():
        raise ValidationError("title is required", "title")
    if len(request.title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"title must be at most {MAX_TITLE_LENGTH} characters", "title")
    if request.description is not None and len(request.description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"description must be at most {MAX_DESCRIPTION_LENGTH} characters", "description"
        )

    _require_choice("reminder_type", request.reminder_type, REMINDER_TYPES)
    _require_choice("priority", request.priority, REMINDER_PRIORITIES)

    if not isinstance(request.scheduled_time, datetime):
        raise ValidationError("scheduled_time must be a datetime", "scheduled_time")
    if request.max_escalations is not None:
        _require_number("max_escalations", request.max_escalations, 0, MAX_ESCALATIONS_LIMIT, integer=True)
    if request.context.estimated_task_duration is not None:
        _require_number(
            "estimated_task_duration", request.context.estimated_task_duration, 1, integer=True
        )


def validate_response(
    response: str,
    response_time_seconds: float,
    effectiveness: int | None,
    energy_before: int | None,
    energy_after: int | None,
) -> None:
    _require_choice("response", response, REMINDER_RESPONSES)
    _require_number("response_time_seconds", response_time_seconds, 0)
    if effectiveness is not None:
        _require_number("effectiveness_rating", effectiveness, 1, 5, integer=True)
    if energy_before is not None:
        _require_number("user_energy_before", energy_before, 1, 10, integer=True)
    if energy_after is not None:
        _require_number("user_energy_after", energy_after, 1, 10, integer=True)


def merge_preferences(current: ReminderPreferences, update: Dict[str, Any]) -> ReminderPreferences:
    """Validate a partial update and apply it to a copy of the preferences.

    Nested sections may be updated partially; fields not mentioned keep
    their current values.
    """
    if not update:
        raise ValidationError("No valid fields to update")

    merged = replace(current)

    for key, value in update.items():
        if key == "reminder_frequency":
            _require_choice(key, value, REMINDER_FREQUENCIES)
            merged.reminder_frequency = value
        elif key in ("energy_based_adjustment", "gentle_escalation"):
            _require_bool(key, value)
            setattr(merged, key, value)
        elif key == "max_daily_reminders":
            _require_number(key, value, 1, 50, integer=True)
            merged.max_daily_reminders = value
        elif key == "timezone":
            _require_timezone(key, value)
            merged.timezone = value
        elif key == "quiet_hours":
            values = _require_mapping(key, value, ("start", "end"))
            for name, hhmm in values.items():
                _require_hhmm(f"quiet_hours.{name}", hhmm)
            merged.quiet_hours = replace(current.quiet_hours, **values)
        elif key == "reminder_types_enabled":
            values = _require_mapping(key, value, REMINDER_TYPES)
            for name, enabled in values.items():
                _require_bool(f"reminder_types_enabled.{name}", enabled)
            merged.reminder_types_enabled = replace(current.reminder_types_enabled, **values)
        elif key == "escalation_preferences":
            values = _require_mapping(
                key,
                value,
                (
                    "initial_delay_minutes",
                    "escalation_interval_minutes",
                    "max_escalations",
                    "weekend_adjustments",
                ),
            )
            limits = {
                "initial_delay_minutes": (1, 120),
                "escalation_interval_minutes": (5, 60),
                "max_escalations": (1, MAX_ESCALATIONS_LIMIT),
            }
            for name, item in values.items():
                if name == "weekend_adjustments":
                    _require_bool(f"{key}.{name}", item)
                else:
                    _require_number(f"{key}.{name}", item, *limits[name], integer=True)
            merged.escalation_preferences = replace(current.escalation_preferences, **values)
        elif key == "adaptive_learning":
            values = _require_mapping(
                key,
                value,
                (
                    "enabled",
                    "effectiveness_weight",
                    "energy_correlation_weight",
                    "time_preference_weight",
                ),
            )
            for name, item in values.items():
                if name == "enabled":
                    _require_bool(f"{key}.{name}", item)
                else:
                    _require_number(f"{key}.{name}", item, 0, 1)
            merged.adaptive_learning = replace(current.adaptive_learning, **values)
        elif key == "preferred_times":
            if not isinstance(value, list):
                raise ValidationError("preferred_times must be a list", key)
            merged.preferred_times = [_parse_time_slot(slot) for slot in value]
        else:
            raise ValidationError(f"Unknown preference: {key}", key)

    return merged


def _parse_time_slot(value: Any) -> PreferredTimeSlot:
    if isinstance(value, PreferredTimeSlot):
        value = vars(value)
    slot = _require_mapping(
        "preferred_times",
        value,
        ("start_time", "end_time", "days_of_week", "energy_level_preference", "reminder_types"),
    )
    _require_hhmm("preferred_times.start_time", slot.get("start_time"))
    _require_hhmm("preferred_times.end_time", slot.get("end_time"))
    days = slot.get("days_of_week", [])
    if not isinstance(days, list) or any(d not in range(7) for d in days):
        raise ValidationError("preferred_times.days_of_week must hold days 0-6", "preferred_times")
    _require_choice(
        "preferred_times.energy_level_preference",
        slot.get("energy_level_preference", "any"),
        ENERGY_PREFERENCES,
    )
    types = slot.get("reminder_types", [])
    for reminder_type in types:
        _require_choice("preferred_times.reminder_types", reminder_type, REMINDER_TYPES)
    return PreferredTimeSlot(
        start_time=slot["start_time"],
        end_time=slot["end_time"],
        days_of_week=list(days),
        energy_level_preference=slot.get("energy_level_preference", "any"),
        reminder_types=list(types),
    )


class ReminderService:
    """Owns the reminder lifecycle and everything that feeds the optimizer."""

    def __init__(
        self,
        repo: Repository,
        clock: Clock,
        energy_slot_minutes: int = 15,
        default_timezone: str = DEFAULT_TIMEZONE,
        learning_hook: LearningHook | None = None,
    ):
        self.repo = repo
        self.clock = clock
        self.energy_slot_minutes = energy_slot_minutes
        self.default_timezone = default_timezone
        self.learning_hook = learning_hook or log_learning_signal

    # Preferences

    async def get_preferences(self, user_id: int) -> ReminderPreferences:
        """Get a user's preferences, creating the defaults on first access."""
        prefs = await self.repo.get_preferences(user_id)
        if prefs is not None:
            return prefs

        now = self.clock.now()
        prefs = await self.repo.create_preferences(
            ReminderPreferences(
                user_id=user_id,
                timezone=self.default_timezone,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(f"Created default reminder preferences for user {user_id}")
        return prefs

    async def update_preferences(
        self, user_id: int, partial_update: Dict[str, Any]
    ) -> ReminderPreferences:
        async with self.repo.transaction():
            current = await self.get_preferences(user_id)
            merged = merge_preferences(current, partial_update)
            merged.updated_at = self.clock.now()
            await self.repo.update_preferences(merged)

        logger.info(f"Updated reminder preferences for user {user_id}: {sorted(partial_update)}")
        return merged

    # Creation

    async def create_reminder(self, request: CreateReminderRequest) -> Reminder:
        """Create a reminder at the best time the optimizer can find."""
        validate_create_request(request)
        user_id: int = request.user_id  # type: ignore

        if await self.repo.get_user_by_id(user_id) is None:
            raise NotFoundError("User", user_id)
        if request.task_id is not None and await self.repo.get_task(request.task_id) is None:
            raise NotFoundError("Task", request.task_id)

        async with self.repo.transaction():
            prefs = await self.get_preferences(user_id)
            patterns = await self.repo.get_energy_patterns(user_id)

            requested_local = from_utc(to_utc(request.scheduled_time, prefs.timezone), prefs.timezone)
            optimized_local = optimize(requested_local, request.reminder_type, prefs, patterns)

            max_escalations = request.max_escalations
            if max_escalations is None:
                max_escalations = prefs.escalation_preferences.max_escalations or 3

            now = self.clock.now()
            reminder = await self.repo.create_reminder(
                Reminder(
                    user_id=user_id,
                    task_id=request.task_id,
                    title=request.title.strip(),
                    description=request.description,
                    reminder_type=request.reminder_type,  # type: ignore
                    priority=request.priority,  # type: ignore
                    scheduled_time=to_utc(optimized_local, prefs.timezone),
                    status="scheduled",
                    escalation_level=0,
                    max_escalations=max_escalations,
                    context=ReminderContext(
                        predicted_energy=predict_energy(patterns, optimized_local),
                        focus_session_id=request.context.focus_session_id,
                        estimated_task_duration=request.context.estimated_task_duration,
                    ),
                    created_at=now,
                    updated_at=now,
                )
            )

        logger.info(
            f"Created {reminder.reminder_type} reminder {reminder.id} for user {user_id} "
            f"at {reminder.scheduled_time.isoformat()}"
        )
        return reminder

    async def _get_reminder(self, reminder_id: int) -> Reminder:
        reminder = await self.repo.get_reminder(reminder_id)
        if reminder is None:
            raise NotFoundError("Reminder", reminder_id)
        return reminder

    # Lifecycle

    async def escalate(self, reminder_id: int) -> Reminder:
        """Escalate an unanswered reminder, or expire it at its cap."""
        async with self.repo.transaction():
            reminder = await self._get_reminder(reminder_id)
            prefs = await self.get_preferences(reminder.user_id)
            outcome = apply_escalation(reminder, prefs, self.clock.now())
            if outcome.changed:
                await self.repo.update_reminder(reminder)

        if not outcome.changed:
            logger.info(f"Reminder {reminder_id} is {reminder.status}; not escalating")
        elif outcome.expired:
            logger.info(f"Reminder {reminder_id} expired after max escalations")
        else:
            logger.info(
                f"Escalated reminder {reminder_id} to level {reminder.escalation_level}"
            )
        return reminder

    async def check_unanswered(self, reminder_id: int) -> Reminder | None:
        """Escalate a sent reminder nobody answered. None if it was answered."""
        async with self.repo.transaction():
            reminder = await self._get_reminder(reminder_id)
            if reminder.status != "sent":
                return None
            return await self.escalate(reminder_id)

    async def record_response(
        self,
        reminder_id: int,
        response: str,
        response_time_seconds: float,
        effectiveness: int | None = None,
        energy_before: int | None = None,
        energy_after: int | None = None,
    ) -> None:
        """Log a user's response, move the reminder on and learn from it."""
        validate_response(response, response_time_seconds, effectiveness, energy_before, energy_after)

        async with self.repo.transaction():
            reminder = await self._get_reminder(reminder_id)
            if is_terminal(reminder):
                raise ValidationError(f"Reminder {reminder_id} is already {reminder.status}")

            now = self.clock.now()
            prefs = await self.get_preferences(reminder.user_id)
            local_now = from_utc(now, prefs.timezone)

            log = await self.repo.create_log(
                ReminderLog(
                    reminder_id=reminder_id,
                    user_id=reminder.user_id,
                    sent_at=reminder.actual_sent_time or now,
                    user_response=response,  # type: ignore
                    response_time_seconds=response_time_seconds,
                    effectiveness_rating=effectiveness,
                    user_energy_before=energy_before,
                    user_energy_after=energy_after,
                    context=LogContext(
                        time_of_day=format_hhmm(local_now),
                        day_of_week=WEEKDAY_NAMES[day_of_week(local_now)],
                        focus_session_active=await self.repo.has_active_focus_session(
                            reminder.user_id
                        ),
                        recent_break_taken=await self.repo.has_recent_break(
                            reminder.user_id, now - timedelta(minutes=RECENT_BREAK_MINUTES)
                        ),
                        task_complexity=task_complexity(reminder.context.estimated_task_duration),
                    ),
                    created_at=now,
                )
            )
            apply_response(reminder, response, now)
            await self.repo.update_reminder(reminder)

            if energy_before is not None:
                slot, dow = bucket_for(local_now, self.energy_slot_minutes)
                await self.repo.fold_energy_sample(reminder.user_id, slot, dow, energy_before, now)

        logger.info(f"Recorded response for reminder {reminder_id}: {response}")

        if effectiveness is not None and effectiveness > 0:
            await self.learning_hook(reminder.user_id, log, prefs)

    async def snooze(self, reminder_id: int, minutes: int = DEFAULT_SNOOZE_MINUTES) -> Reminder:
        _require_number("minutes", minutes, 1, MAX_SNOOZE_MINUTES, integer=True)

        async with self.repo.transaction():
            reminder = await self._get_reminder(reminder_id)
            if is_terminal(reminder):
                raise ValidationError(f"Reminder {reminder_id} is already {reminder.status}")
            apply_snooze(reminder, minutes, self.clock.now())
            await self.repo.update_reminder(reminder)

        logger.info(f"Snoozed reminder {reminder_id} for {minutes} minutes")
        return reminder

    async def dismiss(self, reminder_id: int) -> None:
        async with self.repo.transaction():
            reminder = await self._get_reminder(reminder_id)
            if is_terminal(reminder):
                logger.info(f"Reminder {reminder_id} already {reminder.status}; dismiss ignored")
                return
            reminder.status = "dismissed"
            reminder.escalation_check_at = None
            reminder.updated_at = self.clock.now()
            await self.repo.update_reminder(reminder)

        logger.info(f"Dismissed reminder {reminder_id}")

    # Queries

    async def get_reminder(self, reminder_id: int) -> Reminder:
        return await self._get_reminder(reminder_id)

    async def list_reminders(
        self,
        user_id: int,
        filters: ReminderFilters | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> List[Reminder]:
        filters = filters or ReminderFilters()
        if filters.status is not None:
            _require_choice("status", filters.status, REMINDER_STATUSES)
        if filters.reminder_type is not None:
            _require_choice("reminder_type", filters.reminder_type, REMINDER_TYPES)
        if filters.priority is not None:
            _require_choice("priority", filters.priority, REMINDER_PRIORITIES)
        _require_number("page", page, 1, integer=True)
        _require_number("page_size", page_size, 1, MAX_PAGE_SIZE, integer=True)

        if filters.start is not None or filters.end is not None:
            for name in ("start", "end"):
                bound = getattr(filters, name)
                if bound is not None and not isinstance(bound, datetime):
                    raise ValidationError(f"{name} must be a datetime", name)

            # Naive bounds are wall-clock times in the user's timezone
            tz = (await self.get_preferences(user_id)).timezone
            filters = replace(
                filters,
                start=to_utc(filters.start, tz) if filters.start is not None else None,
                end=to_utc(filters.end, tz) if filters.end is not None else None,
            )
            if filters.start and filters.end and filters.start > filters.end:
                raise ValidationError("date range start is after its end", "start")

        return await self.repo.list_reminders(
            user_id, filters, limit=page_size, offset=(page - 1) * page_size
        )

    def _rank_hours(
        self, samples: List[tuple[datetime, int]], tz: str, min_samples: int
    ) -> List[OptimalHour]:
        """Group rated sends by local hour, best mean effectiveness first."""
        by_hour: Dict[int, List[int]] = defaultdict(list)
        for sent_at, rating in samples:
            by_hour[from_utc(sent_at, tz).hour].append(rating)

        hours = [
            OptimalHour(hour=hour, effectiveness=sum(r) / len(r), sample_count=len(r))
            for hour, r in by_hour.items()
            if len(r) >= min_samples
        ]
        hours.sort(key=lambda h: (-h.effectiveness, -h.sample_count, h.hour))
        return hours[:OPTIMAL_TIMES_LIMIT]

    async def get_optimal_times(self, user_id: int, reminder_type: str) -> List[str]:
        """Best local hours for a reminder type, from the last 30 days of ratings."""
        _require_choice("reminder_type", reminder_type, REMINDER_TYPES)

        prefs = await self.get_preferences(user_id)
        since = self.clock.now() - timedelta(days=OPTIMAL_TIMES_LOOKBACK_DAYS)
        samples = await self.repo.get_rated_sends(user_id, since, reminder_type)
        hours = self._rank_hours(samples, prefs.timezone, OPTIMAL_TIMES_MIN_SAMPLES)

        if not hours:
            return list(DEFAULT_OPTIMAL_TIMES)
        return [f"{h.hour:02d}:00" for h in hours]

    async def get_analytics(self, user_id: int, days: int = 30) -> ReminderAnalytics:
        _require_number("days", days, 1, 365, integer=True)

        prefs = await self.get_preferences(user_id)
        end = self.clock.now()
        start = end - timedelta(days=days)

        summary = await self.repo.get_response_summary(user_id, start, end)
        total = int(summary["total_reminders"] or 0)
        responded = int(summary["responded_reminders"] or 0)
        response_rate = round(responded / total * 100, 2) if total else 0.0

        samples = await self.repo.get_rated_sends(user_id, start, until=end)

        return ReminderAnalytics(
            user_id=user_id,
            start=start,
            end=end,
            total=total,
            response_rate=response_rate,
            avg_effectiveness=(
                float(summary["avg_effectiveness"])
                if summary["avg_effectiveness"] is not None
                else None
            ),
            avg_response_time=(
                float(summary["avg_response_time"])
                if summary["avg_response_time"] is not None
                else None
            ),
            type_effectiveness=await self.repo.get_type_effectiveness(user_id, start, end),
            optimal_hours=self._rank_hours(samples, prefs.timezone, 1),
        )

    # Task-driven reminders

    async def schedule_task_reminders(
        self, task: Task, prefs: ReminderPreferences
    ) -> List[Reminder]:
        """Start and deadline reminders for one dated task."""
        if task.due_date is None:
            return []

        now = self.clock.now()
        hours_until_due = (task.due_date - now).total_seconds() / 3600
        enabled = prefs.reminder_types_enabled
        requests: List[CreateReminderRequest] = []

        if task.started_at is None and enabled.task_start:
            requests.append(
                CreateReminderRequest(
                    user_id=task.user_id,
                    task_id=task.id,
                    title=f"Time to start: {task.title}",
                    description=(
                        f'Get started on "{task.title}". '
                        "Break it down into smaller steps if needed."
                    ),
                    reminder_type="task_start",
                    priority="medium",
                    scheduled_time=now + timedelta(minutes=TASK_START_DELAY_MINUTES),
                )
            )

        if enabled.deadline_warning:
            day_before, final = DEADLINE_WARNING_OFFSETS_HOURS
            if hours_until_due > day_before:
                requests.append(
                    CreateReminderRequest(
                        user_id=task.user_id,
                        task_id=task.id,
                        title=f"Deadline tomorrow: {task.title}",
                        description=(
                            f'"{task.title}" is due tomorrow. '
                            "Make sure you have enough time to complete it."
                        ),
                        reminder_type="deadline_warning",
                        priority="high",
                        scheduled_time=task.due_date - timedelta(hours=day_before),
                    )
                )
            if hours_until_due > final:
                requests.append(
                    CreateReminderRequest(
                        user_id=task.user_id,
                        task_id=task.id,
                        title=f"Final reminder: {task.title}",
                        description=f'Only {final} hours left for "{task.title}". Focus time!',
                        reminder_type="deadline_warning",
                        priority="urgent",
                        scheduled_time=task.due_date - timedelta(hours=final),
                    )
                )

        return [await self.create_reminder(request) for request in requests]

    async def schedule_automatic_reminders(self, user_id: int) -> List[Reminder]:
        """Generate reminders for all of a user's open, dated tasks."""
        prefs = await self.get_preferences(user_id)
        tasks = await self.repo.get_open_dated_tasks(user_id, self.clock.now())

        created: List[Reminder] = []
        for task in tasks:
            created.extend(await self.schedule_task_reminders(task, prefs))

        logger.info(
            f"Scheduled {len(created)} automatic reminders for {len(tasks)} tasks "
            f"for user {user_id}"
        )
        return created

    async def create_deadline_warning(self, task: Task) -> Reminder:
        """Immediate warning for a task whose deadline is close."""
        hours_until_due = (task.due_date - self.clock.now()).total_seconds() / 3600  # type: ignore
        urgency = "This is urgent!" if hours_until_due < 6 else "Plan your time accordingly."
        return await self.create_reminder(
            CreateReminderRequest(
                user_id=task.user_id,
                task_id=task.id,
                title=f"Deadline approaching: {task.title}",
                description=f'"{task.title}" is due in {round(hours_until_due)} hours. {urgency}',
                reminder_type="deadline_warning",
                priority=deadline_priority(hours_until_due),
                scheduled_time=self.clock.now(),
            )
        )

    async def create_hyperfocus_break(self, user_id: int, focus_session_id: int) -> Reminder:
        return await self.create_reminder(
            CreateReminderRequest(
                user_id=user_id,
                title="Take a break! You've been hyperfocusing",
                description=(
                    "You've been in deep focus for over 90 minutes. "
                    "Your brain needs a rest to maintain peak performance."
                ),
                reminder_type="hyperfocus_break",
                priority="high",
                scheduled_time=self.clock.now(),
                context=ReminderContext(focus_session_id=focus_session_id),
            )
        )

    # Extension points for the periodic analysis sweeps

    async def update_energy_insights(self, user_id: int) -> None:
        logger.info(f"Updating energy insights for user {user_id}")

    async def optimize_user_reminders(self, user_id: int) -> None:
        logger.info(f"Optimizing reminders for user {user_id}")
