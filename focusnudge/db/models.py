"""Data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from focusnudge.utils.constants import (
    DEFAULT_QUIET_END,
    DEFAULT_QUIET_START,
    DEFAULT_TIMEZONE,
)


ReminderType = Literal[
    "task_start",
    "break_reminder",
    "deadline_warning",
    "energy_check",
    "hyperfocus_break",
    "medication_reminder",
    "transition_warning",
]
ReminderPriority = Literal["low", "medium", "high", "urgent"]
ReminderStatus = Literal[
    "scheduled", "sent", "acknowledged", "snoozed", "dismissed", "expired", "cancelled"
]
ReminderResponse = Literal[
    "acknowledged",
    "snoozed_5min",
    "snoozed_15min",
    "snoozed_30min",
    "dismissed",
    "completed_task",
    "not_now",
    "too_frequent",
]
ReminderFrequency = Literal["minimal", "low", "moderate", "high", "adaptive"]
EnergyPreference = Literal["low", "medium", "high", "any"]


@dataclass
class User:
    """Telegram user."""

    telegram_id: int
    created_at: datetime
    id: int | None = None


@dataclass
class Task:
    """A user's task, owned by the task service. Read-only here."""

    user_id: int
    title: str
    due_date: datetime | None = None  # UTC
    completed: bool = False
    started_at: datetime | None = None  # UTC
    id: int | None = None


@dataclass
class FocusSession:
    """A focus timer session. Active while end_time is None."""

    user_id: int
    start_time: datetime  # UTC
    end_time: datetime | None = None  # UTC
    task_id: int | None = None
    id: int | None = None


# Reminders


@dataclass
class ReminderContext:
    """Snapshot captured once when the reminder is created."""

    predicted_energy: float | None = None
    focus_session_id: int | None = None
    estimated_task_duration: int | None = None  # minutes


@dataclass
class Reminder:
    """One scheduled notification."""

    user_id: int
    title: str
    reminder_type: ReminderType
    priority: ReminderPriority
    scheduled_time: datetime  # UTC, shifted by optimization/escalation/snooze
    status: ReminderStatus = "scheduled"
    escalation_level: int = 0
    max_escalations: int = 3
    task_id: int | None = None
    description: str | None = None
    actual_sent_time: datetime | None = None  # UTC, set on first dispatch only
    escalation_check_at: datetime | None = None  # UTC, pending unanswered-check
    context: ReminderContext = field(default_factory=ReminderContext)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    id: int | None = None


@dataclass
class CreateReminderRequest:
    """Input to ReminderService.create_reminder."""

    user_id: int | None
    title: str
    reminder_type: str
    priority: str
    scheduled_time: datetime
    task_id: int | None = None
    description: str | None = None
    max_escalations: int | None = None
    context: ReminderContext = field(default_factory=ReminderContext)


@dataclass
class ReminderFilters:
    """Optional filters for listing reminders."""

    status: str | None = None
    reminder_type: str | None = None
    priority: str | None = None
    start: datetime | None = None
    end: datetime | None = None


# Preferences


@dataclass
class PreferredTimeSlot:
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    days_of_week: list[int]  # 0-6, 0 = Sunday
    energy_level_preference: EnergyPreference = "any"
    reminder_types: list[str] = field(default_factory=list)


@dataclass
class QuietHours:
    start: str = DEFAULT_QUIET_START
    end: str = DEFAULT_QUIET_END


@dataclass
class ReminderTypesEnabled:
    task_start: bool = True
    break_reminder: bool = True
    deadline_warning: bool = True
    energy_check: bool = True
    hyperfocus_break: bool = True
    medication_reminder: bool = True
    transition_warning: bool = True

    def is_enabled(self, reminder_type: str) -> bool:
        return bool(getattr(self, reminder_type, False))


@dataclass
class EscalationPreferences:
    initial_delay_minutes: int = 5
    escalation_interval_minutes: int = 15
    max_escalations: int = 3
    weekend_adjustments: bool = True


@dataclass
class AdaptiveLearning:
    enabled: bool = True
    effectiveness_weight: float = 0.7
    energy_correlation_weight: float = 0.5
    time_preference_weight: float = 0.6


def default_preferred_times() -> list[PreferredTimeSlot]:
    weekdays = [1, 2, 3, 4, 5]
    return [
        PreferredTimeSlot(
            "09:00", "11:00", list(weekdays), "high", ["task_start", "deadline_warning"]
        ),
        PreferredTimeSlot(
            "14:00", "16:00", list(weekdays), "medium", ["break_reminder", "energy_check"]
        ),
    ]


@dataclass
class ReminderPreferences:
    """Per-user scheduling preferences. Always fully populated."""

    user_id: int
    reminder_frequency: ReminderFrequency = "moderate"
    preferred_times: list[PreferredTimeSlot] = field(default_factory=default_preferred_times)
    energy_based_adjustment: bool = True
    gentle_escalation: bool = True
    max_daily_reminders: int = 8
    quiet_hours: QuietHours = field(default_factory=QuietHours)
    reminder_types_enabled: ReminderTypesEnabled = field(default_factory=ReminderTypesEnabled)
    escalation_preferences: EscalationPreferences = field(
        default_factory=EscalationPreferences
    )
    adaptive_learning: AdaptiveLearning = field(default_factory=AdaptiveLearning)
    timezone: str = DEFAULT_TIMEZONE
    created_at: datetime | None = None
    updated_at: datetime | None = None
    id: int | None = None


# Energy and logs


@dataclass
class EnergyPattern:
    """Running mean of a user's energy for one weekday/time-slot bucket."""

    user_id: int
    time_slot: str  # HH:MM
    day_of_week: int  # 0-6, 0 = Sunday
    average_energy_level: float  # 1-10 scale
    sample_count: int = 1
    last_updated: datetime | None = None
    id: int | None = None


@dataclass
class LogContext:
    """Circumstances of a response, kept for analytics."""

    time_of_day: str  # HH:MM, user's local time
    day_of_week: str  # weekday name
    focus_session_active: bool
    recent_break_taken: bool
    task_complexity: int | None = None  # 1-3


@dataclass
class ReminderLog:
    """Append-only record of one response to a reminder."""

    reminder_id: int
    user_id: int
    sent_at: datetime  # UTC
    user_response: ReminderResponse
    response_time_seconds: float
    context: LogContext
    effectiveness_rating: int | None = None  # 1-5
    user_energy_before: int | None = None  # 1-10
    user_energy_after: int | None = None  # 1-10
    created_at: datetime | None = None
    id: int | None = None


@dataclass
class OptimalHour:
    hour: int
    effectiveness: float
    sample_count: int


@dataclass
class ReminderAnalytics:
    """Response statistics for one user over a trailing window."""

    user_id: int
    start: datetime
    end: datetime
    total: int
    response_rate: float  # percent, two decimals
    avg_effectiveness: float | None
    avg_response_time: float | None  # seconds
    type_effectiveness: dict[str, float]
    optimal_hours: list[OptimalHour]
