"""Constants and default values."""

from dataclasses import dataclass


REMINDER_TYPES = (
    "task_start",
    "break_reminder",
    "deadline_warning",
    "energy_check",
    "hyperfocus_break",
    "medication_reminder",
    "transition_warning",
)

REMINDER_PRIORITIES = ("low", "medium", "high", "urgent")

REMINDER_STATUSES = (
    "scheduled",
    "sent",
    "acknowledged",
    "snoozed",
    "dismissed",
    "expired",
    "cancelled",
)

# Once a reminder reaches one of these it is never rescheduled or escalated
TERMINAL_STATUSES = frozenset({"acknowledged", "dismissed", "expired", "cancelled"})

REMINDER_RESPONSES = (
    "acknowledged",
    "snoozed_5min",
    "snoozed_15min",
    "snoozed_30min",
    "dismissed",
    "completed_task",
    "not_now",
    "too_frequent",
)

REMINDER_FREQUENCIES = ("minimal", "low", "moderate", "high", "adaptive")

ENERGY_PREFERENCES = ("low", "medium", "high", "any")

# Dispatch ordering: higher rank goes first
PRIORITY_RANK = {"low": 1, "medium": 2, "high": 3, "urgent": 4}


@dataclass
class EnergyTarget:
    """Energy level a reminder type lands best at, and how far it may drift."""

    level: int
    max_shift_minutes: int


# Target energy per reminder type (1-10 scale)
ENERGY_TARGETS = {
    "task_start": EnergyTarget(7, 120),  # starting needs a push
    "break_reminder": EnergyTarget(3, 120),
    "deadline_warning": EnergyTarget(8, 240),  # deadline safety beats energy fit
    "energy_check": EnergyTarget(5, 120),
    "hyperfocus_break": EnergyTarget(2, 120),
    "medication_reminder": EnergyTarget(5, 120),
    "transition_warning": EnergyTarget(6, 120),
}
DEFAULT_ENERGY_TARGET = EnergyTarget(5, 120)

# A bucket qualifies when its average is within this distance of the target
ENERGY_TOLERANCE = 2.0
DEFAULT_PREDICTED_ENERGY = 5.0

# Scheduler behaviour
DISPATCH_DELAY_MINUTES = 10
ESCALATION_CHECK_MINUTES = 15
RECENT_REMINDER_WINDOW_MINUTES = 60
HYPERFOCUS_THRESHOLD_MINUTES = 90
DEADLINE_LOOKAHEAD_HOURS = 48
RECENT_BREAK_MINUTES = 30

# Task-driven generation
TASK_START_DELAY_MINUTES = 5
DEADLINE_WARNING_OFFSETS_HOURS = (24, 2)

# Optimal-times analysis
OPTIMAL_TIMES_LOOKBACK_DAYS = 30
OPTIMAL_TIMES_MIN_SAMPLES = 3
OPTIMAL_TIMES_LIMIT = 5
DEFAULT_OPTIMAL_TIMES = ["09:00", "14:00", "16:00"]

# Limits
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 500
MAX_ESCALATIONS_LIMIT = 10
MAX_SNOOZE_MINUTES = 1440
DEFAULT_SNOOZE_MINUTES = 15
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Default quiet hours (24-hour format)
DEFAULT_QUIET_START = "22:00"
DEFAULT_QUIET_END = "08:00"

# Default timezone
DEFAULT_TIMEZONE = "UTC"
