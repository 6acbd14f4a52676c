"""Timing optimizer: picks when a reminder should actually fire.

Every function here is pure. Datetimes are interpreted by their own wall
clock, so callers convert to the user's timezone first.
"""

import logging
from datetime import datetime
from typing import Iterable, List

from focusnudge.db.models import EnergyPattern, ReminderPreferences
from focusnudge.utils.constants import (
    DEFAULT_ENERGY_TARGET,
    ENERGY_TARGETS,
    ENERGY_TOLERANCE,
    EnergyTarget,
)
from focusnudge.utils.time_utils import (
    day_of_week,
    is_time_in_window,
    minutes_of_day,
    next_window_end,
    parse_hhmm,
)

logger = logging.getLogger(__name__)


def get_energy_target(reminder_type: str) -> EnergyTarget:
    """Target energy level and maximum drift for a reminder type."""
    return ENERGY_TARGETS.get(reminder_type, DEFAULT_ENERGY_TARGET)


def in_quiet_hours(local_dt: datetime, preferences: ReminderPreferences) -> bool:
    quiet = preferences.quiet_hours
    return is_time_in_window(local_dt, quiet.start, quiet.end)


def candidate_buckets(
    energy_history: Iterable[EnergyPattern], dow: int, target_level: float
) -> List[EnergyPattern]:
    """Buckets on the given weekday whose energy is close to the target."""
    return [
        pattern
        for pattern in energy_history
        if pattern.day_of_week == dow
        and abs(pattern.average_energy_level - target_level) <= ENERGY_TOLERANCE
    ]


def closest_bucket(
    candidates: List[EnergyPattern], requested_minutes: int
) -> tuple[EnergyPattern, int]:
    """Candidate nearest in minutes-of-day; the first one wins ties."""
    best = candidates[0]
    best_distance = abs(requested_minutes - minutes_of_day(best.time_slot))
    for pattern in candidates[1:]:
        distance = abs(requested_minutes - minutes_of_day(pattern.time_slot))
        if distance < best_distance:
            best, best_distance = pattern, distance
    return best, best_distance


def optimize(
    requested_time: datetime,
    reminder_type: str,
    preferences: ReminderPreferences,
    energy_history: Iterable[EnergyPattern],
) -> datetime:
    """Adjust a requested send time for quiet hours and predicted energy.

    - Energy adjustment disabled: the requested time is kept.
    - Requested time in quiet hours: moved to the end of quiet hours.
    - Otherwise moved to the closest same-weekday slot whose average energy
      suits the reminder type, unless that slot is too far away.

    Returns:
        The adjusted send time, in the same timezone as requested_time
    """
    if not preferences.energy_based_adjustment:
        return requested_time

    if in_quiet_hours(requested_time, preferences):
        adjusted = next_window_end(requested_time, preferences.quiet_hours.end)
        logger.debug(f"Moved {requested_time} to {adjusted} (quiet hours)")
        return adjusted

    target = get_energy_target(reminder_type)
    candidates = candidate_buckets(energy_history, day_of_week(requested_time), target.level)
    if not candidates:
        return requested_time

    best, distance = closest_bucket(candidates, minutes_of_day(requested_time))
    if distance > target.max_shift_minutes:
        return requested_time

    slot = parse_hhmm(best.time_slot)
    return requested_time.replace(hour=slot.hour, minute=slot.minute, second=0, microsecond=0)
