"""Energy model: bucket keys and predictions. Running means live in the SQL upsert."""

from datetime import datetime
from typing import Iterable, Tuple

from focusnudge.db.models import EnergyPattern
from focusnudge.utils.constants import DEFAULT_PREDICTED_ENERGY
from focusnudge.utils.time_utils import day_of_week, time_slot


def bucket_for(local_dt: datetime, slot_minutes: int) -> Tuple[str, int]:
    """(time_slot, day_of_week) bucket for a wall-clock datetime."""
    return time_slot(local_dt, slot_minutes), day_of_week(local_dt)


def predict_energy(patterns: Iterable[EnergyPattern], local_dt: datetime) -> float:
    """Predicted energy at a wall-clock time.

    Averages every bucket on the same weekday whose slot starts in the same
    hour; without data the prediction is a neutral 5.
    """
    dow = day_of_week(local_dt)
    levels = [
        p.average_energy_level
        for p in patterns
        if p.day_of_week == dow and int(p.time_slot[:2]) == local_dt.hour
    ]
    if not levels:
        return DEFAULT_PREDICTED_ENERGY
    return sum(levels) / len(levels)
