# src/nightlight/models.py: Value types shared across the scheduler.
# Coordinates come from the geocoder, TwilightTimes from the sunrise/sunset
# service, and ScheduleDecision is what a time source hands back to the
# control loop. All are immutable.

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Theme(Enum):
    LIGHT = "light"
    DARK = "dark"


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class TwilightTimes:
    """First and last light of one day, as offset-aware instants."""
    first_light: datetime
    last_light: datetime


@dataclass(frozen=True)
class ScheduleDecision:
    """The theme to hold until next_instant, when the schedule is recomputed."""
    next_instant: datetime
    theme: Theme
