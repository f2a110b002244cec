# src/nightlight/timesource.py: Computes when the theme should next change.
# Two strategies turn "now" into a ScheduleDecision. The calendar heuristic
# needs no network and uses fixed sunrise/sunset hours for summer and winter.
# The remote strategy asks sunrise-sunset.org for real twilight times at the
# configured coordinates and falls back to the heuristic for the same instant
# on any failure.

from datetime import date, datetime, time, timedelta
from typing import Callable, Optional

from .lookup import fetch_twilight
from .models import Coordinates, ScheduleDecision, Theme, TwilightTimes
from .util.errors import RemoteLookupError
from .util.log import get_logger

logger = get_logger(__name__)

# (sunrise hour, sunset hour)
LONG_DAYLIGHT_HOURS = (6, 21)
SHORT_DAYLIGHT_HOURS = (8, 18)

# March through October, inclusive
LONG_DAYLIGHT_MONTHS = range(3, 11)

TwilightFetcher = Callable[[Coordinates, date, Optional[str]], TwilightTimes]


def daylight_hours(day: date) -> tuple[int, int]:
    """Return the (sunrise, sunset) hours the heuristic uses for `day`."""
    if day.month in LONG_DAYLIGHT_MONTHS:
        return LONG_DAYLIGHT_HOURS
    return SHORT_DAYLIGHT_HOURS


def _zone_name(tzinfo) -> Optional[str]:
    # ZoneInfo exposes its IANA name as `key`; fixed offsets have none
    return getattr(tzinfo, "key", None)


def _at_hour(day: date, hour: int, now: datetime) -> datetime:
    wall = datetime.combine(day, time(hour))
    if now.tzinfo is None or _zone_name(now.tzinfo):
        return wall.replace(tzinfo=now.tzinfo)
    # A bare offset taken from the system clock is only valid for today; let
    # the system zone pick the offset in force on `day` (DST changes).
    if now.utcoffset() == now.astimezone().utcoffset():
        return wall.astimezone()
    return wall.replace(tzinfo=now.tzinfo)


def heuristic_schedule(now: datetime) -> ScheduleDecision:
    """
    Decide the theme from fixed daylight hours.

    Before sunrise the next change is today's sunrise (dark until then);
    during the day it is today's sunset (light); after sunset it is
    tomorrow's sunrise, taken from tomorrow's regime so that the switch
    between summer and winter hours never skips or repeats a day.
    """
    today = now.date()
    sunrise, sunset = daylight_hours(today)

    if now.hour < sunrise:
        return ScheduleDecision(_at_hour(today, sunrise, now), Theme.DARK)
    if now.hour < sunset:
        return ScheduleDecision(_at_hour(today, sunset, now), Theme.LIGHT)

    tomorrow = today + timedelta(days=1)
    next_sunrise, _ = daylight_hours(tomorrow)
    return ScheduleDecision(_at_hour(tomorrow, next_sunrise, now), Theme.DARK)


class RemoteTimeSource:
    """
    Schedule from real twilight times, with the heuristic as a safety net.

    `fetch` is the daylight lookup; it receives the coordinates, the local
    calendar day and the IANA zone name (or None), and returns offset-aware
    instants that are compared with `now` directly.
    """

    def __init__(self, fetch: TwilightFetcher = fetch_twilight):
        self.fetch = fetch

    def _light_on(self, coordinates: Coordinates, day: date, now: datetime) -> tuple[datetime, datetime]:
        times = self.fetch(coordinates, day, _zone_name(now.tzinfo))
        return times.first_light.astimezone(now.tzinfo), times.last_light.astimezone(now.tzinfo)

    def _remote_schedule(self, now: datetime, coordinates: Coordinates) -> ScheduleDecision:
        first_light, last_light = self._light_on(coordinates, now.date(), now)
        logger.debug(f"First light at {first_light:%Y-%m-%d %H:%M:%S}, last light at {last_light:%Y-%m-%d %H:%M:%S}")

        if now < first_light:
            return ScheduleDecision(first_light, Theme.DARK)
        if now < last_light:
            return ScheduleDecision(last_light, Theme.LIGHT)

        next_first_light, _ = self._light_on(coordinates, now.date() + timedelta(days=1), now)
        if next_first_light <= now:
            raise RemoteLookupError(f"Next first light {next_first_light} is not after {now}")
        return ScheduleDecision(next_first_light, Theme.DARK)

    def __call__(self, now: datetime, coordinates: Optional[Coordinates] = None) -> ScheduleDecision:
        if coordinates is None:
            return heuristic_schedule(now)

        aware_now = now if now.tzinfo is not None else now.astimezone()
        try:
            return self._remote_schedule(aware_now, coordinates)
        except RemoteLookupError as e:
            logger.warning(f"Sunrise/sunset lookup failed, using fixed daylight hours: {e}")
            return heuristic_schedule(now)


compute_schedule = RemoteTimeSource()
