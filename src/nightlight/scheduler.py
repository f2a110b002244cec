# src/nightlight/scheduler.py: The theme scheduling control loop.
# Each cycle re-reads the configuration, resolves coordinates when the
# location changed, asks the time source for the next transition, applies
# the theme and then blocks until the transition instant, a resume-with-network
# notification, or a stop request, whichever comes first. Nothing computed in
# one cycle is trusted in the next, so edits to the config file are picked up
# without a restart.

import enum
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from .config import Config, load_config
from .lookup import geocode
from .models import Coordinates, ScheduleDecision, Theme
from .themes import apply_theme
from .timesource import compute_schedule
from .util.errors import ConfigError, RemoteLookupError, ThemeError
from .util.log import cycle_context, get_logger

logger = get_logger(__name__)

# Upper bound on a single uninterrupted wait. Condition waits use a monotonic
# clock that stands still while the machine is suspended, so the wall clock
# is re-checked at least this often.
SCHEDULING_TICK = 60.0


class SchedulerState(enum.Enum):
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class WakeReason(enum.Enum):
    STOP = "stop"
    WAKE = "wake"
    TIMER = "timer"


def local_now() -> datetime:
    return datetime.now().astimezone()


class Scheduler:
    """
    Runs the schedule loop until asked to stop.

    `run()` blocks and is meant for a dedicated thread. `request_stop()` and
    `notify_wake()` are safe to call from any other thread. The collaborators
    are injectable so the loop can be driven without a desktop or network.
    """

    def __init__(
        self,
        config_path: Path,
        *,
        load: Callable[[Path], Config] = load_config,
        time_source: Callable[[datetime, Optional[Coordinates]], ScheduleDecision] = compute_schedule,
        resolve: Callable[[str, str], Coordinates] = geocode,
        apply: Callable[[str, str], None] = apply_theme,
        clock: Callable[[], datetime] = local_now,
        tick: float = SCHEDULING_TICK,
    ):
        self.config_path = config_path
        self.load = load
        self.time_source = time_source
        self.resolve = resolve
        self.apply = apply
        self.clock = clock
        self.tick = tick

        self.state: Optional[SchedulerState] = None
        self.error: Optional[ConfigError] = None
        self.coordinates: Optional[Coordinates] = None
        self._location = ""

        self._cond = threading.Condition()
        self._stop_requested = False
        self._waiting = False
        self._pending_wake = False
        self._done = threading.Event()

    # --- Cross-thread controls ---

    def request_stop(self) -> None:
        """Ask the loop to exit. Only observed while the loop is waiting."""
        with self._cond:
            if self.state is SchedulerState.RUNNING:
                self.state = SchedulerState.STOPPING
            self._stop_requested = True
            self._cond.notify_all()

    def notify_wake(self) -> bool:
        """
        Hand a wake notification to the waiting loop.

        The handoff holds a single notification and only while the loop is
        waiting; anything else is dropped. Returns True if it was accepted.
        """
        with self._cond:
            if not self._waiting or self._pending_wake:
                logger.debug("Wake notification dropped, scheduler is busy or already woken")
                return False
            self._pending_wake = True
            self._cond.notify_all()
            return True

    @property
    def is_waiting(self) -> bool:
        with self._cond:
            return self._waiting

    def wait_stopped(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)

    # --- Loop ---

    def _update_coordinates(self, config: Config) -> None:
        if config.location == self._location:
            return

        if not config.location:
            logger.info("Location cleared, using fixed daylight hours")
            self.coordinates = None
            self._location = ""
            return

        try:
            self.coordinates = self.resolve(config.location, config.api_key)
            self._location = config.location
            logger.info(
                f"'{config.location}' is at {self.coordinates.latitude:.4f}, {self.coordinates.longitude:.4f}"
            )
        except RemoteLookupError as e:
            logger.warning(f"Failed to get coordinates for '{config.location}': {e}")

    def run_cycle(self) -> ScheduleDecision:
        """
        Recompute and apply the schedule once.

        Raises:
            ConfigError: If the configuration can no longer be read.
        """
        config = self.load(self.config_path)
        self._update_coordinates(config)

        decision = self.time_source(self.clock(), self.coordinates)
        theme_name = config.day_theme if decision.theme is Theme.LIGHT else config.night_theme

        try:
            self.apply(theme_name, config.theme_tool)
            logger.info(f"Applied {decision.theme.value} theme '{theme_name}'")
        except ThemeError as e:
            logger.warning(f"Failed to apply theme '{theme_name}': {e}")

        logger.info(f"Next theme change at {decision.next_instant:%Y-%m-%d %H:%M:%S}")
        return decision

    def wait_until(self, instant: datetime) -> WakeReason:
        """Block until `instant`, a wake notification or a stop request."""
        with self._cond:
            self._waiting = True
            try:
                while True:
                    # stop beats wake beats timer when several are ready
                    if self._stop_requested:
                        return WakeReason.STOP
                    if self._pending_wake:
                        self._pending_wake = False
                        return WakeReason.WAKE
                    remaining = (instant - self.clock()).total_seconds()
                    if remaining <= 0:
                        return WakeReason.TIMER
                    self._cond.wait(min(remaining, self.tick))
            finally:
                self._waiting = False

    def run(self) -> None:
        """Loop until stopped. A config read failure ends the loop and is kept in `error`."""
        with self._cond:
            if not self._stop_requested:
                self.state = SchedulerState.RUNNING
        cycle = 0
        try:
            while True:
                cycle += 1
                cycle_context.set(cycle)
                decision = self.run_cycle()
                reason = self.wait_until(decision.next_instant)
                if reason is WakeReason.STOP:
                    logger.info("Stopping scheduler")
                    break
                logger.info(f"Re-evaluating schedule ({reason.value})")
        except ConfigError as e:
            logger.critical(f"Failed to read config file, bailing: {e}")
            self.error = e
        finally:
            cycle_context.set(None)
            with self._cond:
                self.state = SchedulerState.STOPPED
            self._done.set()
