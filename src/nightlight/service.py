# src/nightlight/service.py: Service lifecycle for the nightlight daemon.
# This module wraps the scheduler with everything a long-running process
# needs: the single-instance lock, start-up validation of the configuration,
# SIGINT/SIGTERM handling for a graceful stop, and the optional system bus
# listener that re-evaluates the schedule after a resume. It also holds the
# helpers behind `--stop` and the detached background start.

import os
import signal
import subprocess
import sys
import threading
from pathlib import Path
from typing import Callable, Optional

from .config import load_config, validate_config
from .lockfile import LockFile
from .scheduler import Scheduler
from .util.errors import LockError, WakeSignalError
from .util.log import get_logger, set_log_level
from .util.paths import get_lock_dir, get_log_path
from .wake import DBusWakeListener, WakeDetector

logger = get_logger(__name__)

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ServiceLifecycle:
    """
    Start/stop wrapper around a Scheduler.

    `run()` blocks the calling (main) thread until the scheduler finishes,
    either because a stop was requested or because the config became
    unreadable; in the latter case the ConfigError is re-raised.
    """

    def __init__(
        self,
        config_path: Path,
        lock_dir: Optional[Path] = None,
        *,
        scheduler_factory: Callable[[Path], Scheduler] = Scheduler,
        listener_factory: Callable[[WakeDetector], DBusWakeListener] = DBusWakeListener,
        validate: Callable = validate_config,
    ):
        self.config_path = Path(config_path)
        self.lock_file = LockFile(lock_dir if lock_dir is not None else get_lock_dir())
        self.scheduler_factory = scheduler_factory
        self.listener_factory = listener_factory
        self.validate = validate
        self.scheduler: Optional[Scheduler] = None
        self._started = threading.Event()

    def request_stop(self) -> None:
        if self.scheduler is not None:
            self.scheduler.request_stop()

    def wait_started(self, timeout: Optional[float] = None) -> bool:
        return self._started.wait(timeout)

    def _handle_signal(self, signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, stopping the nightlight service")
        self.request_stop()

    def _start_listener(self, scheduler: Scheduler) -> Optional[DBusWakeListener]:
        listener = self.listener_factory(WakeDetector(scheduler.notify_wake))
        try:
            listener.start()
        except WakeSignalError as e:
            logger.warning(f"Resume detection disabled: {e}")
            return None
        return listener

    def _install_signal_handlers(self) -> dict:
        previous = {}
        if threading.current_thread() is threading.main_thread():
            for signum in STOP_SIGNALS:
                previous[signum] = signal.signal(signum, self._handle_signal)
        return previous

    def run(self) -> None:
        """
        Acquire the lock, validate the config and run the scheduler.

        Raises:
            AlreadyRunningError: If another instance holds the lock.
            LockError: If the lock directory is unusable.
            ConfigError: If the configuration is invalid at start-up or becomes
                unreadable while running.
        """
        handle = self.lock_file.acquire()
        try:
            config = load_config(self.config_path)
            set_log_level(config.log_level)
            self.validate(config)

            scheduler = self.scheduler_factory(self.config_path)
            self.scheduler = scheduler
            listener = self._start_listener(scheduler)
            previous_handlers = self._install_signal_handlers()

            logger.info("Starting the nightlight service")
            thread = threading.Thread(target=scheduler.run, name="nightlight-scheduler")
            try:
                thread.start()
                self._started.set()
                thread.join()
            finally:
                for signum, handler in previous_handlers.items():
                    signal.signal(signum, handler)
                if listener is not None:
                    listener.stop()

            if scheduler.error is not None:
                raise scheduler.error
            logger.info("Nightlight service stopped")
        finally:
            try:
                handle.release()
            except LockError as e:
                logger.error(f"Failed to release PID file: {e}")


def run_service(config_path: Path, lock_dir: Optional[Path] = None) -> None:
    ServiceLifecycle(config_path, lock_dir).run()


def stop_service(lock_dir: Optional[Path] = None) -> Optional[int]:
    """
    Send SIGINT to the running instance.

    Returns the signalled PID, or None if no instance is recorded or the
    recorded process no longer exists.

    Raises:
        LockError: If the PID file is unreadable or malformed.
    """
    lock_file = LockFile(lock_dir if lock_dir is not None else get_lock_dir())
    pid = lock_file.read_pid()
    if pid is None:
        logger.info("No running instance found")
        return None

    try:
        os.kill(pid, signal.SIGINT)
    except ProcessLookupError:
        logger.warning(f"Stale PID file {lock_file.pid_path}: process {pid} does not exist")
        return None
    except PermissionError as e:
        raise LockError(f"Not allowed to signal process {pid}: {e}") from e

    logger.info(f"Sent SIGINT to nightlight service (pid {pid})")
    return pid


def spawn_service(config_path: Path, log_path: Optional[Path] = None) -> int:
    """Start `nightlight --svc` as a detached background process and return its PID."""
    log_path = log_path or get_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    with open(log_path, "a") as log:
        proc = subprocess.Popen(
            [sys.executable, "-m", "nightlight", "--config", str(config_path), "--svc"],
            stdin=subprocess.DEVNULL,
            stdout=log,
            stderr=log,
            start_new_session=True,
        )
    logger.info(f"Started nightlight service process (pid {proc.pid}), logging to {log_path}")
    return proc.pid
