# src/nightlight/lockfile.py: Single-instance guard backed by an OS file lock.
# The service holds an exclusive, non-blocking filelock on `<pid file>.lock`
# for its whole lifetime and publishes its process id in the PID file next to
# it. The PID file is only ever written while the lock is held, so a
# contender that fails to take the lock never touches it. The OS drops the
# lock when the holder dies, which turns a crash into a stale PID file that
# the next instance simply overwrites.

import os
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout

from .util.errors import AlreadyRunningError, LockError
from .util.fs import atomic_write, remove_file
from .util.log import get_logger
from .util.paths import PID_FILENAME

logger = get_logger(__name__)


class LockHandle:
    """A held lock plus the PID file it guards."""

    def __init__(self, pid_path: Path, lock: FileLock, pid: int):
        self.pid_path = pid_path
        self.pid = pid
        self._lock: Optional[FileLock] = lock

    @property
    def is_held(self) -> bool:
        return self._lock is not None and self._lock.is_locked

    def release(self) -> None:
        """
        Delete the PID file and drop the lock. Releasing twice is a no-op.

        Raises:
            LockError: If the PID file could not be removed. The lock itself is
                released regardless.
        """
        if self._lock is None:
            return

        lock, self._lock = self._lock, None
        try:
            remove_file(self.pid_path)
        except OSError as e:
            raise LockError(f"Failed to delete PID file '{self.pid_path}': {e}") from e
        finally:
            lock.release(force=True)
        logger.info(f"Released lock on {self.pid_path}")


class LockFile:
    """
    Creates LockHandles for PID files under a lock directory.

    The directory is passed in explicitly; it is created if missing.
    """

    def __init__(self, lock_dir: Path, filename: str = PID_FILENAME):
        self.lock_dir = Path(lock_dir)
        self.pid_path = self.lock_dir / filename

    @property
    def lock_path(self) -> Path:
        return self.pid_path.with_name(self.pid_path.name + ".lock")

    def acquire(self) -> LockHandle:
        """
        Take the exclusive lock and write our PID.

        Raises:
            AlreadyRunningError: If another live process holds the lock.
            LockError: On any other I/O failure.
        """
        try:
            self.lock_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LockError(f"Lock directory '{self.lock_dir}' is unusable: {e}") from e
        if not self.lock_dir.is_dir():
            raise LockError(f"Lock directory '{self.lock_dir}' is not a directory")

        lock = FileLock(self.lock_path)
        try:
            lock.acquire(timeout=0)
        except Timeout:
            raise AlreadyRunningError(
                f"Another instance is already running (see {self.pid_path})."
            )
        except OSError as e:
            raise LockError(f"Failed to lock '{self.lock_path}': {e}") from e

        pid = os.getpid()
        try:
            atomic_write(self.pid_path, str(pid))
        except OSError as e:
            lock.release(force=True)
            raise LockError(f"Failed to write PID file '{self.pid_path}': {e}") from e

        logger.info(f"Acquired lock on {self.pid_path} (pid {pid})")
        return LockHandle(self.pid_path, lock, pid)

    def read_pid(self) -> Optional[int]:
        """
        Return the PID recorded in the PID file, or None if there is no file.

        Raises:
            LockError: If the file exists but does not hold a process id.
        """
        try:
            content = self.pid_path.read_text().strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise LockError(f"Failed to read PID file '{self.pid_path}': {e}") from e

        try:
            return int(content)
        except ValueError:
            raise LockError(f"PID file '{self.pid_path}' does not contain a process id: {content!r}")
