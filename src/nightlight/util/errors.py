# src/nightlight/util/errors.py: Typed exceptions and exit codes.
# Every failure the service can surface maps to one of these types. The CLI
# turns the exit_code of whatever reaches it into the process exit status, so
# "another instance is running" and "invalid configuration" are
# distinguishable from the shell.

class NightlightError(Exception):
    """Base exception for the application."""
    exit_code = 1

class ConfigError(NightlightError):
    """Configuration file missing, unreadable or invalid."""
    exit_code = 2

class AlreadyRunningError(NightlightError):
    """The single-instance lock is held by another live process."""
    exit_code = 3

class LockError(NightlightError):
    """Any other failure while creating or releasing the lock file."""
    exit_code = 4

class RemoteLookupError(NightlightError):
    """Geocoding or sunrise/sunset lookup failed."""
    exit_code = 5

class ThemeError(NightlightError):
    """The theme tool failed, timed out or is missing."""
    exit_code = 6

class WakeSignalError(NightlightError):
    """The system bus could not be subscribed to."""
    exit_code = 7
