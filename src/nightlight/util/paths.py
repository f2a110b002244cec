# src/nightlight/util/paths.py: Well-known locations.
# Resolves where the configuration file and the single-instance lock live.
# platformdirs gives us the XDG locations on Linux; a system-wide config
# directory is honoured when the user has none of their own.

import os
from pathlib import Path
import platformdirs

APP_NAME = "nightlight"
CONFIG_FILENAME = "nightlight.yaml"
PID_FILENAME = "nightlight.pid"
SYSTEM_CONFIG_DIR = Path("/usr/local/share/nightlight")

def get_user_config_dir() -> Path:
    """Get the per-user config directory for the application."""
    return Path(platformdirs.user_config_dir(APP_NAME))

def get_lock_dir() -> Path:
    """Get the directory holding the PID/lock files."""
    return Path(platformdirs.user_runtime_dir(APP_NAME))

def get_log_path() -> Path:
    """Get the log file used by the detached background process."""
    return Path(platformdirs.user_log_dir(APP_NAME)) / "nightlight.log"

def get_default_config_path() -> Path:
    """
    Return the first usable config location.

    The user config directory wins. If it does not exist but the system-wide
    directory does and is readable, the system-wide file is used instead.
    """
    user_dir = get_user_config_dir()
    if not user_dir.is_dir() and SYSTEM_CONFIG_DIR.is_dir() and os.access(SYSTEM_CONFIG_DIR, os.R_OK):
        return SYSTEM_CONFIG_DIR / CONFIG_FILENAME
    return user_dir / CONFIG_FILENAME