# src/nightlight/util/fs.py: Filesystem utilities.
# Small helpers for writing files that other processes read concurrently,
# such as the PID file consulted by `nightlight --stop`.

import os
from pathlib import Path


def atomic_write(path: str | Path, content: str):
    """Write content to a file atomically."""
    temp_path = f"{path}.tmp"
    with open(temp_path, "w") as f:
        f.write(content)
        f.flush()
        os.fsync(f.fileno())
    os.replace(temp_path, path)


def remove_file(path: str | Path) -> bool:
    """Remove a file, returning False if it was already gone."""
    try:
        os.remove(path)
    except FileNotFoundError:
        return False
    return True
