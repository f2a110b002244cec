# src/nightlight/themes.py: Subprocess wrappers for the desktop theme tool.
# The actual look-and-feel switch is delegated to an external executable
# (Plasma's `lookandfeeltool` by default). This module runs it with a hard
# timeout and maps every failure mode to a ThemeError so the scheduler can
# log it and carry on.

import subprocess
from typing import List

from .util.errors import ThemeError

DEFAULT_THEME_TOOL = "lookandfeeltool"
THEME_TOOL_TIMEOUT = 10


def run_theme_tool(
    tool: str,
    args: List[str],
    timeout: int = THEME_TOOL_TIMEOUT,
) -> subprocess.CompletedProcess:
    """
    Runs the theme tool with a timeout and error handling.

    Args:
        tool: Name or path of the executable.
        args: Arguments passed to the tool.
        timeout: The command timeout in seconds.

    Returns:
        The CompletedProcess object.

    Raises:
        ThemeError: If the tool is missing or not executable, exits non-zero,
            or times out.
    """
    try:
        return subprocess.run(
            [tool] + args,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True,
        )
    except FileNotFoundError:
        raise ThemeError(f"The '{tool}' command was not found. Is it installed and in your PATH?")
    except OSError as e:
        raise ThemeError(f"Could not run '{tool}': {e}") from e
    except subprocess.CalledProcessError as e:
        error_message = (e.stderr or e.stdout or "").strip()
        raise ThemeError(f"'{tool} {' '.join(args)}' exited with status {e.returncode}: {error_message}")
    except subprocess.TimeoutExpired:
        raise ThemeError(f"'{tool} {' '.join(args)}' timed out after {timeout} seconds.")


def apply_theme(name: str, tool: str = DEFAULT_THEME_TOOL) -> None:
    """Switch the desktop to the named theme."""
    run_theme_tool(tool, ["--apply", name])


def list_themes(tool: str = DEFAULT_THEME_TOOL) -> List[str]:
    """Return the theme names the tool knows about, one per output line."""
    result = run_theme_tool(tool, ["--list"])
    return [line.strip() for line in result.stdout.splitlines() if line.strip()]
