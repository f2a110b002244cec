# src/nightlight/config.py: Pydantic model for the service configuration.
# The configuration is a flat YAML mapping (Location, APIKey, DayTheme,
# NightTheme, plus a couple of optional knobs). This module loads and
# validates it, writes the blank first-run template, and checks that the
# configured themes actually exist on this desktop.

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .themes import DEFAULT_THEME_TOOL, list_themes
from .util.errors import ConfigError, ThemeError

EMPTY_CONFIG = """\
Location:
APIKey:
DayTheme:
NightTheme:
"""


class Config(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    location: str = Field("", alias="Location")
    api_key: str = Field("", alias="APIKey", repr=False)
    day_theme: str = Field("", alias="DayTheme")
    night_theme: str = Field("", alias="NightTheme")
    theme_tool: str = Field(DEFAULT_THEME_TOOL, alias="ThemeTool")
    log_level: str = Field("INFO", alias="LogLevel")

    @field_validator("location", "api_key", "day_theme", "night_theme", mode="before")
    @classmethod
    def _blank_is_empty(cls, value):
        # `Location:` with nothing after it parses as None
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("location", "day_theme", "night_theme")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("theme_tool", "log_level", mode="before")
    @classmethod
    def _blank_is_default(cls, value, info):
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return value


def load_config(path: Path) -> Config:
    """
    Load, parse, and validate the configuration file.

    Raises:
        ConfigError: If the file is not found, cannot be read, or fails validation.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(
            f"Configuration file not found at '{path}'. "
            f"Run 'nightlight --init' to create an empty one."
        )

    try:
        data = yaml.safe_load(path.read_text())
    except OSError as e:
        raise ConfigError(f"Failed to read configuration file '{path}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse configuration file '{path}': {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file '{path}' must contain a mapping of keys to values.")

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed:\n{e}") from e


def write_empty_config(path: Path) -> Path:
    """Write the blank template, refusing to clobber an existing file."""
    path = Path(path)
    if path.exists():
        raise ConfigError(f"Configuration file '{path}' already exists.")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(EMPTY_CONFIG)
    except OSError as e:
        raise ConfigError(f"Failed to write configuration file '{path}': {e}") from e
    return path


def validate_config(config: Config, available: Optional[list[str]] = None) -> None:
    """
    Check that both themes are set and known to the theme tool.

    An empty Location is accepted; it means the calendar heuristic is used
    for every schedule.

    Raises:
        ConfigError: If a theme is missing or unknown, or the tool cannot list themes.
    """
    for key, theme in (("DayTheme", config.day_theme), ("NightTheme", config.night_theme)):
        if not theme:
            raise ConfigError(f"Invalid configuration: '{key}' is empty.")

    if available is None:
        try:
            available = list_themes(config.theme_tool)
        except ThemeError as e:
            raise ConfigError(f"Invalid configuration: could not list themes: {e}") from e

    for theme in (config.day_theme, config.night_theme):
        if theme not in available:
            raise ConfigError(f"Invalid configuration: theme '{theme}' does not exist.")
