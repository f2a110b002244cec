# tests/unit/test_config.py: Unit tests for configuration loading and validation.

import pytest
from pathlib import Path

from nightlight.config import EMPTY_CONFIG, Config, load_config, validate_config, write_empty_config
from nightlight.util.errors import ConfigError, ThemeError


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    return tmp_path / "nightlight.yaml"


def test_load_valid_config(config_file: Path):
    """Tests that a valid configuration file is loaded and parsed correctly."""
    config_file.write_text(
        "Location: Oslo, NO\n"
        "APIKey: abc123\n"
        "DayTheme: org.kde.breeze.desktop\n"
        "NightTheme: org.kde.breezedark.desktop\n"
    )

    config = load_config(config_file)

    assert config.location == "Oslo, NO"
    assert config.api_key == "abc123"
    assert config.day_theme == "org.kde.breeze.desktop"
    assert config.night_theme == "org.kde.breezedark.desktop"
    assert config.theme_tool == "lookandfeeltool"
    assert config.log_level == "INFO"


def test_empty_template_loads_as_blank_strings(config_file: Path):
    """Tests that the --init template parses with every value empty."""
    config_file.write_text(EMPTY_CONFIG)

    config = load_config(config_file)

    assert config == Config()
    assert config.location == ""
    assert config.day_theme == ""


def test_optional_keys(config_file: Path):
    config_file.write_text("DayTheme: a\nNightTheme: b\nThemeTool: /opt/bin/theme\nLogLevel: debug\n")

    config = load_config(config_file)

    assert config.theme_tool == "/opt/bin/theme"
    assert config.log_level == "debug"


def test_blank_optional_keys_use_defaults(config_file: Path):
    config_file.write_text("ThemeTool:\nLogLevel: '  '\n")

    config = load_config(config_file)

    assert config.theme_tool == "lookandfeeltool"
    assert config.log_level == "INFO"


def test_numeric_values_become_strings(config_file: Path):
    config_file.write_text("Location: 10115\nAPIKey: 12345\n")

    config = load_config(config_file)

    assert config.location == "10115"
    assert config.api_key == "12345"


def test_api_key_not_in_repr():
    assert "secret" not in repr(Config(api_key="secret"))


def test_load_config_not_found(tmp_path: Path):
    """Tests that a ConfigError is raised if the config file doesn't exist."""
    with pytest.raises(ConfigError, match="Configuration file not found"):
        load_config(tmp_path / "missing.yaml")


def test_load_config_bad_yaml(config_file: Path):
    config_file.write_text("Location: [unterminated\n")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(config_file)


def test_load_config_not_a_mapping(config_file: Path):
    config_file.write_text("- Location\n- APIKey\n")

    with pytest.raises(ConfigError, match="must contain a mapping"):
        load_config(config_file)


def test_config_validation_error(config_file: Path):
    """Tests that a ConfigError is raised on an invalid configuration."""
    config_file.write_text("DayTheme:\n  nested: value\n")

    with pytest.raises(ConfigError, match="Configuration validation failed"):
        load_config(config_file)


def test_write_empty_config(tmp_path: Path):
    path = tmp_path / "nested" / "nightlight.yaml"

    assert write_empty_config(path) == path
    assert path.read_text() == EMPTY_CONFIG


def test_write_empty_config_refuses_overwrite(config_file: Path):
    config_file.write_text("DayTheme: keep-me\n")

    with pytest.raises(ConfigError, match="already exists"):
        write_empty_config(config_file)

    assert config_file.read_text() == "DayTheme: keep-me\n"


def test_validate_config_ok():
    config = Config(day_theme="light", night_theme="dark")
    validate_config(config, available=["light", "dark", "other"])


def test_validate_config_empty_location_allowed(mocker):
    list_themes = mocker.patch("nightlight.config.list_themes", return_value=["light", "dark"])

    validate_config(Config(location="", day_theme="light", night_theme="dark", theme_tool="mytool"))

    list_themes.assert_called_once_with("mytool")


@pytest.mark.parametrize(
    "day, night, key",
    [("", "dark", "DayTheme"), ("light", "", "NightTheme")],
)
def test_validate_config_empty_theme(mocker, day, night, key):
    list_themes = mocker.patch("nightlight.config.list_themes")

    with pytest.raises(ConfigError, match=f"'{key}' is empty"):
        validate_config(Config(day_theme=day, night_theme=night))

    list_themes.assert_not_called()


def test_validate_config_unknown_theme():
    config = Config(day_theme="light", night_theme="midnight")

    with pytest.raises(ConfigError, match="theme 'midnight' does not exist"):
        validate_config(config, available=["light", "dark"])


def test_validate_config_tool_failure(mocker):
    mocker.patch("nightlight.config.list_themes", side_effect=ThemeError("not found"))

    with pytest.raises(ConfigError, match="could not list themes"):
        validate_config(Config(day_theme="light", night_theme="dark"))


def test_validate_config_tool_not_executable(tmp_path: Path):
    """Tests that an unusable ThemeTool is reported as an invalid configuration."""
    tool = tmp_path / "theme-switch"
    tool.write_text("#!/bin/sh\necho light\n")
    tool.chmod(0o644)

    with pytest.raises(ConfigError, match="could not list themes"):
        validate_config(Config(day_theme="light", night_theme="dark", theme_tool=str(tool)))
