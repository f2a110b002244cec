# src/nightlight/util/log.py: Structured logging with redaction.
# This module provides the logging setup for the service. When stderr is not a
# terminal (the usual case for a detached daemon) records are emitted as JSON
# lines via python-json-logger; interactively they are plain text. A
# contextvar carries the current scheduler cycle number into every record, and
# a filter masks the OpenWeatherMap API key wherever it would be printed.

import contextvars
import logging
import re
import sys
from logging.config import dictConfig

cycle_context = contextvars.ContextVar('cycle_context', default=None)

_APPID_RE = re.compile(r"(appid=)[^&\s]+", re.IGNORECASE)


class CycleFilter(logging.Filter):
    """Attach the current scheduler cycle to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.cycle = cycle_context.get()
        return True


class RedactingFilter(logging.Filter):
    """Masks the `appid=` query value in the rendered message.

    httpx logs every request URL at INFO through the record args, so the
    message is formatted first and the args dropped.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if _APPID_RE.search(message):
            record.msg = _APPID_RE.sub(r"\1[REDACTED]", message)
            record.args = None
        return True


def setup_logging(level: str = "INFO", json_format: bool | None = None):
    """
    Configure the root logger for the application.

    Args:
        level: Log level name, e.g. "INFO" or "DEBUG".
        json_format: Force JSON (True) or text (False). By default JSON is used
            whenever stderr is not a TTY.
    """
    if json_format is None:
        json_format = not sys.stderr.isatty()

    formatter = {
        '()': 'pythonjsonlogger.json.JsonFormatter',
        'format': '%(asctime)s %(name)s %(levelname)s %(cycle)s %(message)s',
    } if json_format else {
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    }

    dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'filters': {
            'redacting': {'()': RedactingFilter},
            'cycle': {'()': CycleFilter},
        },
        'formatters': {
            'default': formatter,
        },
        'handlers': {
            'stderr': {
                'class': 'logging.StreamHandler',
                'stream': 'ext://sys.stderr',
                'formatter': 'default',
                'filters': ['redacting', 'cycle'],
            },
        },
        'root': {
            'handlers': ['stderr'],
            'level': level.upper(),
        },
    })


def get_logger(name):
    return logging.getLogger(name)


def set_log_level(level: str):
    """Change the root level after the configuration has been read."""
    logging.getLogger().setLevel(level.upper())
