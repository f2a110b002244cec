"""Switches the desktop between a day and a night theme at twilight."""

__version__ = "0.3.0"
