"""Startup-time exceptions."""

from __future__ import annotations


class ConfigError(Exception):
    """Configuration is missing or invalid; the process must not start."""
