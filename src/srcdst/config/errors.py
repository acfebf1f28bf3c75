"""Errors raised while loading controller settings."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A controller setting (AWS retries, resync period, marker retry) has an invalid value."""


class MissingConfigurationError(ConfigurationError):
    """A required setting, such as the AWS region, is absent or blank."""
