"""Errors raised while assembling the configuration of a sync run."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A CLI option or environment value cannot configure a sync run."""


class MissingConfigurationError(ConfigurationError):
    """A required environment variable such as ``GITHUB_TOKEN`` is unset or blank."""
