"""Application configuration helpers."""

from __future__ import annotations

from .env import env_list, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .github import GITHUB_API_URL, GitHubConfig, default_github_resilience, get_github_config
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .sync import SyncConfig, get_sync_config

__all__ = [
    "GITHUB_API_URL",
    "ConfigurationError",
    "GitHubConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SyncConfig",
    "default_github_resilience",
    "env_list",
    "get_github_config",
    "get_sync_config",
    "require_env_var",
    "require_env_vars",
]
