"""GitHub configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class GitHubConfig:
    """Holds GitHub API configuration values."""

    token: str
    resilience: ResilienceConfig

    def __repr__(self) -> str:
        return f"GitHubConfig(token='***', resilience={self.resilience!r})"


def default_github_resilience(
    token: str,
    *,
    base_url: str = GITHUB_API_URL,
) -> ResilienceConfig:
    return ResilienceConfig(
        name="github",
        base_url=base_url,
        timeout_seconds=GITHUB_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        default_headers={
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        },
    )


def get_github_config(*, resilience: ResilienceConfig | None = None) -> GitHubConfig:
    values = require_env_vars(("GITHUB_TOKEN",))
    token = values["GITHUB_TOKEN"].strip()
    base_url = os.getenv("GITHUB_API_URL") or GITHUB_API_URL
    return GitHubConfig(
        token=token,
        resilience=resilience or default_github_resilience(token, base_url=base_url),
    )
