from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from patchsync.config import GitHubConfig, ResilienceConfig
from tests.support.fake_github import BASE_URL, FakeGitHub

if TYPE_CHECKING:
    from collections.abc import Callable

    from patchsync.adapters.http_resilience import ResilientClient


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def github_config() -> GitHubConfig:
    return GitHubConfig(
        token="test-token",
        resilience=ResilienceConfig(name="github-test", base_url=BASE_URL),
    )


@pytest.fixture
def client_factory(fake_github: FakeGitHub) -> Callable[[ResilienceConfig], ResilientClient]:
    return fake_github.client_factory()
