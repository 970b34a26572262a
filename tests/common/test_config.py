from __future__ import annotations

import logging
from pathlib import Path

import pytest

from patchsync.common.logging import configure_logging
from patchsync.config import (
    GITHUB_API_URL,
    ConfigurationError,
    MissingConfigurationError,
    RetryPolicy,
    SyncConfig,
    env_list,
    get_github_config,
    get_sync_config,
    require_env_var,
    require_env_vars,
)


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_raises_when_any_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRESENT_VAR", "value")
    monkeypatch.delenv("MISSING_VAR", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["PRESENT_VAR", "MISSING_VAR"])

    assert "MISSING_VAR" in str(exc.value)
    assert "PRESENT_VAR" not in str(exc.value)


def test_require_env_var_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_var("EXAMPLE_VAR")


def test_missing_configuration_is_a_configuration_error() -> None:
    assert issubclass(MissingConfigurationError, ConfigurationError)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("left-pad", ("left-pad",)),
        ("left-pad, @scope/pkg", ("left-pad", "@scope/pkg")),
        ("left-pad\n\n@scope+pkg\r\n", ("left-pad", "@scope+pkg")),
        (" , ", ()),
    ],
)
def test_env_list_splits_on_commas_and_newlines(
    monkeypatch: pytest.MonkeyPatch, raw: str, expected: tuple[str, ...]
) -> None:
    monkeypatch.setenv("PATCHSYNC_FORCE", raw)

    assert env_list("PATCHSYNC_FORCE") == expected


def test_env_list_unset_is_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PATCHSYNC_FORCE", raising=False)

    assert env_list("PATCHSYNC_FORCE") == ()


def test_get_sync_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PATCHSYNC_FORCE", "left-pad")
    monkeypatch.setenv("PATCHSYNC_PACKAGES", "left-pad,right-pad")

    config = get_sync_config()

    assert config.force == frozenset({"left-pad"})
    assert config.packages == frozenset({"left-pad", "right-pad"})
    assert config.catalog_dir == Path("patches")
    assert config.base_branch == "main"


def test_get_sync_config_ignores_none_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PATCHSYNC_FORCE", raising=False)
    monkeypatch.delenv("PATCHSYNC_PACKAGES", raising=False)

    config = get_sync_config(base_branch=None, max_concurrency=3)

    assert config == SyncConfig(max_concurrency=3)


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_concurrency": 0},
        {"patch_dir": "//"},
        {"repositories": ("acme",)},
        {"repositories": ("acme/app/extra",)},
    ],
)
def test_sync_config_rejects_invalid_values(overrides: dict[str, object]) -> None:
    with pytest.raises(ConfigurationError):
        SyncConfig(**overrides)  # type: ignore[arg-type]


def test_get_github_config_builds_authenticated_resilience(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", " secret-token \n")
    monkeypatch.delenv("GITHUB_API_URL", raising=False)

    config = get_github_config()

    assert config.token == "secret-token"
    assert config.resilience.base_url == GITHUB_API_URL
    headers = dict(config.resilience.default_headers or {})
    assert headers["Authorization"] == "Bearer secret-token"
    assert headers["Accept"] == "application/vnd.github+json"
    assert config.resilience.ratelimit is not None
    assert "secret-token" not in repr(config)


def test_get_github_config_honours_api_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "token")
    monkeypatch.setenv("GITHUB_API_URL", "https://github.example.com/api/v3")

    assert get_github_config().resilience.base_url == "https://github.example.com/api/v3"


def test_get_github_config_requires_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        get_github_config()

    assert "GITHUB_TOKEN" in str(exc.value)


def test_configure_logging_shows_httpx_only_when_verbose() -> None:
    configure_logging(level=logging.INFO, force=True)

    assert logging.getLogger("httpx").level == logging.WARNING

    configure_logging(level=logging.DEBUG, force=True)

    assert logging.getLogger("httpx").level == logging.DEBUG


def test_retry_policy_never_replays_writes() -> None:
    methods = RetryPolicy().allowed_methods

    assert {"PUT", "POST", "PATCH"}.isdisjoint(methods)
    assert "GET" in methods
