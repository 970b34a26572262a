"""Defaults for a patch synchronisation run."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path

from .env import env_list
from .errors import ConfigurationError

DEFAULT_CATALOG_DIR = Path("patches")
DEFAULT_PATCH_DIR = "patches"
DEFAULT_BASE_BRANCH = "main"


@dataclass(frozen=True, slots=True)
class SyncConfig:
    catalog_dir: Path = DEFAULT_CATALOG_DIR
    patch_dir: str = DEFAULT_PATCH_DIR
    base_branch: str = DEFAULT_BASE_BRANCH
    force: frozenset[str] = field(default_factory=frozenset)
    packages: frozenset[str] = field(default_factory=frozenset)
    repositories: tuple[str, ...] = ()
    max_concurrency: int = 1
    dry_run: bool = False

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ConfigurationError("max_concurrency must be at least 1")
        if not self.patch_dir.strip("/"):
            raise ConfigurationError("patch_dir must not be empty")
        for repository in self.repositories:
            owner, _, name = repository.partition("/")
            if not owner or not name or "/" in name:
                raise ConfigurationError(f"Invalid repository (expected owner/name): {repository}")


def get_sync_config(**overrides: object) -> SyncConfig:
    """Build a ``SyncConfig`` from environment defaults and explicit overrides.

    ``PATCHSYNC_FORCE`` and ``PATCHSYNC_PACKAGES`` hold comma or newline separated
    package names. Overrides whose value is ``None`` are ignored.
    """

    config = SyncConfig(
        force=frozenset(env_list("PATCHSYNC_FORCE")),
        packages=frozenset(env_list("PATCHSYNC_PACKAGES")),
    )
    effective = {key: value for key, value in overrides.items() if value is not None}
    return replace(config, **effective)  # type: ignore[arg-type]
