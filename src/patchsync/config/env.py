"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
import re
from typing import TYPE_CHECKING

from .errors import MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence

_LIST_SEPARATOR = re.compile(r"[,\r\n]+")


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Return the given environment variables or raise if any are missing/blank."""

    missing: list[str] = []
    values: dict[str, str] = {}
    for name in names:
        value = os.getenv(name)
        if value is None or not value.strip():
            missing.append(name)
            continue
        values[name] = value

    if missing:
        missing_list = ", ".join(sorted(missing))
        raise MissingConfigurationError(f"Missing configuration for: {missing_list}")

    return values


def require_env_var(name: str) -> str:
    """Return a required environment variable by name."""

    return require_env_vars([name])[name]


def env_list(name: str) -> tuple[str, ...]:
    """Split an optional comma/newline separated variable into stripped items."""

    raw = os.getenv(name)
    if not raw:
        return ()
    return tuple(item.strip() for item in _LIST_SEPARATOR.split(raw) if item.strip())
