"""
forgeguard.config — Guard limits and paths, overridable from the environment.

    FORGEGUARD_MINUTE_LIMIT     credentials per rolling minute (default 10)
    FORGEGUARD_HOUR_LIMIT       credentials per rolling hour (default 100)
    FORGEGUARD_MAX_CREDENTIALS  per-owner credential ceiling (default 500)
    FORGEGUARD_STORAGE_PATH     directory for persisted limiter state
    FORGEGUARD_LOG_LEVEL        log level for the CLI (default WARNING)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from forgeguard.exceptions import ConfigError

DEFAULT_STORAGE_PATH = os.path.join("~", ".forgeguard")


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "")
    if not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


@dataclass
class GuardConfig:
    minute_limit: int = 10
    hour_limit: int = 100
    max_credentials: int = 500
    storage_path: str = DEFAULT_STORAGE_PATH
    log_level: str = "WARNING"

    @property
    def resolved_storage_path(self) -> str:
        return os.path.expanduser(self.storage_path)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "GuardConfig":
        if env is None:
            env = os.environ
        return cls(
            minute_limit=_positive_int(env, "FORGEGUARD_MINUTE_LIMIT", 10),
            hour_limit=_positive_int(env, "FORGEGUARD_HOUR_LIMIT", 100),
            max_credentials=_positive_int(env, "FORGEGUARD_MAX_CREDENTIALS", 500),
            storage_path=env.get("FORGEGUARD_STORAGE_PATH") or DEFAULT_STORAGE_PATH,
            log_level=env.get("FORGEGUARD_LOG_LEVEL") or "WARNING",
        )
