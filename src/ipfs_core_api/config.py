"""Client configuration.

Defaults can be overridden from the environment:
- IPFS_PING_COUNT: default number of ping echo requests (positive integer)
- IPFS_RESOLVE_RECURSIVE: default for resolve's recursive flag
- IPFS_LOG_RESPONSES: log raw ping lines at DEBUG
"""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _env_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        number = int(value.strip())
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {value!r}") from e
    if number < 1:
        raise ValueError(f"{name} must be positive, got {number}")
    return number


@dataclass
class ClientConfig:
    """Defaults applied by CoreApiClient when a call leaves them unset."""

    ping_count: int = 10
    resolve_recursive: bool = True

    # Log each raw ping line at DEBUG
    log_responses: bool = True

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Build a config from IPFS_* environment variables."""
        defaults = cls()
        return cls(
            ping_count=_env_positive_int("IPFS_PING_COUNT", defaults.ping_count),
            resolve_recursive=_env_bool("IPFS_RESOLVE_RECURSIVE", defaults.resolve_recursive),
            log_responses=_env_bool("IPFS_LOG_RESPONSES", defaults.log_responses),
        )
