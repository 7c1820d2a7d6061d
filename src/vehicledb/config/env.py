"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import InvalidConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence


def optional_env_var(name: str) -> str | None:
    """Return the stripped value of ``name``, or ``None`` when unset or blank."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Return the given environment variables or raise if any are missing/blank."""

    missing: list[str] = []
    values: dict[str, str] = {}
    for name in names:
        value = optional_env_var(name)
        if value is None:
            missing.append(name)
            continue
        values[name] = value

    if missing:
        missing_list = ", ".join(sorted(missing))
        raise MissingConfigurationError(f"Missing configuration for: {missing_list}")

    return values


def env_positive_int(name: str, default: int) -> int:
    value = optional_env_var(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise InvalidConfigurationError(name, value, "a positive integer") from None
    if parsed <= 0:
        raise InvalidConfigurationError(name, value, "a positive integer")
    return parsed


def env_positive_float(name: str, default: float) -> float:
    value = optional_env_var(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        raise InvalidConfigurationError(name, value, "a positive number") from None
    if parsed <= 0:
        raise InvalidConfigurationError(name, value, "a positive number")
    return parsed


def env_choice(name: str, default: str, choices: Collection[str]) -> str:
    """Return ``name`` upper-cased if it is one of ``choices``."""

    value = optional_env_var(name)
    if value is None:
        return default
    normalized = value.upper().replace("-", " ").replace("_", " ")
    if normalized not in choices:
        raise InvalidConfigurationError(name, value, " | ".join(sorted(choices)))
    return normalized
