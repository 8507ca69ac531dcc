"""Environment-driven settings for OpenSubstances."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional

from .errors import InvalidArgumentError

ENV_PREFIX = "OPENSUBSTANCES_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _env_flag(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise InvalidArgumentError(name, raw, "a boolean such as 1/0, true/false, yes/no")


def _env_positive_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        parsed = float(raw)
    except ValueError as exc:
        raise InvalidArgumentError(name, raw, "a positive number") from exc
    if parsed <= 0:
        raise InvalidArgumentError(name, raw, "a positive number")
    return parsed


@dataclass(frozen=True)
class Settings:
    """Library-wide defaults.

    Attributes:
        log_level: Logging level applied by the CLI.
        standard_temperature: Kelvin used when a material has no temperature.
        standard_pressure: kPa used for density lookups without an explicit pressure.
        ancestor_fallback: Decode unknown discriminators as their nearest ancestor.
        always_use_store: Skip the built-in catalog and consult only the external store.

    Example:
        >>> Settings.from_env({"OPENSUBSTANCES_STANDARD_PRESSURE": "100"}).standard_pressure
        100.0
    """

    log_level: str = "WARNING"
    standard_temperature: float = 273.15
    standard_pressure: float = 101.325
    ancestor_fallback: bool = False
    always_use_store: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        source = os.environ if env is None else env
        log_level = source.get(f"{ENV_PREFIX}LOG_LEVEL", cls.log_level).strip().upper()
        if log_level not in _LOG_LEVELS:
            raise InvalidArgumentError(f"{ENV_PREFIX}LOG_LEVEL", log_level, sorted(_LOG_LEVELS))
        return cls(
            log_level=log_level,
            standard_temperature=_env_positive_float(
                source, f"{ENV_PREFIX}STANDARD_TEMPERATURE", cls.standard_temperature
            ),
            standard_pressure=_env_positive_float(
                source, f"{ENV_PREFIX}STANDARD_PRESSURE", cls.standard_pressure
            ),
            ancestor_fallback=_env_flag(source, f"{ENV_PREFIX}ANCESTOR_FALLBACK"),
            always_use_store=_env_flag(source, f"{ENV_PREFIX}ALWAYS_USE_STORE"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return settings read once from the process environment."""
    return Settings.from_env()
