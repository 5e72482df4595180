from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import FrozenSet, Optional

from services.filters import FilterConfig


_WHITELIST_ENV = "OMRON_WHITELIST"
_COOLDOWN_ENV = "OMRON_COOLDOWN_SECONDS"
_TEST_MODE_ENV = "OMRON_TEST_MODE"
_MAX_DEVICES_ENV = "OMRON_STATE_MAX_DEVICES"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    whitelist: Optional[FrozenSet[str]]
    cooldown_seconds: float
    test_mode: bool
    state_max_devices: Optional[int]
    log_level: str

    def filter_config(self) -> FilterConfig:
        return FilterConfig(
            whitelist=self.whitelist,
            cooldown_seconds=self.cooldown_seconds,
            test_mode=self.test_mode,
        )


def _read_whitelist() -> Optional[FrozenSet[str]]:
    value = os.getenv(_WHITELIST_ENV)
    if value is None:
        return None
    entries = {item.strip() for item in value.split(",") if item.strip()}
    return frozenset(entries) or None


def _read_cooldown(default: float) -> float:
    value = os.getenv(_COOLDOWN_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if not candidate:
        return default
    return candidate in _TRUTHY


def _read_max_devices() -> Optional[int]:
    value = os.getenv(_MAX_DEVICES_ENV)
    if value is None:
        return None
    candidate = value.strip()
    if not candidate:
        return None
    try:
        parsed = int(candidate)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        whitelist=_read_whitelist(),
        cooldown_seconds=_read_cooldown(0.0),
        test_mode=_read_bool(_TEST_MODE_ENV, False),
        state_max_devices=_read_max_devices(),
        log_level=_read_log_level("INFO"),
    )
