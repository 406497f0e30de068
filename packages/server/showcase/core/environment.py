"""
Runtime mode and database provider detection.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum

import structlog

log = structlog.get_logger()

MODE_VARIABLE = "APP_ENV"
BUILD_PHASE_VARIABLE = "BUILD_PHASE"


class Mode(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TEST = "test"


class Provider(str, Enum):
    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


def detect_environment(raw: str | None) -> Mode:
    """Map the runtime marker to a Mode.

    Matching is case-insensitive and exact. Anything unrecognized, including an absent
    marker, falls back to development with a warning. Never raises.
    """
    value = (raw or "").lower()
    for mode in Mode:
        if value == mode.value:
            return mode

    log.warning("environment.unknown_mode", value=raw, fallback=Mode.DEVELOPMENT.value)
    return Mode.DEVELOPMENT


def parse_provider(raw: str | None) -> Provider | None:
    """Return the Provider for a raw value, or None when it is not supported."""
    try:
        return Provider(raw)
    except ValueError:
        return None


def is_build_phase(raw: Mapping[str, str]) -> bool:
    """True while the app is being compiled or packaged rather than served."""
    return bool(raw.get(BUILD_PHASE_VARIABLE))
