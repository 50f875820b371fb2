# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Centralized configuration for rule constants and environment variables."""

import os

from pydantic import BaseModel, Field

STEAL_ATTEMPT_ENV = "SIMX_STEAL_ATTEMPT"
STEAL_SUCCESS_ENV = "SIMX_STEAL_SUCCESS"
DEBUG_CHECKS_ENV = "SIMX_DEBUG_CHECKS"

_TRUTHY = {"1", "true", "yes", "on"}


class SimConfig(BaseModel):
    """Tunable constants for the game state machine.

    The steal thresholds are placeholders until real formulas are known.
    """
    balls_needed: int = Field(default=4, ge=1)
    strikes_needed: int = Field(default=3, ge=1)
    outs_needed: int = Field(default=3, ge=1)
    home_base: int = Field(default=4, ge=2)
    steal_attempt_threshold: float = Field(default=0.02, ge=0.0, le=1.0)
    steal_success_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    # Re-run the full consistency check after every mutation.
    debug_checks: bool = __debug__


def get_debug_checks() -> bool:
    """Return whether consistency re-checks are enabled."""
    raw = os.environ.get(DEBUG_CHECKS_ENV)
    if raw is None:
        return __debug__
    return raw.strip().lower() in _TRUTHY


def load_config(**overrides) -> SimConfig:
    """Build a SimConfig from defaults, environment variables, then *overrides*."""
    values: dict = {"debug_checks": get_debug_checks()}
    if STEAL_ATTEMPT_ENV in os.environ:
        values["steal_attempt_threshold"] = os.environ[STEAL_ATTEMPT_ENV]
    if STEAL_SUCCESS_ENV in os.environ:
        values["steal_success_threshold"] = os.environ[STEAL_SUCCESS_ENV]
    values.update(overrides)
    return SimConfig.model_validate(values)
