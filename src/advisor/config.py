"""
Runtime settings for the advisory engine, overridable from the environment.
"""

import os
from dataclasses import dataclass
from typing import Optional

ENV_PREFIX = "ADVISOR_"


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    if raw.strip().lower() == "none":
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got '{raw}'")


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got '{raw}'")


@dataclass
class AdvisorConfig:
    """Configuration for the soil providers and the service."""
    provider_delay_s: float = 2.0
    provider_timeout_s: Optional[float] = 10.0
    simulation_seed: Optional[int] = None
    lab_api_url: Optional[str] = None
    log_level: str = "INFO"

    def __post_init__(self):
        if self.provider_delay_s < 0:
            raise ValueError("provider_delay_s must be >= 0")
        if self.provider_timeout_s is not None and self.provider_timeout_s <= 0:
            raise ValueError("provider_timeout_s must be > 0 (or None to disable)")
        self.log_level = self.log_level.upper()

    @classmethod
    def from_env(cls) -> "AdvisorConfig":
        """
        Build a config from ADVISOR_* environment variables.

        Unset variables keep the dataclass defaults. Setting
        ADVISOR_PROVIDER_TIMEOUT_S=none disables the provider timeout.
        """
        defaults = cls()
        return cls(
            provider_delay_s=_env_float("PROVIDER_DELAY_S", defaults.provider_delay_s),
            provider_timeout_s=_env_float("PROVIDER_TIMEOUT_S", defaults.provider_timeout_s),
            simulation_seed=_env_int("SIMULATION_SEED", defaults.simulation_seed),
            lab_api_url=os.environ.get(ENV_PREFIX + "LAB_API_URL") or None,
            log_level=os.environ.get(ENV_PREFIX + "LOG_LEVEL", defaults.log_level),
        )
