"""Client configuration for pytimeconditions."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pytimeconditions._constants import DEFAULT_DB_FAMILY, DEFAULT_REFRESH_INTERVAL, DEFAULT_STORE_TIMEOUT
from pytimeconditions.exceptions import TimeConditionConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class TimeConditionsConfig:
    """Client configuration.

    Parameters
    ----------
    db_family : str
        AstDB family under which condition definitions are stored.
    time_zone : str or None
        IANA time zone used as the reference frame for "now".  ``None``
        uses the host's local time.  Instants passed explicitly by the
        caller are never converted.
    refresh_interval : float
        Seconds between periodic status recomputations.
    auto_refresh : bool
        Start the periodic recompute tick when the client is entered.
    store_timeout : float
        Seconds to wait for a single store call before failing the
        mutation.  ``0`` disables the timeout.
    ami_url : str
        Base URL of the Asterisk HTTP manager interface.
    ami_username : str
        AMI user name.
    ami_secret : str
        AMI secret.
    """

    db_family: str = DEFAULT_DB_FAMILY
    time_zone: str | None = None
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    auto_refresh: bool = True
    store_timeout: float = DEFAULT_STORE_TIMEOUT
    ami_url: str = "http://localhost:8088"
    ami_username: str = ""
    ami_secret: str = ""

    def __post_init__(self) -> None:
        if not self.db_family.strip():
            raise TimeConditionConfigError("db_family must be non-empty")
        if self.refresh_interval < 0:
            raise TimeConditionConfigError("refresh_interval must be >= 0")
        if self.store_timeout < 0:
            raise TimeConditionConfigError("store_timeout must be >= 0")

    @classmethod
    def from_env(cls, **overrides: Any) -> TimeConditionsConfig:
        """Create configuration from environment variables.

        Reads the optional ``TIMECOND_*`` variables.  Explicit keyword
        arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "TIMECOND_DB_FAMILY": "db_family",
            "TIMECOND_TIME_ZONE": "time_zone",
            "TIMECOND_AMI_URL": "ami_url",
            "TIMECOND_AMI_USERNAME": "ami_username",
            "TIMECOND_AMI_SECRET": "ami_secret",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # Numeric fields, handled separately
        interval_env = env.get("TIMECOND_REFRESH_INTERVAL")
        if interval_env is not None and "refresh_interval" not in overrides:
            config_kwargs["refresh_interval"] = float(interval_env)

        timeout_env = env.get("TIMECOND_STORE_TIMEOUT")
        if timeout_env is not None and "store_timeout" not in overrides:
            config_kwargs["store_timeout"] = float(timeout_env)

        if "auto_refresh" not in overrides:
            config_kwargs["auto_refresh"] = _env_bool(env.get("TIMECOND_AUTO_REFRESH"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
