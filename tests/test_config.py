from __future__ import annotations

import pytest

from pytimeconditions.config import TimeConditionsConfig
from pytimeconditions.exceptions import TimeConditionConfigError


def test_defaults() -> None:
    config = TimeConditionsConfig()

    assert config.db_family == "timeconditions"
    assert config.time_zone is None
    assert config.refresh_interval == 60.0
    assert config.auto_refresh is True
    assert config.store_timeout == 10.0
    assert config.ami_url == "http://localhost:8088"


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TIMECOND_DB_FAMILY", "tc")
    monkeypatch.setenv("TIMECOND_TIME_ZONE", "Europe/Berlin")
    monkeypatch.setenv("TIMECOND_REFRESH_INTERVAL", "15")
    monkeypatch.setenv("TIMECOND_STORE_TIMEOUT", "2.5")
    monkeypatch.setenv("TIMECOND_AUTO_REFRESH", "off")
    monkeypatch.setenv("TIMECOND_AMI_USERNAME", "admin")

    config = TimeConditionsConfig.from_env()

    assert config.db_family == "tc"
    assert config.time_zone == "Europe/Berlin"
    assert config.refresh_interval == 15.0
    assert config.store_timeout == 2.5
    assert config.auto_refresh is False
    assert config.ami_username == "admin"


def test_explicit_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TIMECOND_REFRESH_INTERVAL", "15")
    monkeypatch.setenv("TIMECOND_AUTO_REFRESH", "no")

    config = TimeConditionsConfig.from_env(refresh_interval=5, auto_refresh=True)

    assert config.refresh_interval == 5
    assert config.auto_refresh is True


def test_unrecognised_bool_keeps_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TIMECOND_AUTO_REFRESH", "maybe")

    assert TimeConditionsConfig.from_env().auto_refresh is True


@pytest.mark.parametrize(
    "kwargs",
    [
        {"db_family": "  "},
        {"refresh_interval": -1},
        {"store_timeout": -0.5},
    ],
)
def test_invalid_values_rejected(kwargs: dict) -> None:
    with pytest.raises(TimeConditionConfigError):
        TimeConditionsConfig(**kwargs)
