from __future__ import annotations

import pytest

from pybustrack.config import BusTrackConfig
from pybustrack.exceptions import BusTrackConfigError


def test_defaults() -> None:
    config = BusTrackConfig()

    assert config.base_url == "http://localhost:8080"
    assert config.max_notifications == 30
    assert config.animation_duration_ms == 8000
    assert config.effective_report_base_url == config.base_url


def test_trailing_slash_stripped() -> None:
    config = BusTrackConfig(base_url="https://bus.example.edu/", report_base_url="https://driver.example.edu/")

    assert config.base_url == "https://bus.example.edu"
    assert config.effective_report_base_url == "https://driver.example.edu"


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BUSTRACK_BASE_URL", "https://bus.example.edu")
    monkeypatch.setenv("BUSTRACK_TOKEN", "tok")
    monkeypatch.setenv("BUSTRACK_MAX_NOTIFICATIONS", "10")
    monkeypatch.setenv("BUSTRACK_REQUEST_TIMEOUT", "2.5")

    config = BusTrackConfig.from_env(max_notifications=5)

    assert config.base_url == "https://bus.example.edu"
    assert config.token == "tok"
    assert config.max_notifications == 5
    assert config.request_timeout == 2.5


def test_from_env_rejects_bad_number(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BUSTRACK_SYNC_RETRIES", "many")

    with pytest.raises(BusTrackConfigError, match="BUSTRACK_SYNC_RETRIES"):
        BusTrackConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"base_url": " "},
        {"max_notifications": 0},
        {"request_timeout": 0},
        {"sync_retries": -1},
        {"animation_duration_ms": 0},
    ],
)
def test_invalid_values_rejected(kwargs: dict[str, object]) -> None:
    with pytest.raises(BusTrackConfigError):
        BusTrackConfig(**kwargs)
