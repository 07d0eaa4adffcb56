"""Client configuration for pybustrack."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pybustrack._constants import (
    ANIMATION_DURATION_MS,
    BASE_URL,
    MAX_RETAINED_NOTIFICATIONS,
    RELOAD_PROMPT_AFTER_S,
    REPORT_INTERVAL_S,
    STALE_AFTER_S,
    STALENESS_INTERVAL_S,
)
from pybustrack.exceptions import BusTrackConfigError


@dataclasses.dataclass(frozen=True)
class BusTrackConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        Backend base URL serving notifications and the position feed.
    token : str or None
        Opaque bearer credential. Sent as ``Authorization: Bearer`` on
        REST calls and as the ``auth`` query parameter on the feed.
    report_base_url : str or None
        Base URL for driver location reports. Defaults to ``base_url``.
    store_path : str or None
        Path of the sqlite file holding the local notification cache.
        ``None`` keeps the cache in memory for the client's lifetime.
    max_notifications : int
        Number of notifications retained locally after each write.
    request_timeout : float
        Total timeout in seconds for a single REST request.
    sync_retries : int
        Extra attempts for a notification sync after a transport error.
    sync_retry_backoff : float
        Initial backoff in seconds between sync attempts (doubles each try).
    animation_duration_ms : int
        Duration of a marker transition between two position samples.
    staleness_interval : float
        Seconds between staleness evaluations.
    stale_after : float
        Seconds without a sample before the status turns stale.
    reload_prompt_after : float
        Seconds without a sample before a manual reload is suggested.
    report_interval : float
        Seconds between driver location reports.
    """

    base_url: str = BASE_URL
    token: str | None = None
    report_base_url: str | None = None
    store_path: str | None = None
    max_notifications: int = MAX_RETAINED_NOTIFICATIONS
    request_timeout: float = 15.0
    sync_retries: int = 2
    sync_retry_backoff: float = 0.5
    animation_duration_ms: int = ANIMATION_DURATION_MS
    staleness_interval: float = STALENESS_INTERVAL_S
    stale_after: float = STALE_AFTER_S
    reload_prompt_after: float = RELOAD_PROMPT_AFTER_S
    report_interval: float = REPORT_INTERVAL_S

    def __post_init__(self) -> None:
        if not self.base_url.strip():
            raise BusTrackConfigError("base_url must be non-empty")
        if self.max_notifications < 1:
            raise BusTrackConfigError(f"max_notifications must be positive, got {self.max_notifications}")
        if self.request_timeout <= 0:
            raise BusTrackConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.sync_retries < 0:
            raise BusTrackConfigError(f"sync_retries must be >= 0, got {self.sync_retries}")
        if self.animation_duration_ms <= 0:
            raise BusTrackConfigError(f"animation_duration_ms must be positive, got {self.animation_duration_ms}")
        # Trailing slashes would double up with endpoint paths.
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        if self.report_base_url is not None:
            object.__setattr__(self, "report_base_url", self.report_base_url.rstrip("/"))

    @property
    def effective_report_base_url(self) -> str:
        return self.report_base_url or self.base_url

    @classmethod
    def from_env(cls, **overrides: Any) -> BusTrackConfig:
        """Create configuration from environment variables.

        Reads ``BUSTRACK_BASE_URL``, ``BUSTRACK_TOKEN`` and the other
        optional ``BUSTRACK_*`` variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        BusTrackConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "BUSTRACK_BASE_URL": "base_url",
            "BUSTRACK_TOKEN": "token",
            "BUSTRACK_REPORT_BASE_URL": "report_base_url",
            "BUSTRACK_STORE_PATH": "store_path",
        }
        _ENV_INT_MAP = {
            "BUSTRACK_MAX_NOTIFICATIONS": "max_notifications",
            "BUSTRACK_SYNC_RETRIES": "sync_retries",
            "BUSTRACK_ANIMATION_DURATION_MS": "animation_duration_ms",
        }
        _ENV_FLOAT_MAP = {
            "BUSTRACK_REQUEST_TIMEOUT": "request_timeout",
            "BUSTRACK_SYNC_RETRY_BACKOFF": "sync_retry_backoff",
            "BUSTRACK_STALE_AFTER": "stale_after",
            "BUSTRACK_RELOAD_PROMPT_AFTER": "reload_prompt_after",
            "BUSTRACK_REPORT_INTERVAL": "report_interval",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = int(val)
            except ValueError as exc:
                raise BusTrackConfigError(f"{env_key} must be an integer, got {val!r}") from exc

        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = float(val)
            except ValueError as exc:
                raise BusTrackConfigError(f"{env_key} must be a number, got {val!r}") from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
