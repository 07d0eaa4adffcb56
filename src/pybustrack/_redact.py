"""Scrub credentials from request parameters before they reach DEBUG logs."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_SENSITIVE_KEYS = frozenset({"auth", "authorization", "token", "password"})


def redact_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Copy of *params* with credential values masked."""
    return {key: "<redacted>" if key.lower() in _SENSITIVE_KEYS else value for key, value in (params or {}).items()}
