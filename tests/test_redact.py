from __future__ import annotations

from pybustrack._redact import redact_params


def test_redact_params_masks_credentials() -> None:
    redacted = redact_params({"busNo": "12", "auth": "secret-token", "Authorization": "Bearer abc"})

    assert redacted == {"busNo": "12", "auth": "<redacted>", "Authorization": "<redacted>"}


def test_redact_params_handles_missing_params() -> None:
    assert redact_params(None) == {}


def test_redact_params_does_not_mutate_input() -> None:
    params = {"after": "5", "token": "t"}

    redact_params(params)

    assert params["token"] == "t"
