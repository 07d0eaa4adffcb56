from __future__ import annotations

from datetime import UTC, datetime

from pybustrack.ingestion.normalize import parse_timestamp, safe_float, safe_str, to_epoch_ms


def test_safe_float_rejects_garbage() -> None:
    assert safe_float("12.5") == 12.5
    assert safe_float("") is None
    assert safe_float("nan") is None
    assert safe_float(True) is None
    assert safe_float({"x": 1}) is None


def test_safe_str_strips_and_drops_blank() -> None:
    assert safe_str("  abc ") == "abc"
    assert safe_str("   ") is None
    assert safe_str(42) == "42"


def test_parse_timestamp_epoch_seconds() -> None:
    assert parse_timestamp(1_770_928_447) == datetime.fromtimestamp(1_770_928_447, tz=UTC)


def test_parse_timestamp_epoch_milliseconds() -> None:
    assert parse_timestamp(1_770_928_447_000) == datetime.fromtimestamp(1_770_928_447, tz=UTC)


def test_parse_timestamp_iso_z_suffix() -> None:
    assert parse_timestamp("2026-03-01T08:15:00Z") == datetime(2026, 3, 1, 8, 15, tzinfo=UTC)


def test_parse_timestamp_naive_iso_assumed_utc() -> None:
    assert parse_timestamp("2026-03-01T08:15:00") == datetime(2026, 3, 1, 8, 15, tzinfo=UTC)


def test_parse_timestamp_unparseable() -> None:
    assert parse_timestamp("soon") is None
    assert parse_timestamp(None) is None


def test_to_epoch_ms() -> None:
    assert to_epoch_ms(datetime(2026, 3, 1, tzinfo=UTC)) == 1_772_323_200_000


def test_parse_timestamp_out_of_range_epoch() -> None:
    assert parse_timestamp(1e25) is None
    assert parse_timestamp(-1e25) is None
    assert parse_timestamp("1e25") is None


def test_to_epoch_ms_truncates_sub_millisecond_digits() -> None:
    parsed = parse_timestamp("2026-03-01T00:00:00.1238Z")
    assert parsed is not None
    assert to_epoch_ms(parsed) == 1_772_323_200_123


def test_to_epoch_ms_exact_milliseconds() -> None:
    parsed = parse_timestamp(1_770_000_000_123)
    assert parsed is not None
    assert to_epoch_ms(parsed) == 1_770_000_000_123
