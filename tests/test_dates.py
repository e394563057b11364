"""Tests for forgeguard.dates — lenient timestamp parsing."""

import logging
from datetime import datetime, timedelta, timezone

from forgeguard.dates import (
    compare_timestamps,
    is_recent_date,
    iso_timestamp,
    parse_date_with_diagnostic,
    safe_parse_date,
)
from conftest import NOW


class TestSafeParseDate:
    def test_iso_with_z(self):
        dt = safe_parse_date("2024-03-15T10:30:00.250Z")
        assert dt == datetime(2024, 3, 15, 10, 30, 0, 250000, tzinfo=timezone.utc)

    def test_naive_iso_is_utc(self):
        assert safe_parse_date("2024-03-15T10:30:00").tzinfo == timezone.utc

    def test_unix_seconds_and_millis_agree(self):
        assert safe_parse_date(1_700_000_000) == safe_parse_date(1_700_000_000_000)

    def test_datetime_passthrough(self):
        assert safe_parse_date(NOW) == NOW

    def test_garbage_returns_now(self, caplog):
        with caplog.at_level(logging.WARNING, logger="forgeguard.dates"):
            assert safe_parse_date("not a date", now=NOW) == NOW
        assert caplog.records

    def test_wrong_type_returns_now(self):
        assert safe_parse_date(None, now=NOW) == NOW
        assert safe_parse_date(True, now=NOW) == NOW


class TestDiagnostic:
    def test_clean_value_has_no_diagnostic(self):
        _, diagnostic = parse_date_with_diagnostic("2024-01-01T00:00:00.000Z")
        assert diagnostic is None

    def test_fallback_is_reported(self):
        dt, diagnostic = parse_date_with_diagnostic("2024-13-45", now=NOW)
        assert dt == NOW
        assert "2024-13-45" in diagnostic


class TestIsRecentDate:
    def test_within_window(self):
        assert is_recent_date(NOW - timedelta(days=3), now=NOW)

    def test_outside_window(self):
        assert not is_recent_date(NOW - timedelta(days=8), now=NOW)

    def test_custom_window(self):
        assert is_recent_date(NOW - timedelta(days=20), days=30, now=NOW)

    def test_future_is_not_recent(self):
        assert not is_recent_date(NOW + timedelta(days=1), now=NOW)

    def test_invalid_counts_as_now(self):
        # the fallback masks bad data as "just now"
        assert is_recent_date("garbage", now=NOW)


def test_compare_timestamps_orders():
    stamps = ["2024-05-01T00:00:00.000Z", "2023-01-01T00:00:00.000Z", "2024-01-01T00:00:00.000Z"]
    assert compare_timestamps(stamps[0], stamps[1]) > 0
    assert compare_timestamps(stamps[1], stamps[2]) < 0
    assert compare_timestamps(stamps[0], stamps[0]) == 0


def test_iso_timestamp_millisecond_format():
    dt = datetime(2025, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc)
    assert iso_timestamp(dt) == "2025-01-02T03:04:05.678Z"
