"""Tests for models.py (usage data structures)."""

from __future__ import annotations

from datetime import timedelta

import pytest

from quotaprobe.models import RateWindow
from quotaprobe.models import UsageSnapshot
from quotaprobe.models import format_reset_countdown
from quotaprobe.models import usage_to_color
from quotaprobe.models import validate_rate_window
from quotaprobe.models import validate_snapshot


class TestRateWindow:
    """Tests for RateWindow."""

    @pytest.mark.parametrize(
        ("used", "remaining"),
        [(0, 100), (35, 65), (100, 0), (120, 0), (-5, 100)],
    )
    def test_remaining_percent_is_clamped(self, used, remaining):
        """remaining_percent stays inside [0, 100] for any used value."""
        assert RateWindow(used_percent=used).remaining_percent() == remaining

    def test_time_until_reset(self, utc_now):
        """Returns the delta to resets_at."""
        window = RateWindow(used_percent=10, resets_at=utc_now + timedelta(hours=2))
        assert window.time_until_reset(utc_now) == timedelta(hours=2)

    def test_time_until_reset_past_is_zero(self, utc_now):
        """A reset in the past is reported as zero, not negative."""
        window = RateWindow(used_percent=10, resets_at=utc_now - timedelta(minutes=5))
        assert window.time_until_reset(utc_now) == timedelta(0)

    def test_time_until_reset_unknown(self):
        """No resets_at means no countdown."""
        assert RateWindow(used_percent=10).time_until_reset() is None

    def test_elapsed_ratio(self, utc_now):
        """Halfway through a 5h window yields 0.5."""
        window = RateWindow(
            used_percent=10,
            window_minutes=300,
            resets_at=utc_now + timedelta(minutes=150),
        )
        assert window.elapsed_ratio(utc_now) == pytest.approx(0.5)

    def test_elapsed_ratio_needs_window_length(self, utc_now):
        """Without window_minutes the ratio is unknown."""
        window = RateWindow(used_percent=10, resets_at=utc_now)
        assert window.elapsed_ratio(utc_now) is None


class TestUsageSnapshot:
    """Tests for UsageSnapshot."""

    def test_windows_skips_missing(self, utc_now):
        """windows() returns present windows in primary, secondary, tertiary order."""
        tertiary = RateWindow(used_percent=5)
        primary = RateWindow(used_percent=50)
        snapshot = UsageSnapshot(updated_at=utc_now, primary=primary, tertiary=tertiary)
        assert snapshot.windows() == (primary, tertiary)

    def test_is_stale(self, utc_now):
        """Snapshots older than the threshold are stale."""
        old = UsageSnapshot(updated_at=utc_now - timedelta(hours=1))
        assert old.is_stale(max_age_minutes=10) is True


class TestValidation:
    """Tests for validate_rate_window and validate_snapshot."""

    def test_valid_window(self):
        assert validate_rate_window(RateWindow(used_percent=50, window_minutes=300)) == []

    def test_out_of_range_percent(self):
        errors = validate_rate_window(RateWindow(used_percent=150))
        assert len(errors) == 1
        assert "out of range" in errors[0]

    def test_non_positive_window(self):
        errors = validate_rate_window(RateWindow(used_percent=5, window_minutes=0))
        assert "must be positive" in errors[0]

    def test_snapshot_needs_a_window(self, utc_now):
        """An empty snapshot is invalid."""
        assert validate_snapshot(UsageSnapshot(updated_at=utc_now)) == [
            "at least one rate window required"
        ]

    def test_valid_snapshot(self, sample_snapshot):
        assert validate_snapshot(sample_snapshot) == []


class TestFormatting:
    """Tests for format_reset_countdown and usage_to_color."""

    @pytest.mark.parametrize(
        ("delta", "expected"),
        [
            (None, ""),
            (timedelta(0), "now"),
            (timedelta(minutes=42), "42m"),
            (timedelta(hours=3, minutes=5), "3h 5m"),
            (timedelta(days=2, hours=4), "2d 4h"),
        ],
    )
    def test_format_reset_countdown(self, delta, expected):
        assert format_reset_countdown(delta) == expected

    @pytest.mark.parametrize(
        ("used", "color"),
        [(0, "green"), (49.9, "green"), (50, "yellow"), (79, "yellow"), (80, "red")],
    )
    def test_usage_to_color(self, used, color):
        assert usage_to_color(used) == color
