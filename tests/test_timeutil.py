"""
Unit tests for window arithmetic and number formatting.
"""

from datetime import datetime, timezone

import pytest

from session_usage.core.formatting import (
    display_model_name,
    format_cost,
    format_count,
    provider_of,
    share_percent,
)
from session_usage.core.timeutil import (
    Period,
    add_days,
    cutoff_key,
    local_midnight,
    period_days,
    scan_floor_days,
    window_start,
)

NOW = datetime(2026, 3, 15, 14, 30, 5)


class TestWindows:
    """Test trailing window boundaries."""

    def test_period_days(self):
        """Verify period lengths, by enum and by label."""
        assert period_days(Period.WEEK) == 7
        assert period_days("30d") == 30
        assert period_days(Period.QUARTER) == 90

    def test_unknown_period_label(self):
        """Verify unknown labels are rejected."""
        with pytest.raises(ValueError):
            period_days("1y")

    def test_scan_floor_is_widest_window(self):
        """Verify the scan floor covers every window."""
        assert scan_floor_days() == 90

    def test_local_midnight(self):
        """Verify time of day is dropped."""
        assert local_midnight(NOW) == datetime(2026, 3, 15)

    def test_local_midnight_of_aware_datetime_is_naive(self):
        """Verify aware instants become naive local days."""
        result = local_midnight(datetime(2026, 3, 15, 12, tzinfo=timezone.utc))
        assert result.tzinfo is None
        assert result.hour == 0

    def test_add_days_crosses_month(self):
        """Verify calendar arithmetic across months."""
        assert add_days(datetime(2026, 3, 1), -1) == datetime(2026, 2, 28)

    def test_window_includes_today(self):
        """Verify an N-day window starts N-1 days before today."""
        assert window_start(7, NOW) == datetime(2026, 3, 9)
        assert cutoff_key(7, NOW) == "2026-03-09"
        assert cutoff_key(1, NOW) == "2026-03-15"
        assert cutoff_key(90, NOW) == "2025-12-16"


class TestFormatting:
    """Test count and cost formatting."""

    @pytest.mark.parametrize("value,expected", [
        (0, "0"),
        (7, "7"),
        (1234, "1,234"),
        (12_345, "12.3K"),
        (2_500_000, "2.5M"),
        (3_000_000_000, "3.0B"),
        (float("nan"), "0"),
    ])
    def test_format_count(self, value, expected):
        """Verify suffixes kick in at the right sizes."""
        assert format_count(value) == expected

    def test_format_cost(self):
        """Verify dollar formatting."""
        assert format_cost(1.5) == "$1.50"
        assert format_cost(0.1234, 3) == "$0.123"

    def test_model_key_parts(self):
        """Verify provider prefix handling."""
        assert display_model_name("anthropic/claude-opus") == "claude-opus"
        assert display_model_name("claude-opus") == "claude-opus"
        assert provider_of("openai/gpt-5") == "openai"
        assert provider_of("openai") == "openai"

    def test_share_percent(self):
        """Verify half-up rounding and empty totals."""
        assert share_percent(1, 8) == 13
        assert share_percent(1, 3) == 33
        assert share_percent(5, 0) == 0
        assert share_percent(3, 3) == 100
