"""
Unit tests for tasketa.analytics.estimates.

Tests cover:
  • Missing estimate → unknown
  • remaining_hours precedence over target time
  • Target time in the future / past (clamped to zero)
  • Garbage field values degrade to unknown
"""

from datetime import datetime, timedelta, timezone

import pytest

from tasketa.analytics.estimates import to_hours
from tasketa.domain.models import Estimate

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestToHours:
    def test_no_estimate_is_unknown(self):
        assert to_hours(None, NOW) is None

    def test_empty_estimate_is_unknown(self):
        assert to_hours(Estimate(recorded_at=NOW), NOW) is None

    def test_remaining_hours_returned_verbatim(self):
        assert to_hours(Estimate(remaining_hours=12.5), NOW) == 12.5

    def test_zero_remaining_hours_is_known(self):
        assert to_hours(Estimate(remaining_hours=0), NOW) == 0.0

    def test_remaining_hours_wins_over_target(self):
        est = Estimate(remaining_hours=5, target_completion_time=NOW + timedelta(hours=50))
        assert to_hours(est, NOW) == 5

    def test_future_target_measured_from_now(self):
        est = Estimate(target_completion_time=NOW + timedelta(hours=36))
        assert to_hours(est, NOW) == pytest.approx(36.0)

    def test_past_target_clamps_to_zero(self):
        est = Estimate(target_completion_time=NOW - timedelta(days=3))
        assert to_hours(est, NOW) == 0.0

    def test_negative_hours_fall_back_to_target(self):
        est = Estimate(remaining_hours=-4, target_completion_time=NOW + timedelta(hours=2))
        assert to_hours(est, NOW) == pytest.approx(2.0)

    def test_negative_hours_without_target_is_unknown(self):
        assert to_hours(Estimate(remaining_hours=-1), NOW) is None

    def test_non_numeric_hours_is_unknown(self):
        assert to_hours(Estimate(remaining_hours="ten"), NOW) is None  # type: ignore[arg-type]

    def test_nan_hours_is_unknown(self):
        assert to_hours(Estimate(remaining_hours=float("nan")), NOW) is None

    def test_naive_target_read_as_utc(self):
        est = Estimate(target_completion_time=datetime(2024, 1, 1, 6, 0))
        assert to_hours(est, NOW) == pytest.approx(6.0)

    @pytest.mark.parametrize("offset_hours", [-1000, -1, 0, 1, 1000])
    def test_never_negative_from_target(self, offset_hours):
        est = Estimate(target_completion_time=NOW + timedelta(hours=offset_hours))
        assert to_hours(est, NOW) >= 0.0
