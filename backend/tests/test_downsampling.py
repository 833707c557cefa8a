"""Tests for chart series downsampling."""

import math
from datetime import date, timedelta

import pytest

from core.errors import ValidationError
from models.portfolio import EquityCurvePoint
from services.equity_curve import epoch_millis
from utils.downsampling import downsample_config, downsample_decimate, downsample_lttb


def make_points(n):
    start = date(2020, 1, 1)
    points = []
    for i in range(n):
        day = start + timedelta(days=i)
        points.append(
            EquityCurvePoint(date=day, total_value=1000 + 100 * math.sin(i / 7), timestamp=epoch_millis(day))
        )
    return points


class TestLttb:
    @pytest.mark.parametrize("n,k", [(10, 2), (10, 3), (100, 7), (1000, 300), (731, 500), (5, 5)])
    def test_endpoints_and_length(self, n, k):
        points = make_points(n)
        sampled = downsample_lttb(points, k)
        assert sampled[0] == points[0]
        assert sampled[-1] == points[-1]
        assert len(sampled) <= k

    def test_exact_length_when_reducing(self):
        assert len(downsample_lttb(make_points(1000), 300)) == 300

    def test_short_series_untouched(self):
        points = make_points(4)
        assert downsample_lttb(points, 10) == points

    def test_order_preserved(self):
        sampled = downsample_lttb(make_points(500), 50)
        stamps = [p.timestamp for p in sampled]
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == len(stamps)

    def test_keeps_spike(self):
        """A single outlier carries the largest triangle in its bucket."""
        points = make_points(100)
        points[50] = points[50].model_copy(update={"total_value": 1_000_000})
        assert points[50] in downsample_lttb(points, 10)

    def test_custom_accessors(self):
        rows = [(i, i * i) for i in range(50)]
        sampled = downsample_lttb(rows, 5, x=lambda r: r[0], y=lambda r: r[1])
        assert sampled[0] == (0, 0)
        assert sampled[-1] == (49, 2401)

    @pytest.mark.parametrize("k", [1, 0, -3])
    def test_target_below_two_rejected(self, k):
        with pytest.raises(ValidationError):
            downsample_lttb(make_points(10), k)


class TestDecimate:
    """Every nth point plus the last one."""

    def test_endpoints_and_length(self):
        points = make_points(1000)
        sampled = downsample_decimate(points, 100)
        assert sampled[0] == points[0]
        assert sampled[-1] == points[-1]
        assert len(sampled) <= 100

    def test_target_below_two_rejected(self):
        with pytest.raises(ValidationError):
            downsample_decimate(make_points(10), 1)


class TestDownsampleConfig:
    """Series of up to 500 points stay as they are; longer ones get a 500 or 300 target."""

    def test_thresholds(self):
        assert downsample_config(500) is None
        assert downsample_config(501) == 500
        assert downsample_config(1000) == 500
        assert downsample_config(1001) == 300
