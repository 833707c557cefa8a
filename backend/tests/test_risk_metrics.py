"""Tests for risk and performance statistics."""

import math
from datetime import date, timedelta

import pytest

from services.equity_curve import epoch_millis
from services.risk_metrics import (
    cagr,
    compute_metrics,
    daily_returns,
    max_drawdown,
    price_curve,
    sharpe_ratio,
    volatility,
    ytd_return,
)
from models.portfolio import EquityCurvePoint
from helpers import make_index

D1 = date(2024, 1, 1)


def curve_of(values, start=D1):
    return [
        EquityCurvePoint(date=start + timedelta(days=i), total_value=v,
                         timestamp=epoch_millis(start + timedelta(days=i)))
        for i, v in enumerate(values)
    ]


class TestDailyReturns:
    def test_simple(self):
        assert daily_returns([100, 110, 99]) == pytest.approx([0.1, -0.1])

    def test_skips_zero_base(self):
        """The 0 → 100 step has no defined return and is dropped."""
        assert daily_returns([0, 100, 200]) == pytest.approx([1.0])

    def test_empty(self):
        assert daily_returns([]) == []


class TestVolatility:
    """Population stdev of daily returns, in percent."""

    def test_constant_returns(self):
        assert volatility([0.01, 0.01, 0.01]) == pytest.approx(0.0)

    def test_population_stdev_percent(self):
        # population stdev of [0.1, -0.1] is 0.1
        assert volatility([0.1, -0.1]) == pytest.approx(10.0)

    def test_annualized(self):
        assert volatility([0.1, -0.1], annualize=True) == pytest.approx(10.0 * math.sqrt(365))

    def test_too_few_returns(self):
        assert volatility([0.5]) == 0.0


class TestSharpe:
    def test_zero_stdev(self):
        assert sharpe_ratio([0.02, 0.02, 0.02]) == 0.0

    def test_sign(self):
        assert sharpe_ratio([0.03, 0.01, 0.02]) > 0
        assert sharpe_ratio([-0.03, -0.01, -0.02]) < 0

    def test_risk_free_lowers_ratio(self):
        returns = [0.03, 0.01, 0.02]
        assert sharpe_ratio(returns, risk_free_rate=0.05) < sharpe_ratio(returns)


class TestMaxDrawdown:
    def test_peak_to_trough(self):
        """[100, 120, 90, 150] → -25% from the 120 day to the 90 day."""
        curve = curve_of([100, 120, 90, 150])
        dd, peak, trough = max_drawdown([p.total_value for p in curve], [p.date for p in curve])
        assert dd == pytest.approx(-25.0)
        assert peak == curve[1].date
        assert trough == curve[2].date

    def test_monotonic_rise(self):
        assert max_drawdown([1, 2, 3], [D1, D1, D1]) == (0.0, None, None)

    def test_empty(self):
        assert max_drawdown([], []) == (0.0, None, None)

    def test_deepest_of_several(self):
        """-20% then -50%; the equal 100 on day 3 does not replace the day-1 peak."""
        values = [100, 80, 100, 50, 60]
        dates = [D1 + timedelta(days=i) for i in range(5)]
        dd, peak, trough = max_drawdown(values, dates)
        assert dd == pytest.approx(-50.0)
        assert peak == dates[0]
        assert trough == dates[3]


class TestCagr:
    def test_one_year_double(self):
        assert cagr(100, 200, 365) == pytest.approx(100.0)

    def test_guards(self):
        assert cagr(0, 200, 365) == 0.0
        assert cagr(100, 200, 0) == 0.0
        assert cagr(100, -5, 365) == 0.0

    def test_total_loss(self):
        assert cagr(100, 0, 365) == -100.0

    def test_overflow_is_guarded(self):
        """Doubling a billion-fold in one day would overflow exp()."""
        assert cagr(1, 1e300, 1) == 0.0


class TestYtdReturn:
    def test_from_first_point_of_year(self):
        """Base is the 50 on Jan 1 (not the 100 on Dec 31); 50 → 60 is +20%."""
        curve = curve_of([100, 50], start=date(2023, 12, 31)) + curve_of([60], start=date(2024, 1, 5))
        assert ytd_return(curve) == pytest.approx(20.0)

    def test_zero_base(self):
        assert ytd_return(curve_of([0, 10])) == 0.0

    def test_empty(self):
        assert ytd_return([]) == 0.0


class TestPriceCurve:
    def test_forward_fills_gaps(self):
        index = make_index({"BTC": {D1: 40000.0, date(2024, 1, 3): 30000.0}})
        days = [D1 + timedelta(days=i) for i in range(4)]
        curve = price_curve(index, "BTC", days)
        assert [p.total_value for p in curve] == [40000.0, 40000.0, 30000.0, 30000.0]
        assert curve[0].timestamp == epoch_millis(D1)

    def test_days_before_history_left_out(self):
        index = make_index({"ETH": {date(2024, 1, 2): 2000.0}})
        curve = price_curve(index, "ETH", [D1, date(2024, 1, 2)])
        assert [p.date for p in curve] == [date(2024, 1, 2)]

    def test_unknown_symbol_empty(self):
        assert price_curve(make_index(), "DOGE", [D1]) == []


class TestComputeMetrics:
    def test_scenario_curve(self):
        """Start 100, end 150: +50 total. The 120 → 90 dip is the deepest drawdown."""
        m = compute_metrics(curve_of([100, 120, 90, 150]))
        assert m.max_drawdown_percent == pytest.approx(-25.0)
        assert m.max_drawdown_from_date == date(2024, 1, 2)
        assert m.max_drawdown_to_date == date(2024, 1, 3)
        assert m.total_return == pytest.approx(50)
        assert m.total_return_percent == pytest.approx(50)
        assert m.ytd_return_percent == pytest.approx(50)

    def test_idempotent(self):
        curve = curve_of([100, 104, 98, 101, 130, 125])
        assert compute_metrics(curve) == compute_metrics(curve)

    def test_empty_curve(self):
        m = compute_metrics([], benchmark_curves={"BTC": []})
        assert m.volatility_percent == 0
        assert m.benchmark_ytd_returns == {"BTC": 0.0}

    def test_zero_start_never_nan(self):
        m = compute_metrics(curve_of([0, 0, 50, 100]))
        for value in (m.volatility_percent, m.cagr_percent, m.sharpe_ratio,
                      m.total_return_percent, m.ytd_return_percent):
            assert math.isfinite(value)
        assert m.total_return_percent == 0.0

    def test_benchmarks(self):
        """BTC falls 40000 → 30000 over the same days: -25% YTD."""
        curve = curve_of([100, 110])
        index = make_index({"BTC": {D1: 40000.0, date(2024, 1, 2): 30000.0}})
        bench = price_curve(index, "BTC", [p.date for p in curve])
        m = compute_metrics(curve, benchmark_curves={"BTC": bench})
        assert m.benchmark_ytd_returns["BTC"] == pytest.approx(-25.0)
