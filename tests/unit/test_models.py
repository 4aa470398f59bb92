"""Tests for coinfolio.core.models."""

import pytest
from pydantic import ValidationError

from coinfolio.core.models import (
    Asset,
    ChartPoint,
    PortfolioAsset,
    PortfolioMetrics,
    PricePoint,
    PriceSeries,
    TimeRange,
    time_range_days,
)


class TestAsset:
    def test_valid_construction(self, bitcoin):
        assert bitcoin.id == "bitcoin"
        assert bitcoin.sparkline_7d is None

    def test_id_normalized(self):
        a = Asset(id="  Bitcoin ", symbol="btc", name="Bitcoin", current_price=1.0)
        assert a.id == "bitcoin"

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError, match="must not be empty"):
            Asset(id="  ", symbol="x", name="X", current_price=1.0)

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError, match=">= 0"):
            Asset(id="x", symbol="x", name="X", current_price=-1.0)

    def test_negative_market_cap_rejected(self):
        with pytest.raises(ValidationError):
            Asset(id="x", symbol="x", name="X", current_price=1.0, market_cap=-5)

    def test_frozen(self, bitcoin):
        with pytest.raises(ValidationError):
            bitcoin.current_price = 1.0


class TestPortfolioAsset:
    def test_extends_asset(self, sample_portfolio):
        btc = sample_portfolio[0]
        assert isinstance(btc, Asset)
        assert btc.allocation == 50.0
        assert btc.value == 5000.0

    def test_defaults(self):
        a = PortfolioAsset(id="x", symbol="x", name="X", current_price=1.0)
        assert a.allocation == 0.0
        assert a.value == 0.0


class TestPriceSeries:
    def test_from_pairs_sorts(self):
        s = PriceSeries.from_pairs("bitcoin", [[3000, 3.0], [1000, 1.0], [2000, 2.0]])
        assert s.timestamps() == [1000, 2000, 3000]
        assert s.points[0] == PricePoint(timestamp=1000, price=1.0)

    def test_from_pairs_coerces_float_timestamps(self):
        s = PriceSeries.from_pairs("bitcoin", [[1.7e12, 10]])
        assert s.points[0].timestamp == 1_700_000_000_000
        assert isinstance(s.points[0].price, float)

    def test_unordered_points_rejected(self):
        with pytest.raises(ValidationError, match="non-decreasing"):
            PriceSeries(
                asset_id="x",
                points=[PricePoint(timestamp=2, price=1.0), PricePoint(timestamp=1, price=1.0)],
            )

    def test_equal_timestamps_allowed(self):
        s = PriceSeries(
            asset_id="x",
            points=[PricePoint(timestamp=1, price=1.0), PricePoint(timestamp=1, price=2.0)],
        )
        assert len(s.points) == 2

    def test_is_empty(self):
        assert PriceSeries(asset_id="x").is_empty
        assert not PriceSeries.from_pairs("x", [(1, 1.0)]).is_empty


class TestTimeRangeDays:
    @pytest.mark.parametrize(
        "label,days",
        [
            (TimeRange.ONE_DAY, 1),
            (TimeRange.ONE_WEEK, 7),
            (TimeRange.ONE_MONTH, 30),
            (TimeRange.THREE_MONTHS, 90),
            (TimeRange.ONE_YEAR, 365),
            ("30D", 30),
            ("2W", 7),
        ],
    )
    def test_mapping(self, label, days):
        assert time_range_days(label) == days


class TestDefaults:
    def test_metrics_zero(self):
        m = PortfolioMetrics()
        assert (m.total_value, m.total_return, m.total_return_percentage, m.volatility) == (
            0.0,
            0.0,
            0.0,
            0.0,
        )

    def test_chart_point_defaults(self):
        row = ChartPoint(timestamp=1, date="1970-01-01T00:00:00.001Z")
        assert row.prices == {}
        assert row.portfolio_value is None
