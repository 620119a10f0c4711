"""Tests for trades and the return aggregator — normalization, filters, alignment."""

import math
from datetime import date, datetime, timedelta

import numpy as np
import pytest

from tail_copula.aggregation import AlignedStrategyReturns, aggregate_and_align_returns
from tail_copula.config import DateBasis, Normalization, TailRiskOptions
from tail_copula.trades import Trade, filter_trades, normalize_return


D0 = date(2024, 3, 1)


# ── Helpers ──────────────────────────────────────────────────────────────

def _trade(strategy="Iron Condor", day=0, pl=100.0, **kwargs):
    """Trade opened D0 + day."""
    return Trade(strategy=strategy, date_opened=D0 + timedelta(days=day), pl=pl, **kwargs)


def _aggregate(trades, normalization=Normalization.RAW, basis=DateBasis.OPENED):
    return aggregate_and_align_returns(trades, normalization, basis)


# ── Trade ────────────────────────────────────────────────────────────────

class TestTrade:
    def test_opened_date(self):
        assert _trade(day=2).trade_date(DateBasis.OPENED) == date(2024, 3, 3)

    def test_datetime_truncated_to_day(self):
        t = Trade(strategy="S", date_opened=datetime(2024, 3, 1, 15, 45), pl=1.0)
        assert t.trade_date(DateBasis.OPENED) == date(2024, 3, 1)

    def test_missing_close_date(self):
        assert _trade().trade_date(DateBasis.CLOSED) is None

    def test_close_date(self):
        t = _trade(date_closed=datetime(2024, 3, 9, 10, 0))
        assert t.trade_date(DateBasis.CLOSED) == date(2024, 3, 9)

    def test_frozen(self):
        t = _trade()
        with pytest.raises(AttributeError):
            t.pl = 5.0


# ── Normalization ────────────────────────────────────────────────────────

class TestNormalizeReturn:
    def test_raw(self):
        assert normalize_return(_trade(pl=-250.0), Normalization.RAW) == -250.0

    def test_margin(self):
        t = _trade(pl=100.0, margin_req=2000.0)
        assert normalize_return(t, Normalization.MARGIN) == pytest.approx(0.05)

    def test_zero_margin_is_undefined(self):
        assert normalize_return(_trade(margin_req=0.0), Normalization.MARGIN) is None

    def test_missing_margin_is_undefined(self):
        assert normalize_return(_trade(), Normalization.MARGIN) is None

    def test_nan_margin_is_undefined(self):
        t = _trade(margin_req=float("nan"))
        assert normalize_return(t, Normalization.MARGIN) is None

    def test_notional(self):
        t = _trade(pl=50.0, opening_price=2.5, num_contracts=10)
        assert normalize_return(t, Normalization.NOTIONAL) == pytest.approx(2.0)

    def test_notional_uses_absolute_value(self):
        """Credit trades carry a negative opening price."""
        t = _trade(pl=50.0, opening_price=-2.5, num_contracts=10)
        assert normalize_return(t, Normalization.NOTIONAL) == pytest.approx(2.0)

    def test_zero_notional_is_undefined(self):
        t = _trade(opening_price=2.5, num_contracts=0)
        assert normalize_return(t, Normalization.NOTIONAL) is None

    def test_non_finite_pl(self):
        assert normalize_return(_trade(pl=float("inf")), Normalization.RAW) is None
        assert normalize_return(_trade(pl=float("nan")), Normalization.RAW) is None


# ── Filters ──────────────────────────────────────────────────────────────

class TestFilterTrades:
    def test_no_filters(self):
        trades = [_trade(day=i) for i in range(5)]
        assert filter_trades(trades, TailRiskOptions().resolved()) == trades

    def test_ticker_filter_case_insensitive(self):
        trades = [
            _trade(legs="SPX 4500P / 4450P"),
            _trade(legs="qqq 380C"),
            _trade(legs=""),
        ]
        opts = TailRiskOptions(ticker_filter="spx").resolved()
        assert filter_trades(trades, opts) == [trades[0]]

    def test_strategy_filter(self):
        trades = [_trade("A"), _trade("B"), _trade("C"), _trade(None)]
        opts = TailRiskOptions(strategy_filter=("A", "C")).resolved()
        assert [t.strategy for t in filter_trades(trades, opts)] == ["A", "C"]

    def test_date_range_inclusive(self):
        trades = [_trade(day=i) for i in range(10)]
        opts = TailRiskOptions(date_from=D0 + timedelta(days=2),
                               date_to=D0 + timedelta(days=4)).resolved()
        kept = filter_trades(trades, opts)
        assert [t.trade_date(DateBasis.OPENED) for t in kept] == [
            D0 + timedelta(days=2), D0 + timedelta(days=3), D0 + timedelta(days=4),
        ]

    def test_date_range_includes_whole_end_day(self):
        t = Trade(strategy="S", date_opened=datetime(2024, 3, 5, 23, 30), pl=1.0)
        opts = TailRiskOptions(date_to=date(2024, 3, 5)).resolved()
        assert filter_trades([t], opts) == [t]

    def test_date_range_uses_close_basis(self):
        open_only = _trade(day=1)
        closed = _trade(day=1, date_closed=D0 + timedelta(days=20))
        opts = TailRiskOptions(date_basis="closed",
                               date_from=D0 + timedelta(days=10)).resolved()
        assert filter_trades([open_only, closed], opts) == [closed]


# ── Aggregation ──────────────────────────────────────────────────────────

class TestAggregateAndAlign:
    def test_same_day_trades_are_summed(self):
        aligned = _aggregate([
            _trade("A", 0, 100.0), _trade("A", 0, -30.0), _trade("B", 0, 5.0),
        ])
        assert aligned.returns[0, 0] == pytest.approx(70.0)

    def test_union_calendar_sorted(self):
        aligned = _aggregate([_trade("A", 5), _trade("B", 1), _trade("A", 3)])
        assert aligned.dates == tuple(D0 + timedelta(days=d) for d in (1, 3, 5))
        assert aligned.strategies == ("A", "B")

    def test_zero_padding_matches_mask(self):
        """Non-trading cells are zero and masked out."""
        aligned = _aggregate([_trade("A", 0, 1.0), _trade("A", 1, 2.0), _trade("B", 1, 3.0)])
        np.testing.assert_array_equal(aligned.traded_mask, [[True, True], [False, True]])
        assert aligned.returns[1, 0] == 0.0
        assert np.all(aligned.returns[~aligned.traded_mask] == 0.0)

    def test_zero_pl_day_still_traded(self):
        aligned = _aggregate([_trade("A", 0, 0.0), _trade("B", 0, 1.0)])
        assert aligned.traded_mask[0, 0]

    def test_skips_trades_without_strategy(self):
        aligned = _aggregate([_trade("A"), _trade("B"), _trade(None, 3), _trade("   ", 4)])
        assert aligned.strategies == ("A", "B")
        assert aligned.n_days == 1

    def test_skips_undefined_normalization(self):
        """A zero-margin trade is dropped, not counted as a zero return."""
        trades = [
            _trade("A", 0, 100.0, margin_req=1000.0),
            _trade("A", 1, 100.0, margin_req=0.0),
            _trade("B", 0, 50.0, margin_req=500.0),
        ]
        aligned = _aggregate(trades, Normalization.MARGIN)
        assert aligned.n_days == 1
        np.testing.assert_allclose(aligned.returns[:, 0], [0.1, 0.1])

    def test_closed_basis_skips_open_trades(self):
        trades = [
            _trade("A", 0, date_closed=D0 + timedelta(days=3)),
            _trade("B", 0, date_closed=D0 + timedelta(days=3)),
            _trade("B", 1),
        ]
        aligned = _aggregate(trades, basis=DateBasis.CLOSED)
        assert aligned.dates == (D0 + timedelta(days=3),)

    def test_single_strategy_has_empty_calendar(self):
        aligned = _aggregate([_trade("A", i) for i in range(40)])
        assert aligned.strategies == ("A",)
        assert aligned.dates == ()
        assert aligned.returns.shape == (1, 0)

    def test_no_trades(self):
        aligned = _aggregate([])
        assert isinstance(aligned, AlignedStrategyReturns)
        assert aligned.n_strategies == 0

    def test_traded_days(self):
        aligned = _aggregate([_trade("A", 0), _trade("A", 1), _trade("B", 1)])
        assert aligned.traded_days().tolist() == [2, 1]
