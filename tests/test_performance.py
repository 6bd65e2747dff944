"""Property-based tests for the performance analyzer.

**Feature: trade-analytics**
"""

from datetime import datetime

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mentordesk.analytics import UNKNOWN_GROUP, PerformanceAnalyzer, summarize
from mentordesk.analytics.performance import round_half_up
from mentordesk.models import PROFIT_FACTOR_UNDEFINED, TradeEntry


def make_trade(status="pending", pnl=None, **kwargs) -> TradeEntry:
    """Build a minimal trade for analytics tests."""
    data = {
        "pair": "EURUSD",
        "type": "buy",
        "entry_price": 1.1,
        "stop_loss": 1.09,
        "take_profit": 1.12,
        "date": datetime(2024, 3, 4, 10, 30),
    }
    data.update(kwargs)
    return TradeEntry(status=status, pnl=pnl, **data)


def trade_strategy():
    """Generate trades with integer P&L so sums are exact in any order."""
    return st.builds(
        make_trade,
        status=st.sampled_from(["win", "loss", "breakeven", "pending"]),
        pnl=st.one_of(st.none(), st.integers(min_value=-5000, max_value=5000).map(float)),
        pair=st.sampled_from(["EURUSD", "GBPUSD", "XAUUSD"]),
        strategy=st.sampled_from([None, "", "Breakout", "Pullback"]),
        time_frame=st.sampled_from([None, "1H", "4H"]),
    )


class TestScalarAggregates:
    """
    **Feature: trade-analytics, Property 1: Scalar Aggregates**
    """

    def test_mixed_example(self):
        summary = summarize([
            make_trade("win", 100.0),
            make_trade("loss", -40.0),
            make_trade("breakeven", 0.0),
        ])

        assert summary.total == 3
        assert summary.wins == 1
        assert summary.losses == 1
        assert summary.breakeven == 1
        assert summary.closed_trades == 3
        assert summary.win_rate == 33
        assert summary.decided_win_rate == 50
        assert summary.total_pnl == 60.0
        assert summary.avg_pnl == 20.0
        assert summary.largest_win == 100.0
        assert summary.largest_loss == -40.0
        assert summary.profit_factor == 2.5
        assert summary.profit_factor_display == "2.50"

    def test_empty_input(self):
        summary = summarize([])
        assert summary.total == 0
        assert summary.closed_trades == 0
        assert summary.win_rate == 0
        assert summary.avg_pnl == 0
        assert summary.largest_win == 0
        assert summary.largest_loss == 0
        assert summary.profit_factor is None
        assert summary.strategy_stats == {}

    def test_pending_without_pnl_counts_only_in_total(self):
        summary = summarize([make_trade("pending"), make_trade("win", 25.0)])
        assert summary.total == 2
        assert summary.closed_trades == 1
        assert summary.wins == 1
        assert summary.win_rate == 100
        assert summary.avg_pnl == 25.0

    def test_win_rate_rounds_half_up(self):
        trades = [make_trade("win", 10.0)] + [make_trade("loss", -10.0)] * 7
        assert summarize(trades).win_rate == 13

    def test_avg_pnl_two_decimals(self):
        trades = [make_trade("win", 10.0), make_trade("loss", -3.0), make_trade("loss", -3.0)]
        assert summarize(trades).avg_pnl == 1.33

    def test_largest_uses_pnl_sign_not_status(self):
        summary = summarize([make_trade("breakeven", 5.0), make_trade("pending", -2.0)])
        assert summary.largest_win == 5.0
        assert summary.largest_loss == -2.0

    def test_wrapper_matches_function(self):
        trades = [make_trade("win", 10.0), make_trade("loss", -4.0)]
        assert PerformanceAnalyzer().summarize(trades) == summarize(trades)

    def test_input_not_mutated(self):
        trades = [make_trade("win", 10.0), make_trade("loss", -4.0)]
        snapshot = list(trades)
        summarize(trades)
        assert trades == snapshot


class TestProfitFactor:
    """
    **Feature: trade-analytics, Property 2: Division by Zero**

    *For any* trade list without losing P&L, the profit factor is the
    undefined sentinel rather than a number or an error.
    """

    def test_no_losses_is_undefined(self):
        summary = summarize([make_trade("win", 50.0)])
        assert summary.profit_factor is None
        assert summary.profit_factor_display == PROFIT_FACTOR_UNDEFINED
        assert summary.model_dump()["profit_factor"] == "undefined"
        assert summary.model_dump(by_alias=True)["profitFactor"] == "undefined"

    def test_loss_without_pnl_is_undefined(self):
        summary = summarize([make_trade("win", 50.0), make_trade("loss")])
        assert summary.profit_factor is None

    def test_only_losses_is_zero(self):
        summary = summarize([make_trade("loss", -10.0)])
        assert summary.profit_factor == 0.0

    def test_uses_status_for_sums(self):
        # A 'win' with negative pnl reduces the gross win.
        summary = summarize([
            make_trade("win", 30.0),
            make_trade("win", -10.0),
            make_trade("loss", -10.0),
        ])
        assert summary.profit_factor == 2.0


class TestGrouping:
    """
    **Feature: trade-analytics, Property 3: Grouped Breakdowns**
    """

    def test_missing_strategy_is_unknown(self):
        summary = summarize([make_trade("win", 40.0), make_trade("loss", -15.0, strategy="")])
        assert summary.strategy_stats[UNKNOWN_GROUP].pnl == 25.0
        assert summary.strategy_stats["Unknown"].wins == 1
        assert summary.strategy_stats["Unknown"].losses == 1
        assert summary.time_frame_stats["Unknown"].total == 2

    def test_groups_by_pair(self):
        summary = summarize([
            make_trade("win", 40.0, pair="EURUSD"),
            make_trade("loss", -20.0, pair="GBPUSD"),
            make_trade("win", 10.0, pair="EURUSD", strategy="Breakout", time_frame="4H"),
        ])
        assert summary.pair_stats["EURUSD"].wins == 2
        assert summary.pair_stats["EURUSD"].pnl == 50.0
        assert summary.pair_stats["GBPUSD"].losses == 1
        assert summary.strategy_stats["Breakout"].total == 1
        assert summary.time_frame_stats["4H"].wins == 1

    @given(trades=st.lists(trade_strategy(), max_size=40))
    @settings(max_examples=100)
    def test_group_totals_cover_all_trades(self, trades):
        summary = summarize(trades)
        for groups in (summary.strategy_stats, summary.time_frame_stats, summary.pair_stats):
            assert sum(g.total for g in groups.values()) == summary.total
            assert sum(g.wins for g in groups.values()) == summary.wins
            assert sum(g.losses for g in groups.values()) == summary.losses
            assert sum(g.pnl for g in groups.values()) == pytest.approx(summary.total_pnl)


class TestSummarizeProperties:
    """
    **Feature: trade-analytics, Property 4: Idempotence and Order Independence**
    """

    @given(trades=st.lists(trade_strategy(), max_size=40), data=st.data())
    @settings(max_examples=100)
    def test_order_independent(self, trades, data):
        shuffled = data.draw(st.permutations(trades))
        assert summarize(shuffled) == summarize(trades)

    @given(trades=st.lists(trade_strategy(), max_size=40))
    @settings(max_examples=50)
    def test_idempotent(self, trades):
        assert summarize(trades) == summarize(trades)

    @given(trades=st.lists(trade_strategy(), max_size=40))
    @settings(max_examples=100)
    def test_bounds(self, trades):
        summary = summarize(trades)
        assert 0 <= summary.win_rate <= 100
        assert summary.closed_trades == summary.wins + summary.losses + summary.breakeven
        assert summary.closed_trades <= summary.total
        assert summary.largest_win >= 0
        assert summary.largest_loss <= 0
        assert summary.total_pnl == sum(t.pnl or 0 for t in trades)


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        "value,expected",
        [(12.5, 13), (12.4999, 12), (50.0, 50), (0.5, 1), (66.6667, 67)],
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected
