"""Tests for wallet performance metrics from raw fills."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta

import pytest

from polymarket_analytics.traders.models import OpenPosition, PricePoint, WalletTrade
from polymarket_analytics.traders.performance import (
    calculate_performance_metrics,
    entry_timing_score,
    nearest_price,
)


def _fill(
    now: datetime,
    hours: float,
    *,
    side: str,
    price: float,
    shares: float = 100.0,
    outcome: str = "yes",
    market_id: str = "market_1",
) -> WalletTrade:
    return WalletTrade(
        market_id=market_id,
        outcome=outcome,  # type: ignore[arg-type]
        side=side,  # type: ignore[arg-type]
        price=price,
        shares=shares,
        timestamp=now + timedelta(hours=hours),
    )


def _history(start: datetime, prices: Sequence[float], step: timedelta = timedelta(hours=1)) -> list[PricePoint]:
    return [PricePoint(start + step * i, price) for i, price in enumerate(prices)]


class TestRealizedPnl:
    def test_round_trip(self, now: datetime) -> None:
        metrics = calculate_performance_metrics(
            [_fill(now, 0, side="buy", price=0.40), _fill(now, 1, side="sell", price=0.60)]
        )

        assert metrics.realized_pnl == pytest.approx(20)
        assert metrics.total_pnl == pytest.approx(20)
        assert metrics.total_trades == 2
        assert metrics.win_rate == 1.0

    def test_fills_replayed_in_time_order(self, now: datetime) -> None:
        metrics = calculate_performance_metrics(
            [_fill(now, 1, side="sell", price=0.60), _fill(now, 0, side="buy", price=0.40)]
        )

        assert metrics.realized_pnl == pytest.approx(20)
        assert metrics.win_rate == 1.0

    def test_partial_sells_use_average_cost(self, now: datetime) -> None:
        metrics = calculate_performance_metrics(
            [
                _fill(now, 0, side="buy", price=0.40),
                _fill(now, 1, side="buy", price=0.60),
                _fill(now, 2, side="sell", price=0.70, shares=50),
                _fill(now, 3, side="sell", price=0.45, shares=50),
            ]
        )

        # 50 * (0.70 - 0.50) + 50 * (0.45 - 0.50)
        assert metrics.realized_pnl == pytest.approx(7.5)
        assert metrics.win_rate == 0.5

    def test_sell_without_holding_realises_nothing(self, now: datetime) -> None:
        metrics = calculate_performance_metrics([_fill(now, 0, side="sell", price=0.50, shares=10)])

        assert metrics.realized_pnl == 0
        assert metrics.win_rate == 0.0
        assert metrics.total_trades == 1

    def test_sell_of_other_outcome_closes_nothing(self, now: datetime) -> None:
        metrics = calculate_performance_metrics(
            [
                _fill(now, 0, side="buy", price=0.40),
                _fill(now, 1, side="sell", price=0.90, outcome="no"),
            ]
        )

        assert metrics.realized_pnl == 0
        assert metrics.win_rate == 0.0

    def test_oversell_is_capped_at_holding(self, now: datetime) -> None:
        metrics = calculate_performance_metrics(
            [_fill(now, 0, side="buy", price=0.40, shares=50), _fill(now, 1, side="sell", price=0.60)]
        )

        assert metrics.realized_pnl == pytest.approx(10)

    def test_win_rate_rounded(self, now: datetime) -> None:
        metrics = calculate_performance_metrics(
            [
                _fill(now, 0, side="buy", price=0.40, shares=300),
                _fill(now, 1, side="sell", price=0.50),
                _fill(now, 2, side="sell", price=0.55),
                _fill(now, 3, side="sell", price=0.30),
            ]
        )

        assert metrics.win_rate == 0.67


class TestUnrealizedPnl:
    def test_open_positions_marked_to_market(self, now: datetime) -> None:
        positions = [
            OpenPosition("m1", "yes", 100, avg_entry_price=0.40, current_price=0.55),
            OpenPosition("m2", "no", 50, avg_entry_price=0.30, current_price=0.20),
        ]
        metrics = calculate_performance_metrics(
            [_fill(now, 0, side="buy", price=0.40), _fill(now, 1, side="sell", price=0.60)],
            positions,
        )

        assert metrics.unrealized_pnl == pytest.approx(10)
        assert metrics.total_pnl == pytest.approx(30)

    def test_no_activity(self) -> None:
        metrics = calculate_performance_metrics([])

        assert metrics.to_dict() == {
            "total_pnl": 0,
            "realized_pnl": 0,
            "unrealized_pnl": 0,
            "total_trades": 0,
            "win_rate": 0.0,
            "avg_slippage": 0.0,
            "entry_timing_score": 50,
        }


class TestSlippage:
    def test_nearest_price(self, now: datetime) -> None:
        history = _history(now, [0.50, 0.55])

        assert nearest_price(history, now + timedelta(minutes=10)) == 0.50
        assert nearest_price(history, now + timedelta(minutes=50)) == 0.55
        assert nearest_price(history, now + timedelta(minutes=30)) == 0.50
        assert nearest_price([], now) is None

    def test_average_slippage(self, now: datetime) -> None:
        trades = [
            _fill(now, 10 / 60, side="buy", price=0.52),
            _fill(now, 50 / 60, side="buy", price=0.50),
            _fill(now, 0, side="buy", price=0.50, market_id="unpriced"),
        ]
        metrics = calculate_performance_metrics(trades, price_history={"market_1": _history(now, [0.50, 0.55])})

        assert metrics.avg_slippage == pytest.approx(0.035)


class TestEntryTimingScore:
    def _window(self, now: datetime) -> dict[str, list[PricePoint]]:
        prices = [0.50] * 12
        prices[2] = 0.40
        prices[9] = 0.60
        return {"market_1": _history(now - timedelta(hours=6), prices)}

    def test_buy_position_within_range(self, now: datetime) -> None:
        trades = [_fill(now, 0, side="buy", price=0.45), _fill(now, 1, side="sell", price=0.70)]
        assert entry_timing_score(trades, self._window(now)) == 75

    def test_score_clamped_below_window_low(self, now: datetime) -> None:
        assert entry_timing_score([_fill(now, 0, side="buy", price=0.30)], self._window(now)) == 100

    def test_short_history_is_neutral(self, now: datetime) -> None:
        history = {"market_1": _history(now, [0.40, 0.60] * 4 + [0.50])}
        assert entry_timing_score([_fill(now, 0, side="buy", price=0.40)], history) == 50

    def test_sparse_window_is_neutral(self, now: datetime) -> None:
        outside = _history(now - timedelta(hours=200), [0.40, 0.60] * 4)
        inside = _history(now, [0.40, 0.60, 0.50, 0.45])
        history = {"market_1": outside + inside}
        assert entry_timing_score([_fill(now, 0, side="buy", price=0.40)], history) == 50

    def test_flat_window_is_neutral(self, now: datetime) -> None:
        history = {"market_1": _history(now - timedelta(hours=6), [0.50] * 12)}
        assert entry_timing_score([_fill(now, 0, side="buy", price=0.40)], history) == 50

    def test_metrics_carry_timing_score(self, now: datetime) -> None:
        metrics = calculate_performance_metrics(
            [_fill(now, 0, side="buy", price=0.45)],
            price_history=self._window(now),
        )
        assert metrics.entry_timing_score == 75
