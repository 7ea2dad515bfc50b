"""Wallet performance metrics from raw fills, open positions and price history.

Realised PnL uses average cost per (market, outcome). Slippage and entry
timing are measured against a per-market price history.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

import numpy as np

from polymarket_analytics.evidence import round_half_up
from polymarket_analytics.traders.models import OpenPosition, PerformanceMetrics, PricePoint, WalletTrade
from polymarket_analytics.trades.models import Outcome

logger = logging.getLogger(__name__)

ENTRY_TIMING_WINDOW = timedelta(hours=24)
MIN_HISTORY_POINTS = 10
MIN_WINDOW_POINTS = 5
NEUTRAL_TIMING_SCORE = 50


@dataclass
class _CostBasis:
    shares: float = 0.0
    cost: float = 0.0

    @property
    def avg_cost(self) -> float:
        return self.cost / self.shares


def nearest_price(history: Sequence[PricePoint], target: datetime) -> float | None:
    """Price of the history point closest in time to ``target``; earliest wins ties."""
    if not history:
        return None
    nearest = min(history, key=lambda point: abs((point.timestamp - target).total_seconds()))
    return nearest.price


def entry_timing_score(
    trades: Sequence[WalletTrade],
    price_history: Mapping[str, Sequence[PricePoint]],
) -> int:
    """Average position of each buy within the +/-24h price range around it.

    A buy at the window low scores 100 and one at the high scores 0. Buys
    whose market has fewer than 10 recorded prices, or fewer than 5 inside
    the window, or a flat window, are skipped. Returns 50 when nothing is
    scored.
    """
    scores: list[float] = []
    for trade in trades:
        if trade.side != "buy":
            continue
        history = price_history.get(trade.market_id)
        if not history or len(history) < MIN_HISTORY_POINTS:
            continue
        window = [
            point.price
            for point in history
            if trade.timestamp - ENTRY_TIMING_WINDOW <= point.timestamp <= trade.timestamp + ENTRY_TIMING_WINDOW
        ]
        if len(window) < MIN_WINDOW_POINTS:
            continue
        low, high = min(window), max(window)
        if high == low:
            continue
        score = 100 * (1 - (trade.price - low) / (high - low))
        scores.append(max(0.0, min(100.0, score)))

    if not scores:
        return NEUTRAL_TIMING_SCORE
    return round_half_up(float(np.mean(scores)))


def calculate_performance_metrics(
    trades: Sequence[WalletTrade],
    positions: Sequence[OpenPosition] = (),
    price_history: Mapping[str, Sequence[PricePoint]] | None = None,
) -> PerformanceMetrics:
    """Compute PnL, win rate, slippage and entry timing for a wallet.

    Fills are replayed in timestamp order. A sell closes at most the shares
    held, realises ``closed * (price - average cost)`` and reduces the cost
    basis at that average. It counts as a win when its price beats the
    average cost at the time of the sale. Sells with nothing held count as
    sells but realise nothing.

    Args:
        trades: Raw fills for the wallet.
        positions: Currently open positions with their mark prices.
        price_history: Recorded prices per market id.

    Returns:
        PerformanceMetrics with win rate rounded to 2 decimals and slippage
        to 4 decimals.
    """
    history = price_history or {}
    ordered = sorted(trades, key=lambda t: t.timestamp)

    bases: dict[tuple[str, Outcome], _CostBasis] = {}
    realized = 0.0
    sells = 0
    wins = 0
    for trade in ordered:
        basis = bases.setdefault((trade.market_id, trade.outcome), _CostBasis())
        if trade.side == "buy":
            basis.shares += trade.shares
            basis.cost += trade.shares * trade.price
            continue
        sells += 1
        if basis.shares <= 0:
            continue
        avg_cost = basis.avg_cost
        closed = min(trade.shares, basis.shares)
        if trade.price > avg_cost:
            wins += 1
        realized += closed * (trade.price - avg_cost)
        basis.shares -= closed
        basis.cost -= closed * avg_cost

    unrealized = sum(position.unrealized_pnl for position in positions)

    win_rate = wins / sells if sells else 0.0

    slippages = []
    for trade in ordered:
        price = nearest_price(history.get(trade.market_id, ()), trade.timestamp)
        if price is not None:
            slippages.append(abs(trade.price - price))
    avg_slippage = float(np.mean(slippages)) if slippages else 0.0

    logger.debug(
        "Performance over %d fills: realized=%.2f unrealized=%.2f",
        len(ordered),
        realized,
        unrealized,
    )
    return PerformanceMetrics(
        total_pnl=realized + unrealized,
        realized_pnl=realized,
        unrealized_pnl=unrealized,
        total_trades=len(ordered),
        win_rate=round_half_up(win_rate, 2),
        avg_slippage=round_half_up(avg_slippage, 4),
        entry_timing_score=entry_timing_score(ordered, history),
    )
