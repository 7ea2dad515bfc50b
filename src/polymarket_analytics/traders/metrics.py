"""Trader performance metrics from raw fills.

Fills are first folded into positions (weighted-average entry per market and
outcome, closed slice by slice on sells), then closed slices are aggregated
into profit, win rate, profit factor, Sharpe, drawdown and streak statistics.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

import numpy as np

from polymarket_analytics.traders.models import ClosedTrade, TraderMetrics, WalletTrade
from polymarket_analytics.trades.models import Outcome

logger = logging.getLogger(__name__)

# Remaining share dust below this closes the position.
POSITION_DUST_SHARES = 0.001
NO_LOSS_PROFIT_FACTOR = 999.0


@dataclass
class _OpenPosition:
    entry_price: float
    size: float
    entry_time: datetime
    category: str | None


def process_trades_into_positions(trades: Sequence[WalletTrade]) -> list[ClosedTrade]:
    """Fold raw fills into closed slices followed by still-open positions.

    Buys open or add to a position at a size-weighted average entry. A sell
    closes ``min(sell size, held size)`` and realises
    ``(exit - entry) * closed size``. Sells with nothing held are ignored.
    """
    positions: dict[tuple[str, Outcome], _OpenPosition] = {}
    results: list[ClosedTrade] = []

    for trade in sorted(trades, key=lambda t: t.timestamp):
        key = (trade.market_id, trade.outcome)
        pos = positions.get(key)

        if trade.side == "buy":
            if pos is None:
                positions[key] = _OpenPosition(trade.price, trade.shares, trade.timestamp, trade.category)
            else:
                total_size = pos.size + trade.shares
                if total_size > 0:
                    pos.entry_price = (pos.entry_price * pos.size + trade.price * trade.shares) / total_size
                pos.size = total_size
            continue

        if pos is None:
            continue

        exit_size = min(trade.shares, pos.size)
        results.append(
            ClosedTrade(
                market_id=trade.market_id,
                outcome=trade.outcome,
                entry_price=pos.entry_price,
                exit_price=trade.price,
                size=exit_size,
                profit=(trade.price - pos.entry_price) * exit_size,
                timestamp=trade.timestamp,
                category=trade.category or pos.category,
                opened_at=pos.entry_time,
            )
        )
        pos.size -= exit_size
        if pos.size <= POSITION_DUST_SHARES:
            del positions[key]

    for (market_id, outcome), pos in positions.items():
        results.append(
            ClosedTrade(
                market_id=market_id,
                outcome=outcome,
                entry_price=pos.entry_price,
                exit_price=None,
                size=pos.size,
                profit=0.0,
                timestamp=pos.entry_time,
                is_open=True,
                category=pos.category,
                opened_at=pos.entry_time,
            )
        )
    return results


def market_timing_score(win_rate: float) -> float:
    if win_rate > 60:
        return 70 + (win_rate - 60)
    return 50 + win_rate / 6


def _max_drawdown_pct(profits: Sequence[float]) -> float:
    max_drawdown = 0.0
    peak = 0.0
    running = 0.0
    for profit in profits:
        running += profit
        peak = max(peak, running)
        if peak > 0:
            max_drawdown = max(max_drawdown, (peak - running) / peak * 100)
    return max_drawdown


def calculate_trader_metrics(trades: Sequence[ClosedTrade]) -> TraderMetrics:
    """Aggregate closed trades into :class:`TraderMetrics`.

    Open positions are ignored. With no closed trades the neutral defaults
    are returned (zeros with a timing score of 50).
    """
    closed = sorted((t for t in trades if not t.is_open), key=lambda t: t.timestamp)
    if not closed:
        return TraderMetrics()

    total_profit = 0.0
    total_volume = 0.0
    gross_profit = 0.0
    gross_loss = 0.0
    wins = 0
    streak = 0
    longest_streak = 0
    returns: list[float] = []

    for trade in closed:
        cost = trade.cost
        total_volume += cost
        total_profit += trade.profit
        if trade.profit > 0:
            gross_profit += trade.profit
            wins += 1
            streak += 1
            longest_streak = max(longest_streak, streak)
        else:
            gross_loss += abs(trade.profit)
            streak = 0
        if cost > 0:
            returns.append(trade.profit / cost)

    count = len(closed)
    win_rate = wins / count * 100

    if gross_loss > 0:
        profit_factor = gross_profit / gross_loss
    else:
        profit_factor = NO_LOSS_PROFIT_FACTOR if gross_profit > 0 else 0.0

    sharpe = 0.0
    if returns:
        std = float(np.std(returns))
        if std > 0:
            sharpe = float(np.mean(returns)) / std

    holding = [h for h in (t.holding_hours for t in closed) if h is not None]

    categories = Counter(t.category for t in closed if t.category)
    primary_category = categories.most_common(1)[0][0] if categories else None
    specialization = {category: n / count * 100 for category, n in categories.items()}

    logger.debug("Trader metrics trades=%d win_rate=%.1f profit=%.2f", count, win_rate, total_profit)
    return TraderMetrics(
        total_profit=total_profit,
        total_volume=total_volume,
        win_rate=win_rate,
        trade_count=count,
        roi_percent=total_profit / total_volume * 100 if total_volume > 0 else 0.0,
        profit_factor=profit_factor,
        sharpe_ratio=sharpe,
        max_drawdown=_max_drawdown_pct([t.profit for t in closed]),
        gross_profit=gross_profit,
        gross_loss=gross_loss,
        consecutive_wins=streak,
        longest_win_streak=longest_streak,
        avg_holding_time_hours=float(np.mean(holding)) if holding else 0.0,
        market_timing_score=market_timing_score(win_rate),
        primary_category=primary_category,
        category_specialization=specialization,
    )


def metrics_from_wallet_trades(trades: Sequence[WalletTrade]) -> TraderMetrics:
    return calculate_trader_metrics(process_trades_into_positions(trades))
