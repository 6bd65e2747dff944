"""Trade performance aggregation."""

import math
from typing import Iterable, Optional

from mentordesk.models import GroupStats, PerformanceSummary, TradeEntry

UNKNOWN_GROUP = "Unknown"


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves away from zero for positive values (2.5 -> 3)."""
    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor


def _group_key(value: Optional[str]) -> str:
    return value if value else UNKNOWN_GROUP


def _tally(groups: dict[str, dict], key: str, trade: TradeEntry) -> None:
    stats = groups.setdefault(key, {"wins": 0, "losses": 0, "pnl": 0.0, "total": 0})
    stats["total"] += 1
    if trade.status == "win":
        stats["wins"] += 1
    elif trade.status == "loss":
        stats["losses"] += 1
    stats["pnl"] += trade.pnl or 0.0


def summarize(trades: Iterable[TradeEntry]) -> PerformanceSummary:
    """Compute win rate, P&L aggregates and breakdowns from trades.

    Trades are classified by ``status``; a missing ``pnl`` counts as 0 for
    sums. Filtering is the caller's job. The input is not modified.

    Args:
        trades: Trades to summarize.

    Returns:
        PerformanceSummary. ``profit_factor`` is None when there are no
        losing P&L to divide by.
    """
    total = 0
    wins = losses = breakeven = 0
    total_pnl = 0.0
    win_sum = 0.0
    loss_sum = 0.0
    largest_win = 0.0
    largest_loss = 0.0
    strategy_stats: dict[str, dict] = {}
    time_frame_stats: dict[str, dict] = {}
    pair_stats: dict[str, dict] = {}

    for trade in trades:
        total += 1
        pnl = trade.pnl or 0.0
        total_pnl += pnl

        if trade.status == "win":
            wins += 1
            win_sum += pnl
        elif trade.status == "loss":
            losses += 1
            loss_sum += pnl
        elif trade.status == "breakeven":
            breakeven += 1

        if pnl > 0:
            largest_win = max(largest_win, pnl)
        elif pnl < 0:
            largest_loss = min(largest_loss, pnl)

        _tally(strategy_stats, _group_key(trade.strategy), trade)
        _tally(time_frame_stats, _group_key(trade.time_frame), trade)
        _tally(pair_stats, _group_key(trade.pair), trade)

    closed_trades = wins + losses + breakeven
    if closed_trades > 0:
        win_rate = int(round_half_up(wins / closed_trades * 100))
        avg_pnl = round(total_pnl / closed_trades, 2)
    else:
        win_rate = 0
        avg_pnl = 0.0

    decided = wins + losses
    decided_win_rate = int(round_half_up(wins / decided * 100)) if decided else 0

    gross_loss = abs(loss_sum)
    profit_factor = round(win_sum / gross_loss, 2) if gross_loss > 0 else None

    return PerformanceSummary(
        total=total,
        wins=wins,
        losses=losses,
        breakeven=breakeven,
        closed_trades=closed_trades,
        win_rate=win_rate,
        decided_win_rate=decided_win_rate,
        total_pnl=total_pnl,
        avg_pnl=avg_pnl,
        largest_win=largest_win,
        largest_loss=largest_loss,
        profit_factor=profit_factor,
        strategy_stats={k: GroupStats(**v) for k, v in strategy_stats.items()},
        time_frame_stats={k: GroupStats(**v) for k, v in time_frame_stats.items()},
        pair_stats={k: GroupStats(**v) for k, v in pair_stats.items()},
    )


class PerformanceAnalyzer:
    """Stateless wrapper around :func:`summarize` for injection."""

    def summarize(self, trades: Iterable[TradeEntry]) -> PerformanceSummary:
        return summarize(trades)
