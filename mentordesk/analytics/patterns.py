"""Behavioural pattern detection and equity curves over a trade history.

Trades are processed in chronological order. The statistics here are
coarser than :func:`mentordesk.analytics.performance.summarize`: rates are
fractions of all trades, and a missing profit factor is reported as 0.
"""

from datetime import datetime
from typing import Iterable, Optional

import pandas as pd
from pydantic import BaseModel, Field

from mentordesk.models import TradeEntry

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

REVENGE_RISK_FRACTION = 0.2
OVERTRADING_DAILY_LIMIT = 5
CONSISTENT_WINNER_RATE = 0.6
CONSISTENT_LOSER_RATE = 0.4


class PatternFinding(BaseModel):
    """A detected behavioural pattern."""

    type: str = Field(..., description="Pattern name")
    description: str = Field(..., description="What was observed")
    severity: str = Field(..., description="High, Medium or Positive")
    recommendation: str = Field(..., description="Suggested corrective action")
    trade_index: Optional[int] = Field(default=None, description="Index in date order")
    date: Optional[str] = Field(default=None, description="Calendar day (YYYY-MM-DD)")

    model_config = {"frozen": True}


class PatternStatistics(BaseModel):
    """Headline statistics computed alongside pattern detection."""

    total_trades: int = 0
    win_rate: float = 0.0
    loss_rate: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    profit_factor: float = 0.0
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0
    most_traded_pair: Optional[str] = None
    most_used_strategy: Optional[str] = None
    best_time_of_day: Optional[str] = None
    best_day_of_week: Optional[str] = None

    model_config = {"frozen": True}


class PatternReport(BaseModel):
    """Statistics and findings for a trade history."""

    patterns: list[PatternFinding] = Field(default_factory=list)
    statistics: PatternStatistics = Field(default_factory=PatternStatistics)

    model_config = {"frozen": True}


class EquityPoint(BaseModel):
    """Cumulative P&L after one trade."""

    index: int
    date: datetime
    pnl: float
    equity: float
    drawdown: float = Field(..., ge=0, description="Percent below running peak")

    model_config = {"frozen": True}


def _to_frame(trades: Iterable[TradeEntry]) -> pd.DataFrame:
    """Build a date-sorted DataFrame of the fields used for analysis."""
    rows = [
        {
            "date": t.date,
            "status": t.status,
            "pnl": t.pnl,
            "pair": t.pair,
            "strategy": t.strategy,
            "risk_amount": t.risk_amount,
            "position_size": t.position_size,
        }
        for t in trades
    ]
    if not rows:
        return pd.DataFrame()
    df = pd.DataFrame(rows)
    df["date"] = pd.to_datetime(df["date"])
    for column in ("pnl", "risk_amount", "position_size"):
        df[column] = pd.to_numeric(df[column], errors="coerce").astype(float)
    return df.sort_values("date", kind="mergesort").reset_index(drop=True)


def _max_streaks(statuses: list[str]) -> tuple[int, int]:
    win_streak = loss_streak = 0
    max_wins = max_losses = 0
    for status in statuses:
        if status == "win":
            win_streak += 1
            loss_streak = 0
            max_wins = max(max_wins, win_streak)
        elif status == "loss":
            loss_streak += 1
            win_streak = 0
            max_losses = max(max_losses, loss_streak)
        else:
            win_streak = loss_streak = 0
    return max_wins, max_losses


def _most_common(values: pd.Series) -> Optional[str]:
    """Most frequent non-empty value; the first seen wins ties."""
    values = values.dropna()
    values = values[values.astype(bool)]
    if values.empty:
        return None
    # sort=False keeps first-appearance order, so idxmax breaks ties by it
    return values.value_counts(sort=False).idxmax()


def _best_bucket(df: pd.DataFrame, keys: pd.Series) -> Optional[str]:
    """Bucket with the highest win/(win+loss) ratio, first seen wins ties."""
    best_key = None
    best_rate = 0.0
    for key, group in df.groupby(keys, sort=False):
        wins = int((group["status"] == "win").sum())
        losses = int((group["status"] == "loss").sum())
        decided = wins + losses
        if decided and wins / decided > best_rate:
            best_rate = wins / decided
            best_key = key
    return best_key


def _statistics(df: pd.DataFrame) -> PatternStatistics:
    total = len(df)
    pnl = df["pnl"].fillna(0.0)
    is_win = df["status"] == "win"
    is_loss = df["status"] == "loss"
    win_count = int(is_win.sum())
    loss_count = int(is_loss.sum())
    total_wins = float(pnl[is_win].sum())
    total_losses = abs(float(pnl[is_loss].sum()))

    max_wins, max_losses = _max_streaks(df["status"].tolist())
    hours = df["date"].dt.hour.map(lambda h: f"{h}:00")
    days = df["date"].dt.dayofweek.map(lambda d: WEEKDAYS[d])

    return PatternStatistics(
        total_trades=total,
        win_rate=win_count / total,
        loss_rate=loss_count / total,
        avg_win=total_wins / win_count if win_count else 0.0,
        avg_loss=total_losses / loss_count if loss_count else 0.0,
        profit_factor=total_wins / total_losses if total_losses > 0 else 0.0,
        max_consecutive_wins=max_wins,
        max_consecutive_losses=max_losses,
        most_traded_pair=_most_common(df["pair"]),
        most_used_strategy=_most_common(df["strategy"]),
        best_time_of_day=_best_bucket(df, hours),
        best_day_of_week=_best_bucket(df, days),
    )


def _revenge_trades(df: pd.DataFrame) -> list[PatternFinding]:
    findings = []
    for i in range(1, len(df)):
        prev, current = df.iloc[i - 1], df.iloc[i]
        if prev["status"] != "loss" or pd.isna(prev["pnl"]) or prev["pnl"] == 0:
            continue
        risk = current["risk_amount"]
        if pd.isna(risk) or not risk:
            continue
        if risk > abs(prev["pnl"] * REVENGE_RISK_FRACTION):
            findings.append(PatternFinding(
                type="Revenge Trading",
                description="High-risk trade after a loss, potentially indicating emotional trading",
                trade_index=i,
                severity="High",
                recommendation="Consider taking a break after losses and stick to your risk management plan",
            ))
    return findings


def _overtrading_days(df: pd.DataFrame) -> list[PatternFinding]:
    findings = []
    per_day = df.groupby(df["date"].dt.strftime("%Y-%m-%d"), sort=True).size()
    for day, count in per_day.items():
        if count > OVERTRADING_DAILY_LIMIT:
            findings.append(PatternFinding(
                type="Overtrading",
                description=f"High number of trades ({count}) in a single day",
                date=day,
                severity="Medium",
                recommendation="Consider reducing trade frequency to maintain quality",
            ))
    return findings


def _chasing_losses(df: pd.DataFrame) -> list[PatternFinding]:
    findings = []
    prev_size = 0.0
    for i in range(len(df)):
        size = df.iloc[i]["position_size"]
        size = 0.0 if pd.isna(size) else float(size)
        if i > 0 and size and size > prev_size and df.iloc[i - 1]["status"] == "loss":
            findings.append(PatternFinding(
                type="Chasing Losses",
                description="Increasing position size after a loss",
                trade_index=i,
                severity="High",
                recommendation="Avoid increasing position size after losses to recover quickly",
            ))
        prev_size = size
    return findings


def identify_patterns(trades: Iterable[TradeEntry]) -> PatternReport:
    """Detect behavioural patterns in a trade history.

    Args:
        trades: Trades in any order.

    Returns:
        PatternReport with statistics and findings. Empty input yields an
        empty report.
    """
    df = _to_frame(trades)
    if df.empty:
        return PatternReport()

    statistics = _statistics(df)
    patterns = _revenge_trades(df) + _overtrading_days(df) + _chasing_losses(df)

    if statistics.win_rate > CONSISTENT_WINNER_RATE:
        patterns.append(PatternFinding(
            type="Consistent Winner",
            description="Maintaining a high win rate over time",
            severity="Positive",
            recommendation="Continue with current approach and risk management",
        ))
    if statistics.win_rate < CONSISTENT_LOSER_RATE:
        patterns.append(PatternFinding(
            type="Consistent Loser",
            description="Maintaining a low win rate over time",
            severity="High",
            recommendation="Review trading plan and consider taking a break for reevaluation",
        ))

    return PatternReport(patterns=patterns, statistics=statistics)


def equity_curve(trades: Iterable[TradeEntry]) -> list[EquityPoint]:
    """Running P&L and drawdown from peak, in date order.

    Drawdown is a percentage of the running peak and stays 0 until the
    equity has been positive.
    """
    df = _to_frame(trades)
    if df.empty:
        return []

    pnl = df["pnl"].fillna(0.0).astype(float)
    equity = pnl.cumsum()
    peak = equity.cummax().clip(lower=0.0)
    drawdown = ((peak - equity) / peak * 100).where(peak > 0, 0.0)

    return [
        EquityPoint(
            index=i + 1,
            date=df["date"].iloc[i].to_pydatetime(),
            pnl=float(pnl.iloc[i]),
            equity=float(equity.iloc[i]),
            drawdown=float(drawdown.iloc[i]),
        )
        for i in range(len(df))
    ]
