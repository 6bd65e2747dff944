"""Search, filter and sort helpers applied before summarizing trades."""

from datetime import date, datetime
from typing import Iterable, Literal, Optional

from pydantic import BaseModel, Field

from mentordesk.models import TradeEntry

SortKey = Literal["date", "pnl"]


class TradeFilter(BaseModel):
    """Journal view filter.

    ``trade_type`` and ``outcome`` accept ``"all"`` to disable that check.
    Date bounds are inclusive and compare calendar dates.
    """

    search: str = Field(default="", description="Case-insensitive search text")
    trade_type: Literal["all", "buy", "sell"] = Field(default="all")
    outcome: Literal["all", "win", "loss", "breakeven", "pending"] = Field(default="all")
    date_from: Optional[date] = Field(default=None, description="Earliest trade date")
    date_to: Optional[date] = Field(default=None, description="Latest trade date")

    model_config = {"frozen": True}

    def matches(self, trade: TradeEntry) -> bool:
        """Check whether a trade passes every active criterion."""
        if self.search:
            needle = self.search.lower()
            haystacks = (trade.pair, trade.notes, trade.strategy)
            if not any(h and needle in h.lower() for h in haystacks):
                return False
        if self.trade_type != "all" and trade.type != self.trade_type:
            return False
        if self.outcome != "all" and trade.status != self.outcome:
            return False

        trade_day = trade.date.date() if isinstance(trade.date, datetime) else trade.date
        if self.date_from and trade_day < self.date_from:
            return False
        if self.date_to and trade_day > self.date_to:
            return False
        return True

    def apply(self, trades: Iterable[TradeEntry]) -> list[TradeEntry]:
        """Return the matching trades as a new list."""
        return [trade for trade in trades if self.matches(trade)]


def sort_trades(
    trades: Iterable[TradeEntry],
    key: SortKey = "date",
    descending: bool = True,
) -> list[TradeEntry]:
    """Sort trades by date or P&L. Missing P&L sorts as 0.

    Args:
        trades: Trades to sort.
        key: 'date' or 'pnl'.
        descending: Newest / largest first when True.

    Returns:
        A new sorted list.
    """
    if key == "pnl":
        return sorted(trades, key=lambda t: t.pnl or 0.0, reverse=descending)
    if key == "date":
        return sorted(trades, key=lambda t: t.date, reverse=descending)
    raise ValueError(f"Unsupported sort key: {key}")
