"""Trade analytics for MentorDesk."""

from mentordesk.analytics.filters import TradeFilter, sort_trades
from mentordesk.analytics.patterns import (
    EquityPoint,
    PatternFinding,
    PatternReport,
    equity_curve,
    identify_patterns,
)
from mentordesk.analytics.performance import (
    UNKNOWN_GROUP,
    PerformanceAnalyzer,
    summarize,
)

__all__ = [
    "TradeFilter",
    "sort_trades",
    "EquityPoint",
    "PatternFinding",
    "PatternReport",
    "equity_curve",
    "identify_patterns",
    "UNKNOWN_GROUP",
    "PerformanceAnalyzer",
    "summarize",
]
