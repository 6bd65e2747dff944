"""Data models for MentorDesk."""

from mentordesk.models.rule import DIRECTIONS, Direction, Rule, RuleEvaluationResult
from mentordesk.models.summary import (
    PROFIT_FACTOR_UNDEFINED,
    GroupStats,
    PerformanceSummary,
)
from mentordesk.models.trade import (
    CLOSED_STATUSES,
    TradeEntry,
    TradeOutcome,
    status_for_pnl,
)

__all__ = [
    "DIRECTIONS",
    "Direction",
    "Rule",
    "RuleEvaluationResult",
    "PROFIT_FACTOR_UNDEFINED",
    "GroupStats",
    "PerformanceSummary",
    "CLOSED_STATUSES",
    "TradeEntry",
    "TradeOutcome",
    "status_for_pnl",
]
