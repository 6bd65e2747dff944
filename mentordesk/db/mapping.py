"""Row <-> model adapters for the persisted tables.

Persisted columns use their own names (``rule_type``, JSON-encoded list
columns, ISO timestamps); everything above the store works with models.
"""

import json
from datetime import datetime
from typing import Any, Mapping, Optional

from mentordesk.models import Rule, TradeEntry

RULE_COLUMNS = ("id", "text", "rule_type", "required", "order_number", "created_by")

TRADE_COLUMNS = (
    "id",
    "user_id",
    "pair",
    "type",
    "entry_price",
    "stop_loss",
    "take_profit",
    "exit_price",
    "status",
    "pnl",
    "date",
    "notes",
    "emotions",
    "strategy",
    "time_frame",
    "market_condition",
    "confidence_level",
    "risk_amount",
    "position_size",
    "trade_duration",
    "tags",
    "trade_source",
    "validation_result",
    "admin_notes",
    "admin_review_status",
    "review_timestamp",
    "mentor_id",
    "session_id",
    "screenshot_url",
)

_LIST_COLUMNS = ("emotions", "tags")
_TIMESTAMP_COLUMNS = ("date", "review_timestamp")


def rule_to_row(rule: Rule, created_by: Optional[str] = None) -> dict[str, Any]:
    """Convert a rule to a ``trade_rules`` row."""
    return {
        "id": rule.id,
        "text": rule.text,
        "rule_type": rule.direction,
        "required": 1 if rule.required else 0,
        "order_number": rule.order_number,
        "created_by": created_by,
    }


def rule_from_row(row: Mapping[str, Any]) -> Rule:
    """Convert a ``trade_rules`` row to a rule."""
    return Rule(
        id=row["id"],
        text=row["text"],
        direction=row["rule_type"],
        required=bool(row["required"]),
        order_number=row["order_number"] or 0,
    )


def trade_to_row(trade: TradeEntry, user_id: Optional[str] = None) -> dict[str, Any]:
    """Convert a trade to a ``journal_entries`` row."""
    row = trade.model_dump()
    row["user_id"] = user_id
    for column in _LIST_COLUMNS:
        row[column] = json.dumps(row[column])
    for column in _TIMESTAMP_COLUMNS:
        if row[column] is not None:
            row[column] = row[column].isoformat()
    return {column: row.get(column) for column in TRADE_COLUMNS}


def trade_from_row(row: Mapping[str, Any]) -> TradeEntry:
    """Convert a ``journal_entries`` row to a trade.

    NULL columns fall back to the model defaults.
    """
    data = {
        column: row[column]
        for column in TRADE_COLUMNS
        if column != "user_id" and row[column] is not None
    }
    for column in _LIST_COLUMNS:
        if column in data:
            data[column] = json.loads(data[column])
    for column in _TIMESTAMP_COLUMNS:
        if column in data:
            data[column] = datetime.fromisoformat(data[column])
    return TradeEntry(**data)
