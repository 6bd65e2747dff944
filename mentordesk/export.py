"""Export of journal entries."""

import json
import logging
from pathlib import Path
from typing import Iterable

import pandas as pd

from mentordesk.models import TradeEntry

logger = logging.getLogger(__name__)

# Column header -> TradeEntry attribute
EXPORT_COLUMNS = {
    "Date": "date",
    "Pair": "pair",
    "Type": "type",
    "Entry Price": "entry_price",
    "Stop Loss": "stop_loss",
    "Take Profit": "take_profit",
    "Status": "status",
    "P&L": "pnl",
    "Strategy": "strategy",
    "Time Frame": "time_frame",
    "Confidence": "confidence_level",
    "Notes": "notes",
}


def _cell(value):
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def trades_to_frame(trades: Iterable[TradeEntry]) -> pd.DataFrame:
    """Tabulate trades with the export column headers."""
    rows = [
        {header: _cell(getattr(trade, attr)) for header, attr in EXPORT_COLUMNS.items()}
        for trade in trades
    ]
    return pd.DataFrame(rows, columns=list(EXPORT_COLUMNS))


def export_trades_csv(trades: Iterable[TradeEntry], path: Path) -> bool:
    """Write trades to a CSV file.

    Args:
        trades: Trades to export.
        path: Destination file.

    Returns:
        True if a file was written, False when there was nothing to export.
    """
    frame = trades_to_frame(trades)
    if frame.empty:
        logger.warning("No trades to export")
        return False

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(path, index=False)
    logger.info("Exported %d trades to %s", len(frame), path)
    return True
