"""SQLite data store for MentorDesk."""

import logging
import sqlite3
from datetime import date
from pathlib import Path
from typing import Optional

from mentordesk.db.mapping import (
    RULE_COLUMNS,
    TRADE_COLUMNS,
    rule_from_row,
    rule_to_row,
    trade_from_row,
    trade_to_row,
)
from mentordesk.errors import NotFoundError, ValidationError
from mentordesk.models import DIRECTIONS, Rule, TradeEntry

logger = logging.getLogger(__name__)


def _upsert_sql(table: str, columns: tuple[str, ...], keep: tuple[str, ...] = ()) -> str:
    """Build an upsert; ``keep`` columns are only written on insert."""
    placeholders = ", ".join(f":{c}" for c in columns)
    frozen = {"id", *keep}
    updates = ", ".join(f"{c} = excluded.{c}" for c in columns if c not in frozen)
    return (
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders}) "
        f"ON CONFLICT(id) DO UPDATE SET {updates}"
    )


class DataStore:
    """SQLite-based data store for MentorDesk."""

    REQUIRED_TABLES = [
        "trade_rules",
        "journal_entries",
    ]

    def __init__(self, db_path: Path):
        """Initialize the data store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()

            # Protocol rules; rowid preserves insertion order
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS trade_rules (
                    id TEXT PRIMARY KEY,
                    text TEXT NOT NULL,
                    rule_type TEXT NOT NULL CHECK (rule_type IN ('buy', 'sell')),
                    required INTEGER NOT NULL DEFAULT 1,
                    order_number INTEGER NOT NULL DEFAULT 0,
                    created_by TEXT
                )
            """)

            # Journal entries
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS journal_entries (
                    id TEXT PRIMARY KEY,
                    user_id TEXT,
                    pair TEXT NOT NULL,
                    type TEXT NOT NULL,
                    entry_price REAL NOT NULL,
                    stop_loss REAL NOT NULL,
                    take_profit REAL NOT NULL,
                    exit_price REAL,
                    status TEXT NOT NULL DEFAULT 'pending',
                    pnl REAL,
                    date TEXT NOT NULL,
                    notes TEXT,
                    emotions TEXT,
                    strategy TEXT,
                    time_frame TEXT,
                    market_condition TEXT,
                    confidence_level INTEGER,
                    risk_amount REAL,
                    position_size REAL,
                    trade_duration TEXT,
                    tags TEXT,
                    trade_source TEXT,
                    validation_result TEXT NOT NULL DEFAULT 'none',
                    admin_notes TEXT,
                    admin_review_status TEXT,
                    review_timestamp TEXT,
                    mentor_id TEXT,
                    session_id TEXT,
                    screenshot_url TEXT
                )
            """)

            conn.commit()
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Rules ====================

    def save_rule(self, rule: Rule, created_by: Optional[str] = None) -> None:
        """Insert or update a rule, keeping its original insertion slot.

        Args:
            rule: Rule to save.
            created_by: Optional author ID; None for global rules. Only
                recorded when the rule is first inserted.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                _upsert_sql("trade_rules", RULE_COLUMNS, keep=("created_by",)),
                rule_to_row(rule, created_by),
            )
            conn.commit()
        finally:
            conn.close()

    def get_rules(self, direction: Optional[str] = None) -> list[Rule]:
        """Get rules in insertion order.

        Args:
            direction: Optional 'buy'/'sell' filter.

        Returns:
            List of rules.
        """
        if direction is not None and direction not in DIRECTIONS:
            raise ValidationError(f"Invalid direction '{direction}'")

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            if direction:
                cursor.execute(
                    f"SELECT {', '.join(RULE_COLUMNS)} FROM trade_rules "
                    "WHERE rule_type = ? ORDER BY rowid",
                    (direction,),
                )
            else:
                cursor.execute(
                    f"SELECT {', '.join(RULE_COLUMNS)} FROM trade_rules ORDER BY rowid"
                )
            return [rule_from_row(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def delete_rule(self, rule_id: str) -> None:
        """Delete a rule.

        Raises:
            NotFoundError: If the rule does not exist.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM trade_rules WHERE id = ?", (rule_id,))
            if cursor.rowcount == 0:
                raise NotFoundError(f"Rule '{rule_id}' not found")
            conn.commit()
        finally:
            conn.close()

    def save_rule_order(self, ordered_ids: list[str]) -> None:
        """Assign order numbers 1..n to ``ordered_ids`` in one transaction.

        Raises:
            NotFoundError: If any ID is unknown. Nothing is written.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            for number, rule_id in enumerate(ordered_ids, start=1):
                cursor.execute(
                    "UPDATE trade_rules SET order_number = ? WHERE id = ?",
                    (number, rule_id),
                )
                if cursor.rowcount == 0:
                    conn.rollback()
                    raise NotFoundError(f"Rule '{rule_id}' not found")
            conn.commit()
        finally:
            conn.close()

    # ==================== Journal ====================

    def save_trade(self, trade: TradeEntry, user_id: Optional[str] = None) -> None:
        """Insert or update a journal entry.

        Args:
            trade: Trade to save.
            user_id: Optional owner ID. Only recorded on insert; updates
                keep the stored owner.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                _upsert_sql("journal_entries", TRADE_COLUMNS, keep=("user_id",)),
                trade_to_row(trade, user_id),
            )
            conn.commit()
        finally:
            conn.close()
        logger.debug("Saved trade %s (%s %s)", trade.id, trade.type, trade.pair)

    def get_trade(self, trade_id: str) -> Optional[TradeEntry]:
        """Get a trade by ID.

        Returns:
            TradeEntry if found, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {', '.join(TRADE_COLUMNS)} FROM journal_entries WHERE id = ?",
                (trade_id,),
            )
            row = cursor.fetchone()
            if row:
                return trade_from_row(row)
            return None
        finally:
            conn.close()

    def get_trades(
        self,
        user_id: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> list[TradeEntry]:
        """Get journal entries, newest first.

        Args:
            user_id: Optional owner filter.
            from_date: Optional inclusive start date.
            to_date: Optional inclusive end date.

        Returns:
            List of trades.
        """
        clauses = []
        params: list = []
        if user_id is not None:
            clauses.append("user_id = ?")
            params.append(user_id)
        if from_date is not None:
            clauses.append("date(date) >= ?")
            params.append(from_date.isoformat())
        if to_date is not None:
            clauses.append("date(date) <= ?")
            params.append(to_date.isoformat())
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {', '.join(TRADE_COLUMNS)} FROM journal_entries "
                f"{where} ORDER BY date DESC",
                params,
            )
            return [trade_from_row(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def delete_trade(self, trade_id: str) -> None:
        """Delete a journal entry.

        Raises:
            NotFoundError: If the trade does not exist.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM journal_entries WHERE id = ?", (trade_id,))
            if cursor.rowcount == 0:
                raise NotFoundError(f"Trade '{trade_id}' not found")
            conn.commit()
        finally:
            conn.close()

    # ==================== Stats ====================

    def get_stats(self) -> dict:
        """Get database statistics.

        Returns:
            Dictionary with table record counts.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            stats = {}
            for table in self.REQUIRED_TABLES:
                cursor.execute(f"SELECT COUNT(*) as count FROM {table}")
                stats[table] = cursor.fetchone()["count"]
            return stats
        finally:
            conn.close()
