"""Property-based tests for the database store and data-access port.

**Feature: trade-journal**
"""

import tempfile
from datetime import date, datetime
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mentordesk.db import ChangeEvent, DataStore, LocalDataAccess
from mentordesk.db.mapping import trade_from_row, trade_to_row
from mentordesk.errors import NotFoundError, ValidationError
from mentordesk.models import Rule, TradeEntry


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        yield DataStore(db_path)


def sample_trade(**kwargs) -> TradeEntry:
    data = {
        "pair": "GBPUSD",
        "type": "sell",
        "entry_price": 1.27,
        "stop_loss": 1.274,
        "take_profit": 1.262,
        "date": datetime(2024, 5, 6, 14, 0),
    }
    data.update(kwargs)
    return TradeEntry(**data)


class TestDatabaseSchemaCompleteness:
    """
    **Feature: trade-journal, Property 1: Database Schema Completeness**

    *For any* fresh database, all required tables should exist.
    """

    def test_schema_completeness(self, temp_db: DataStore):
        tables = temp_db.get_tables()
        for table in DataStore.REQUIRED_TABLES:
            assert table in tables, f"Required table '{table}' is missing"

    def test_reopen_existing_database(self, temp_db: DataStore):
        temp_db.save_rule(Rule(text="Keep me", direction="buy", order_number=1))
        reopened = DataStore(temp_db.db_path)
        assert [r.text for r in reopened.get_rules()] == ["Keep me"]

    def test_stats(self, temp_db: DataStore):
        temp_db.save_trade(sample_trade())
        assert temp_db.get_stats() == {"trade_rules": 0, "journal_entries": 1}


class TestRulePersistence:
    """Rules keep their insertion slot across updates."""

    def test_update_keeps_insertion_order(self, temp_db: DataStore):
        first = Rule(id="a", text="First", direction="buy", order_number=1)
        second = Rule(id="b", text="Second", direction="buy", order_number=1)
        temp_db.save_rule(first)
        temp_db.save_rule(second)
        temp_db.save_rule(first.model_copy(update={"text": "First edited"}))

        assert [r.id for r in temp_db.get_rules("buy")] == ["a", "b"]
        assert temp_db.get_rules("buy")[0].text == "First edited"

    def test_direction_filter(self, temp_db: DataStore):
        temp_db.save_rule(Rule(text="Long rule", direction="buy"))
        temp_db.save_rule(Rule(text="Short rule", direction="sell", required=False))
        sell = temp_db.get_rules("sell")
        assert [r.text for r in sell] == ["Short rule"]
        assert sell[0].required is False

    def test_invalid_direction_filter(self, temp_db: DataStore):
        with pytest.raises(ValidationError):
            temp_db.get_rules("long")

    def test_update_keeps_author(self, temp_db: DataStore):
        rule = Rule(id="a", text="First", direction="buy", order_number=1)
        temp_db.save_rule(rule, created_by="mentor-1")
        temp_db.save_rule(rule.model_copy(update={"direction": "sell"}), created_by="admin")

        conn = temp_db._get_connection()
        try:
            row = conn.execute("SELECT created_by FROM trade_rules WHERE id = 'a'").fetchone()
        finally:
            conn.close()
        assert row["created_by"] == "mentor-1"
        assert temp_db.get_rules()[0].direction == "sell"

    def test_save_rule_order(self, temp_db: DataStore):
        for rule_id in ("x", "y", "z"):
            temp_db.save_rule(Rule(id=rule_id, text=rule_id, direction="sell"))
        temp_db.save_rule_order(["z", "x", "y"])
        numbers = {r.id: r.order_number for r in temp_db.get_rules()}
        assert numbers == {"z": 1, "x": 2, "y": 3}

    def test_save_rule_order_unknown_id_rolls_back(self, temp_db: DataStore):
        temp_db.save_rule(Rule(id="x", text="x", direction="sell", order_number=5))
        with pytest.raises(NotFoundError):
            temp_db.save_rule_order(["x", "missing"])
        assert temp_db.get_rules()[0].order_number == 5

    def test_delete_rule(self, temp_db: DataStore):
        temp_db.save_rule(Rule(id="x", text="x", direction="buy"))
        temp_db.delete_rule("x")
        assert temp_db.get_rules() == []
        with pytest.raises(NotFoundError):
            temp_db.delete_rule("x")


class TestTradePersistence:
    """
    **Feature: trade-journal, Property 2: Trade Logging Persistence**

    *For any* valid trade, saving it should make it retrievable unchanged.
    """

    @given(
        pnl=st.one_of(st.none(), st.floats(min_value=-1e5, max_value=1e5, allow_nan=False)),
        emotions=st.lists(st.sampled_from(["confident", "fomo", "anxious"]), max_size=3),
        tags=st.lists(st.text(min_size=1, max_size=8), max_size=3),
        confidence=st.one_of(st.none(), st.integers(min_value=1, max_value=10)),
    )
    @settings(max_examples=30)
    def test_trade_round_trip(self, pnl, emotions, tags, confidence):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "test.db")
            trade = sample_trade(
                pnl=pnl,
                emotions=emotions,
                tags=tags,
                confidence_level=confidence,
                review_timestamp=datetime(2024, 5, 7, 9, 0),
            )
            store.save_trade(trade)
            assert store.get_trade(trade.id) == trade

    def test_row_uses_column_names(self):
        row = trade_to_row(sample_trade(emotions=["fomo"]), user_id="u1")
        assert row["entry_price"] == 1.27
        assert row["emotions"] == '["fomo"]'
        assert row["user_id"] == "u1"
        assert row["date"] == "2024-05-06T14:00:00"

    def test_null_columns_use_defaults(self):
        row = trade_to_row(sample_trade())
        row["emotions"] = None
        row["notes"] = None
        trade = trade_from_row(row)
        assert trade.emotions == []
        assert trade.notes == ""

    def test_get_trades_newest_first(self, temp_db: DataStore):
        old = sample_trade(date=datetime(2024, 1, 1, 9, 0))
        new = sample_trade(date=datetime(2024, 2, 1, 9, 0))
        temp_db.save_trade(old)
        temp_db.save_trade(new)
        assert [t.id for t in temp_db.get_trades()] == [new.id, old.id]

    def test_get_trades_filters(self, temp_db: DataStore):
        jan = sample_trade(date=datetime(2024, 1, 15, 9, 0))
        feb = sample_trade(date=datetime(2024, 2, 15, 9, 0))
        temp_db.save_trade(jan, user_id="alice")
        temp_db.save_trade(feb, user_id="bob")

        assert [t.id for t in temp_db.get_trades(user_id="alice")] == [jan.id]
        assert [t.id for t in temp_db.get_trades(from_date=date(2024, 2, 1))] == [feb.id]
        assert [t.id for t in temp_db.get_trades(to_date=date(2024, 1, 15))] == [jan.id]

    def test_update_keeps_owner(self, temp_db: DataStore):
        trade = sample_trade()
        temp_db.save_trade(trade, user_id="alice")
        temp_db.save_trade(trade.model_copy(update={"admin_notes": "Good entry"}), user_id=None)

        owned = temp_db.get_trades(user_id="alice")
        assert [t.id for t in owned] == [trade.id]
        assert owned[0].admin_notes == "Good entry"

    def test_mixed_timezone_dates_sort_newest_first(self, temp_db: DataStore):
        naive = sample_trade(date=datetime(2024, 1, 1, 9, 0))
        aware = sample_trade(date="2024-06-01T09:00:00Z")
        temp_db.save_trade(naive)
        temp_db.save_trade(aware)
        assert [t.id for t in temp_db.get_trades()] == [aware.id, naive.id]
        assert temp_db.get_trade(aware.id).date.tzinfo is None

    def test_delete_trade(self, temp_db: DataStore):
        trade = sample_trade()
        temp_db.save_trade(trade)
        temp_db.delete_trade(trade.id)
        assert temp_db.get_trade(trade.id) is None
        with pytest.raises(NotFoundError):
            temp_db.delete_trade(trade.id)


class TestChangeFeed:
    """
    **Feature: trade-journal, Property 3: Change Notification**

    *For any* mutation, subscribers of that topic receive one event.
    """

    def test_subscriber_receives_events(self, temp_db: DataStore):
        port = LocalDataAccess(temp_db)
        events: list[ChangeEvent] = []
        port.subscribe("trades", events.append)

        trade = sample_trade()
        port.mutate("trades", "insert", trade)
        port.mutate("trades", "delete", trade.id)

        assert [(e.topic, e.action) for e in events] == [("trades", "insert"), ("trades", "delete")]
        assert events[0].record == trade
        assert events[1].record == trade.id

    def test_other_topic_not_notified(self, temp_db: DataStore):
        port = LocalDataAccess(temp_db)
        events = []
        port.subscribe("rules", events.append)
        port.mutate("trades", "insert", sample_trade())
        assert events == []

    def test_unsubscribe(self, temp_db: DataStore):
        port = LocalDataAccess(temp_db)
        events = []
        token = port.subscribe("rules", events.append)
        assert port.unsubscribe(token) is True
        assert port.unsubscribe(token) is False
        port.mutate("rules", "insert", Rule(text="x", direction="buy"))
        assert events == []

    def test_failing_handler_does_not_abort(self, temp_db: DataStore):
        port = LocalDataAccess(temp_db)
        seen = []

        def broken(event):
            raise RuntimeError("boom")

        port.subscribe("trades", broken)
        port.subscribe("trades", seen.append)
        trade = sample_trade()
        port.mutate("trades", "insert", trade)

        assert temp_db.get_trade(trade.id) == trade
        assert len(seen) == 1

    def test_update_from_unscoped_port_keeps_owner(self, temp_db: DataStore):
        student = LocalDataAccess(temp_db, user_id="alice")
        mentor = LocalDataAccess(temp_db)
        trade = sample_trade()
        student.mutate("trades", "insert", trade)
        mentor.mutate("trades", "update", trade.model_copy(update={"validation_result": "approved"}))

        assert [t.id for t in student.fetch("trades")] == [trade.id]
        assert student.fetch("trades")[0].validation_result == "approved"

    def test_update_unknown_trade(self, temp_db: DataStore):
        port = LocalDataAccess(temp_db)
        with pytest.raises(NotFoundError):
            port.mutate("trades", "update", sample_trade())

    def test_unknown_topic(self, temp_db: DataStore):
        port = LocalDataAccess(temp_db)
        with pytest.raises(ValidationError):
            port.fetch("courses")

    def test_fetch_scoped_to_user(self, temp_db: DataStore):
        mine = LocalDataAccess(temp_db, user_id="alice")
        theirs = LocalDataAccess(temp_db, user_id="bob")
        trade = sample_trade()
        mine.mutate("trades", "insert", trade)
        assert [t.id for t in mine.fetch("trades")] == [trade.id]
        assert theirs.fetch("trades") == []
        assert theirs.fetch("trades", trade_id=trade.id) == [trade]
