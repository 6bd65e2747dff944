"""Journal and rule-book services.

These sit between the CLI and the data-access port: they validate input,
keep the status/pnl invariant, and feed the pure rule engine and
performance analyzer with models fetched from the port.
"""

import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from mentordesk.analytics.filters import TradeFilter
from mentordesk.analytics.performance import summarize
from mentordesk.db.port import ChangeEvent, DataAccessPort
from mentordesk.errors import NotFoundError, ValidationError
from mentordesk.models import (
    PerformanceSummary,
    Rule,
    RuleEvaluationResult,
    TradeEntry,
    status_for_pnl,
)
from mentordesk.rules import RuleMatcher, RuleSet

logger = logging.getLogger(__name__)


def _build_trade(data: dict) -> TradeEntry:
    try:
        return TradeEntry(**data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid trade: {e}") from e


class JournalService:
    """Create, edit, close and summarize journaled trades."""

    def __init__(
        self,
        port: DataAccessPort,
        enforce_status_from_pnl: bool = True,
        default_source: Optional[str] = None,
    ):
        """Initialize the journal service.

        Args:
            port: Data-access port.
            enforce_status_from_pnl: Recompute ``status`` from ``pnl``
                whenever a P&L is present. When False an explicit status is
                kept even if it contradicts the P&L sign.
            default_source: ``trade_source`` applied when none is given.
        """
        self.port = port
        self.enforce_status_from_pnl = enforce_status_from_pnl
        self.default_source = default_source

    def _resolve_status(
        self, data: dict, explicit_status: bool, pnl_changed: bool
    ) -> dict:
        pnl = data.get("pnl")
        if pnl is None:
            return data

        derived = status_for_pnl(pnl)
        current = data.get("status")
        if explicit_status and current != derived:
            if self.enforce_status_from_pnl:
                logger.warning(
                    "Status '%s' contradicts pnl %s; using '%s'", current, pnl, derived
                )
            else:
                logger.warning(
                    "Keeping status '%s' although pnl %s implies '%s'", current, pnl, derived
                )
                return data

        if self.enforce_status_from_pnl or (pnl_changed and not explicit_status):
            data["status"] = derived
        return data

    def get_trade(self, trade_id: str) -> TradeEntry:
        """Get a trade by ID.

        Raises:
            NotFoundError: If the trade does not exist.
        """
        found = self.port.fetch("trades", trade_id=trade_id)
        if not found:
            raise NotFoundError(f"Trade '{trade_id}' not found")
        return found[0]

    def log_trade(self, **fields) -> TradeEntry:
        """Record a new trade.

        Args:
            **fields: TradeEntry fields.

        Returns:
            The stored trade.

        Raises:
            ValidationError: If the fields do not form a valid trade.
        """
        data = dict(fields)
        if self.default_source and not data.get("trade_source"):
            data["trade_source"] = self.default_source
        data = self._resolve_status(
            data, explicit_status="status" in fields, pnl_changed="pnl" in fields
        )

        trade = _build_trade(data)
        self.port.mutate("trades", "insert", trade)
        logger.info("Logged %s %s trade %s", trade.type, trade.pair, trade.id)
        return trade

    def update_trade(self, trade_id: str, **fields) -> TradeEntry:
        """Edit fields of an existing trade.

        Raises:
            NotFoundError: If the trade does not exist.
            ValidationError: If the edit produces an invalid trade.
        """
        if "id" in fields and fields["id"] != trade_id:
            raise ValidationError("Trade ID cannot be changed")

        existing = self.get_trade(trade_id)
        data = {**existing.model_dump(), **fields}
        data = self._resolve_status(
            data, explicit_status="status" in fields, pnl_changed="pnl" in fields
        )

        trade = _build_trade(data)
        self.port.mutate("trades", "update", trade)
        return trade

    def close_trade(self, trade_id: str, exit_price: float, pnl: float) -> TradeEntry:
        """Record the exit fill of a trade. Status always follows the P&L."""
        existing = self.get_trade(trade_id)
        data = {
            **existing.model_dump(),
            "exit_price": exit_price,
            "pnl": pnl,
            "status": status_for_pnl(pnl),
        }
        trade = _build_trade(data)
        self.port.mutate("trades", "update", trade)
        logger.info("Closed trade %s as %s (pnl %s)", trade_id, trade.status, pnl)
        return trade

    def delete_trade(self, trade_id: str) -> None:
        """Delete a trade permanently."""
        self.port.mutate("trades", "delete", trade_id)

    def list_trades(
        self, trade_filter: Optional[TradeFilter] = None, **fetch_filters
    ) -> list[TradeEntry]:
        """Fetch trades and apply an optional view filter."""
        trades = self.port.fetch("trades", **fetch_filters)
        if trade_filter is not None:
            trades = trade_filter.apply(trades)
        return trades

    def summarize(
        self, trade_filter: Optional[TradeFilter] = None, **fetch_filters
    ) -> PerformanceSummary:
        """Performance summary of the (filtered) journal."""
        return summarize(self.list_trades(trade_filter, **fetch_filters))


class RuleBookService:
    """Keep a :class:`RuleSet` in step with the rules stored behind a port."""

    def __init__(self, port: DataAccessPort, matcher: Optional[RuleMatcher] = None):
        self.port = port
        self.matcher = matcher
        self.rule_set = RuleSet(matcher=matcher)
        self._token: Optional[str] = None
        self.load()

    def load(self) -> RuleSet:
        """Reload the rule set from the port."""
        self.rule_set = RuleSet(self.port.fetch("rules"), matcher=self.matcher)
        return self.rule_set

    def watch(self) -> str:
        """Reload automatically whenever rules change behind the port."""
        if self._token is None:
            self._token = self.port.subscribe("rules", self._on_change)
        return self._token

    def close(self) -> None:
        """Stop watching for rule changes."""
        if self._token is not None:
            self.port.unsubscribe(self._token)
            self._token = None

    def _on_change(self, event: ChangeEvent) -> None:
        logger.debug("Rules changed (%s); reloading", event.action)
        self.load()

    def _persist(self, action: str, payload) -> None:
        try:
            self.port.mutate("rules", action, payload)
        except Exception:
            # Keep memory and storage identical after a failed write
            self.load()
            raise

    def list_rules(self, direction: str) -> list[Rule]:
        return self.rule_set.list_by_direction(direction)

    def add_rule(self, direction: str, text: str, required: bool = True) -> Rule:
        rule = self.rule_set.add_rule(direction, text, required)
        self._persist("insert", rule)
        return rule

    def update_rule(self, rule_id: str, **fields) -> Rule:
        rule = self.rule_set.update_rule(rule_id, **fields)
        self._persist("update", rule)
        return rule

    def delete_rule(self, rule_id: str) -> None:
        self.rule_set.delete_rule(rule_id)
        self._persist("delete", rule_id)

    def reorder(self, direction: str, ordered_ids: list[str]) -> None:
        self.rule_set.reorder(direction, ordered_ids)
        self._persist("reorder", list(ordered_ids))

    def evaluate(self, direction: str, scenario_text: str) -> RuleEvaluationResult:
        return self.rule_set.evaluate(direction, scenario_text)

    def validate_trade(
        self,
        journal: JournalService,
        trade_id: str,
        scenario_text: Optional[str] = None,
    ) -> tuple[TradeEntry, RuleEvaluationResult]:
        """Evaluate a journaled trade and stamp its ``validation_result``.

        Args:
            journal: Journal holding the trade.
            trade_id: Trade to validate.
            scenario_text: Text to evaluate; defaults to the trade notes.

        Returns:
            Tuple of (updated trade, evaluation result).
        """
        trade = journal.get_trade(trade_id)
        text = scenario_text if scenario_text is not None else trade.notes
        result = self.evaluate(trade.type, text)
        updated = journal.update_trade(trade_id, validation_result=result.outcome)
        return updated, result
