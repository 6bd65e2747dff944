"""Data-access port and its local SQLite implementation.

Services receive a :class:`DataAccessPort` instead of reaching for a
shared client, so they can run against :class:`LocalDataAccess` (or a test
double) without a hosted backend.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Literal, Optional

from pydantic import BaseModel, Field

from mentordesk.db.store import DataStore
from mentordesk.errors import NotFoundError, ValidationError
from mentordesk.models import Rule, TradeEntry

logger = logging.getLogger(__name__)

Topic = Literal["rules", "trades"]
TOPICS: tuple[str, ...] = ("rules", "trades")
ChangeAction = Literal["insert", "update", "delete", "reorder"]


class ChangeEvent(BaseModel):
    """A record change pushed to subscribers."""

    topic: Topic = Field(..., description="Changed collection")
    action: ChangeAction = Field(..., description="Kind of change")
    record: Any = Field(default=None, description="New record, deleted ID or ID list")

    model_config = {"frozen": True}


ChangeHandler = Callable[[ChangeEvent], None]


class DataAccessPort(ABC):
    """Abstract interface to the record store and its change feed."""

    @abstractmethod
    def fetch(self, topic: str, **filters) -> list:
        """Fetch records of a topic.

        Args:
            topic: 'rules' or 'trades'.
            **filters: Topic-specific filters.

        Returns:
            List of models.
        """
        pass

    @abstractmethod
    def mutate(self, topic: str, action: str, payload: Any) -> Any:
        """Apply a change and notify subscribers.

        Args:
            topic: 'rules' or 'trades'.
            action: 'insert', 'update', 'delete' or 'reorder'.
            payload: Model to write, ID to delete, or ID list to reorder.

        Returns:
            The stored record or the payload.
        """
        pass

    @abstractmethod
    def subscribe(self, topic: str, handler: ChangeHandler) -> str:
        """Register a change handler and return its unsubscribe token."""
        pass

    @abstractmethod
    def unsubscribe(self, token: str) -> bool:
        """Remove a handler. Returns False for unknown tokens."""
        pass


class LocalDataAccess(DataAccessPort):
    """DataAccessPort backed by a local :class:`DataStore`."""

    def __init__(self, store: DataStore, user_id: Optional[str] = None):
        """Initialize the adapter.

        Args:
            store: Underlying SQLite store.
            user_id: Owner stamped on inserted trades and rules.
        """
        self.store = store
        self.user_id = user_id
        self._subscribers: dict[str, tuple[str, ChangeHandler]] = {}

    @staticmethod
    def _check_topic(topic: str) -> None:
        if topic not in TOPICS:
            raise ValidationError(f"Unknown topic '{topic}'")

    def fetch(self, topic: str, **filters) -> list:
        self._check_topic(topic)
        if topic == "rules":
            return self.store.get_rules(direction=filters.get("direction"))
        if "trade_id" in filters:
            trade = self.store.get_trade(filters["trade_id"])
            return [trade] if trade else []
        if "user_id" not in filters and self.user_id is not None:
            filters["user_id"] = self.user_id
        return self.store.get_trades(**filters)

    def mutate(self, topic: str, action: str, payload: Any) -> Any:
        self._check_topic(topic)
        if topic == "rules":
            record = self._mutate_rules(action, payload)
        else:
            record = self._mutate_trades(action, payload)
        self._notify(ChangeEvent(topic=topic, action=action, record=record))
        return record

    def _mutate_rules(self, action: str, payload: Any) -> Any:
        if action in ("insert", "update"):
            if not isinstance(payload, Rule):
                raise ValidationError("Rule mutations require a Rule payload")
            self.store.save_rule(payload, created_by=self.user_id)
            return payload
        if action == "delete":
            self.store.delete_rule(payload)
            return payload
        if action == "reorder":
            self.store.save_rule_order(list(payload))
            return list(payload)
        raise ValidationError(f"Unsupported rules action '{action}'")

    def _mutate_trades(self, action: str, payload: Any) -> Any:
        if action == "insert":
            if not isinstance(payload, TradeEntry):
                raise ValidationError("Trade mutations require a TradeEntry payload")
            self.store.save_trade(payload, user_id=self.user_id)
            return payload
        if action == "update":
            if not isinstance(payload, TradeEntry):
                raise ValidationError("Trade mutations require a TradeEntry payload")
            if self.store.get_trade(payload.id) is None:
                raise NotFoundError(f"Trade '{payload.id}' not found")
            self.store.save_trade(payload, user_id=self.user_id)
            return payload
        if action == "delete":
            self.store.delete_trade(payload)
            return payload
        raise ValidationError(f"Unsupported trades action '{action}'")

    def subscribe(self, topic: str, handler: ChangeHandler) -> str:
        self._check_topic(topic)
        token = uuid.uuid4().hex
        self._subscribers[token] = (topic, handler)
        logger.debug("Subscribed %s to %s", token, topic)
        return token

    def unsubscribe(self, token: str) -> bool:
        return self._subscribers.pop(token, None) is not None

    def _notify(self, event: ChangeEvent) -> None:
        for token, (topic, handler) in list(self._subscribers.items()):
            if topic != event.topic:
                continue
            try:
                handler(event)
            except Exception:
                logger.exception("Change handler %s failed for %s/%s", token, event.topic, event.action)
