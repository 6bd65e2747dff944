"""TradeEntry data model."""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

TradeType = Literal["buy", "sell"]
TradeOutcome = Literal["win", "loss", "breakeven", "pending"]
TradeValidationStatus = Literal["none", "approved", "warning", "rejected"]
TradeSource = Literal["demo", "live", "paper"]

CLOSED_STATUSES: tuple[str, ...] = ("win", "loss", "breakeven")


def status_for_pnl(pnl: Optional[float]) -> TradeOutcome:
    """Derive the trade outcome implied by a realized P&L.

    Args:
        pnl: Realized profit/loss, or None if the trade is still open.

    Returns:
        'win', 'loss', 'breakeven' or 'pending'.
    """
    if pnl is None:
        return "pending"
    if pnl > 0:
        return "win"
    if pnl < 0:
        return "loss"
    return "breakeven"


class TradeEntry(BaseModel):
    """Represents a single journaled trade."""

    id: str = Field(
        default_factory=lambda: uuid.uuid4().hex, description="Journal entry ID"
    )
    pair: str = Field(..., min_length=1, description="Instrument symbol (e.g. EURUSD)")
    type: TradeType = Field(..., description="Trade side (buy/sell)")
    entry_price: float = Field(..., gt=0, description="Entry price")
    stop_loss: float = Field(..., gt=0, description="Stop-loss price")
    take_profit: float = Field(..., gt=0, description="Take-profit price")
    exit_price: Optional[float] = Field(default=None, gt=0, description="Exit fill price")
    status: TradeOutcome = Field(default="pending", description="Trade outcome")
    pnl: Optional[float] = Field(default=None, description="Realized P&L")
    date: datetime = Field(default_factory=datetime.now, description="Trade timestamp")
    notes: str = Field(default="", description="Free-form notes")
    emotions: list[str] = Field(default_factory=list, description="Emotional tags")
    strategy: Optional[str] = Field(default=None, description="Strategy name")
    time_frame: Optional[str] = Field(default=None, description="Chart time frame")
    market_condition: Optional[str] = Field(default=None, description="Market regime")
    confidence_level: Optional[int] = Field(
        default=None, ge=1, le=10, description="Self-rated confidence (1-10)"
    )
    risk_amount: Optional[float] = Field(default=None, ge=0, description="Amount at risk")
    position_size: Optional[float] = Field(default=None, ge=0, description="Position size")
    trade_duration: Optional[str] = Field(default=None, description="Holding duration")
    tags: list[str] = Field(default_factory=list, description="User tags")
    trade_source: Optional[TradeSource] = Field(default=None, description="demo/live/paper")
    validation_result: TradeValidationStatus = Field(
        default="none", description="Protocol validation outcome"
    )
    admin_notes: Optional[str] = Field(default=None, description="Mentor notes")
    admin_review_status: Optional[str] = Field(default=None, description="Review status")
    review_timestamp: Optional[datetime] = Field(default=None, description="Review time")
    mentor_id: Optional[str] = Field(default=None, description="Reviewing mentor")
    session_id: Optional[str] = Field(default=None, description="Trading session")
    screenshot_url: Optional[str] = Field(default=None, description="Chart screenshot")

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @field_validator("date", "review_timestamp")
    @classmethod
    def _to_local_naive(cls, value: Optional[datetime]) -> Optional[datetime]:
        """Store timestamps as naive local time, like ``datetime.now()``.

        Offset-aware inputs (e.g. ISO strings ending in ``Z``) are converted
        so every trade compares and sorts against every other.
        """
        if value is not None and value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value

    @property
    def is_closed(self) -> bool:
        """Whether the trade has a final outcome."""
        return self.status in CLOSED_STATUSES

    @property
    def status_consistent(self) -> bool:
        """False when a closed status contradicts the sign of pnl."""
        if self.pnl is None or not self.is_closed:
            return True
        return status_for_pnl(self.pnl) == self.status
