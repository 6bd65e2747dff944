"""PerformanceSummary data model."""

from typing import Optional, Union

from pydantic import BaseModel, Field, field_serializer
from pydantic.alias_generators import to_camel

# Display value for a profit factor with no losing trades
PROFIT_FACTOR_UNDEFINED = "undefined"


class GroupStats(BaseModel):
    """Win/loss tally and P&L for one breakdown key."""

    wins: int = Field(default=0, ge=0, description="Trades with status win")
    losses: int = Field(default=0, ge=0, description="Trades with status loss")
    pnl: float = Field(default=0.0, description="Summed P&L")
    total: int = Field(default=0, ge=0, description="Trades in the group")

    model_config = {"frozen": True}


class PerformanceSummary(BaseModel):
    """Aggregate statistics derived from a list of trades."""

    total: int = Field(..., ge=0, description="Number of trades")
    wins: int = Field(..., ge=0, description="Trades with status win")
    losses: int = Field(..., ge=0, description="Trades with status loss")
    breakeven: int = Field(..., ge=0, description="Trades with status breakeven")
    closed_trades: int = Field(..., ge=0, description="wins + losses + breakeven")
    win_rate: int = Field(..., ge=0, le=100, description="Rounded win percentage")
    decided_win_rate: int = Field(
        default=0, ge=0, le=100, description="Rounded wins / (wins + losses) percentage"
    )
    total_pnl: float = Field(..., description="Summed P&L")
    avg_pnl: float = Field(..., description="P&L per closed trade")
    largest_win: float = Field(..., ge=0, description="Largest positive P&L")
    largest_loss: float = Field(..., le=0, description="Largest negative P&L")
    profit_factor: Optional[float] = Field(
        default=None, description="Gross win / gross loss, None when undefined"
    )
    strategy_stats: dict[str, GroupStats] = Field(default_factory=dict)
    time_frame_stats: dict[str, GroupStats] = Field(default_factory=dict)
    pair_stats: dict[str, GroupStats] = Field(default_factory=dict)

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @property
    def profit_factor_defined(self) -> bool:
        return self.profit_factor is not None

    @property
    def profit_factor_display(self) -> str:
        if self.profit_factor is None:
            return PROFIT_FACTOR_UNDEFINED
        return f"{self.profit_factor:.2f}"

    @field_serializer("profit_factor")
    def _serialize_profit_factor(self, value: Optional[float]) -> Union[float, str]:
        return PROFIT_FACTOR_UNDEFINED if value is None else value
