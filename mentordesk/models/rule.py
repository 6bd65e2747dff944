"""Rule and RuleEvaluationResult data models."""

import uuid
from typing import Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

Direction = Literal["buy", "sell"]
DIRECTIONS: tuple[str, ...] = ("buy", "sell")


class Rule(BaseModel):
    """A single entry/exit criterion in a protocol checklist."""

    id: str = Field(
        default_factory=lambda: uuid.uuid4().hex, description="Opaque rule ID"
    )
    text: str = Field(..., min_length=1, description="Natural-language criterion")
    direction: Direction = Field(..., description="Trade side (buy/sell)")
    required: bool = Field(
        default=True, description="Critical (True) or advisory guideline (False)"
    )
    order_number: int = Field(
        default=0, ge=0, description="Position within the direction group"
    )

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class RuleEvaluationResult(BaseModel):
    """Outcome of checking a scenario against a direction's rules."""

    outcome: Literal["approved", "rejected"] = Field(
        ..., description="Whether every required rule was satisfied"
    )
    evaluated_against: list[Rule] = Field(
        default_factory=list, description="Required rules checked, in order"
    )
    failed_rules: list[Rule] = Field(
        default_factory=list, description="Required rules that were not satisfied"
    )
    advisory_misses: list[Rule] = Field(
        default_factory=list, description="Advisory rules that were not satisfied"
    )

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @property
    def approved(self) -> bool:
        return self.outcome == "approved"
