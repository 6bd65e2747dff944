"""Ordered, direction-partitioned rule collection."""

import logging
from typing import Iterable, Iterator, Optional

from mentordesk.errors import NotFoundError, ValidationError
from mentordesk.models import DIRECTIONS, Rule, RuleEvaluationResult
from mentordesk.rules.matchers import RuleMatcher, TokenOverlapMatcher

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("text", "direction", "required")


def _check_direction(direction: str) -> None:
    if direction not in DIRECTIONS:
        raise ValidationError(
            f"Invalid direction '{direction}'. Expected one of: {', '.join(DIRECTIONS)}"
        )


def _clean_text(text: str) -> str:
    if text is None or not str(text).strip():
        raise ValidationError("Rule text must not be empty")
    return str(text).strip()


class RuleSet:
    """Protocol checklist for buy and sell setups.

    Rules are kept in insertion order; ``list_by_direction`` sorts them by
    ``order_number`` with a stable sort so equal numbers keep that order.
    All mutations validate their full input before changing anything.
    """

    def __init__(
        self,
        rules: Optional[Iterable[Rule]] = None,
        matcher: Optional[RuleMatcher] = None,
    ):
        """Initialize the rule set.

        Args:
            rules: Initial rules. The iterable is copied, never mutated.
            matcher: Matcher used by ``evaluate``. Defaults to
                :class:`TokenOverlapMatcher`.
        """
        self._rules: list[Rule] = list(rules or [])
        self.matcher = matcher or TokenOverlapMatcher()

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(list(self._rules))

    @property
    def rules(self) -> list[Rule]:
        """All rules in insertion order."""
        return list(self._rules)

    def get(self, rule_id: str) -> Rule:
        """Get a rule by ID.

        Raises:
            NotFoundError: If no rule has this ID.
        """
        return self._rules[self._index_of(rule_id)]

    def _index_of(self, rule_id: str) -> int:
        for index, rule in enumerate(self._rules):
            if rule.id == rule_id:
                return index
        raise NotFoundError(f"Rule '{rule_id}' not found")

    # ==================== Queries ====================

    def list_by_direction(self, direction: str) -> list[Rule]:
        """Rules for one trade side, ascending by order number."""
        _check_direction(direction)
        members = [rule for rule in self._rules if rule.direction == direction]
        return sorted(members, key=lambda rule: rule.order_number)

    def required_rules(self, direction: str) -> list[Rule]:
        """The critical subset of a direction's rules, in order."""
        return [rule for rule in self.list_by_direction(direction) if rule.required]

    # ==================== Mutations ====================

    def add_rule(self, direction: str, text: str, required: bool = True) -> Rule:
        """Append a rule at the end of a direction group.

        Args:
            direction: 'buy' or 'sell'.
            text: Rule criterion. Leading/trailing whitespace is stripped.
            required: Whether the rule blocks approval.

        Returns:
            The created rule.

        Raises:
            ValidationError: If the text is blank or the direction is unknown.
        """
        _check_direction(direction)
        text = _clean_text(text)

        numbers = [r.order_number for r in self._rules if r.direction == direction]
        order_number = max(numbers) + 1 if numbers else 1

        rule = Rule(
            text=text,
            direction=direction,
            required=bool(required),
            order_number=order_number,
        )
        self._rules.append(rule)
        logger.info("Added %s rule %s at position %d", direction, rule.id, order_number)
        return rule

    def update_rule(self, rule_id: str, **fields) -> Rule:
        """Update text, direction or required flag of a rule in place.

        A direction change keeps the rule's order number, which may collide
        with a rule already in the target group. Collisions are not
        renumbered.

        Raises:
            NotFoundError: If the rule does not exist.
            ValidationError: If a field is unknown or has an invalid value.
        """
        index = self._index_of(rule_id)

        unknown = sorted(set(fields) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Cannot update rule field(s): {', '.join(unknown)}")

        updates = {}
        if "text" in fields:
            updates["text"] = _clean_text(fields["text"])
        if "direction" in fields:
            _check_direction(fields["direction"])
            updates["direction"] = fields["direction"]
        if "required" in fields:
            updates["required"] = bool(fields["required"])

        rule = self._rules[index].model_copy(update=updates)
        self._rules[index] = rule
        logger.info("Updated rule %s: %s", rule_id, ", ".join(sorted(updates)) or "no changes")
        return rule

    def delete_rule(self, rule_id: str) -> None:
        """Remove a rule permanently. Remaining rules keep their numbers.

        Raises:
            NotFoundError: If the rule does not exist.
        """
        index = self._index_of(rule_id)
        del self._rules[index]
        logger.info("Deleted rule %s", rule_id)

    def reorder(self, direction: str, ordered_ids: list[str]) -> None:
        """Renumber a direction group to follow ``ordered_ids``.

        Args:
            direction: 'buy' or 'sell'.
            ordered_ids: Every rule ID of the direction, in the new order.

        Raises:
            NotFoundError: If an ID is unknown, duplicated, missing, or
                belongs to the other direction.
        """
        _check_direction(direction)
        ordered_ids = list(ordered_ids)
        members = {rule.id for rule in self._rules if rule.direction == direction}

        if len(set(ordered_ids)) != len(ordered_ids):
            raise NotFoundError("Duplicate rule IDs in reorder request")
        unknown = [rule_id for rule_id in ordered_ids if rule_id not in members]
        if unknown:
            raise NotFoundError(
                f"Rule(s) not found in {direction} rules: {', '.join(unknown)}"
            )
        missing = members - set(ordered_ids)
        if missing:
            raise NotFoundError(
                f"Reorder must list every {direction} rule; missing: {', '.join(sorted(missing))}"
            )

        positions = {rule_id: number for number, rule_id in enumerate(ordered_ids, start=1)}
        self._rules = [
            rule.model_copy(update={"order_number": positions[rule.id]})
            if rule.id in positions
            else rule
            for rule in self._rules
        ]
        logger.info("Reordered %d %s rules", len(ordered_ids), direction)

    # ==================== Evaluation ====================

    def evaluate(self, direction: str, scenario_text: str) -> RuleEvaluationResult:
        """Check a free-text trade scenario against the direction's rules.

        The scenario is approved when every required rule is satisfied
        (vacuously approved if there are none). Advisory rules are reported
        in ``advisory_misses`` but never change the outcome.

        Args:
            direction: 'buy' or 'sell'.
            scenario_text: Description of the planned or taken trade.

        Returns:
            RuleEvaluationResult.
        """
        rules = self.list_by_direction(direction)
        scenario_text = scenario_text or ""

        required = [rule for rule in rules if rule.required]
        failed = [rule for rule in required if not self.matcher.matches(rule, scenario_text)]
        advisory_misses = [
            rule
            for rule in rules
            if not rule.required and not self.matcher.matches(rule, scenario_text)
        ]

        return RuleEvaluationResult(
            outcome="rejected" if failed else "approved",
            evaluated_against=required,
            failed_rules=failed,
            advisory_misses=advisory_misses,
        )
