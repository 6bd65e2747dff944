"""Scenario matchers used by the rule engine.

A matcher decides whether a free-text trade scenario satisfies a single
rule. The engine only depends on the :class:`RuleMatcher` interface, so a
stricter matcher can be swapped in without touching :class:`RuleSet`.
"""

from abc import ABC, abstractmethod

from mentordesk.models import Rule


class RuleMatcher(ABC):
    """Abstract base class for rule matchers."""

    @abstractmethod
    def matches(self, rule: Rule, scenario_text: str) -> bool:
        """Check whether a scenario satisfies a rule.

        Args:
            rule: The rule to check.
            scenario_text: Free-text description of the trade.

        Returns:
            True if the rule is satisfied, False otherwise.
        """
        pass


class TokenOverlapMatcher(RuleMatcher):
    """Keyword-overlap heuristic.

    The rule text is split on whitespace and tokens shorter than
    ``min_token_length`` are dropped. The rule is satisfied when any
    remaining token appears as a substring of the lower-cased scenario.
    This is not semantic matching: "sweep" matches "sweeping" and
    "no liquidity sweep" still satisfies "Wait for liquidity sweep".
    """

    def __init__(self, min_token_length: int = 4):
        if min_token_length < 1:
            raise ValueError("min_token_length must be at least 1")
        self.min_token_length = min_token_length

    def keywords(self, text: str) -> list[str]:
        """Extract the lower-cased keywords of a rule text."""
        return [
            token.lower()
            for token in text.split()
            if len(token) >= self.min_token_length
        ]

    def matches(self, rule: Rule, scenario_text: str) -> bool:
        scenario = scenario_text.lower()
        return any(keyword in scenario for keyword in self.keywords(rule.text))
