"""Protocol rule engine for MentorDesk."""

from mentordesk.rules.engine import RuleSet
from mentordesk.rules.matchers import RuleMatcher, TokenOverlapMatcher

__all__ = ["RuleSet", "RuleMatcher", "TokenOverlapMatcher"]
