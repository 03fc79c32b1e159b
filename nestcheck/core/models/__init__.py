"""
Core data models of the rule set validator.

All models use Pydantic for runtime validation and immutability.
"""

from .challenge_result import ChallengeResult
from .failure_record import FailureRecord
from .rule import Rule
from .rule_set import ListItems, RuleInvocation, RuleSet, TableElements

__all__ = [
    "Rule",
    "RuleInvocation",
    "RuleSet",
    "TableElements",
    "ListItems",
    "FailureRecord",
    "ChallengeResult",
]
