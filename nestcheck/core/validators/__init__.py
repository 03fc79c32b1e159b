"""
Rule providers.

Provides the rule provider contract and the default catalogue of
type-checking and pattern rules.
"""

from .base_validator import BaseRuleProvider
from .enum_rule import enum_contains
from .rule_provider import RuleProvider

__all__ = [
    "BaseRuleProvider",
    "RuleProvider",
    "enum_contains",
]
