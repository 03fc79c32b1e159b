"""
nestcheck - validation of nested data against declarative rule sets.

Usage:
    from nestcheck import Validator

    validator = Validator()
    rule_set = validator.make({
        "tableElements": {
            "name": {"string": True, "minLength": 1},
            "age": {"integer": True, "range": [0, 150]},
        }
    })
    result = validator.validate({"name": "Ann", "age": 200}, rule_set)
"""

from nestcheck.config import NestcheckSettings, get_settings
from nestcheck.core.exceptions import (
    AmbiguousEnumError,
    EnumDomainError,
    RecursionLimitError,
    RuleArityError,
    RuleProviderError,
    RuleSetError,
    RuleSourceError,
    UnknownRuleError,
)
from nestcheck.core.models import ChallengeResult, FailureRecord, ListItems, Rule, RuleInvocation, RuleSet, TableElements
from nestcheck.core.rules import (
    Challenger,
    FailureRecorder,
    RuleSetBuilder,
    RuleSetFactory,
    RuleSetLoader,
    Validator,
)
from nestcheck.core.types import MISSING, EnumDomain, TypeTag
from nestcheck.core.validators import BaseRuleProvider, RuleProvider

RECORD = Challenger.RECORD
CONTINUE = Challenger.CONTINUE

__version__ = "1.0.0"

__all__ = [
    "RECORD",
    "CONTINUE",
    "MISSING",
    "TypeTag",
    "EnumDomain",
    "NestcheckSettings",
    "get_settings",
    "BaseRuleProvider",
    "RuleProvider",
    "RuleSetFactory",
    "Challenger",
    "FailureRecorder",
    "Validator",
    "RuleSetLoader",
    "RuleSetBuilder",
    "Rule",
    "RuleInvocation",
    "RuleSet",
    "TableElements",
    "ListItems",
    "FailureRecord",
    "ChallengeResult",
    "RuleSetError",
    "UnknownRuleError",
    "RuleArityError",
    "RuleSourceError",
    "EnumDomainError",
    "AmbiguousEnumError",
    "RecursionLimitError",
    "RuleProviderError",
]
