"""
RuleProvider - the default catalogue of type-checking and pattern rules.
"""

from nestcheck.core.types import EnumDomain

from . import pattern_rules, type_rules
from .base_validator import BaseRuleProvider
from .enum_rule import EnumRuleMixin
from .pattern_rules import PatternRulesMixin
from .type_rules import TypeRulesMixin


class RuleProvider(EnumRuleMixin, TypeRulesMixin, PatternRulesMixin, BaseRuleProvider):
    """
    Default rule provider.

    The enum domain replaces a family of near-identical provider variants:
    pass EnumDomain.EQUATABLE for a provider whose enum rule only accepts
    bool|int|str, EnumDomain.SCALAR_NULLABLE (default) to also accept
    float and None.

    Usage:
        provider = RuleProvider(EnumDomain.EQUATABLE)
        provider.apply("range", 2, 1, 3)  # True
    """

    TYPE_RULES = type_rules.TYPE_RULES
    PATTERN_RULES = pattern_rules.PATTERN_RULES
    PARAMS_REQUIRED = pattern_rules.PARAMS_REQUIRED
    PARAMS_ALLOWED = pattern_rules.PARAMS_ALLOWED
    RULES_RENAMED = pattern_rules.RULES_RENAMED

    def __init__(self, enum_domain: EnumDomain = EnumDomain.SCALAR_NULLABLE):
        super().__init__(enum_domain)
