"""
The enum rule, parameterized by the provider's enum domain.

One predicate covers every scalar domain; the domain decides whether None
and float subjects are compared at all. Non-float scalars compare strictly
by type and value, floats compare with epsilon tolerance.
"""

import sys
from typing import Any

from nestcheck.core.types import EnumDomain


def compare_float(allowed: float, subject: float) -> bool:
    return abs(allowed - subject) < sys.float_info.epsilon


def strict_equal(allowed: Any, subject: Any) -> bool:
    """Equality without bool/int/float cross-matching."""
    if type(allowed) is not type(subject):
        return False
    if type(subject) is float:
        return compare_float(allowed, subject)
    return allowed == subject


def enum_contains(domain: EnumDomain, subject: Any, allowed_values: tuple[Any, ...]) -> bool:
    """
    Subject strictly equal to one of the allowed values.

    Args:
        domain: Scalar domain accepted by the enum rule
        subject: Value to look up
        allowed_values: Flat sequence of scalar|None

    Raises:
        ValueError: If allowed_values is empty
    """
    if not allowed_values:
        raise ValueError("allowed_values is empty")
    if subject is None:
        return domain.accepts_null and any(allowed is None for allowed in allowed_values)
    if type(subject) is float:
        if not domain.accepts_float:
            return False
    elif not isinstance(subject, (bool, int, str)):
        return False
    return any(strict_equal(allowed, subject) for allowed in allowed_values)


class EnumRuleMixin:
    """enum rule method of a rule provider."""

    enum_domain: EnumDomain

    def enum(self, subject: Any, allowed_values: tuple[Any, ...]) -> bool:
        return enum_contains(self.enum_domain, subject, allowed_values)
