"""
Errors raised while building validation rule sets.

Validation failures are never raised; a failing subject yields False
plus optional failure records. Everything here signals a broken rule set
(or a broken rule provider) and is raised synchronously at build time.
"""

from typing import Any


class RuleSetError(ValueError):
    """Raised when a rule set source cannot be turned into a RuleSet."""

    def __init__(
        self,
        message: str,
        rule_name: str | None = None,
        key_path: tuple[Any, ...] = (),
        depth: int = 0,
    ):
        self.message = message
        self.rule_name = rule_name
        self.key_path = tuple(key_path)
        self.depth = depth
        super().__init__(self._format())

    def _format(self) -> str:
        location = " > ".join(["root", *(str(k) for k in self.key_path)])
        prefix = f"[{self.rule_name}] " if self.rule_name else ""
        return f"{prefix}({self.depth}) {location}: {self.message}"


class UnknownRuleError(RuleSetError):
    """Rule name not supported by the rule provider."""


class RuleArityError(RuleSetError):
    """Rule declared with too few or too many arguments."""


class RuleSourceError(RuleSetError):
    """Rule set source has a malformed shape."""


class EnumDomainError(RuleSetError):
    """enum/alternativeEnum value outside the provider's scalar domain."""


class AmbiguousEnumError(RuleSetError):
    """enum/alternativeEnum nesting that cannot be resolved without guessing."""


class RecursionLimitError(RuleSetError):
    """Rule set nested deeper than the configured recursion limit."""


class RuleProviderError(LookupError):
    """Rule provider asked to apply a rule it doesn't define."""

    def __init__(self, rule_name: str, provider: str):
        self.rule_name = rule_name
        self.provider = provider
        super().__init__(f"Rule provider {provider} has no rule[{rule_name}]")
