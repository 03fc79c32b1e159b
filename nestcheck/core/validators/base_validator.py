"""
Base rule provider interface.

A rule provider supplies named predicates plus their metadata. The rule set
factory consults the metadata; the challenger applies the predicates.
All providers must inherit from BaseRuleProvider and declare their rules
through the class-level tables below.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from typing import Any

from nestcheck.core.exceptions import RuleProviderError
from nestcheck.core.models import Rule
from nestcheck.core.types import EnumDomain, TypeTag


class BaseRuleProvider(ABC):
    """
    Abstract base class for all rule providers.

    Subclasses declare:
    - TYPE_RULES: type-checking rule name -> TypeTag
    - PATTERN_RULES: pattern rule name -> TypeTag
    - PARAMS_REQUIRED / PARAMS_ALLOWED: rule name -> number of arguments
    - RULES_RENAMED: deprecated name -> current name

    Every rule is a method of the provider taking the subject as first argument.
    The 'enum' rule type is derived from the provider's enum domain.

    A provider carries no state beyond its metadata, which is computed once
    in the constructor.
    """

    TYPE_RULES: dict[str, TypeTag] = {}
    PATTERN_RULES: dict[str, TypeTag] = {}
    PARAMS_REQUIRED: dict[str, int] = {}
    PARAMS_ALLOWED: dict[str, int] = {}
    RULES_RENAMED: dict[str, str] = {}

    def __init__(self, enum_domain: EnumDomain = EnumDomain.SCALAR_NULLABLE):
        """
        Initialize provider metadata.

        Args:
            enum_domain: Scalar domain accepted by the enum rule
        """
        self.enum_domain = EnumDomain(enum_domain)
        self._pattern_types = dict(self.PATTERN_RULES)
        if "enum" in self._pattern_types:
            self._pattern_types["enum"] = self.enum_domain.type_tag
        self._rules: dict[str, Rule] = {}
        for name in (*self.TYPE_RULES, *self._pattern_types):
            self._rules[name] = self._describe(name)
        self._type_rules_by_type = self._index_type_rules()
        # Pattern rule -> type rule vetting the subject before it.
        self._subject_checks = {
            name: self._type_rules_by_type[type_tag]
            for name, type_tag in self._pattern_types.items()
            if name != "enum" and type_tag in self._type_rules_by_type
        }

    def _describe(self, name: str) -> Rule:
        is_type_checking = name in self.TYPE_RULES
        required = self.PARAMS_REQUIRED.get(name, 0)
        return Rule(
            name=name,
            is_type_checking=is_type_checking,
            type=self.TYPE_RULES[name] if is_type_checking else self._pattern_types[name],
            params_required=required,
            params_allowed=self.PARAMS_ALLOWED.get(name, required),
        )

    def _index_type_rules(self) -> dict[TypeTag, str]:
        # First parameterless type rule per type wins.
        index: dict[TypeTag, str] = {}
        for name, type_tag in self.TYPE_RULES.items():
            if type_tag not in index and not self._rules[name].params_required:
                index[type_tag] = name
        return index

    def get_rule_names(self, type_rules_only: bool = False, pattern_rules_only: bool = False) -> list[str]:
        """
        List names of validation rules.

        Raises:
            ValueError: If both flags are set
        """
        if type_rules_only and pattern_rules_only:
            raise ValueError("type_rules_only and pattern_rules_only cannot both be true")
        if type_rules_only:
            return list(self.TYPE_RULES)
        if pattern_rules_only:
            return list(self._pattern_types)
        return [*self.TYPE_RULES, *self._pattern_types]

    def get_rule(self, name: str) -> Rule | None:
        """
        Get metadata of a rule, resolving renamed aliases.

        Callers should use Rule.name from then on, since the rule may be renamed.

        Returns:
            Rule, or None if the provider doesn't support the rule
        """
        rule = self._rules.get(name)
        if rule is not None:
            return rule
        final_name = self.RULES_RENAMED.get(name)
        if final_name is None or final_name not in self._rules:
            return None
        return self._rules[final_name].model_copy(update={"renamed_from": name})

    def get_type_rule_type(self, name: str) -> TypeTag | None:
        return self.TYPE_RULES.get(name)

    def get_pattern_rule_type(self, name: str) -> TypeTag | None:
        return self._pattern_types.get(name)

    def pattern_rule_to_type_rule(
        self, pattern_type: TypeTag | None = None, pattern_rule_name: str | None = None
    ) -> str | None:
        """
        Get a parameterless type rule fitting as type-checker before a pattern rule.

        Args:
            pattern_type: Type to find a type rule for; ignored if pattern_rule_name
            pattern_rule_name: Pattern rule to find a type rule for

        Returns:
            Type rule name, or None if no match

        Raises:
            ValueError: If both arguments are empty
        """
        if pattern_rule_name:
            type_tag = self._pattern_types.get(pattern_rule_name)
        elif pattern_type is None:
            raise ValueError("pattern_type and pattern_rule_name cannot both be empty")
        else:
            type_tag = pattern_type
        if type_tag is None:
            return None
        return self._type_rules_by_type.get(type_tag)

    def apply(self, name: str, subject: Any, *args: Any) -> bool | str:
        """
        Apply a rule to a subject.

        String results of composite type rules pass through as is.
        A pattern rule is only applied to a subject passing the type rule of
        its type affiliation, and fails otherwise.

        Raises:
            RuleProviderError: If the provider doesn't define the rule
        """
        if name not in self._rules:
            raise RuleProviderError(name, self.__class__.__name__)
        check = self._subject_checks.get(name)
        if check is not None and not getattr(self, check)(subject):
            return False
        return getattr(self, name)(subject, *args)

    def check_arguments(self, name: str, arguments: tuple[Any, ...]) -> str | None:
        """
        Vet the arguments of a rule when a rule set is built.

        Returns:
            Why the arguments are unusable, or None if they are fine
        """
        return None

    def buckets(self, subject: Any) -> Iterator[tuple[Any, Any]] | None:
        """
        Loopable capability: (key, value) pairs of a container subject.

        Returns:
            Iterator of pairs, or None if the subject isn't loopable
        """
        if isinstance(subject, Mapping):
            return iter(subject.items())
        if isinstance(subject, (list, tuple)):
            return enumerate(subject)
        if isinstance(subject, (str, bytes, bytearray)) or subject is None:
            return None
        attributes = getattr(subject, "__dict__", None)
        if isinstance(attributes, dict):
            return ((k, v) for k, v in attributes.items() if not k.startswith("_"))
        return None

    @abstractmethod
    def enum(self, subject: Any, allowed_values: tuple[Any, ...]) -> bool:
        """Subject strictly equal to one of the allowed values."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(enum_domain={self.enum_domain.value}, rules={len(self._rules)})"
