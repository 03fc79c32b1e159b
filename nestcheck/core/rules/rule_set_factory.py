"""
Rule set factory: turns loosely-typed source into validated, immutable RuleSets.

The factory holds the rule provider and the recursion limit; every single
rule set (parent or child) is produced by a one-off RuleSetGenerator.
All errors are raised here, at build time, never deferred to validation.
"""

from collections.abc import Mapping
from typing import Any

from nestcheck.config import get_settings
from nestcheck.core.exceptions import (
    EnumDomainError,
    RecursionLimitError,
    RuleArityError,
    RuleSourceError,
    UnknownRuleError,
)
from nestcheck.core.models import ListItems, Rule, RuleInvocation, RuleSet, TableElements
from nestcheck.core.types import TypeTag
from nestcheck.core.validators import BaseRuleProvider
from nestcheck.observability.logger import get_logger

from .rule_source import Args, Bare, Flag, RuleEntry, SourceEntry, classify_entry, iter_source_entries, normalize_enum_argument

logger = get_logger(__name__)


class RuleSetFactory:
    """
    Creates validation rule sets recursively.

    Usage:
        factory = RuleSetFactory(RuleProvider())
        rule_set = factory.make({"integer": True, "range": [1, 3]})
    """

    def __init__(self, rule_provider: BaseRuleProvider, recursion_limit: int | None = None):
        """
        Initialize the factory.

        Args:
            rule_provider: Provider of the rules referred by rule set sources
            recursion_limit: Maximum rule set nesting depth (default: settings)
        """
        self.rule_provider = rule_provider
        self.recursion_limit = recursion_limit if recursion_limit is not None else get_settings().recursion_limit
        if self.recursion_limit < 1:
            raise ValueError(f"recursion_limit must be positive, got {self.recursion_limit}")

    def make(self, source: Any, depth: int = 0, key_path: tuple[Any, ...] = ()) -> RuleSet:
        """
        Build a RuleSet from source.

        Args:
            source: Mapping or list rule set source, or an already built RuleSet
            depth: Depth of the rule set within its root
            key_path: Keys from root to the rule set, for error messages

        Returns:
            Immutable RuleSet

        Raises:
            RuleSetError: If the source is malformed
        """
        if isinstance(source, RuleSet):
            return source
        rule_set = RuleSetGenerator(self, source, depth, key_path).generate()
        if depth == 0:
            logger.debug(f"Built rule set with rules {list(rule_set.rule_names)}")
        return rule_set


class RuleSetGenerator:
    """
    Creates a single validation rule set, possibly parent of other rule sets.

    Not reusable; the factory spawns a generator per rule set.
    """

    # Pseudo rules that cannot be declared by value.
    ILLEGAL_BY_VALUE = ("enum", "alternativeEnum", "alternativeRuleSet", "tableElements", "listItems")

    # Child pseudo rules illegal for alternativeRuleSet.
    ALTERNATIVE_RULE_SET_ILLEGALS = ("alternative_rule_set", "table_elements", "list_items")

    def __init__(self, factory: RuleSetFactory, source: Any, depth: int, key_path: tuple[Any, ...]):
        if depth >= factory.recursion_limit:
            raise RecursionLimitError(
                f"stopped recursive rule set definition at limit[{factory.recursion_limit}]",
                key_path=key_path,
                depth=depth,
            )
        self.factory = factory
        self.provider = factory.rule_provider
        self.source = source
        self.depth = depth
        self.key_path = tuple(key_path)

        self.candidates: dict[str, tuple[Rule, RuleEntry]] = {}
        self.optional = False
        self.nullable = False
        self.enum_values: tuple[Any, ...] | None = None
        self.type_rules: list[RuleInvocation] = []
        self.pattern_rules: list[RuleInvocation] = []
        self.alternative_enum: tuple[Any, ...] | None = None
        self.alternative_rule_set: RuleSet | None = None
        self.table_elements: TableElements | None = None
        self.list_items: ListItems | None = None
        self.pseudo_rules: set[str] = set()

    def generate(self) -> RuleSet:
        for entry in iter_source_entries(self.source, self.key_path, self.depth):
            if entry.bare_index is not None:
                self._rule_by_value(entry)
            else:
                self._rule_by_key(entry)

        self._resolve_candidates()
        if not self.type_rules:
            self._ensure_type_checking()

        return RuleSet(
            rules=(*self.type_rules, *self.pattern_rules),
            optional=self.optional,
            nullable=self.nullable,
            alternative_enum=self.alternative_enum,
            alternative_rule_set=self.alternative_rule_set,
            table_elements=self.table_elements,
            list_items=self.list_items,
        )

    def _error(self, error_class: type, message: str, rule_name: str | None = None):
        return error_class(message, rule_name=rule_name, key_path=self.key_path, depth=self.depth)

    def _rule_by_value(self, entry: SourceEntry) -> None:
        name = entry.name
        if name == "optional":
            self.optional = True
        elif name in ("nullable", "allowNull"):
            self.nullable = True
        elif name in self.ILLEGAL_BY_VALUE:
            raise self._error(RuleSourceError, f"rule-by-value at index[{entry.bare_index}] is illegal", name)
        else:
            self._add_candidate(entry)

    def _rule_by_key(self, entry: SourceEntry) -> None:
        name, value = entry.name, entry.value
        if name in self.ILLEGAL_BY_VALUE:
            if name in self.pseudo_rules:
                raise self._error(RuleSourceError, "conflicts with rule of same name", name)
            self.pseudo_rules.add(name)
        if name == "optional":
            self.optional = bool(value)
        elif name in ("nullable", "allowNull"):
            self.nullable = self.nullable or bool(value)
        elif name == "enum":
            self._enum(value)
        elif name == "alternativeEnum":
            self.alternative_enum = self._enum_values(value, "alternativeEnum", lift_null=False)
        elif name == "alternativeRuleSet":
            self._alternative_rule_set(value)
        elif name == "tableElements":
            self.table_elements = self._table_elements(value)
        elif name == "listItems":
            self.list_items = self._list_items(value)
        else:
            self._add_candidate(entry)

    def _add_candidate(self, entry: SourceEntry) -> None:
        rule = self.provider.get_rule(entry.name)
        if rule is None:
            raise self._error(UnknownRuleError, "rule is not supported by the rule provider", entry.name)
        # Rule.name, because the rule may be renamed.
        if rule.name in self.candidates:
            raise self._error(RuleSourceError, self._describe(rule, "conflicts with rule of same name"), rule.name)
        self.candidates[rule.name] = (rule, classify_entry(entry, self.key_path, self.depth))

    def _describe(self, rule: Rule, message: str) -> str:
        if rule.renamed_from:
            return f"renamed from[{rule.renamed_from}] {message}"
        return message

    def _resolve_candidates(self) -> None:
        """Check arguments of rules, and sort them into type-checking and pattern rules."""
        for name, (rule, entry) in self.candidates.items():
            arguments = self._resolve_arguments(rule, entry)
            if arguments is None:
                logger.debug(f"Rule {name} disabled at {self._location()}")
                continue
            reason = self.provider.check_arguments(name, arguments)
            if reason is not None:
                raise self._error(RuleSourceError, self._describe(rule, reason), name)
            invocation = RuleInvocation(name=name, arguments=arguments)
            if rule.is_type_checking:
                self.type_rules.append(invocation)
            else:
                self.pattern_rules.append(invocation)
        if self.enum_values:
            self.pattern_rules.append(RuleInvocation(name="enum", arguments=(self.enum_values,)))
        self.candidates = {}

    def _resolve_arguments(self, rule: Rule, entry: RuleEntry) -> tuple[Any, ...] | None:
        """
        Returns:
            Argument tuple, or None if the rule is disabled (declared false)
        """
        if isinstance(entry, Flag):
            if not entry.value:
                return None
            if rule.params_required:
                raise self._error(
                    RuleArityError,
                    self._describe(rule, f"requires list({rule.params_required}) - saw type[true]"),
                    rule.name,
                )
            return ()
        if isinstance(entry, Bare):
            if rule.params_required:
                raise self._error(
                    RuleArityError,
                    self._describe(
                        rule, f"by value at index[{entry.index}] requires {rule.params_required} argument(s)"
                    ),
                    rule.name,
                )
            return ()
        if not isinstance(entry, Args):
            raise self._error(RuleSourceError, f"entry type[{type(entry).__name__}] is not supported", rule.name)
        if entry.shorthand:
            if rule.params_allowed and rule.params_required < 2:
                return entry.values
            expected = f"requires list({rule.params_required})" if rule.params_required > 1 else "takes no arguments"
            raise self._error(
                RuleArityError,
                self._describe(rule, f"{expected} - saw type[{type(entry.values[0]).__name__}]"),
                rule.name,
            )
        count = len(entry.values)
        if not count and not rule.params_required and not rule.params_allowed:
            return ()
        if count < rule.params_required:
            raise self._error(
                RuleArityError,
                self._describe(rule, f"requires list({rule.params_required}) - saw list({count})"),
                rule.name,
            )
        if count > rule.params_allowed:
            if not rule.params_allowed:
                message = f"takes no arguments - saw list({count})"
            else:
                message = f"supports list({rule.params_allowed}) - saw list({count})"
            raise self._error(RuleArityError, self._describe(rule, message), rule.name)
        return entry.values

    def _ensure_type_checking(self) -> None:
        """Infer a type-checking rule; the rule set may not be effectively empty."""
        if not self.pattern_rules and self.table_elements is None and self.list_items is None:
            emptiness = "completely" if self.alternative_enum is None and self.alternative_rule_set is None else "effectively"
            raise self._error(RuleSourceError, f"rule set {emptiness} empty")

        if self.table_elements is not None or self.list_items is not None:
            name = self.provider.pattern_rule_to_type_rule(pattern_type=TypeTag.CONTAINER)
            if name is None:
                raise self._error(
                    RuleSourceError,
                    f"rule provider {type(self.provider).__name__} has no type rule matching type CONTAINER",
                )
        else:
            pattern_rule = self.pattern_rules[0].name
            name = self.provider.pattern_rule_to_type_rule(pattern_rule_name=pattern_rule)
            if name is None:
                raise self._error(
                    RuleSourceError,
                    f"rule provider {type(self.provider).__name__} has no type rule matching pattern rule",
                    pattern_rule,
                )
        logger.debug(f"Inferred type rule {name} at {self._location()}")
        self.type_rules.append(RuleInvocation(name=name))

    def _enum(self, argument: Any) -> None:
        if self.provider.get_rule("enum") is None:
            raise self._error(UnknownRuleError, "rule is not supported by the rule provider", "enum")
        values = self._enum_values(argument, "enum", lift_null=True)
        # Ignored if only containing None.
        if values:
            self.enum_values = values

    def _enum_values(self, argument: Any, rule_name: str, lift_null: bool) -> tuple[Any, ...]:
        """
        Normalize and type check allowed values of enum/alternativeEnum.

        Args:
            lift_null: Remove None and flag the rule set nullable instead

        Raises:
            EnumDomainError: If a value is outside the provider's enum domain
        """
        domain = self.provider.enum_domain
        values = normalize_enum_argument(argument, rule_name, self.key_path, self.depth)
        allowed = []
        for index, value in enumerate(values):
            if value is None:
                accepted = domain.accepts_null
            elif isinstance(value, float):
                accepted = domain.accepts_float
            else:
                accepted = isinstance(value, (bool, int, str))
            if not accepted:
                raise self._error(
                    EnumDomainError,
                    f"allowed values bucket[{index}] type[{type(value).__name__}] is not {domain.describe()}",
                    rule_name,
                )
            if value is None and lift_null:
                self.nullable = True
            else:
                allowed.append(value)
        return tuple(allowed)

    def _alternative_rule_set(self, argument: Any) -> None:
        rule_set = self.factory.make(argument, self.depth + 1, (*self.key_path, "(alternativeRuleSet)"))
        for illegal in self.ALTERNATIVE_RULE_SET_ILLEGALS:
            if getattr(rule_set, illegal) is not None:
                raise self._error(
                    RuleSourceError,
                    f"alternativeRuleSet is not allowed to contain {illegal}",
                    "alternativeRuleSet",
                )
        self.alternative_rule_set = rule_set

    def _table_elements(self, argument: Any) -> TableElements:
        if isinstance(argument, TableElements):
            return argument
        if not isinstance(argument, Mapping):
            raise self._error(
                RuleSourceError, f"type[{type(argument).__name__}] is not mapping", "tableElements"
            )

        modifiers = {}
        if argument.get("exclusive"):
            modifiers["exclusive"] = True
        for list_name in ("whitelist", "blacklist"):
            keys = argument.get(list_name)
            if keys:
                if not isinstance(keys, (list, tuple, set, frozenset)):
                    raise self._error(
                        RuleSourceError,
                        f"{list_name} type[{type(keys).__name__}] is not list",
                        "tableElements",
                    )
                for index, key in enumerate(keys):
                    if isinstance(key, bool) or not isinstance(key, (str, int)):
                        raise self._error(
                            RuleSourceError,
                            f"{list_name} bucket[{index}] type[{type(key).__name__}] is not str|int",
                            "tableElements",
                        )
                modifiers[list_name] = frozenset(keys)
        if len(modifiers) > 1:
            raise self._error(
                RuleSourceError,
                f"only accepts a single exclusive|whitelist|blacklist modifier, saw [{', '.join(modifiers)}]",
                "tableElements",
            )

        if "rulesByElements" in argument:
            rules_by_elements = argument["rulesByElements"]
            if isinstance(rules_by_elements, (list, tuple)):
                rules_by_elements = dict(enumerate(rules_by_elements))
            elif not isinstance(rules_by_elements, Mapping):
                raise self._error(
                    RuleSourceError,
                    f"rulesByElements type[{type(rules_by_elements).__name__}] is not mapping",
                    "tableElements",
                )
        elif not any(key in argument for key in ("exclusive", "whitelist", "blacklist")):
            # The argument in itself is the rulesByElements mapping.
            rules_by_elements = argument
        else:
            raise self._error(
                RuleSourceError,
                "misses child rulesByElements and has modifier(s), thus cannot assume itself is rulesByElements",
                "tableElements",
            )

        children = {
            key: self.factory.make(child, self.depth + 1, (*self.key_path, key))
            for key, child in rules_by_elements.items()
        }
        return TableElements(rules_by_elements=children, **modifiers)

    def _list_items(self, argument: Any) -> ListItems:
        if isinstance(argument, ListItems):
            return argument
        if isinstance(argument, (list, tuple, RuleSet)):
            # The argument in itself is the itemRules rule set.
            return ListItems(item_rules=self._item_rules(argument))
        if not isinstance(argument, Mapping):
            raise self._error(
                RuleSourceError, f"type[{type(argument).__name__}] is not mapping", "listItems"
            )

        occurs = {}
        for name, field in (("minOccur", "min_occur"), ("maxOccur", "max_occur")):
            if argument.get(name) is None:
                continue
            value = argument[name]
            if isinstance(value, bool) or not isinstance(value, int):
                raise self._error(RuleSourceError, f"{name} type[{type(value).__name__}] is not int", "listItems")
            if value < 0:
                raise self._error(RuleSourceError, f"{name}[{value}] cannot be less than zero", "listItems")
            occurs[field] = value
        if occurs.get("max_occur") and occurs["max_occur"] < occurs.get("min_occur", 0):
            raise self._error(
                RuleSourceError,
                f"maxOccur[{occurs['max_occur']}] cannot be less than minOccur[{occurs['min_occur']}]",
                "listItems",
            )

        if "itemRules" in argument:
            item_source = argument["itemRules"]
        elif "minOccur" not in argument and "maxOccur" not in argument:
            item_source = argument
        else:
            raise self._error(
                RuleSourceError,
                "misses child itemRules and has modifier(s), thus cannot assume itself is itemRules",
                "listItems",
            )
        return ListItems(item_rules=self._item_rules(item_source), **occurs)

    def _item_rules(self, source: Any) -> RuleSet:
        if not isinstance(source, (Mapping, list, tuple, RuleSet)):
            raise self._error(
                RuleSourceError, f"itemRules type[{type(source).__name__}] is not mapping|list", "listItems"
            )
        return self.factory.make(source, self.depth + 1, (*self.key_path, "(itemRules)"))

    def _location(self) -> str:
        return " > ".join(["root", *(str(key) for key in self.key_path)])
