"""
RuleSet model: immutable tree of rules, flags and sub-rule-sets.

A RuleSet is produced once by the RuleSetFactory and is thereafter read-only,
shared by any number of challenges, in any number of threads.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from nestcheck.core.exceptions import RuleSourceError


class RuleInvocation(BaseModel):
    """
    One rule applied to a subject.

    Attributes:
        name: Rule name known by the rule provider
        arguments: Positional arguments passed after the subject; empty for flag rules
    """

    name: str = Field(..., min_length=1)
    arguments: tuple[Any, ...] = ()

    class Config:
        frozen = True

    def export(self) -> Any:
        if not self.arguments:
            return True
        if self.name == "enum":
            return list(self.arguments[0])
        return list(self.arguments)


class TableElements(BaseModel):
    """
    Pseudo rule listing RuleSets of the elements of a keyed container.

    Attributes:
        rules_by_elements: RuleSet by element key; read-only view
        exclusive: Subject must not contain keys other than those of rules_by_elements
        whitelist: Extra keys the subject may contain
        blacklist: Keys the subject must not contain
    """

    rules_by_elements: Mapping[Any, "RuleSet"]
    exclusive: bool = False
    whitelist: frozenset[Any] = frozenset()
    blacklist: frozenset[Any] = frozenset()

    class Config:
        frozen = True

    @model_validator(mode="after")
    def check_single_modifier(self) -> "TableElements":
        """Validate that exclusive, whitelist and blacklist are mutually exclusive."""
        modifiers = [m for m in ("exclusive", "whitelist", "blacklist") if getattr(self, m)]
        if len(modifiers) > 1:
            raise ValueError(f"tableElements accepts a single modifier, saw {', '.join(modifiers)}")
        return self

    @model_validator(mode="after")
    def freeze_rules_by_elements(self) -> "TableElements":
        # frozen only guards attribute assignment, not the mapping itself.
        object.__setattr__(self, "rules_by_elements", MappingProxyType(dict(self.rules_by_elements)))
        return self

    @property
    def keys(self) -> tuple[Any, ...]:
        return tuple(self.rules_by_elements)

    def get_element_rule_set(self, key: Any) -> "RuleSet | None":
        return self.rules_by_elements.get(key)

    def set_element_rule_set(self, key: Any, rule_set: "RuleSet") -> "TableElements":
        """Return a copy having the rule set of an existing key replaced."""
        if key not in self.rules_by_elements:
            raise RuleSourceError(f"tableElements has no key[{key}]", rule_name="tableElements")
        return TableElements(
            rules_by_elements={**self.rules_by_elements, key: rule_set},
            exclusive=self.exclusive,
            whitelist=self.whitelist,
            blacklist=self.blacklist,
        )

    def export(self) -> dict[str, Any]:
        exported: dict[str, Any] = {
            "rulesByElements": {key: rs.export_rules() for key, rs in self.rules_by_elements.items()},
        }
        if self.exclusive:
            exported["exclusive"] = True
        if self.whitelist:
            exported["whitelist"] = sorted(self.whitelist, key=str)
        if self.blacklist:
            exported["blacklist"] = sorted(self.blacklist, key=str)
        return exported


class ListItems(BaseModel):
    """
    Pseudo rule representing every item of a list-like container.

    Attributes:
        item_rules: RuleSet applied to every item
        min_occur: Minimum number of items; zero means no limit
        max_occur: Maximum number of items; zero means no limit
    """

    item_rules: "RuleSet"
    min_occur: int = Field(0, ge=0)
    max_occur: int = Field(0, ge=0)

    class Config:
        frozen = True

    @field_validator("max_occur")
    @classmethod
    def check_occur_consistency(cls, v, info):
        """Validate that a limiting max_occur isn't below min_occur."""
        if v and v < info.data.get("min_occur", 0):
            raise ValueError(f"max_occur {v} is less than min_occur {info.data.get('min_occur')}")
        return v

    def export(self) -> dict[str, Any]:
        exported: dict[str, Any] = {"itemRules": self.item_rules.export_rules()}
        if self.min_occur:
            exported["minOccur"] = self.min_occur
        if self.max_occur:
            exported["maxOccur"] = self.max_occur
        return exported


class RuleSet(BaseModel):
    """
    Validation rule set of one data node and its descendants.

    Type-checking rule invocations always precede pattern rule invocations.

    Attributes:
        rules: Ordered rule invocations
        optional: The element doesn't have to exist in its parent container (ignored at root)
        nullable: The element is allowed to be None
        alternative_enum: Values that pass the node although the rules fail
        alternative_rule_set: Rule set substituted when the rules fail
        table_elements: Rule sets of the elements of a keyed container
        list_items: Rule set of every item of a list-like container
    """

    rules: tuple[RuleInvocation, ...] = ()
    optional: bool = False
    nullable: bool = False
    alternative_enum: tuple[Any, ...] | None = None
    alternative_rule_set: "RuleSet | None" = None
    table_elements: TableElements | None = None
    list_items: ListItems | None = None

    class Config:
        frozen = True

    @property
    def rule_names(self) -> tuple[str, ...]:
        return tuple(invocation.name for invocation in self.rules)

    def get_rule(self, name: str) -> RuleInvocation | None:
        for invocation in self.rules:
            if invocation.name == name:
                return invocation
        return None

    def export_rules(self) -> dict[str, Any]:
        """
        Export the normalized source form of the rule set.

        Passing the export to RuleSetFactory.make() yields a behaviourally
        identical RuleSet.
        """
        exported: dict[str, Any] = {}
        if self.optional:
            exported["optional"] = True
        if self.nullable:
            exported["nullable"] = True
        for invocation in self.rules:
            exported[invocation.name] = invocation.export()
        if self.alternative_enum is not None:
            exported["alternativeEnum"] = list(self.alternative_enum)
        if self.alternative_rule_set is not None:
            exported["alternativeRuleSet"] = self.alternative_rule_set.export_rules()
        if self.table_elements is not None:
            exported["tableElements"] = self.table_elements.export()
        if self.list_items is not None:
            exported["listItems"] = self.list_items.export()
        return exported

    def replace_table_elements(self, table_elements: TableElements) -> "RuleSet":
        """Return a new RuleSet with existing tableElements replaced."""
        if self.table_elements is None:
            raise RuleSourceError(
                "cannot replace tableElements of rule set that doesn't already have tableElements",
                rule_name="tableElements",
            )
        return self.model_copy(update={"table_elements": table_elements})

    def replace_table_elements_key_rule_set(self, key: Any, rule_set: "RuleSet") -> "RuleSet":
        """Return a new RuleSet with the rule set of one tableElements key replaced."""
        if self.table_elements is None:
            raise RuleSourceError(
                "cannot replace rule set in tableElements of rule set that doesn't have tableElements",
                rule_name="tableElements",
            )
        return self.model_copy(
            update={"table_elements": self.table_elements.set_element_rule_set(key, rule_set)}
        )

    def replace_list_items(self, list_items: ListItems) -> "RuleSet":
        """Return a new RuleSet with existing listItems replaced."""
        if self.list_items is None:
            raise RuleSourceError(
                "cannot replace listItems of rule set that doesn't already have listItems",
                rule_name="listItems",
            )
        return self.model_copy(update={"list_items": list_items})


TableElements.model_rebuild()
ListItems.model_rebuild()
RuleSet.model_rebuild()
