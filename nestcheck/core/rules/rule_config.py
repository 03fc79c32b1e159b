"""
Rule set configuration management.

Loads rule set sources from YAML or JSON files and provides a builder
for assembling rule set sources programmatically.
"""

import json
from pathlib import Path
from typing import Any

import yaml

DEFAULT_NAME = "default"


class RuleSetLoader:
    """
    Loads rule set sources from YAML or JSON configuration files.

    A file holds either a single rule set source, or named rule set
    sources in a 'rule_sets' section.

    Expected YAML format:
    ```yaml
    rule_sets:
      person:
        tableElements:
          name:
            string: true
            minLength: [1]
          age:
            integer: true
            range: [0, 150]
          address:
            optional: true
            tableElements:
              street: {string: true}
    ```
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the rule set loader.

        Args:
            config_path: Path to the YAML or JSON configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Rule set configuration file not found: {config_path}")

    def _read(self) -> Any:
        with open(self.config_path) as f:
            if self.config_path.suffix.lower() == ".json":
                try:
                    return json.load(f)
                except json.JSONDecodeError as e:
                    raise ValueError(f"Invalid JSON in {self.config_path}: {e}") from e
            try:
                return yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {self.config_path}: {e}") from e

    def load_sources(self) -> dict[str, Any]:
        """
        Load all rule set sources of the file.

        Returns:
            Rule set source by name; a file without 'rule_sets' section
            yields its content under the name 'default'

        Raises:
            ValueError: If the file is empty or malformed
        """
        config = self._read()
        if not config:
            raise ValueError(f"Configuration file {self.config_path} is empty")

        if isinstance(config, dict) and "rule_sets" in config:
            rule_sets = config["rule_sets"]
            if not isinstance(rule_sets, dict) or not rule_sets:
                raise ValueError("'rule_sets' section must be a non-empty mapping of name to rule set")
            return dict(rule_sets)

        if not isinstance(config, (dict, list)):
            raise ValueError(f"Rule set source must be a mapping or list, got {type(config).__name__}")
        return {DEFAULT_NAME: config}

    def load_source(self, name: str | None = None) -> Any:
        """
        Load a single rule set source.

        Args:
            name: Rule set name; may be omitted if the file holds only one

        Raises:
            ValueError: If the name is unknown, or omitted while the file holds several
        """
        sources = self.load_sources()
        if name is None:
            if len(sources) > 1:
                raise ValueError(f"Configuration holds several rule sets, choose one of: {', '.join(sources)}")
            return next(iter(sources.values()))
        if name not in sources:
            raise ValueError(f"Rule set '{name}' not found, available: {', '.join(sources)}")
        return sources[name]


class RuleSetBuilder:
    """
    Programmatically build rule set sources (for testing or dynamic rule sets).

    Usage:
        source = (
            RuleSetBuilder()
            .rule("integer")
            .rule("range", 1, 3)
            .alternative_enum("none")
            .build()
        )
    """

    def __init__(self):
        """Initialize empty rule set source."""
        self.source: dict[str, Any] = {}

    def rule(self, name: str, *arguments: Any) -> "RuleSetBuilder":
        """Add a rule, as a flag if no arguments."""
        self.source[name] = list(arguments) if arguments else True
        return self

    def optional(self) -> "RuleSetBuilder":
        self.source["optional"] = True
        return self

    def nullable(self) -> "RuleSetBuilder":
        self.source["nullable"] = True
        return self

    def enum(self, *values: Any) -> "RuleSetBuilder":
        self.source["enum"] = list(values)
        return self

    def alternative_enum(self, *values: Any) -> "RuleSetBuilder":
        self.source["alternativeEnum"] = list(values)
        return self

    def alternative_rule_set(self, source: "RuleSetBuilder | Any") -> "RuleSetBuilder":
        self.source["alternativeRuleSet"] = _built(source)
        return self

    def element(self, key: Any, source: "RuleSetBuilder | Any") -> "RuleSetBuilder":
        """Add a tableElements element rule set."""
        table = self.source.setdefault("tableElements", {"rulesByElements": {}})
        table["rulesByElements"][key] = _built(source)
        return self

    def exclusive(self) -> "RuleSetBuilder":
        self.source.setdefault("tableElements", {"rulesByElements": {}})["exclusive"] = True
        return self

    def items(
        self,
        source: "RuleSetBuilder | Any",
        min_occur: int = 0,
        max_occur: int = 0,
    ) -> "RuleSetBuilder":
        """Set listItems."""
        list_items: dict[str, Any] = {"itemRules": _built(source)}
        if min_occur:
            list_items["minOccur"] = min_occur
        if max_occur:
            list_items["maxOccur"] = max_occur
        self.source["listItems"] = list_items
        return self

    def build(self) -> dict[str, Any]:
        """Build and return the rule set source."""
        return self.source


def _built(source: Any) -> Any:
    return source.build() if isinstance(source, RuleSetBuilder) else source
