"""
Disambiguation of loosely-typed rule set source.

A rule set source is a mapping or a list coming from JSON, YAML or plain
Python. Each rule may be declared

- by key with a flag:       {"integer": True}
- by key with arguments:    {"range": [1, 3]}, or the scalar shorthand {"min": 1}
- by value (bare name):     ["integer"], or {0: "integer"} as produced when
                            a list with keyed rules is serialized as an object

Every entry is resolved here, once, into the tagged union Flag | Args | Bare.
The same goes for the allowed values of enum/alternativeEnum, which source
data may or may not wrap in an extra list level.
"""

from collections.abc import Iterator, Mapping
from typing import Any, Literal, Union

from pydantic import BaseModel

from nestcheck.core.exceptions import AmbiguousEnumError, RuleSourceError


class Flag(BaseModel):
    """Rule declared by key with a boolean value."""

    kind: Literal["flag"] = "flag"
    value: bool

    class Config:
        frozen = True


class Args(BaseModel):
    """Rule declared by key with arguments; shorthand when given as a bare scalar."""

    kind: Literal["args"] = "args"
    values: tuple[Any, ...]
    shorthand: bool = False

    class Config:
        frozen = True


class Bare(BaseModel):
    """Rule declared by value, at a positional index."""

    kind: Literal["bare"] = "bare"
    index: int

    class Config:
        frozen = True


RuleEntry = Union[Flag, Args, Bare]


class SourceEntry(BaseModel):
    """A rule name paired with its raw value, or the index it was declared by value at."""

    name: str
    value: Any = None
    bare_index: int | None = None

    class Config:
        frozen = True


def _is_index(key: Any) -> bool:
    if isinstance(key, bool):
        return False
    if isinstance(key, int):
        return True
    return isinstance(key, str) and key.isdigit()


def iter_source_entries(source: Any, key_path: tuple = (), depth: int = 0) -> Iterator[SourceEntry]:
    """
    Iterate the rule entries of a rule set source, in declared order.

    Args:
        source: Mapping of rule name -> value, or list of bare names and mappings
        key_path: Location of the rule set, for error messages
        depth: Depth of the rule set, for error messages

    Raises:
        RuleSourceError: If the source or an entry has a malformed shape
    """
    if isinstance(source, Mapping):
        for key, value in source.items():
            if key == "":
                raise RuleSourceError("rule set key cannot be empty string", key_path=key_path, depth=depth)
            if _is_index(key):
                if not isinstance(value, str) or not value:
                    raise RuleSourceError(
                        f"rule-by-value at index[{key}] type[{type(value).__name__}] is not non-empty string",
                        key_path=key_path,
                        depth=depth,
                    )
                yield SourceEntry(name=value, bare_index=int(key))
            elif isinstance(key, str):
                yield SourceEntry(name=key, value=value)
            else:
                raise RuleSourceError(
                    f"rule set key type[{type(key).__name__}] is not string", key_path=key_path, depth=depth
                )
    elif isinstance(source, (list, tuple)):
        for index, item in enumerate(source):
            if isinstance(item, str) and item:
                yield SourceEntry(name=item, bare_index=index)
            elif isinstance(item, Mapping):
                yield from iter_source_entries(item, key_path, depth)
            else:
                raise RuleSourceError(
                    f"rule set list item[{index}] type[{type(item).__name__}] is not non-empty string or mapping",
                    key_path=key_path,
                    depth=depth,
                )
    else:
        raise RuleSourceError(
            f"rule set source type[{type(source).__name__}] is not mapping or list", key_path=key_path, depth=depth
        )


def classify_entry(entry: SourceEntry, key_path: tuple = (), depth: int = 0) -> RuleEntry:
    """
    Resolve the raw value of an ordinary rule into Flag | Args | Bare.

    Raises:
        RuleSourceError: If the value is None or a mapping
    """
    if entry.bare_index is not None:
        return Bare(index=entry.bare_index)
    value = entry.value
    if isinstance(value, bool):
        return Flag(value=value)
    if isinstance(value, (list, tuple)):
        return Args(values=tuple(value))
    if isinstance(value, (int, float, str)):
        return Args(values=(value,), shorthand=True)
    raise RuleSourceError(
        f"invalid value type[{type(value).__name__}], expected true|false|list|scalar",
        rule_name=entry.name,
        key_path=key_path,
        depth=depth,
    )


def normalize_enum_argument(
    argument: Any, rule_name: str = "enum", key_path: tuple = (), depth: int = 0
) -> tuple[Any, ...]:
    """
    Flatten enum/alternativeEnum allowed values.

    Accepts a flat list of values, or a list wrapping exactly one flat list.
    Any other nesting is ambiguous and rejected rather than guessed at.

    Raises:
        RuleSourceError: If argument isn't a non-empty list
        AmbiguousEnumError: If the nesting can't be resolved
    """
    if not isinstance(argument, (list, tuple)) or not argument:
        raise RuleSourceError(
            f"type[{type(argument).__name__}] is not non-empty list",
            rule_name=rule_name,
            key_path=key_path,
            depth=depth,
        )
    nested = [isinstance(value, (list, tuple)) for value in argument]
    if not any(nested):
        return tuple(argument)
    if len(argument) == 1:
        inner = argument[0]
        if not inner:
            raise RuleSourceError(
                "nested allowed values list is empty", rule_name=rule_name, key_path=key_path, depth=depth
            )
        if any(isinstance(value, (list, tuple)) for value in inner):
            raise AmbiguousEnumError(
                "allowed values nested more than one list level", rule_name=rule_name, key_path=key_path, depth=depth
            )
        return tuple(inner)
    raise AmbiguousEnumError(
        f"allowed values mix {sum(nested)} nested list(s) with {len(argument)} bucket(s)",
        rule_name=rule_name,
        key_path=key_path,
        depth=depth,
    )
