"""
Type-checking rules.

Every rule here promises to reject any unexpected subject type without
erroring, so it is safe to apply to arbitrary input. Composite type rules
return the name of the matched type instead of True.
"""

import re
from collections.abc import Iterable, Mapping
from typing import Any

from nestcheck.core.types import TypeTag

_DIGITAL = re.compile(r"^-?\d+$")
_DECIMAL = re.compile(r"^-?\d+(\.\d+)?$")

TYPE_RULES: dict[str, TypeTag] = {
    "null": TypeTag.NULL,
    "boolean": TypeTag.BOOLEAN,
    "integer": TypeTag.INTEGER,
    "float": TypeTag.FLOAT,
    "number": TypeTag.NUMBER,
    "string": TypeTag.STRING,
    "scalar": TypeTag.SCALAR,
    "scalarNull": TypeTag.SCALAR_NULLABLE,
    "equatable": TypeTag.EQUATABLE,
    "equatableNull": TypeTag.EQUATABLE_NULLABLE,
    "numeric": TypeTag.NUMERIC,
    "digital": TypeTag.DIGITAL,
    "decimal": TypeTag.DECIMAL,
    "stringable": TypeTag.STRINGABLE,
    "array": TypeTag.ARRAY,
    "mapping": TypeTag.MAPPING,
    "object": TypeTag.OBJECT,
    "container": TypeTag.CONTAINER,
    "iterable": TypeTag.ITERABLE,
    "loopable": TypeTag.LOOPABLE,
    "indexedArray": TypeTag.LOOPABLE,
    "keyedArray": TypeTag.LOOPABLE,
}


def _is_int(subject: Any) -> bool:
    return isinstance(subject, int) and not isinstance(subject, bool)


def _is_plain_object(subject: Any) -> bool:
    if subject is None or isinstance(subject, (bool, int, float, str, bytes, bytearray, Mapping, list, tuple)):
        return False
    return isinstance(getattr(subject, "__dict__", None), dict)


class TypeRulesMixin:
    """Type-checking rule methods of a rule provider."""

    def null(self, subject: Any) -> bool:
        return subject is None

    def boolean(self, subject: Any) -> bool:
        return isinstance(subject, bool)

    def integer(self, subject: Any) -> bool:
        return _is_int(subject)

    def float(self, subject: Any) -> bool:
        return type(subject) is float

    def number(self, subject: Any) -> bool | str:
        """int or float, but not bool."""
        if _is_int(subject):
            return "integer"
        if type(subject) is float:
            return "float"
        return False

    def string(self, subject: Any) -> bool:
        return isinstance(subject, str)

    def scalar(self, subject: Any) -> bool:
        return isinstance(subject, (bool, int, float, str))

    def scalarNull(self, subject: Any) -> bool:
        return subject is None or isinstance(subject, (bool, int, float, str))

    def equatable(self, subject: Any) -> bool:
        return isinstance(subject, (bool, int, str)) and type(subject) is not float

    def equatableNull(self, subject: Any) -> bool:
        return subject is None or self.equatable(subject)

    def numeric(self, subject: Any) -> bool | str:
        """Integer, float or stringed number."""
        if _is_int(subject):
            return "integer"
        if type(subject) is float:
            return "float"
        if isinstance(subject, str) and _DECIMAL.match(subject):
            return "decimal"
        return False

    def digital(self, subject: Any) -> bool:
        """Integer or stringed integer."""
        return _is_int(subject) or (isinstance(subject, str) and bool(_DIGITAL.match(subject)))

    def decimal(self, subject: Any) -> bool:
        """Stringed number."""
        return isinstance(subject, str) and bool(_DECIMAL.match(subject))

    def stringable(self, subject: Any) -> bool | str:
        if isinstance(subject, str):
            return "string"
        if _is_int(subject) or type(subject) is float:
            return "number"
        if _is_plain_object(subject) and type(subject).__str__ is not object.__str__:
            return "object"
        return False

    def array(self, subject: Any) -> bool:
        return isinstance(subject, (list, tuple))

    def mapping(self, subject: Any) -> bool:
        return isinstance(subject, Mapping)

    def object(self, subject: Any) -> bool:
        return _is_plain_object(subject)

    def container(self, subject: Any) -> bool | str:
        """List-like, mapping or plain object."""
        if isinstance(subject, (list, tuple)):
            return "array"
        if isinstance(subject, Mapping):
            return "mapping"
        if _is_plain_object(subject):
            return "object"
        return False

    def iterable(self, subject: Any) -> bool:
        return isinstance(subject, Iterable) and not isinstance(subject, (str, bytes, bytearray))

    def loopable(self, subject: Any) -> bool | str:
        """Anything the provider can list (key, value) buckets of."""
        if self.buckets(subject) is None:
            return False
        return self.container(subject) or "iterable"

    def indexedArray(self, subject: Any) -> bool:
        if isinstance(subject, (list, tuple)):
            return True
        if isinstance(subject, Mapping):
            return list(subject.keys()) == list(range(len(subject)))
        return False

    def keyedArray(self, subject: Any) -> bool:
        return isinstance(subject, Mapping)
