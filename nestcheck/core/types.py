"""
Type affiliations, enum domains and the missing-bucket sentinel.

Rule providers declare the type affiliation of every rule through TypeTag.
The rule set factory uses the tags to find a type-checking rule matching
a pattern rule when a rule set doesn't declare one itself.
"""

from enum import Enum, IntFlag


class TypeTag(IntFlag):
    """Type affiliation of a validation rule."""

    # Simple.
    NULL = 2
    BOOLEAN = 4
    INTEGER = 8
    FLOAT = 16
    STRING = 32
    ARRAY = 64
    MAPPING = 128
    OBJECT = 256

    # Specials.
    DECIMAL = 1024  # stringed number
    ITERABLE = 2048

    # Composites.
    NUMBER = INTEGER | FLOAT
    DIGITAL = INTEGER | STRING
    NUMERIC = INTEGER | FLOAT | STRING
    EQUATABLE = BOOLEAN | INTEGER | STRING
    EQUATABLE_NULLABLE = NULL | BOOLEAN | INTEGER | STRING
    SCALAR = BOOLEAN | INTEGER | FLOAT | STRING
    SCALAR_NULLABLE = NULL | BOOLEAN | INTEGER | FLOAT | STRING
    STRINGABLE = INTEGER | FLOAT | STRING | OBJECT
    CONTAINER = ARRAY | MAPPING | OBJECT
    LOOPABLE = ITERABLE | MAPPING | OBJECT


class EnumDomain(str, Enum):
    """
    Scalar domain accepted by a provider's enum rule.

    Decides which allowed values enum/alternativeEnum may declare,
    and which subject types the enum rule compares at all.
    """

    EQUATABLE = "equatable"
    EQUATABLE_NULLABLE = "equatable_nullable"
    SCALAR = "scalar"
    SCALAR_NULLABLE = "scalar_nullable"

    @property
    def accepts_null(self) -> bool:
        return self in (EnumDomain.EQUATABLE_NULLABLE, EnumDomain.SCALAR_NULLABLE)

    @property
    def accepts_float(self) -> bool:
        return self in (EnumDomain.SCALAR, EnumDomain.SCALAR_NULLABLE)

    @property
    def type_tag(self) -> TypeTag:
        return TypeTag[self.name]

    def describe(self) -> str:
        """Human readable list of accepted types, for error messages."""
        types = ["bool", "int"]
        if self.accepts_float:
            types.append("float")
        types.append("str")
        if self.accepts_null:
            types.append("None")
        return "|".join(types)


class _Missing:
    """Marks a declared table element absent from the subject."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def type_name(value) -> str:
    """Short type name of a subject, as used in failure records."""
    if value is MISSING:
        return "missing"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "mapping"
    return type(value).__name__
