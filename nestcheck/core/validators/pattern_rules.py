"""
Pattern rules.

A pattern rule assumes that the subject has the type implied by its type
affiliation, and must be preceded by a type-checking rule. The rule set
factory guarantees that order, and the provider applies the matching type
rule itself before any pattern rule. Arguments are vetted by
check_arguments when the rule set is built.
"""

import base64
import binascii
import ipaddress
import re
from datetime import date, datetime, time
from functools import lru_cache
from typing import Any
from urllib.parse import urlparse

from nestcheck.core.types import TypeTag

PATTERN_RULES: dict[str, TypeTag] = {
    # Domain of enum is decided by the provider's enum domain.
    "enum": TypeTag.SCALAR_NULLABLE,
    "bit32": TypeTag.NUMERIC,
    "bit64": TypeTag.NUMERIC,
    "positive": TypeTag.NUMERIC,
    "nonNegative": TypeTag.NUMERIC,
    "negative": TypeTag.NUMERIC,
    "min": TypeTag.NUMERIC,
    "max": TypeTag.NUMERIC,
    "range": TypeTag.NUMERIC,
    "maxDecimals": TypeTag.DECIMAL,
    "regex": TypeTag.STRINGABLE,
    "minLength": TypeTag.STRINGABLE,
    "maxLength": TypeTag.STRINGABLE,
    "exactLength": TypeTag.STRINGABLE,
    "alphaNum": TypeTag.STRINGABLE,
    "hex": TypeTag.STRINGABLE,
    "ascii": TypeTag.STRINGABLE,
    "asciiPrintable": TypeTag.STRINGABLE,
    "snakeName": TypeTag.STRINGABLE,
    "camelName": TypeTag.STRINGABLE,
    "lispName": TypeTag.STRINGABLE,
    "uuid": TypeTag.STRINGABLE,
    "base64": TypeTag.STRINGABLE,
    "ipAddress": TypeTag.STRINGABLE,
    "url": TypeTag.STRINGABLE,
    "httpUrl": TypeTag.STRINGABLE,
    "email": TypeTag.STRINGABLE,
    "dateISO": TypeTag.STRING,
    "timeISO": TypeTag.STRING,
    "dateTimeISO": TypeTag.STRING,
    "dateTimeISOUTC": TypeTag.STRING,
}

PARAMS_REQUIRED: dict[str, int] = {
    "enum": 1,
    "min": 1,
    "max": 1,
    "range": 2,
    "maxDecimals": 1,
    "regex": 1,
    "minLength": 1,
    "maxLength": 1,
    "exactLength": 1,
}

PARAMS_ALLOWED: dict[str, int] = {
    "alphaNum": 1,
    "hex": 1,
    "uuid": 1,
    "dateTimeISO": 1,
    "dateTimeISOUTC": 1,
}

RULES_RENAMED: dict[str, str] = {
    "dateISO8601": "dateISO",
    "timeISO8601": "timeISO",
    "dateTimeISO8601": "dateTimeISO",
    "dateTimeISO8601UTC": "dateTimeISOUTC",
}

_BIT32 = (-2**31, 2**31 - 1)
_BIT64 = (-2**63, 2**63 - 1)

_ALPHA_NUM = {
    "": re.compile(r"^[a-zA-Z\d]+$"),
    "lower": re.compile(r"^[a-z\d]+$"),
    "upper": re.compile(r"^[A-Z\d]+$"),
}
_HEX = {
    "": re.compile(r"^[a-fA-F\d]+$"),
    "lower": re.compile(r"^[a-f\d]+$"),
    "upper": re.compile(r"^[A-F\d]+$"),
}
_UUID = {
    "": re.compile(r"^[a-fA-F\d]{8}-[a-fA-F\d]{4}-[a-fA-F\d]{4}-[a-fA-F\d]{4}-[a-fA-F\d]{12}$"),
    "lower": re.compile(r"^[a-f\d]{8}-[a-f\d]{4}-[a-f\d]{4}-[a-f\d]{4}-[a-f\d]{12}$"),
    "upper": re.compile(r"^[A-F\d]{8}-[A-F\d]{4}-[A-F\d]{4}-[A-F\d]{4}-[A-F\d]{12}$"),
}
_SNAKE_NAME = re.compile(r"^[a-zA-Z][a-zA-Z\d_]*$")
_CAMEL_NAME = re.compile(r"^[a-zA-Z][a-zA-Z\d]*$")
_LISP_NAME = re.compile(r"^[a-z][a-z\d\-]*[a-z\d]$|^[a-z]$")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_DATE_ISO = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_ISO = re.compile(r"^\d{2}:\d{2}(:\d{2}(\.\d+)?)?$")
_DATETIME_ISO = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(?P<fraction>\.\d+)?)?(?P<zone>Z|[+\-]\d{2}:\d{2})?$"
)

_NUMBER_ARGUMENTS = ("min", "max", "range")
_COUNT_ARGUMENTS = ("maxDecimals", "minLength", "maxLength", "exactLength")
_CASE_ARGUMENTS = ("alphaNum", "hex", "uuid")
_SUBSECONDS_ARGUMENTS = ("dateTimeISO", "dateTimeISOUTC")


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern)


def _number(subject: Any) -> int | float:
    """Numeric value of an int, float or stringed number."""
    if isinstance(subject, str):
        return float(subject) if "." in subject else int(subject)
    return subject


class PatternRulesMixin:
    """Pattern rule methods of a rule provider."""

    def check_arguments(self, name: str, arguments: tuple[Any, ...]) -> str | None:
        """Why the arguments of a pattern rule are unusable, or None."""
        if name == "regex":
            pattern = arguments[0]
            if not isinstance(pattern, str):
                return f"argument[0] type[{type(pattern).__name__}] is not str"
            try:
                _compile(pattern)
            except re.error as e:
                return f"argument[0] is not a valid regular expression: {e}"
            return None
        for index, argument in enumerate(arguments):
            is_int = isinstance(argument, int) and not isinstance(argument, bool)
            if name in _NUMBER_ARGUMENTS:
                usable, expected = is_int or type(argument) is float, "int|float"
            elif name in _COUNT_ARGUMENTS:
                usable, expected = is_int and argument >= 0, "non-negative int"
            elif name in _CASE_ARGUMENTS:
                usable, expected = isinstance(argument, str) and argument in _ALPHA_NUM, "''|lower|upper"
            elif name in _SUBSECONDS_ARGUMENTS:
                usable, expected = is_int and argument >= -1, "int from -1"
            else:
                return None
            if not usable:
                return f"argument[{index}] {argument!r} is not {expected}"
        return None

    def bit32(self, subject: Any) -> bool:
        value = _number(subject)
        return _BIT32[0] <= value <= _BIT32[1]

    def bit64(self, subject: Any) -> bool:
        value = _number(subject)
        return _BIT64[0] <= value <= _BIT64[1]

    def positive(self, subject: Any) -> bool:
        return _number(subject) > 0

    def nonNegative(self, subject: Any) -> bool:
        return _number(subject) >= 0

    def negative(self, subject: Any) -> bool:
        return _number(subject) < 0

    def min(self, subject: Any, minimum: Any) -> bool:
        return _number(subject) >= minimum

    def max(self, subject: Any, maximum: Any) -> bool:
        return _number(subject) <= maximum

    def range(self, subject: Any, minimum: Any, maximum: Any) -> bool:
        value = _number(subject)
        return minimum <= value <= maximum

    def maxDecimals(self, subject: Any, decimals: int) -> bool:
        """Stringed number having at most that many decimals."""
        text = str(subject)
        if "." not in text:
            return True
        return len(text.split(".", 1)[1]) <= decimals

    def regex(self, subject: Any, pattern: str) -> bool:
        return _compile(pattern).search(str(subject)) is not None

    def minLength(self, subject: Any, length: int) -> bool:
        return len(str(subject)) >= length

    def maxLength(self, subject: Any, length: int) -> bool:
        return len(str(subject)) <= length

    def exactLength(self, subject: Any, length: int) -> bool:
        return len(str(subject)) == length

    def alphaNum(self, subject: Any, case: str = "") -> bool:
        return bool(_ALPHA_NUM[case].match(str(subject)))

    def hex(self, subject: Any, case: str = "") -> bool:
        return bool(_HEX[case].match(str(subject)))

    def ascii(self, subject: Any) -> bool:
        return str(subject).isascii()

    def asciiPrintable(self, subject: Any) -> bool:
        text = str(subject)
        return text.isascii() and text.isprintable()

    def snakeName(self, subject: Any) -> bool:
        return bool(_SNAKE_NAME.match(str(subject)))

    def camelName(self, subject: Any) -> bool:
        return bool(_CAMEL_NAME.match(str(subject)))

    def lispName(self, subject: Any) -> bool:
        return bool(_LISP_NAME.match(str(subject)))

    def uuid(self, subject: Any, case: str = "") -> bool:
        return bool(_UUID[case].match(str(subject)))

    def base64(self, subject: Any) -> bool:
        text = str(subject)
        if not text:
            return False
        try:
            base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError):
            return False
        return True

    def ipAddress(self, subject: Any) -> bool:
        try:
            ipaddress.ip_address(str(subject))
        except ValueError:
            return False
        return True

    def url(self, subject: Any) -> bool:
        try:
            parsed = urlparse(str(subject))
        except ValueError:
            return False
        return bool(parsed.scheme and (parsed.netloc or parsed.path))

    def httpUrl(self, subject: Any) -> bool:
        try:
            parsed = urlparse(str(subject))
        except ValueError:
            return False
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)

    def email(self, subject: Any) -> bool:
        text = str(subject)
        return len(text) <= 254 and bool(_EMAIL.match(text))

    def dateISO(self, subject: str) -> bool:
        """YYYY-MM-DD."""
        if not _DATE_ISO.match(subject):
            return False
        try:
            date.fromisoformat(subject)
        except ValueError:
            return False
        return True

    def timeISO(self, subject: str) -> bool:
        """HH:MM, HH:MM:SS or HH:MM:SS.fraction."""
        if not _TIME_ISO.match(subject):
            return False
        try:
            time.fromisoformat(subject)
        except ValueError:
            return False
        return True

    def dateTimeISO(self, subject: str, subseconds: int = -1) -> bool:
        """
        YYYY-MM-DDTHH:MM[:SS[.fraction]][Z|+HH:MM].

        Args:
            subseconds: Maximum number of fraction digits; -1 means any
        """
        match = _DATETIME_ISO.match(subject)
        if not match:
            return False
        fraction = match.group("fraction")
        if fraction and subseconds >= 0 and len(fraction) - 1 > subseconds:
            return False
        try:
            datetime.fromisoformat(subject.replace("Z", "+00:00"))
        except ValueError:
            return False
        return True

    def dateTimeISOUTC(self, subject: str, subseconds: int = -1) -> bool:
        match = _DATETIME_ISO.match(subject)
        if not match or match.group("zone") not in ("Z", "+00:00"):
            return False
        return self.dateTimeISO(subject, subseconds)
