"""
Unit tests for the rule provider.

Includes property-based testing with hypothesis for type-checking rules.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from nestcheck.core.exceptions import RuleProviderError
from nestcheck.core.types import EnumDomain, TypeTag
from nestcheck.core.validators import RuleProvider, enum_contains

anything = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(),
    st.floats(allow_nan=False),
    st.text(max_size=8),
    st.lists(st.integers(), max_size=3),
    st.dictionaries(st.text(max_size=3), st.integers(), max_size=3),
)


class TestMetadata:
    """Tests for rule metadata"""

    def test_rule_names(self, provider):
        type_rules = provider.get_rule_names(type_rules_only=True)
        pattern_rules = provider.get_rule_names(pattern_rules_only=True)
        assert "integer" in type_rules and "range" not in type_rules
        assert "range" in pattern_rules and "integer" not in pattern_rules
        assert provider.get_rule_names() == [*type_rules, *pattern_rules]

    def test_rule_names_exclusive_flags(self, provider):
        with pytest.raises(ValueError):
            provider.get_rule_names(type_rules_only=True, pattern_rules_only=True)

    def test_get_rule(self, provider):
        rule = provider.get_rule("range")
        assert rule.is_type_checking is False
        assert rule.type == TypeTag.NUMERIC
        assert (rule.params_required, rule.params_allowed) == (2, 2)

    def test_optional_arguments(self, provider):
        rule = provider.get_rule("dateTimeISO")
        assert (rule.params_required, rule.params_allowed) == (0, 1)

    def test_renamed_rule(self, provider):
        rule = provider.get_rule("timeISO8601")
        assert rule.name == "timeISO"
        assert rule.renamed_from == "timeISO8601"
        assert provider.get_rule("timeISO").renamed_from is None

    def test_unknown_rule(self, provider):
        assert provider.get_rule("nope") is None

    def test_enum_type_follows_domain(self):
        assert RuleProvider(EnumDomain.EQUATABLE).get_pattern_rule_type("enum") == TypeTag.EQUATABLE
        assert RuleProvider().get_pattern_rule_type("enum") == TypeTag.SCALAR_NULLABLE

    def test_type_rule_type(self, provider):
        assert provider.get_type_rule_type("keyedArray") == TypeTag.LOOPABLE
        assert provider.get_type_rule_type("range") is None

    def test_pattern_rule_to_type_rule(self, provider):
        assert provider.pattern_rule_to_type_rule(TypeTag.CONTAINER) == "container"
        assert provider.pattern_rule_to_type_rule(pattern_rule_name="regex") == "stringable"
        assert provider.pattern_rule_to_type_rule(TypeTag.ITERABLE | TypeTag.NULL) is None
        with pytest.raises(ValueError):
            provider.pattern_rule_to_type_rule()

    def test_apply_unknown_rule(self, provider):
        with pytest.raises(RuleProviderError, match="no rule\\[nope\\]"):
            provider.apply("nope", 1)

    def test_repr(self, provider):
        assert repr(provider).startswith("RuleProvider(enum_domain=scalar_nullable")


class TestTypeRules:
    """Tests for type-checking rules"""

    @pytest.mark.parametrize(
        "rule, subject, expected",
        [
            ("integer", 1, True),
            ("integer", True, False),
            ("integer", 1.0, False),
            ("float", 1.0, True),
            ("boolean", 0, False),
            ("number", 1.5, "float"),
            ("number", "1", False),
            ("numeric", "-1.5", "decimal"),
            ("numeric", "1e5", False),
            ("digital", "-12", True),
            ("digital", "1.2", False),
            ("string", "", True),
            ("array", (1,), True),
            ("mapping", {}, True),
            ("container", [], "array"),
            ("container", "abc", False),
            ("indexedArray", {0: "a", 1: "b"}, True),
            ("indexedArray", {1: "a"}, False),
            ("keyedArray", {"a": 1}, True),
            ("loopable", {"a": 1}, "mapping"),
            ("loopable", "abc", False),
            ("iterable", "abc", False),
            ("scalarNull", None, True),
            ("equatable", 1.5, False),
        ],
    )
    def test_type_rule(self, provider, rule, subject, expected):
        assert provider.apply(rule, subject) == expected

    @given(anything)
    def test_type_rules_never_raise(self, subject):
        """Property: type-checking rules reject unexpected types without erroring"""
        provider = RuleProvider()
        for name in provider.get_rule_names(type_rules_only=True):
            provider.apply(name, subject)


class TestPatternRules:
    """Tests for pattern rules"""

    @pytest.mark.parametrize(
        "rule, subject, args, expected",
        [
            ("range", 2, (1, 3), True),
            ("range", "4", (1, 3), False),
            ("min", 1.5, (1,), True),
            ("max", 5, (4,), False),
            ("positive", 0, (), False),
            ("nonNegative", 0, (), True),
            ("negative", "-1", (), True),
            ("bit32", 2**31, (), False),
            ("bit64", 2**31, (), True),
            ("maxDecimals", "1.234", (2,), False),
            ("maxDecimals", "1.23", (2,), True),
            ("regex", "abc123", ("^[a-z]+\\d+$",), True),
            ("minLength", "ab", (3,), False),
            ("maxLength", 12345, (4,), False),
            ("exactLength", "abc", (3,), True),
            ("alphaNum", "aB1", (), True),
            ("alphaNum", "aB1", ("lower",), False),
            ("hex", "ff00", ("lower",), True),
            ("ascii", "æ", (), False),
            ("asciiPrintable", "a\tb", (), False),
            ("snakeName", "snake_name_1", (), True),
            ("camelName", "camel_name", (), False),
            ("lispName", "lisp-name", (), True),
            ("lispName", "lisp-", (), False),
            ("uuid", "123e4567-e89b-12d3-a456-426614174000", (), True),
            ("base64", "aGVsbG8=", (), True),
            ("base64", "not base64!", (), False),
            ("ipAddress", "::1", (), True),
            ("ipAddress", "256.0.0.1", (), False),
            ("url", "ftp://example.com/file", (), True),
            ("httpUrl", "ftp://example.com/file", (), False),
            ("httpUrl", "https://example.com", (), True),
            ("email", "ann@example.com", (), True),
            ("email", "ann@example", (), False),
            ("dateISO", "2024-02-29", (), True),
            ("dateISO", "2023-02-29", (), False),
            ("timeISO", "23:59:59.500", (), True),
            ("timeISO", "24:00", (), False),
            ("dateTimeISO", "2024-01-01T10:00:00.123+02:00", (), True),
            ("dateTimeISO", "2024-01-01T10:00:00.123Z", (2,), False),
            ("dateTimeISOUTC", "2024-01-01T10:00:00Z", (), True),
            ("dateTimeISOUTC", "2024-01-01T10:00:00+02:00", (), False),
        ],
    )
    def test_pattern_rule(self, provider, rule, subject, args, expected):
        assert provider.apply(rule, subject, *args) is expected


class TestEnum:
    """Tests for the enum rule across enum domains"""

    def test_strict_comparison(self, provider):
        assert provider.apply("enum", 1, (1, "a")) is True
        assert provider.apply("enum", True, (1, "a")) is False
        assert provider.apply("enum", "1", (1, "a")) is False

    def test_float_epsilon(self, provider):
        assert provider.apply("enum", 0.1 + 0.2, (0.3,)) is True

    def test_equatable_domain_ignores_float_and_null(self):
        provider = RuleProvider(EnumDomain.EQUATABLE)
        assert provider.apply("enum", 1.0, (1.0,)) is False
        assert provider.apply("enum", None, (None,)) is False

    def test_nullable_domain(self):
        assert enum_contains(EnumDomain.EQUATABLE_NULLABLE, None, ("a", None)) is True
        assert enum_contains(EnumDomain.EQUATABLE_NULLABLE, None, ("a",)) is False

    def test_containers_never_match(self, provider):
        assert provider.apply("enum", ["a"], ("a",)) is False

    def test_empty_allowed_values(self):
        with pytest.raises(ValueError):
            enum_contains(EnumDomain.SCALAR, 1, ())


class TestBuckets:
    """Tests for the loopable capability"""

    def test_mapping(self, provider):
        assert list(provider.buckets({"a": 1})) == [("a", 1)]

    def test_list(self, provider):
        assert list(provider.buckets(["x", "y"])) == [(0, "x"), (1, "y")]

    def test_object_public_attributes(self, provider):
        class Thing:
            def __init__(self):
                self.a = 1
                self._hidden = 2

        assert list(provider.buckets(Thing())) == [("a", 1)]

    @pytest.mark.parametrize("subject", ["abc", None, 5, b"bytes"])
    def test_not_loopable(self, provider, subject):
        assert provider.buckets(subject) is None


# Usable arguments per pattern rule, as the rule set factory passes them.
PATTERN_ARGUMENTS = {
    "enum": (("a", 1),),
    "min": (0,),
    "max": (10,),
    "range": (0, 10),
    "maxDecimals": (2,),
    "regex": ("^a",),
    "minLength": (1,),
    "maxLength": (5,),
    "exactLength": (3,),
    "alphaNum": ("lower",),
    "hex": ("upper",),
    "uuid": ("",),
    "dateTimeISO": (3,),
    "dateTimeISOUTC": (0,),
}


class TestCheckedPatternRules:
    """Pattern rules applied to subjects outside their type affiliation"""

    @pytest.mark.parametrize(
        "rule, subject, args",
        [
            ("positive", "abc", ()),
            ("range", [1], (0, 10)),
            ("min", None, (0,)),
            ("maxDecimals", 1.5, (2,)),
            ("dateISO", 20240101, ()),
            ("regex", {"a": 1}, ("a",)),
            ("minLength", None, (1,)),
        ],
    )
    def test_fails_without_erroring(self, provider, rule, subject, args):
        assert provider.apply(rule, subject, *args) is False

    @pytest.mark.parametrize("subject", ["http://[::1", "http://[bad/path"])
    def test_unparsable_url(self, provider, subject):
        assert provider.apply("url", subject) is False
        assert provider.apply("httpUrl", subject) is False

    @settings(max_examples=200)
    @given(subject=anything, rule=st.sampled_from(RuleProvider().get_rule_names(pattern_rules_only=True)))
    def test_pattern_rules_never_raise(self, subject, rule):
        """Property: a pattern rule fails an unexpected subject, it doesn't error"""
        result = RuleProvider().apply(rule, subject, *PATTERN_ARGUMENTS.get(rule, ()))
        assert isinstance(result, bool)

    def test_check_arguments(self, provider):
        assert provider.check_arguments("range", (0, 1.5)) is None
        assert provider.check_arguments("integer", ()) is None
        assert "regular expression" in provider.check_arguments("regex", ("(",))
        assert provider.check_arguments("min", ("1",)) == "argument[0] '1' is not int|float"
