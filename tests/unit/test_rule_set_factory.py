"""
Unit tests for RuleSetFactory.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from nestcheck.core.exceptions import (
    AmbiguousEnumError,
    EnumDomainError,
    RecursionLimitError,
    RuleArityError,
    RuleSetError,
    RuleSourceError,
    UnknownRuleError,
)
from nestcheck.core.models import RuleInvocation, RuleSet
from nestcheck.core.rules import RuleSetFactory
from nestcheck.core.validators import RuleProvider


class TestRuleDeclaration:
    """Tests for the forms a rule may be declared in"""

    def test_flag_and_args(self, factory):
        rule_set = factory.make({"integer": True, "range": [1, 3]})
        assert rule_set.rules == (
            RuleInvocation(name="integer"),
            RuleInvocation(name="range", arguments=(1, 3)),
        )

    def test_bare_rule_names(self, factory):
        """Test rules declared by value, as list and as digit keys"""
        assert factory.make(["integer", "positive"]).rule_names == ("integer", "positive")
        assert factory.make({0: "integer", "1": "positive"}).rule_names == ("integer", "positive")

    def test_mixed_list_source(self, factory):
        rule_set = factory.make(["string", {"minLength": [2]}, "optional"])
        assert rule_set.rule_names == ("string", "minLength")
        assert rule_set.optional is True

    def test_scalar_shorthand(self, factory):
        """Test "min": 5 equals "min": [5]"""
        assert factory.make({"integer": True, "min": 5}) == factory.make({"integer": True, "min": [5]})

    def test_optional_argument_shorthand(self, factory):
        rule_set = factory.make({"hex": "lower"})
        assert rule_set.get_rule("hex").arguments == ("lower",)

    def test_empty_list_on_parameterless_rule_is_flag(self, factory):
        assert factory.make({"string": []}).get_rule("string").arguments == ()

    def test_false_disables_rule(self, factory):
        """Test a rule declared false isn't applied"""
        rule_set = factory.make({"integer": True, "positive": False})
        assert rule_set.rule_names == ("integer",)

    def test_type_rules_precede_pattern_rules(self, factory):
        rule_set = factory.make({"range": [1, 3], "integer": True})
        assert rule_set.rule_names == ("integer", "range")

    def test_renamed_rule(self, factory):
        """Test deprecated rule name resolves to its current name"""
        rule_set = factory.make({"dateISO8601": True})
        assert rule_set.rule_names == ("string", "dateISO")

    def test_alias_and_target_conflict(self, factory):
        with pytest.raises(RuleSourceError, match="renamed from\\[dateISO8601\\]"):
            factory.make({"dateISO": True, "dateISO8601": True})

    def test_keyed_and_bare_duplicate(self, factory):
        with pytest.raises(RuleSourceError, match="same name"):
            factory.make({"integer": True, 0: "integer"})


class TestArity:
    """Tests for rule argument validation"""

    def test_unknown_rule(self, factory):
        with pytest.raises(UnknownRuleError) as exc_info:
            factory.make({"integr": True})
        assert exc_info.value.rule_name == "integr"

    def test_flag_on_rule_requiring_arguments(self, factory):
        with pytest.raises(RuleArityError, match="requires list\\(2\\)"):
            factory.make({"range": True})

    def test_bare_rule_requiring_arguments(self, factory):
        with pytest.raises(RuleArityError, match="by value"):
            factory.make(["integer", "min"])

    def test_too_few_arguments(self, factory):
        with pytest.raises(RuleArityError, match="saw list\\(1\\)"):
            factory.make({"range": [1]})

    def test_too_many_arguments(self, factory):
        with pytest.raises(RuleArityError, match="supports list\\(1\\)"):
            factory.make({"min": [1, 2]})

    def test_arguments_on_parameterless_rule(self, factory):
        with pytest.raises(RuleArityError, match="takes no arguments"):
            factory.make({"integer": [1]})

    def test_shorthand_on_two_argument_rule(self, factory):
        with pytest.raises(RuleArityError):
            factory.make({"range": 5})

    def test_shorthand_on_parameterless_rule(self, factory):
        with pytest.raises(RuleArityError, match="takes no arguments"):
            factory.make({"integer": 1})


class TestTypeInference:
    """Tests for inferring a type-checking rule"""

    @pytest.mark.parametrize(
        "pattern_rule, type_rule",
        [
            ({"positive": True}, "numeric"),
            ({"maxLength": 5}, "stringable"),
            ({"dateISO": True}, "string"),
            ({"maxDecimals": 2}, "decimal"),
            ({"enum": ["a", "b"]}, "scalarNull"),
        ],
    )
    def test_inferred_from_first_pattern_rule(self, factory, pattern_rule, type_rule):
        assert factory.make(pattern_rule).rule_names[0] == type_rule

    def test_enum_type_follows_enum_domain(self, equatable_provider):
        rule_set = RuleSetFactory(equatable_provider, 10).make({"enum": ["a", "b"]})
        assert rule_set.rule_names == ("equatable", "enum")

    def test_container_inferred_for_table_elements(self, factory):
        rule_set = factory.make({"tableElements": {"a": {"integer": True}}})
        assert rule_set.rule_names == ("container",)

    def test_container_inferred_for_list_items(self, factory):
        rule_set = factory.make({"listItems": {"itemRules": {"integer": True}}})
        assert rule_set.rule_names == ("container",)

    def test_declared_type_rule_is_kept(self, factory):
        assert factory.make({"mapping": True, "tableElements": {"a": ["integer"]}}).rule_names == ("mapping",)

    def test_completely_empty(self, factory):
        with pytest.raises(RuleSourceError, match="completely empty"):
            factory.make({})

    def test_effectively_empty(self, factory):
        """Test flags and fallbacks alone don't make a rule set"""
        with pytest.raises(RuleSourceError, match="effectively empty"):
            factory.make({"optional": True, "alternativeEnum": ["x"]})


class TestEnum:
    """Tests for enum and alternativeEnum"""

    def test_enum_flattened(self, factory):
        assert factory.make({"enum": [["a", "b"]]}).get_rule("enum").arguments == (("a", "b"),)

    def test_null_in_enum_lifted_to_nullable(self, factory):
        rule_set = factory.make({"enum": ["a", None]})
        assert rule_set.nullable is True
        assert rule_set.get_rule("enum").arguments == (("a",),)

    def test_null_in_alternative_enum_kept(self, factory):
        rule_set = factory.make({"integer": True, "alternativeEnum": [None, "n/a"]})
        assert rule_set.alternative_enum == (None, "n/a")
        assert rule_set.nullable is False

    def test_ambiguous_enum(self, factory):
        with pytest.raises(AmbiguousEnumError):
            factory.make({"enum": ["a", ["b", "c"]]})

    def test_enum_domain_rejects_float(self, equatable_provider):
        with pytest.raises(EnumDomainError, match="bool\\|int\\|str"):
            RuleSetFactory(equatable_provider, 10).make({"enum": [1, 1.5]})

    def test_enum_domain_rejects_null_alternative(self, equatable_provider):
        with pytest.raises(EnumDomainError):
            RuleSetFactory(equatable_provider, 10).make({"integer": True, "alternativeEnum": [None]})

    def test_enum_rejects_container_value(self, factory):
        with pytest.raises(EnumDomainError):
            factory.make({"enum": [{"a": 1}]})


class TestComposites:
    """Tests for tableElements, listItems and alternativeRuleSet"""

    def test_table_elements_full_form(self, factory):
        rule_set = factory.make({
            "tableElements": {
                "exclusive": True,
                "rulesByElements": {"a": {"integer": True}, "b": ["string"]},
            }
        })
        table = rule_set.table_elements
        assert table.exclusive is True
        assert table.keys == ("a", "b")
        assert table.get_element_rule_set("b").rule_names == ("string",)

    def test_table_elements_shorthand(self, factory):
        """Test mapping without rulesByElements and modifiers is rulesByElements"""
        full = factory.make({"tableElements": {"rulesByElements": {"a": {"integer": True}}}})
        assert factory.make({"tableElements": {"a": {"integer": True}}}) == full

    def test_table_elements_modifier_without_rules_by_elements(self, factory):
        with pytest.raises(RuleSourceError, match="cannot assume"):
            factory.make({"tableElements": {"exclusive": True, "a": {"integer": True}}})

    def test_table_elements_single_modifier(self, factory):
        with pytest.raises(RuleSourceError, match="single"):
            factory.make({
                "tableElements": {
                    "exclusive": True,
                    "whitelist": ["x"],
                    "rulesByElements": {"a": ["integer"]},
                }
            })

    def test_list_items_full_form(self, factory):
        rule_set = factory.make({"listItems": {"minOccur": 2, "maxOccur": 3, "itemRules": {"string": True}}})
        assert rule_set.list_items.min_occur == 2
        assert rule_set.list_items.max_occur == 3
        assert rule_set.list_items.item_rules.rule_names == ("string",)

    def test_list_items_shorthand(self, factory):
        assert factory.make({"listItems": ["string"]}).list_items.item_rules.rule_names == ("string",)
        assert factory.make({"listItems": {"string": True}}).list_items.min_occur == 0

    @pytest.mark.parametrize(
        "occurs, message",
        [
            ({"minOccur": -1}, "less than zero"),
            ({"maxOccur": "3"}, "not int"),
            ({"minOccur": True}, "not int"),
            ({"minOccur": 3, "maxOccur": 2}, "less than minOccur"),
        ],
    )
    def test_list_items_invalid_occurs(self, factory, occurs, message):
        with pytest.raises(RuleSourceError, match=message):
            factory.make({"listItems": {"itemRules": ["string"], **occurs}})

    def test_list_items_zero_max_occur_unbounded(self, factory):
        rule_set = factory.make({"listItems": {"itemRules": ["string"], "minOccur": 3, "maxOccur": 0}})
        assert rule_set.list_items.max_occur == 0

    def test_alternative_rule_set(self, factory):
        rule_set = factory.make({"integer": True, "alternativeRuleSet": {"string": True, "maxLength": 3}})
        assert rule_set.alternative_rule_set.rule_names == ("string", "maxLength")

    def test_alternative_rule_set_cannot_nest_composites(self, factory):
        with pytest.raises(RuleSourceError, match="table_elements"):
            factory.make({"integer": True, "alternativeRuleSet": {"tableElements": {"a": ["integer"]}}})

    def test_composite_declared_by_value(self, factory):
        with pytest.raises(RuleSourceError, match="illegal"):
            factory.make(["integer", "tableElements"])

    def test_built_children_are_reused(self, factory):
        """Test RuleSet instances may appear as children"""
        child = factory.make({"integer": True})
        rule_set = factory.make({"tableElements": {"a": child}, "listItems": child})
        assert rule_set.table_elements.get_element_rule_set("a") is child
        assert rule_set.list_items.item_rules is child
        assert factory.make(child) is child

    def test_error_carries_key_path(self, factory):
        """Test nested errors locate the offending rule set"""
        with pytest.raises(UnknownRuleError) as exc_info:
            factory.make({"tableElements": {"person": {"tableElements": {"age": {"integr": True}}}}})
        error = exc_info.value
        assert error.key_path == ("person", "age")
        assert error.depth == 2
        assert str(error) == "[integr] (2) root > person > age: rule is not supported by the rule provider"


class TestRecursionLimit:
    """Tests for the build time recursion limit"""

    @staticmethod
    def nested(levels: int) -> dict:
        source = {"integer": True}
        for _ in range(levels):
            source = {"tableElements": {"a": source}}
        return source

    def test_within_limit(self, provider):
        RuleSetFactory(provider, recursion_limit=3).make(self.nested(2))

    def test_exceeding_limit(self, provider):
        with pytest.raises(RecursionLimitError, match="limit\\[3\\]"):
            RuleSetFactory(provider, recursion_limit=3).make(self.nested(3))

    def test_alternative_rule_set_counts(self, provider):
        with pytest.raises(RecursionLimitError):
            RuleSetFactory(provider, recursion_limit=1).make({"integer": True, "alternativeRuleSet": ["string"]})

    def test_limit_from_settings(self, provider, monkeypatch):
        from nestcheck.config import reset_settings

        monkeypatch.setenv("NESTCHECK_RECURSION_LIMIT", "2")
        reset_settings()
        assert RuleSetFactory(provider).recursion_limit == 2


class TestExport:
    """Tests for export_rules"""

    def test_export_normalized_form(self, factory):
        rule_set = factory.make({
            "enum": [["a", None]],
            "alternativeEnum": ["x"],
        })
        assert rule_set.export_rules() == {
            "nullable": True,
            "scalarNull": True,
            "enum": ["a"],
            "alternativeEnum": ["x"],
        }

    def test_export_round_trip(self, factory, person_source):
        rule_set = factory.make(person_source)
        assert factory.make(rule_set.export_rules()) == rule_set

    @settings(max_examples=50)
    @given(
        st.fixed_dictionaries(
            {"integer": st.just(True)},
            optional={
                "min": st.integers(-5, 5),
                "optional": st.booleans(),
                "nullable": st.booleans(),
                "alternativeEnum": st.lists(st.one_of(st.integers(), st.text(max_size=3)), min_size=1, max_size=3),
            },
        )
    )
    def test_make_is_deterministic(self, source):
        """Property: identical sources yield equal rule sets"""
        factory = RuleSetFactory(RuleProvider(), 10)
        assert factory.make(source) == factory.make(dict(source))


class TestErrorTaxonomy:
    def test_construction_errors_are_value_errors(self, factory):
        with pytest.raises(ValueError):
            factory.make({"integer": "x"})
        assert issubclass(RuleSetError, ValueError)

    def test_non_positive_recursion_limit(self, provider):
        with pytest.raises(ValueError):
            RuleSetFactory(provider, recursion_limit=0)

    def test_rule_set_is_frozen(self, factory):
        rule_set = factory.make({"integer": True})
        with pytest.raises(Exception):
            rule_set.optional = True
        assert isinstance(rule_set, RuleSet)


class TestArgumentVetting:
    """Tests for rejecting unusable rule arguments at build time"""

    @pytest.mark.parametrize(
        "source, message",
        [
            ({"string": True, "regex": "["}, "not a valid regular expression"),
            ({"string": True, "regex": [5]}, "type\\[int\\] is not str"),
            ({"numeric": True, "min": "abc"}, "'abc' is not int\\|float"),
            ({"numeric": True, "range": [0, None]}, "argument\\[1\\] None"),
            ({"numeric": True, "max": True}, "requires list"),
            ({"numeric": True, "max": [True]}, "True is not int\\|float"),
            ({"string": True, "minLength": -1}, "non-negative int"),
            ({"string": True, "maxLength": 2.5}, "non-negative int"),
            ({"decimal": True, "maxDecimals": "2"}, "non-negative int"),
            ({"string": True, "alphaNum": "title"}, "'title' is not"),
            ({"string": True, "hex": [["lower"]]}, "is not"),
            ({"string": True, "dateTimeISO": ["3"]}, "int from -1"),
        ],
    )
    def test_unusable_arguments(self, factory, source, message):
        with pytest.raises(RuleSetError, match=message):
            factory.make(source)

    def test_error_names_rule(self, factory):
        with pytest.raises(RuleSourceError) as exc_info:
            factory.make({"tableElements": {"code": {"string": True, "regex": "(a"}}})
        assert exc_info.value.rule_name == "regex"
        assert exc_info.value.key_path == ("code",)

    @pytest.mark.parametrize(
        "source",
        [
            {"string": True, "regex": "^[a-z]+$"},
            {"numeric": True, "range": [-1.5, 10]},
            {"string": True, "exactLength": 0},
            {"string": True, "uuid": ""},
            {"string": True, "dateTimeISOUTC": -1},
        ],
    )
    def test_usable_arguments(self, factory, source):
        assert factory.make(source).rule_names[0] == next(iter(source))


class TestSourceConflicts:
    """Tests for source entries a rule set cannot honor"""

    @pytest.mark.parametrize(
        "source",
        [
            [{"enum": [1]}, {"enum": [2]}],
            [{"alternativeEnum": ["a"]}, {"alternativeEnum": ["b"]}],
            [{"tableElements": {"a": ["integer"]}}, {"tableElements": {"b": ["integer"]}}],
            [{"listItems": ["string"]}, {"listItems": ["integer"]}],
            [{"alternativeRuleSet": ["string"]}, "integer", {"alternativeRuleSet": ["boolean"]}],
        ],
    )
    def test_repeated_pseudo_rule(self, factory, source):
        with pytest.raises(RuleSourceError, match="conflicts with rule of same name"):
            factory.make(source)

    @pytest.mark.parametrize("keys", [[["x"]], [{"x": 1}], [True], [None]])
    def test_unusable_modifier_keys(self, factory, keys):
        with pytest.raises(RuleSourceError, match="whitelist bucket\\[0\\]"):
            factory.make({"tableElements": {"whitelist": keys, "rulesByElements": {"a": ["integer"]}}})

    def test_numeric_modifier_keys(self, factory):
        rule_set = factory.make({"tableElements": {"blacklist": [0, "b"], "rulesByElements": {"a": ["integer"]}}})
        assert rule_set.table_elements.blacklist == frozenset({0, "b"})

    def test_unsupported_entry(self, factory, monkeypatch):
        monkeypatch.setattr(
            "nestcheck.core.rules.rule_set_factory.classify_entry", lambda entry, key_path, depth: object()
        )
        with pytest.raises(RuleSourceError, match="entry type\\[object\\] is not supported"):
            factory.make({"integer": True})

    def test_table_elements_cannot_be_rewired(self, factory, challenger):
        rule_set = factory.make({"tableElements": {"a": {"integer": True}}})
        with pytest.raises(TypeError):
            rule_set.table_elements.rules_by_elements["a"] = factory.make({"string": True})
        assert challenger.challenge({"a": 1}, rule_set) is True
        assert challenger.challenge({"a": "x"}, rule_set) is False
