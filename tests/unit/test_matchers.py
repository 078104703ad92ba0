"""Tests for the matcher tree."""

import pytest

from feature_gate.core.context import EvaluationContext
from feature_gate.core.matchers import (
    AllOf,
    ExactMatch,
    Percentage,
    any_match,
    bucket,
    fnv1a_32,
    matcher_from_dict,
    with_and,
    with_exact_match,
    with_percentage,
)
from feature_gate.domain.exceptions import InvalidMatcherError

DIGITS = [str(i) for i in range(10)]


def ctx_with(**values):
    return EvaluationContext.background().with_values(values)


class TestHashing:
    """Test stable bucketing."""

    def test_fnv1a_known_values(self):
        """Test FNV-1a 32-bit reference values."""
        assert fnv1a_32(b"") == 2166136261
        assert fnv1a_32(b"a") == 0xE40C292C
        assert fnv1a_32(b"1") == 873244444

    @pytest.mark.parametrize(
        "value,expected",
        [("1", 44), ("2", 1), ("3", 82), ("6", 25), ("7", 6), ("8", 15), ("", 61)],
    )
    def test_bucket_values(self, value, expected):
        """Test bucket assignment is a fixed function of the value."""
        assert bucket(value) == expected

    def test_bucket_range(self):
        """Test buckets fall in 0-99."""
        for i in range(500):
            assert 0 <= bucket(f"customer-{i}") < 100


class TestExactMatch:
    """Test exact match matcher."""

    def test_positive(self):
        """Test equal value matches."""
        assert ExactMatch("region", "eu").evaluate(ctx_with(region="eu"))

    def test_wrong_value(self):
        """Test different value does not match."""
        assert not ExactMatch("region", "eu").evaluate(ctx_with(region="us"))

    def test_missing_value(self):
        """Test absent key does not match a non-empty target."""
        assert not ExactMatch("region", "eu").evaluate(EvaluationContext.background())

    def test_missing_value_matches_empty_target(self):
        """Test absent key compares equal to the empty string."""
        assert ExactMatch("region", "").evaluate(EvaluationContext.background())

    def test_values_case_sensitive_keys_not(self):
        """Test values compare exactly while keys fold case."""
        matcher = with_exact_match("Region", "EU")

        assert matcher.evaluate(ctx_with(region="EU"))
        assert not matcher.evaluate(ctx_with(region="eu"))


class TestPercentage:
    """Test percentage matcher."""

    def test_positive(self):
        """Test a value in a low bucket is enabled at 50%."""
        assert with_percentage("id", 50).evaluate(ctx_with(id="1"))

    def test_negative(self):
        """Test a value in a high bucket is disabled at 50%."""
        assert not with_percentage("id", 50).evaluate(ctx_with(id="3"))

    def test_zero_matches_nothing(self):
        """Test 0% enables no value."""
        matcher = Percentage("id", 0)
        assert not any(matcher.evaluate(ctx_with(id=d)) for d in DIGITS)

    def test_hundred_matches_everything(self):
        """Test 100% enables every value."""
        matcher = Percentage("id", 100)
        assert all(matcher.evaluate(ctx_with(id=d)) for d in DIGITS)

    def test_percent_clamped(self):
        """Test out-of-range percents are clamped."""
        assert Percentage("id", 150).percent == 100
        assert Percentage("id", -5).percent == 0

    def test_repeatable(self):
        """Test repeated evaluation gives the same answer."""
        matcher = Percentage("id", 30)
        ctx = ctx_with(id="cust-42")
        first = matcher.evaluate(ctx)
        assert all(matcher.evaluate(ctx) == first for _ in range(20))

    def test_monotonic_in_percent(self):
        """Test raising the percent never disables an enabled value."""
        for value in DIGITS + ["cust-42", "cust-99"]:
            ctx = ctx_with(id=value)
            enabled = False
            for percent in range(101):
                result = Percentage("id", percent).evaluate(ctx)
                if enabled:
                    assert result
                enabled = result


class TestAnd:
    """Test AND combination."""

    def test_zero_children_is_true(self):
        """Test empty AND is vacuously true."""
        assert with_and().evaluate(EvaluationContext.background())

    def test_single_child_equals_child(self):
        """Test AND of one matcher equals that matcher."""
        child = ExactMatch("a", "1")
        for ctx in (ctx_with(a="1"), ctx_with(a="2")):
            assert with_and(child).evaluate(ctx) == child.evaluate(ctx)

    def test_requires_all(self):
        """Test every child must match."""
        matcher = with_and(ExactMatch("a", "1"), ExactMatch("b", "2"))

        assert not matcher.evaluate(ctx_with(a="1"))
        assert not matcher.evaluate(ctx_with(b="2"))
        assert matcher.evaluate(ctx_with(a="1", b="2"))
        assert not matcher.evaluate(EvaluationContext.background())

    def test_short_circuits(self):
        """Test evaluation stops at the first false child."""

        class Exploding(ExactMatch):
            def evaluate(self, ctx):
                raise AssertionError("should not be evaluated")

        matcher = AllOf((ExactMatch("a", "1"), Exploding("b", "2")))
        assert not matcher.evaluate(ctx_with(a="0"))

    def test_rejects_non_matchers(self):
        """Test children must be matchers."""
        with pytest.raises(InvalidMatcherError):
            with_and(ExactMatch("a", "1"), "not a matcher")


class TestAnyMatch:
    """Test feature-level OR."""

    def test_empty_is_false(self):
        """Test no matchers never match."""
        assert not any_match([], EvaluationContext.background())

    def test_any(self):
        """Test one match is enough."""
        matchers = [ExactMatch("a", "1"), ExactMatch("a", "2")]

        assert any_match(matchers, ctx_with(a="2"))
        assert not any_match(matchers, ctx_with(a="3"))


class TestSerialization:
    """Test matcher trees as data."""

    def test_to_dict(self):
        """Test dictionary form of a tree."""
        tree = with_and(ExactMatch("region", "eu"), Percentage("id", 25))

        assert tree.to_dict() == {
            "type": "and",
            "children": [
                {"type": "exact_match", "key": "region", "value": "eu"},
                {"type": "percentage", "key": "id", "percent": 25},
            ],
        }

    def test_from_dict_rebuilds_tree(self):
        """Test a tree is rebuilt from its dictionary form."""
        tree = with_and(ExactMatch("region", "eu"), with_and(Percentage("id", 25)))
        assert matcher_from_dict(tree.to_dict()) == tree

    def test_unknown_type(self):
        """Test unknown matcher types are rejected."""
        with pytest.raises(InvalidMatcherError, match="unknown matcher type"):
            matcher_from_dict({"type": "or", "children": []})

    def test_missing_field(self):
        """Test incomplete definitions are rejected."""
        with pytest.raises(InvalidMatcherError):
            matcher_from_dict({"type": "percentage", "key": "id"})

    def test_not_a_mapping(self):
        """Test non-mapping definitions are rejected."""
        with pytest.raises(InvalidMatcherError):
            matcher_from_dict(["exact_match"])
