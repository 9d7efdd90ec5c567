"""
Unit tests for the constant evaluator.
"""

import pytest

from gmlmath.compiler.const_evaluator import evaluate_const, is_const_expr


class TestArithmetic:
    """Tests for numeric folding."""

    @pytest.mark.parametrize(
        "source,expected",
        [
            ("1 + 2 * 3", 7),
            ("(1 + 2) * 3", 9),
            ("10 - 4 - 3", 3),
            ("7 / 2", 3.5),
            ("7 div 2", 3),
            ("7 mod 3", 1),
            ("-7 % 3", -1),
            ("-(2 * 3)", -6),
            ("+4", 4),
        ],
    )
    def test_numeric_expressions(self, parse_expr, evaluator, source, expected):
        """Test arithmetic on literals."""
        assert evaluator.evaluate(parse_expr(source)) == expected

    def test_hex_literal(self, parse_expr, evaluator):
        """Test that hexadecimal literals take part in folding."""
        assert evaluator.evaluate(parse_expr("$F | 16")) == 31

    @pytest.mark.parametrize(
        "source,expected",
        [("~0", -1), ("1 << 4", 16), ("256 >> 2", 64), ("6 & 3", 2), ("6 ^ 3", 5)],
    )
    def test_bitwise(self, parse_expr, evaluator, source, expected):
        """Test bitwise operators."""
        assert evaluator.evaluate(parse_expr(source)) == expected

    @pytest.mark.parametrize("source", ["1 / 0", "5 mod 0", "3 div (2 - 2)"])
    def test_division_by_zero_is_not_constant(self, parse_expr, evaluator, source):
        """Test that division or modulo by zero yields None."""
        assert evaluator.evaluate(parse_expr(source)) is None

    def test_negative_shift_is_not_constant(self, parse_expr, evaluator):
        """Test that shifting by a negative count yields None."""
        assert evaluator.evaluate(parse_expr("1 << -1")) is None


class TestBooleans:
    """Tests for comparison and logical operators."""

    @pytest.mark.parametrize(
        "source,expected",
        [
            ("3 > 2", True),
            ("3 <= 2", False),
            ("1 == 1", True),
            ("1 != 1", False),
            ("!true", False),
            ("not false", True),
            ("true and false", False),
            ("true xor false", True),
            ("3 > 2 && 1 < 2", True),
        ],
    )
    def test_boolean_expressions(self, parse_expr, evaluator, source, expected):
        """Test comparisons and logical operators on constants."""
        assert evaluator.evaluate(parse_expr(source)) is expected

    def test_short_circuit_and(self, parse_expr, evaluator):
        """Test that a known false decides 'and' with an unknown side."""
        assert evaluator.evaluate(parse_expr("ready && false")) is False

    def test_short_circuit_or(self, parse_expr, evaluator):
        """Test that a known true decides 'or' with an unknown side."""
        assert evaluator.evaluate(parse_expr("true || ready")) is True

    def test_unknown_side_without_short_circuit(self, parse_expr, evaluator):
        """Test that 'and' with true and an unknown operand is not constant."""
        assert evaluator.evaluate(parse_expr("ready && true")) is None

    def test_not_requires_boolean(self, parse_expr, evaluator):
        """Test that '!' on a number is not folded."""
        assert evaluator.evaluate(parse_expr("!1")) is None

    def test_arithmetic_on_boolean_rejected(self, parse_expr, evaluator):
        """Test that booleans do not take part in arithmetic."""
        assert evaluator.evaluate(parse_expr("true + 1")) is None


class TestNonConstant:
    """Tests for expressions that cannot be evaluated."""

    @pytest.mark.parametrize("source", ["x", "x + 1", "sqrt(4)", '"abc"', "undefined", "a.b * 2"])
    def test_not_constant(self, parse_expr, evaluator, source):
        """Test that identifiers, calls, strings and undefined are not constant."""
        node = parse_expr(source)
        assert evaluator.evaluate(node) is None
        assert not evaluator.is_const_expr(node)

    def test_evaluate_number_rejects_booleans(self, parse_expr, evaluator):
        """Test that evaluate_number only returns numbers."""
        assert evaluator.evaluate_number(parse_expr("1 < 2")) is None
        assert evaluator.evaluate_number(parse_expr("1 + 1")) == 2

    def test_stateless(self, parse_expr, evaluator):
        """Test that evaluating twice gives the same result."""
        node = parse_expr("2 * 21")
        assert evaluator.evaluate(node) == evaluator.evaluate(node) == 42


class TestConvenienceFunctions:
    """Tests for the module-level helpers."""

    def test_evaluate_const(self, parse_expr):
        """Test evaluate_const."""
        assert evaluate_const(parse_expr("2 * (3 + 4)")) == 14

    def test_is_const_expr(self, parse_expr):
        """Test is_const_expr."""
        assert is_const_expr(parse_expr("(2 + 3)"))
        assert not is_const_expr(parse_expr("y * 2"))
