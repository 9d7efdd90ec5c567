"""
Unit tests for the pattern-specific rewrites.
"""

import pytest

from gmlmath.compiler.math_patterns import (
    fold_reciprocal_division,
    fold_sum_of_squares,
    fuse_half_rotation,
    match_half_rotation,
)
from gmlmath.compiler.text_edits import compose
from gmlmath.config import OptimizerConfig


class TestReciprocalDivision:
    """Tests for a / (1 / k)."""

    def test_literal_divisor(self, parse_expr):
        """Test the basic rewrite."""
        source = "a / (1 / 4)"
        edit = fold_reciprocal_division(source, parse_expr(source))
        assert (edit.start, edit.end) == (0, len(source))
        assert edit.text == "4 * a"
        assert edit.origin == "reciprocal-division"

    def test_negative_literal(self, parse_expr):
        """Test that a signed literal is accepted."""
        source = "speed / (1 / -2)"
        assert fold_reciprocal_division(source, parse_expr(source)).text == "-2 * speed"

    def test_compound_dividend_kept_verbatim(self, parse_expr):
        """Test that a dividend with its own division stays in front of k."""
        source = "(hp / max_hp) / (1 / 4)"
        assert fold_reciprocal_division(source, parse_expr(source)).text == "(hp / max_hp) * 4"

    def test_scaled_dividend_folds_coefficient(self, parse_expr):
        """Test that a numeric factor in the dividend merges with k."""
        source = "2 * spd / (1 / 0.25)"
        assert fold_reciprocal_division(source, parse_expr(source)).text == "spd * 0.5"

    @pytest.mark.parametrize(
        "source",
        ["a / (1 / k)", "a / (2 / 4)", "a / (1 / 0)", "a * (1 / 4)", "a / 4"],
    )
    def test_no_match(self, parse_expr, source):
        """Test shapes that must be left alone."""
        assert fold_reciprocal_division(source, parse_expr(source)) is None


class TestSumOfSquares:
    """Tests for sqrt(a*a + b*b)."""

    def test_two_terms(self, parse_expr):
        """Test the 2D distance rewrite."""
        source = "sqrt(dx * dx + dy * dy)"
        edit = fold_sum_of_squares(source, parse_expr(source))
        assert edit.text == "point_distance(0, 0, dx, dy)"
        assert edit.origin == "sum-of-squares"

    def test_three_terms(self, parse_expr):
        """Test the 3D distance rewrite."""
        source = "sqrt(dx * dx + dy * dy + dz * dz)"
        assert fold_sum_of_squares(source, parse_expr(source)).text == (
            "point_distance_3d(0, 0, 0, dx, dy, dz)"
        )

    def test_compound_bases(self, parse_expr):
        """Test that each base may be any repeated sub-expression."""
        source = "sqrt((x2 - x1) * (x2 - x1) + other.y * other.y)"
        assert fold_sum_of_squares(source, parse_expr(source)).text == (
            "point_distance(0, 0, x2 - x1, other.y)"
        )

    def test_configured_function_name(self, parse_expr):
        """Test that the distance function name comes from the configuration."""
        source = "sqrt(a * a + b * b)"
        config = OptimizerConfig(distance_2d_function="vec2_length")
        assert fold_sum_of_squares(source, parse_expr(source), config).text == "vec2_length(0, 0, a, b)"

    @pytest.mark.parametrize(
        "source",
        [
            "sqrt(dx * dx + dy * dz)",
            "sqrt(dx * dx)",
            "sqrt(a * a + b * b + c * c + d * d)",
            "sqrt(a * a - b * b)",
            "abs(a * a + b * b)",
            "sqrt(a * a + b * b, 1)",
        ],
    )
    def test_no_match(self, parse_expr, source):
        """Test shapes that must be left alone."""
        assert fold_sum_of_squares(source, parse_expr(source)) is None


class TestHalfRotation:
    """Tests for the half-rotation fusion."""

    def test_match_returns_angle_text(self, parse_expr):
        """Test that the matcher returns the angle argument's text."""
        source = "s - s / 2 - lengthdir_x(s / 2, point_direction(0, 0, x, y))"
        assert match_half_rotation(source, "s", parse_expr(source)) == "point_direction(0, 0, x, y)"

    def test_match_accepts_times_half(self, parse_expr):
        """Test the s * 0.5 spelling."""
        source = "s - s * 0.5 - lengthdir_x(s * 0.5, dir)"
        assert match_half_rotation(source, "s", parse_expr(source)) == "dir"

    @pytest.mark.parametrize(
        "source",
        [
            "s - t / 2 - lengthdir_x(s / 2, dir)",
            "s - s / 2 - lengthdir_y(s / 2, dir)",
            "s - s / 3 - lengthdir_x(s / 3, dir)",
            "s + s / 2 - lengthdir_x(s / 2, dir)",
        ],
    )
    def test_match_rejects(self, parse_expr, source):
        """Test near misses."""
        assert match_half_rotation(source, "s", parse_expr(source)) is None

    def test_fuse(self, parse):
        """Test fusing a declaration with its update."""
        source = "var s = spd * 2;\ns = s - s / 2 - lengthdir_x(s / 2, dir);\n"
        edits = fuse_half_rotation(source, parse(source).body, 0)
        assert len(edits) == 2
        assert compose(source, edits) == "var s = spd * (1 - lengthdir_x(1, dir));\n"

    def test_fuse_keeps_coefficient(self, parse):
        """Test that a remaining coefficient stays in the product."""
        source = "var s = 4 * len;\ns = s - s * 0.5 - lengthdir_x(s * 0.5, a);\n"
        edits = fuse_half_rotation(source, parse(source).body, 0)
        assert compose(source, edits) == "var s = 2 * len * (1 - lengthdir_x(1, a));\n"

    def test_fuse_additive_initializer(self, parse):
        """Test that a sum initializer is parenthesized."""
        source = "var s = a + b;\ns = s - s / 2 - lengthdir_x(s / 2, dir);\n"
        edits = fuse_half_rotation(source, parse(source).body, 0)
        assert compose(source, edits) == "var s = (a + b) * 0.5 * (1 - lengthdir_x(1, dir));\n"

    @pytest.mark.parametrize(
        "source",
        [
            "var s = spd;\n",
            "var s = spd;\nt = s - s / 2 - lengthdir_x(s / 2, dir);\n",
            "var s = spd;\ns += s - s / 2 - lengthdir_x(s / 2, dir);\n",
            "var s = a / b;\ns = s - s / 2 - lengthdir_x(s / 2, dir);\n",
            "var s = spd, t = 1;\ns = s - s / 2 - lengthdir_x(s / 2, dir);\n",
        ],
    )
    def test_fuse_rejects(self, parse, source):
        """Test windows that do not fuse."""
        assert fuse_half_rotation(source, parse(source).body, 0) == []
