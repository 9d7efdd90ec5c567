"""
Unit tests for cumulative-update dead code analysis.
"""

import pytest

from gmlmath.compiler.dead_code import DeadCodeAnalyzer
from gmlmath.compiler.text_edits import compose


@pytest.fixture
def remove_dead(parse):
    """Fixture to run the analyzer over a program body and apply its edits."""

    def _remove_dead(source: str) -> str:
        edits = DeadCodeAnalyzer(source).analyze(parse(source).body)
        return compose(source, edits)

    return _remove_dead


class TestCancellingRuns:
    """Tests for runs whose net change is zero."""

    def test_increment_then_decrement(self, remove_dead):
        """Test that x++ followed by x-- is removed."""
        assert remove_dead("x++;\nx--;\n") == ""

    def test_compound_updates(self, remove_dead):
        """Test that constant += and -= cancel."""
        assert remove_dead("x += 2;\nx -= 2;\ny = 1;\n") == "y = 1;\n"

    def test_zero_update_alone(self, remove_dead):
        """Test that x += 0 on its own is a zero run."""
        assert remove_dead("x += 0;\n") == ""

    def test_same_line(self, remove_dead):
        """Test statements sharing one line."""
        assert remove_dead("x++; x--; x += 0;") == ""

    def test_interleaved_variables(self, remove_dead):
        """Test that runs for different variables are tracked separately."""
        assert remove_dead("a++;\nb += 2;\na--;\nb -= 2;\n") == ""

    def test_floating_point_within_epsilon(self, remove_dead):
        """Test that a net delta within epsilon counts as zero."""
        assert remove_dead("x += 0.1;\nx += 0.2;\nx -= 0.3;\n") == ""

    def test_empty_statement_does_not_interrupt(self, remove_dead):
        """Test that a lone semicolon is kept and does not end the run."""
        assert remove_dead("x++;\n;\nx--;\n") == ";\n"

    def test_reassignment_flushes_run(self, remove_dead):
        """Test that a cancelled run before a plain assignment is removed."""
        assert remove_dead("x += 3;\nx -= 3;\nx = 5;\n") == "x = 5;\n"

    def test_nested_block(self, parse):
        """Test removal inside a block, including indentation."""
        source = "if (a) {\n    x++;\n    x--;\n}\n"
        block = parse(source).body[0].consequent
        edits = DeadCodeAnalyzer(source).analyze(block.body)
        assert compose(source, edits) == "if (a) {\n}\n"


class TestIdentityUpdates:
    """Tests for *= 1 and /= 1."""

    def test_identity_updates_removed(self, remove_dead):
        """Test that multiplying or dividing by one is removed."""
        assert remove_dead("x *= 1;\ny /= 1;\n") == ""

    def test_scaling_kept(self, remove_dead):
        """Test that other factors are kept."""
        assert remove_dead("x *= 2;\n") == "x *= 2;\n"


class TestRunsKept:
    """Tests for sequences that must not change."""

    @pytest.mark.parametrize(
        "source",
        [
            "x += 1;\n",
            "x++;\nshow(x);\nx--;\n",
            "x++;\nx = x * 2;\nx--;\n",
            "x++;\nx = 5;\nx--;\n",
            "x += n;\nx -= n;\n",
            "self.x++;\nself.x--;\n",
            "arr[0]++;\narr[0]--;\n",
        ],
    )
    def test_unchanged(self, remove_dead, source):
        """Test nonzero, interrupted or non-variable runs."""
        assert remove_dead(source) == source

    def test_removal_origin(self, parse):
        """Test that edits are tagged with their pass."""
        source = "x++;\nx--;\n"
        edits = DeadCodeAnalyzer(source).analyze(parse(source).body)
        assert {edit.origin for edit in edits} == {"dead-code"}
