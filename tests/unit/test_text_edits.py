"""
Unit tests for text edit composition.
"""

from gmlmath.compiler.text_edits import (
    TextEdit,
    apply_edits,
    compose,
    has_overlapping_range,
    resolve_edits,
    statement_removal_range,
)


class TestTextEdit:
    """Tests for the TextEdit record."""

    def test_overlaps(self):
        """Test half-open range intersection."""
        edit = TextEdit(2, 5, "")
        assert edit.overlaps(4, 6)
        assert edit.overlaps(0, 3)
        assert not edit.overlaps(5, 6)
        assert not edit.overlaps(0, 2)

    def test_is_valid_for(self):
        """Test range validation against a source."""
        assert TextEdit(0, 3, "x").is_valid_for("abc")
        assert TextEdit(3, 3, "x").is_valid_for("abc")
        assert not TextEdit(2, 4, "x").is_valid_for("abc")
        assert not TextEdit(2, 1, "x").is_valid_for("abc")

    def test_has_overlapping_range(self):
        """Test checking a range against several edits."""
        edits = [TextEdit(0, 2, "a"), TextEdit(6, 8, "b")]
        assert has_overlapping_range(1, 3, edits)
        assert not has_overlapping_range(2, 6, edits)


class TestResolve:
    """Tests for conflict resolution."""

    def test_earlier_start_wins(self):
        """Test that the edit starting first is kept on overlap."""
        source = "0123456789"
        first = TextEdit(0, 5, "A")
        second = TextEdit(3, 8, "B")
        accepted, rejected = resolve_edits(source, [second, first])
        assert accepted == [first]
        assert rejected == [second]
        assert compose(source, [first, second]) == "A56789"

    def test_equal_ranges_keep_registration_order(self):
        """Test that among identical ranges the first registered wins."""
        accepted, rejected = resolve_edits("abcdef", [TextEdit(2, 4, "X"), TextEdit(2, 4, "Y")])
        assert [e.text for e in accepted] == ["X"]
        assert [e.text for e in rejected] == ["Y"]

    def test_adjacent_edits_both_accepted(self):
        """Test that touching ranges do not conflict."""
        accepted, rejected = resolve_edits("abcd", [TextEdit(2, 4, "y"), TextEdit(0, 2, "x")])
        assert [e.text for e in accepted] == ["x", "y"]
        assert rejected == []

    def test_out_of_range_rejected(self):
        """Test that edits outside the source are dropped."""
        accepted, rejected = resolve_edits("abc", [TextEdit(1, 10, "z")])
        assert accepted == []
        assert len(rejected) == 1


class TestApply:
    """Tests for splicing edits into the source."""

    def test_compose_without_edits(self):
        """Test that no edits returns the source unchanged."""
        assert compose("x = 1;", []) == "x = 1;"

    def test_offsets_refer_to_original(self):
        """Test that later edits are not shifted by earlier replacements."""
        source = "a * 1 + b * 1"
        edits = [TextEdit(0, 5, "a"), TextEdit(8, 13, "b")]
        assert compose(source, edits) == "a + b"

    def test_insertions_keep_registration_order(self):
        """Test two insertions at the same offset."""
        accepted, _ = resolve_edits("abcdef", [TextEdit(3, 3, "1"), TextEdit(3, 3, "2")])
        assert apply_edits("abcdef", accepted) == "abc12def"

    def test_deletion(self):
        """Test that an empty replacement deletes text."""
        assert compose("keep drop", [TextEdit(4, 9, "")]) == "keep"


class TestStatementRemovalRange:
    """Tests for statement_removal_range."""

    def test_whole_line_with_indentation(self):
        """Test that an indented statement alone on its line is removed with its line."""
        source = "a = 1;\n    x++;\nb = 2;\n"
        start = source.index("x++")
        removal = statement_removal_range(source, start, start + 3)
        assert removal == (source.index("    x++"), source.index("b = 2"))

    def test_statement_followed_by_code(self):
        """Test that only the statement and its separator are removed."""
        source = "x++; y = 1;"
        assert statement_removal_range(source, 0, 3) == (0, 5)

    def test_statement_after_code_on_same_line(self):
        """Test that preceding code keeps the start in place."""
        source = "y = 1; x++;\n"
        start = source.index("x++")
        assert statement_removal_range(source, start, start + 3) == (start, len(source))

    def test_end_of_file(self):
        """Test a final statement without a newline."""
        source = "a = 1;\n  x++;"
        start = source.index("x++")
        assert statement_removal_range(source, start, start + 3) == (7, len(source))
