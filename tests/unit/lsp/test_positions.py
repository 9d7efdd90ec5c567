"""Tests for offset to LSP position conversion."""

from lsprotocol import types

from gmlmath.lsp.positions import LineIndex


class TestLineIndex:
    """Test suite for LineIndex."""

    def test_line_starts(self) -> None:
        """Test that every newline starts a line."""
        assert LineIndex("a\nbc\n\nd").line_starts == [0, 2, 5, 6]

    def test_position(self) -> None:
        """Test converting offsets to positions."""
        index = LineIndex("x = 1;\ny = 2;\n")
        assert index.position(0) == types.Position(line=0, character=0)
        assert index.position(9) == types.Position(line=1, character=2)

    def test_crlf(self) -> None:
        """Test that a CR belongs to the line it ends."""
        index = LineIndex("a = 1;\r\nb = 2;")
        assert index.position(8) == types.Position(line=1, character=0)
        assert index.line_of(6) == 0

    def test_utf16_columns(self) -> None:
        """Test that astral characters count as two UTF-16 code units."""
        text = 'a = "\U0001F600"; b'
        index = LineIndex(text)
        offset = text.index("b")
        assert index.position(offset) == types.Position(line=0, character=offset + 1)
        assert index.offset(types.Position(line=0, character=offset + 1)) == offset

    def test_offset_round_trip(self) -> None:
        """Test converting positions back to offsets."""
        text = "first\nsecond line\n"
        index = LineIndex(text)
        assert index.offset(types.Position(line=1, character=7)) == text.index("line")

    def test_offset_clamps(self) -> None:
        """Test positions past the end of a line or the document."""
        text = "ab\ncd"
        index = LineIndex(text)
        assert index.offset(types.Position(line=0, character=40)) == 2
        assert index.offset(types.Position(line=9, character=0)) == len(text)

    def test_range_and_end(self) -> None:
        """Test ranges and the end-of-document position."""
        index = LineIndex("ab\ncd")
        assert index.range(1, 4) == types.Range(
            start=types.Position(line=0, character=1),
            end=types.Position(line=1, character=1),
        )
        assert index.end_position() == types.Position(line=1, character=2)
        assert index.position(100) == index.end_position()
