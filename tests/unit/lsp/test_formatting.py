"""Tests for the gmlmath LSP formatter."""

from lsprotocol import types

from gmlmath.config import OptimizerConfig
from gmlmath.lsp.formatting import LSPFormatter


class TestLSPFormatter:
    """Test suite for LSPFormatter."""

    def test_whole_document_edit(self) -> None:
        """Test that formatting replaces the whole document."""
        edits = LSPFormatter().format_document("x = foo * 2 * 3;\ny = 1;\n")

        assert len(edits) == 1
        edit = edits[0]
        assert edit.range.start == types.Position(line=0, character=0)
        assert edit.range.end == types.Position(line=2, character=0)
        assert edit.new_text == "x = 6 * foo;\ny = 1;\n"

    def test_unchanged_document(self) -> None:
        """Test that nothing to rewrite gives no edits."""
        assert LSPFormatter().format_document("x = a + b;\n") == []

    def test_syntax_error_gives_no_edits(self) -> None:
        """Test that an unparsable document is left alone."""
        assert LSPFormatter().format_document("var x = ;", "file:///scr.gml") == []

    def test_config(self) -> None:
        """Test that the formatter uses its configuration."""
        formatter = LSPFormatter(OptimizerConfig(logical_flow=False))
        assert formatter.format_document("if (a) { return true; } return false;") == []
