"""Tests for the gmlmath LSP diagnostics provider."""

from lsprotocol.types import DiagnosticSeverity

from gmlmath.config import OptimizerConfig
from gmlmath.lsp.diagnostics import (
    DIAGNOSTIC_SOURCE,
    DiagnosticProvider,
    get_diagnostics_for_document,
)

URI = "file:///project/scripts/scr_test/scr_test.gml"


class TestDiagnosticProvider:
    """Test suite for DiagnosticProvider."""

    def test_clean_code_no_diagnostics(self) -> None:
        """Test that code with nothing to rewrite produces no diagnostics."""
        assert get_diagnostics_for_document("x = a + b;\n", URI) == []

    def test_rewrite_produces_information(self) -> None:
        """Test that a rewrite is reported over the text it replaces."""
        diagnostics = get_diagnostics_for_document("x = foo * 2 * 3;\n", URI)

        assert len(diagnostics) == 1
        diag = diagnostics[0]
        assert diag.severity == DiagnosticSeverity.Information
        assert diag.message == "can be simplified to `6 * foo`"
        assert diag.code == "simplify"
        assert diag.source == DIAGNOSTIC_SOURCE
        assert (diag.range.start.line, diag.range.start.character) == (0, 4)
        assert (diag.range.end.line, diag.range.end.character) == (0, 15)

    def test_removal_message(self) -> None:
        """Test that deletions say the code can be removed."""
        diagnostics = get_diagnostics_for_document("x++;\nx--;\n", URI)

        assert [d.message for d in diagnostics] == ["can be removed", "can be removed"]
        assert {d.code for d in diagnostics} == {"dead-code"}

    def test_long_replacement_truncated(self) -> None:
        """Test that long replacements are shortened in the message."""
        factors = " * ".join(f"factor_{i}" for i in range(12))
        diagnostics = get_diagnostics_for_document(f"x = {factors} * 2;\n", URI)

        assert len(diagnostics) == 1
        assert diagnostics[0].message.endswith("...`")

    def test_syntax_error_produces_error(self) -> None:
        """Test that syntax errors produce one Error diagnostic."""
        diagnostics = get_diagnostics_for_document("var x = ;", URI)

        assert len(diagnostics) == 1
        diag = diagnostics[0]
        assert diag.severity == DiagnosticSeverity.Error
        assert "Expected expression" in diag.message
        assert (diag.range.start.character, diag.range.end.character) == (8, 9)

    def test_unterminated_string_error(self) -> None:
        """Test diagnostic for an unterminated string."""
        diagnostics = get_diagnostics_for_document('s = "hello', URI)

        assert len(diagnostics) == 1
        assert diagnostics[0].severity == DiagnosticSeverity.Error
        assert "unterminated" in diagnostics[0].message.lower()

    def test_respects_config(self) -> None:
        """Test that disabled passes produce no diagnostics."""
        config = OptimizerConfig(simplify_expressions=False)
        assert get_diagnostics_for_document("x = foo * 2 * 3;\n", URI, config) == []

    def test_provider_keeps_result(self) -> None:
        """Test that the optimization result is available after a run."""
        provider = DiagnosticProvider("x = a * 1;\n", URI)
        provider.get_diagnostics()

        assert provider.result is not None
        assert provider.result.output == "x = a;\n"
