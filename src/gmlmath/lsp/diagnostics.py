"""
Diagnostic generation for the gmlmath LSP.

Front-end errors become Error diagnostics. Every accepted rewrite becomes an
Information diagnostic over the original text it would replace.
"""

from typing import Optional

from lsprotocol import types

from gmlmath.compiler.math_optimizer import MathOptimizer, OptimizationResult
from gmlmath.compiler.text_edits import TextEdit
from gmlmath.config import DEFAULT_CONFIG, OptimizerConfig
from gmlmath.lsp.positions import LineIndex
from gmlmath.utils.errors import GmlMathError

DIAGNOSTIC_SOURCE = "gmlmath"

# Longest replacement quoted verbatim in a message
MAX_PREVIEW_LENGTH = 60


class DiagnosticProvider:
    """
    Generates LSP diagnostics from GML source code.

    Usage:
        provider = DiagnosticProvider(source, uri)
        diagnostics = provider.get_diagnostics()
    """

    def __init__(self, source: str, uri: str, config: OptimizerConfig = DEFAULT_CONFIG) -> None:
        """
        Args:
            source: The GML source code to analyze
            uri: The document URI, used as the filename in error messages
            config: Optimizer settings
        """
        self.source = source
        self.uri = uri
        self.config = config
        self.index = LineIndex(source)
        self.result: Optional[OptimizationResult] = None
        self._diagnostics: list[types.Diagnostic] = []

    def get_diagnostics(self) -> list[types.Diagnostic]:
        """
        Run the optimizer and collect diagnostics.

        Returns:
            One Error diagnostic when the source does not parse, otherwise one
            Information diagnostic per accepted rewrite.
        """
        self._diagnostics = []
        try:
            self.result = MathOptimizer(self.config).optimize(self.source, self.uri)
        except GmlMathError as e:
            self._add_error(e)
            return self._diagnostics

        for edit in self.result.edits:
            self._add_rewrite(edit)
        return self._diagnostics

    def _add_error(self, error: GmlMathError) -> None:
        """Add a front-end error as an LSP diagnostic."""
        start = error.location.offset if error.location else 0
        end = start + 1
        if error.source_line and error.location:
            # Underline up to the end of the offending token
            rest_of_line = error.source_line[error.location.column - 1:]
            for i, c in enumerate(rest_of_line):
                if c.isspace() or c in "()[]{},:;":
                    end = start + max(1, i)
                    break
            else:
                end = start + max(1, len(rest_of_line))

        self._diagnostics.append(
            types.Diagnostic(
                range=self.index.range(start, min(end, len(self.source))),
                message=error.message,
                severity=types.DiagnosticSeverity.Error,
                source=DIAGNOSTIC_SOURCE,
            )
        )

    def _add_rewrite(self, edit: TextEdit) -> None:
        """Add an accepted rewrite as an Information diagnostic."""
        if edit.text:
            preview = edit.text.strip()
            if len(preview) > MAX_PREVIEW_LENGTH:
                preview = preview[:MAX_PREVIEW_LENGTH - 3] + "..."
            message = f"can be simplified to `{preview}`"
        else:
            message = "can be removed"

        self._diagnostics.append(
            types.Diagnostic(
                range=self.index.range(edit.start, edit.end),
                message=message,
                severity=types.DiagnosticSeverity.Information,
                source=DIAGNOSTIC_SOURCE,
                code=edit.origin or None,
            )
        )


def get_diagnostics_for_document(
    source: str, uri: str, config: OptimizerConfig = DEFAULT_CONFIG
) -> list[types.Diagnostic]:
    """
    Convenience function to get all diagnostics for a document.

    Args:
        source: The GML source code
        uri: The document URI
        config: Optimizer settings

    Returns:
        List of LSP diagnostics
    """
    return DiagnosticProvider(source, uri, config).get_diagnostics()
