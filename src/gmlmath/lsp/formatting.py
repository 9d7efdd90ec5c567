"""
Document formatting for the gmlmath LSP.

Formatting a document applies the optimizer and returns the result as one
edit replacing the whole document.
"""

import logging

from lsprotocol import types

from gmlmath.compiler.math_optimizer import MathOptimizer
from gmlmath.config import DEFAULT_CONFIG, OptimizerConfig
from gmlmath.lsp.positions import LineIndex
from gmlmath.utils.errors import GmlMathError

logger = logging.getLogger(__name__)


class LSPFormatter:
    """Produces LSP text edits from the optimizer's output."""

    def __init__(self, config: OptimizerConfig = DEFAULT_CONFIG) -> None:
        self.config = config
        self._optimizer = MathOptimizer(config)

    def format_document(self, source: str, uri: str = "") -> list[types.TextEdit]:
        """
        Optimize an entire document.

        Args:
            source: The GML source code
            uri: The document URI, used in log messages

        Returns:
            A single whole-document edit, or an empty list when the text is
            unchanged or does not parse (the parse error is reported as a
            diagnostic instead).
        """
        try:
            result = self._optimizer.optimize(source, uri or None)
        except GmlMathError as e:
            logger.info("Not formatting %s: %s", uri or "document", e.message)
            return []

        if not result.changed:
            return []

        index = LineIndex(source)
        return [
            types.TextEdit(
                range=types.Range(start=types.Position(line=0, character=0), end=index.end_position()),
                new_text=result.output,
            )
        ]
