"""
Offset to LSP position conversion.

Core offsets are Python string indices (code points). LSP positions are
zero-based lines and UTF-16 code unit columns, so columns are re-measured on
the line text.
"""

from bisect import bisect_right

from lsprotocol import types


class LineIndex:
    """
    Precomputed line-start offsets for one document.

    ``\\n`` ends a line; a ``\\r`` before it belongs to the line it ends, so
    ``\\r\\n`` documents map to the same line numbers as ``\\n`` ones.

    Example:
        index = LineIndex("a = 1;\\r\\nb = 2;")
        index.position(8)  # Position(line=1, character=0)
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.line_starts = [0]
        for offset, char in enumerate(text):
            if char == "\n":
                self.line_starts.append(offset + 1)

    def line_of(self, offset: int) -> int:
        """Get the zero-based line containing ``offset``."""
        offset = max(0, min(offset, len(self.text)))
        return bisect_right(self.line_starts, offset) - 1

    def position(self, offset: int) -> types.Position:
        """Convert a string offset into an LSP position."""
        offset = max(0, min(offset, len(self.text)))
        line = self.line_of(offset)
        prefix = self.text[self.line_starts[line]:offset]
        return types.Position(line=line, character=_utf16_length(prefix))

    def range(self, start: int, end: int) -> types.Range:
        """Convert a ``[start, end)`` offset pair into an LSP range."""
        return types.Range(start=self.position(start), end=self.position(end))

    def offset(self, position: types.Position) -> int:
        """Convert an LSP position back into a string offset."""
        if position.line >= len(self.line_starts):
            return len(self.text)
        line_start = self.line_starts[max(0, position.line)]
        line_end = self.text.find("\n", line_start)
        if line_end < 0:
            line_end = len(self.text)

        units = 0
        offset = line_start
        while offset < line_end and units < position.character:
            units += _utf16_length(self.text[offset])
            offset += 1
        return offset

    def end_position(self) -> types.Position:
        """Get the position just past the last character."""
        return self.position(len(self.text))


def _utf16_length(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2
