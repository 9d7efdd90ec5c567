"""
Text edit composition.

Every rewrite pass proposes :class:`TextEdit` records over the *original*
source. The composer reduces them to one conflict-free set and splices them
into the final text:

1. Edits are sorted by ``(start, end)``. The sort is stable, so among equal
   ranges the edit registered first wins.
2. An edit starting before the end of the last accepted edit is rejected.
3. Accepted edits are applied in reverse start order so offsets computed
   against the original text stay valid while splicing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TextEdit:
    """
    Replace ``source[start:end]`` with ``text``.

    Attributes:
        start: Start offset into the original source (inclusive)
        end: End offset into the original source (exclusive)
        text: Replacement text; empty for a deletion
        origin: Name of the pass that proposed the edit
    """

    start: int
    end: int
    text: str
    origin: str = ""

    def overlaps(self, start: int, end: int) -> bool:
        """Check if this edit's range intersects ``[start, end)``."""
        return start < self.end and end > self.start

    def is_valid_for(self, source: str) -> bool:
        """Check ``0 <= start <= end <= len(source)``."""
        return 0 <= self.start <= self.end <= len(source)


def statement_removal_range(source: str, start: int, end: int) -> tuple[int, int]:
    """
    Widen a statement's range so deleting it leaves no blank residue.

    The end extends over a trailing ``;``, spaces, tabs and ``\\r``, then one
    ``\\n``. When that reaches the end of the line and only indentation
    precedes the statement on its line, the start moves back over the
    indentation too.
    """
    removal_end = end
    while removal_end < len(source) and source[removal_end] in "; \t\r":
        removal_end += 1

    at_line_end = removal_end >= len(source)
    if removal_end < len(source) and source[removal_end] == "\n":
        removal_end += 1
        at_line_end = True

    removal_start = start
    if at_line_end:
        line_start = source.rfind("\n", 0, start) + 1
        if not source[line_start:start].strip(" \t"):
            removal_start = line_start

    return removal_start, removal_end


def has_overlapping_range(start: int, end: int, edits: Iterable[TextEdit]) -> bool:
    """Check if ``[start, end)`` intersects any of ``edits``."""
    return any(edit.overlaps(start, end) for edit in edits)


def resolve_edits(
    source: str, edits: Sequence[TextEdit]
) -> tuple[list[TextEdit], list[TextEdit]]:
    """
    Split edits into a non-overlapping accepted set and the rejected rest.

    Args:
        source: The original source the edits were computed against
        edits: Edits in discovery order

    Returns:
        ``(accepted, rejected)``; accepted edits are sorted by start offset.
    """
    accepted: list[TextEdit] = []
    rejected: list[TextEdit] = []

    for edit in sorted(edits, key=lambda e: (e.start, e.end)):
        if not edit.is_valid_for(source):
            logger.debug("Dropping out-of-range edit %r", edit)
            rejected.append(edit)
            continue
        if accepted and edit.start < accepted[-1].end:
            logger.debug("Rejecting edit %r overlapping %r", edit, accepted[-1])
            rejected.append(edit)
            continue
        accepted.append(edit)

    return accepted, rejected


def apply_edits(source: str, accepted: Sequence[TextEdit]) -> str:
    """
    Splice already-resolved edits into the source.

    Edits are applied from the last start offset to the first, so each
    splice only shifts text after every edit still to be applied.
    """
    ordered = sorted(enumerate(accepted), key=lambda item: (item[1].start, item[1].end, item[0]))
    result = source
    for _, edit in reversed(ordered):
        result = result[:edit.start] + edit.text + result[edit.end:]
    return result


def compose(source: str, edits: Sequence[TextEdit]) -> str:
    """
    Apply a list of possibly-overlapping edits to the source.

    Args:
        source: The original source text
        edits: Edits in discovery order

    Returns:
        The rewritten text. Overlapping and out-of-range edits are dropped.
    """
    if not edits:
        return source
    accepted, _ = resolve_edits(source, edits)
    return apply_edits(source, accepted)
