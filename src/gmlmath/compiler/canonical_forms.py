"""
Canonical form text transformers.

These run after the AST-driven edits have been composed, and they operate on
*text*, not on the tree: each transformer takes the whole rewritten source
and returns a new string. They are applied in a fixed order, each to the
output of the previous one.

Transformers:
- Multiplication by one: ``x * 1`` and ``1 * x`` lose the ``1`` (word-boundary
  guarded, so ``length1 * x`` and ``x * 1.5`` are untouched)
- Undefined guard: ``if (!is_undefined(s)) { d *= s; }`` becomes
  ``d *= s ?? 1;``
- Zero check: ``if (len != 0)`` becomes ``if (abs(len) > math_get_epsilon())``

The last two only fire when the variables involved are assigned from a
numerically sensitive call (``sqrt``, ``sqr``, a distance function or a
``math_*`` function), so unrelated checks such as array lengths are left
alone.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from bisect import bisect_right
from typing import Callable, Optional, Sequence

from gmlmath.compiler.lexer import Lexer
from gmlmath.compiler.tokens import TokenType
from gmlmath.config import DEFAULT_CONFIG, OptimizerConfig
from gmlmath.utils.errors import LexerError

logger = logging.getLogger(__name__)

# A call whose result is numerically sensitive to tiny values
SENSITIVE_CALL_PATTERN = r"(?:\b\w*(?:sqrt|sqr|distance)\w*|\bmath_\w+)\s*\("

_SENSITIVE_CALL_RE = re.compile(SENSITIVE_CALL_PATTERN)

_VARIABLE = r"[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*"


def looks_numerically_sensitive(text: str, name: str) -> bool:
    """
    Check if ``name`` is assigned from a numerically sensitive call anywhere
    in ``text``.

    Args:
        text: Source text to search
        name: Variable name, possibly dotted (``self.len``)

    Returns:
        True if some ``name = ...``, ``name op= ...`` or ``var name = ...`` on
        a single line has a sensitive call on its right-hand side.
    """
    if not _SENSITIVE_CALL_RE.search(text):
        return False
    assignment = re.compile(
        r"(?<![\w.])" + re.escape(name) + r"\s*[-+*/]?=(?!=)[^;\n]*?" + SENSITIVE_CALL_PATTERN
    )
    return assignment.search(text) is not None


# =============================================================================
# Code regions
# =============================================================================


class CodeRegions:
    """
    Locates the string literals and comments of a text.

    Text transformers rewrite code only. Comments are the non-blank gaps the
    lexer skips between tokens, so ``#region`` lines count as comments too.

    Usage:
        regions = CodeRegions.of(text)   # None when the text does not lex
        if regions and not regions.protects(start, end):
            ...
    """

    def __init__(self, text: str) -> None:
        """
        Raises:
            LexerError: If the text cannot be tokenized
        """
        self._spans: list[tuple[int, int, bool]] = []
        position = 0
        for token in Lexer(text).tokenize():
            start = token.location.offset
            gap = text[position:start]
            if gap.strip():
                left = position + len(gap) - len(gap.lstrip())
                right = start - (len(gap) - len(gap.rstrip()))
                self._spans.append((left, right, True))
            if token.type == TokenType.STRING:
                self._spans.append((start, token.end, False))
            position = token.end
        self._starts = [span[0] for span in self._spans]

    @classmethod
    def of(cls, text: str) -> Optional[CodeRegions]:
        """Build the regions of ``text``, or None if it cannot be tokenized."""
        try:
            return cls(text)
        except LexerError as e:
            logger.debug("Leaving untokenizable text alone: %s", e)
            return None

    def protects(self, start: int, end: int) -> bool:
        """
        Check if rewriting ``[start, end)`` would disturb a string or comment.

        A range is protected when it starts inside a string or comment,
        covers only part of a string, or covers any comment. Whole strings
        inside the range are fine, a rewrite carries them over verbatim.
        """
        index = max(bisect_right(self._starts, start) - 1, 0)
        for span_start, span_end, is_comment in self._spans[index:]:
            if span_start >= end:
                break
            if span_end <= start:
                continue
            if is_comment or span_start < start or span_end > end:
                return True
        return False


def sub_in_code(
    pattern: re.Pattern[str], replace: Callable[[re.Match[str]], str], text: str
) -> str:
    """
    ``pattern.sub`` that leaves matches touching strings or comments alone.

    Text the lexer cannot tokenize is returned unchanged.
    """
    regions = CodeRegions.of(text)
    if regions is None:
        return text

    def guarded(match: re.Match[str]) -> str:
        if regions.protects(match.start(), match.end()):
            return match.group(0)
        return replace(match)

    return pattern.sub(guarded, text)


class TextTransformer(ABC):
    """
    Abstract base class for text-to-text transformers.

    A transformer only sees text. It must leave text it does not recognize
    byte-for-byte unchanged.
    """

    def __init__(self, config: OptimizerConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    @abstractmethod
    def apply(self, text: str) -> str:
        """
        Transform the text.

        Args:
            text: The full source text

        Returns:
            The transformed text
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of the transformer."""
        pass


class MultiplicationByOneRemoval(TextTransformer):
    """Drop ``* 1`` and ``1 *`` factors."""

    _TRAILING_ONE = re.compile(r"[ \t]*\* 1(?![\w.])")
    # Not the mantissa end of a literal such as ``2e-1`` or ``$1``
    _LEADING_ONE = re.compile(r"(?<![\w.$])(?<![0-9.][eE][-+])1 \* ")
    # ``x / 1 * y`` is ``x * y``, not ``x / y``
    _DIVIDING_OPERATOR = re.compile(r"(?:[/%]|\bdiv|\bmod)[ \t]*$")

    @property
    def name(self) -> str:
        return "multiplication-by-one"

    def apply(self, text: str) -> str:
        text = sub_in_code(self._TRAILING_ONE, lambda match: "", text)

        def drop_leading(match: re.Match[str]) -> str:
            if self._DIVIDING_OPERATOR.search(text, 0, match.start()):
                return match.group(0)
            return ""

        return sub_in_code(self._LEADING_ONE, drop_leading, text)


class UndefinedGuardFold(TextTransformer):
    """Fold ``if (!is_undefined(s)) { d *= s; }`` into ``d *= s ?? 1;``."""

    @property
    def name(self) -> str:
        return "undefined-guard"

    def apply(self, text: str) -> str:
        pattern = re.compile(
            r"if\s*\(\s*!\s*" + re.escape(self.config.undefined_check_function)
            + r"\s*\(\s*(" + _VARIABLE + r")\s*\)\s*\)\s*\{\s*(" + _VARIABLE
            + r")\s*\*=\s*\1\s*;?\s*\}(?!\s*else\b)"
        )

        def replace(match: re.Match[str]) -> str:
            scale, target = match.group(1), match.group(2)
            if not (looks_numerically_sensitive(text, target) or looks_numerically_sensitive(text, scale)):
                return match.group(0)
            logger.debug("Folding undefined guard on %s", scale)
            return f"{target} *= {scale} ?? 1;"

        return sub_in_code(pattern, replace, text)


class ZeroCheckEpsilon(TextTransformer):
    """Turn ``if (x != 0)`` into ``if (abs(x) > math_get_epsilon())``."""

    _ZERO_CHECK = re.compile(r"if\s*\(\s*(" + _VARIABLE + r")\s*!=\s*0\s*\)")

    @property
    def name(self) -> str:
        return "zero-check-epsilon"

    def apply(self, text: str) -> str:
        def replace(match: re.Match[str]) -> str:
            variable = match.group(1)
            if not looks_numerically_sensitive(text, variable):
                return match.group(0)
            logger.debug("Replacing zero check on %s with an epsilon comparison", variable)
            return f"if (abs({variable}) > {self.config.epsilon_function}())"

        return sub_in_code(self._ZERO_CHECK, replace, text)


def canonical_form_transformers(config: OptimizerConfig = DEFAULT_CONFIG) -> list[TextTransformer]:
    """Return the canonical form transformers in application order."""
    return [
        MultiplicationByOneRemoval(config),
        UndefinedGuardFold(config),
        ZeroCheckEpsilon(config),
    ]


def apply_transformers(text: str, transformers: Sequence[TextTransformer]) -> str:
    """Apply transformers in order, each to the previous one's output."""
    for transformer in transformers:
        rewritten = transformer.apply(text)
        if rewritten != text:
            logger.debug("Text transformer %s rewrote the source", transformer.name)
        text = rewritten
    return text


def apply_canonical_forms(text: str, config: OptimizerConfig = DEFAULT_CONFIG) -> str:
    """
    Convenience function to run every canonical form transformer.

    Args:
        text: Source text, usually already rewritten by the AST passes
        config: Supplies function names for the rewrites

    Returns:
        The transformed text
    """
    return apply_transformers(text, canonical_form_transformers(config))
